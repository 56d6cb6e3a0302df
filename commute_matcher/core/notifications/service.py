# commute_matcher/core/notifications/service.py
"""
Триггер внешнего обработчика пакетной рассылки уведомлений.

Обработчик сам идемпотентен (берёт только совпадения с notification_sent = false)
и дополнительно запускается по расписанию. Поэтому триггер лишь уменьшает
задержку уведомления: его сбой только логируется.
"""

from __future__ import annotations

import asyncio

import httpx

from commute_matcher.common.constants import MatchingMode, TypeMsg
from commute_matcher.common.logger import get_logger, log_error, log_info


class NotificationTrigger:
    """Fire-and-forget вызов обработчика рассылки."""

    def __init__(
        self,
        url: str | None = None,
        service_key: str | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Args:
            url: Полный URL обработчика (берётся из конфига если None)
            service_key: Ключ для заголовка Authorization
            timeout: Таймаут запроса (секунды)
            client: Готовый HTTP клиент (для тестов)
        """
        if url is None:
            from commute_matcher.config import settings
            url = settings.notifications.url if settings.notifications.NOTIFY_BASE_URL else ""
            service_key = settings.notifications.SERVICE_KEY
            timeout = settings.notifications.NOTIFY_TIMEOUT_SECONDS

        self._url = url
        self._service_key = service_key or ""
        self._client = client or httpx.AsyncClient(timeout=timeout)
        # Ссылки на задачи, чтобы их не собрал GC до завершения
        self._pending: set[asyncio.Task] = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def should_trigger(self, mode: MatchingMode, matches_found: int) -> bool:
        """Триггер нужен только в режиме instant и только если что-то создано."""
        return matches_found > 0 and mode is MatchingMode.INSTANT

    def trigger(self, mode: MatchingMode, matches_found: int) -> asyncio.Task | None:
        """
        Планирует вызов обработчика, не дожидаясь результата.

        Returns:
            Запущенная задача или None, если вызов не нужен
        """
        if not self.should_trigger(mode, matches_found):
            return None

        if not self._url:
            get_logger().warning("batch-send-emails trigger skipped: NOTIFY_BASE_URL не настроен")
            return None

        task = asyncio.create_task(self._send())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _send(self) -> None:
        """POST без полезной нагрузки; ошибки только логируются."""
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._service_key}",
        }
        try:
            response = await self._client.post(self._url, headers=headers)
        except Exception as e:
            # Задача фоновая: исключение никто не заберёт, только лог
            await log_error(f"batch-send-emails trigger failed: {e}")
            return

        if response.is_success:
            await log_info("batch-send-emails triggered", type_msg=TypeMsg.DEBUG)
        else:
            await log_error(f"batch-send-emails trigger failed: HTTP {response.status_code}")

    async def close(self, timeout: float = 5.0) -> None:
        """Дожидается незавершённых вызовов (ограниченно) и закрывает HTTP клиент."""
        if self._pending:
            _, still_running = await asyncio.wait(set(self._pending), timeout=timeout)
            for task in still_running:
                task.cancel()
        await self._client.aclose()
