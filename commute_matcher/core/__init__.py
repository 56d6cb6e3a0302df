# commute_matcher/core/__init__.py
"""
Доменный слой.
Матчинг поездок, расчёт расстояний, запись совпадений.
"""
