# commute_matcher/services/matching_service/__init__.py
"""
Matching Service: HTTP триггер прогона матчинга.
"""
