# commute_matcher/shared/__init__.py
