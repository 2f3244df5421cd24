# src/metricboard/services/__init__.py

"""Business logic: entity rules, aggregation, scoring and ranking."""
