# src/metricboard/__init__.py

"""Metricboard: leaderboards computed from weighted, time-windowed metrics."""
