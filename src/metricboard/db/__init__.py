# src/metricboard/db/__init__.py

"""Database models, session management and repositories."""
