# src/metricboard/api/__init__.py

"""FastAPI routers, one module per resource."""
