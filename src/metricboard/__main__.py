# src/metricboard/__main__.py

"""Run the API with uvicorn: ``python -m metricboard`` or ``metricboard``."""

import logging
import os

import uvicorn

logger = logging.getLogger(__name__)


def main() -> None:
    host = os.getenv("METRICBOARD_HOST", "127.0.0.1")
    port = int(os.getenv("METRICBOARD_PORT", "8000"))
    logger.info("Starting Metricboard API", extra={"host": host, "port": port})
    uvicorn.run(
        "metricboard.main:app",
        host=host,
        port=port,
        reload=os.getenv("METRICBOARD_RELOAD", "false").lower() == "true",
    )


if __name__ == "__main__":
    main()
