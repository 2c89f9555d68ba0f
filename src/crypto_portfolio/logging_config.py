"""
Logging configuration for the API server and the snapshot CLI.
"""

import logging
import sys

from . import settings


def setup_logging(level: str | None = None) -> None:
    """Configure application logging."""

    logging.basicConfig(
        level=getattr(logging, (level or settings.get_log_level()).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )

    # httpx logs every request at INFO.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("uvicorn").setLevel(logging.INFO)
