# backend/app/core/log.py

import logging
import sys

from backend.app.config import settings

_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"
_DATE_FMT = "%Y-%m-%d %H:%M:%S"
_configured = False


def configure_logging(level: str = None) -> None:
    """Install a single stdout handler on the root logger (first call wins)."""
    global _configured
    if _configured:
        return
    _configured = True

    level_name = (level or settings.LOG_LEVEL or "INFO").upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name, logging.INFO))

    # Celery and uvicorn install their own handlers; don't double up
    if root.handlers:
        return

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATE_FMT))
    root.addHandler(console)
