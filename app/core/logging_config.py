"""
Logging configuration shared by the API process and the Celery workers
"""
import logging
import sys
from pathlib import Path
from typing import Optional

from app.core.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: Optional[str] = None, log_dir: Optional[str] = None) -> None:
    """
    Configure root logging.

    Console output always; when a log directory is configured, errors also go
    to error.log and everything to combined.log.
    """
    level_name = (level or settings.LOG_LEVEL).upper()
    log_level = getattr(logging, level_name, logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    handlers = [console]

    directory = log_dir or settings.LOG_DIR
    if directory:
        path = Path(directory)
        path.mkdir(parents=True, exist_ok=True)

        error_handler = logging.FileHandler(path / "error.log", encoding="utf-8")
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)

        combined_handler = logging.FileHandler(path / "combined.log", encoding="utf-8")
        combined_handler.setFormatter(formatter)

        handlers.extend([error_handler, combined_handler])

    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    # SQL echo is noisy outside of debugging sessions
    if not settings.DEBUG:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
