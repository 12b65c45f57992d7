"""
Application-wide logging configuration.

Every module gets its logger via logging.getLogger(__name__); this module only
sets up the root handlers once, at app startup.
"""

import logging
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Configure root logging settings.

    Logs always stream to stderr (uvicorn picks this up). When log_file is set,
    records are also appended to that file; its parent directory is created
    if missing.
    """
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
    )

    logging.getLogger(__name__).info("Logging initialized with level %s", level.upper())
