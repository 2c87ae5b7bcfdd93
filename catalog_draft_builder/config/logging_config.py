# config/logging_config.py

import logging
from pathlib import Path

from catalog_draft_builder.config.settings import LOG_DIR, LOG_LEVEL

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def configure_logging(level: str = LOG_LEVEL, log_dir: Path = LOG_DIR) -> logging.Logger:
    """
    Send log records to both the console and ``log_dir/draft_builder.log``.

    Only entry points call this; library modules just use
    ``logging.getLogger(__name__)``.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format=LOG_FORMAT,
        handlers=[
            logging.FileHandler(log_dir / "draft_builder.log", encoding="utf-8"),
            logging.StreamHandler(),
        ],
    )
    return logging.getLogger("catalog_draft_builder")
