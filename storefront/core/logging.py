import logging
import os
from typing import Optional

_NOISY_LOGGERS = ("stripe", "multipart", "python_multipart")


def configure_logging(level: Optional[str] = None) -> None:
    """Configure logging for the storefront API and quiet chatty client libraries."""
    resolved = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=resolved,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(logging.WARNING, logging.getLogger().level))
