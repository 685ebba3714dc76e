"""
Logging configuration.

Every module logs through ``logging.getLogger(__name__)``; this installs the
single stdout handler they all share.
"""

import logging
import sys


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger with an ISO timestamp format."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    root_logger.setLevel(level.upper())
    root_logger.addHandler(handler)

    # Noisy client libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("pypdf").setLevel(logging.ERROR)
