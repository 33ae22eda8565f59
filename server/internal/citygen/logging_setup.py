"""
Logging configuration for the city generation service.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s:%(lineno)d | %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """
    Configure process-wide logging for the service.
    Logs go to stdout; uvicorn's own loggers are kept at WARNING.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,  # drop handlers from earlier calls to avoid duplicates
    )
    logging.getLogger("internal.citygen").setLevel(getattr(logging, level.upper(), logging.INFO))
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
