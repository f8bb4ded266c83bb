"""
Root logger configuration.
"""

from __future__ import annotations

import logging


def setup_logging(level: str = "INFO") -> None:
    """
    Attach a console handler to the root logger, once per process.
    """
    logger = logging.getLogger()
    if logger.handlers:
        # Already configured (uvicorn, pytest, or a repeated lifespan).
        logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        return

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler = logging.StreamHandler()
    handler.setFormatter(formatter)
    logger.addHandler(handler)
