"""Loguru sink configuration."""

import sys
from pathlib import Path

from loguru import logger


def setup_logging(level: str = "INFO", log_dir: Path | None = None) -> None:
    """Configure loguru logging.

    Args:
        level: Minimum level for the stderr sink.
        log_dir: If given, also write DEBUG logs to rotating files there.
    """
    logger.remove()  # Remove default handler
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level,
    )
    if log_dir is not None:
        logger.add(
            log_dir / "minivault_{time}.log",
            rotation="50 MB",
            retention="7 days",
            level="DEBUG",
        )
