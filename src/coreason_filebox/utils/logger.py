# Copyright (c) 2025 CoReason, Inc.
#
# This software is proprietary and dual-licensed.
# Licensed under the Prosperity Public License 3.0 (the "License").
# A copy of the license is available at https://prosperitylicense.com/versions/3.0.0
# For details, see the LICENSE file.
# Commercial use beyond a 30-day trial requires a separate license.
#
# Source Code: https://github.com/CoReason-AI/coreason_filebox

import sys
from pathlib import Path

from loguru import logger

__all__ = ["configure_logging", "logger"]

LOG_FILENAME = "app.log"

_STDERR_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)


def configure_logging(log_dir: Path = Path("logs"), level: str = "INFO") -> None:
    """Replace the default loguru sinks with a stderr sink and a JSON file sink.

    Args:
        log_dir: Directory for the rotating ``app.log`` file. Created if missing.
        level: Minimum level for the stderr sink. The file sink records DEBUG and up.
    """
    logger.remove()
    logger.add(sys.stderr, level=level, format=_STDERR_FORMAT)

    log_dir.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_dir / LOG_FILENAME,
        level="DEBUG",
        rotation="10 MB",
        retention="10 days",
        serialize=True,
        enqueue=True,
    )
