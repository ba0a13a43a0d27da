"""Logging configuration using loguru."""

import sys
from pathlib import Path
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from loguru import Logger

from news_aggregator.models.config import LoggingConfig


def setup_logging(config: LoggingConfig) -> None:
    """
    Configure loguru sinks from configuration.

    Args:
        config: Logging configuration
    """
    logger.remove()
    logger.configure(extra={"name": "news_aggregator"})

    logger.add(
        sys.stderr,
        level=config.level,
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[name]}</cyan> | "
            "<level>{message}</level>"
        ),
        colorize=config.colorize,
        serialize=False,
    )

    if config.file_path:
        log_path = Path(config.file_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        logger.add(
            config.file_path,
            level=config.level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {extra[name]} | {message}",
            rotation=config.rotation,
            retention=config.retention,
            compression=config.compression,
            serialize=config.serialize,
            enqueue=True,
        )

    logger.debug("Logging configured", level=config.level, file=config.file_path)


def disable_logging() -> None:
    """Drop every sink; used by the CLI when output must stay clean."""
    logger.remove()


def get_logger(name: str) -> "Logger":
    """
    Get a logger bound to a module name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger instance
    """
    return logger.bind(name=name)
