"""Utility functions and helpers."""

from news_aggregator.utils.config_loader import load_feed_groups, load_operator_config, load_yaml_config
from news_aggregator.utils.logging import disable_logging, get_logger, setup_logging

__all__ = [
    "setup_logging",
    "disable_logging",
    "get_logger",
    "load_yaml_config",
    "load_feed_groups",
    "load_operator_config",
]
