"""Configuration loading utilities."""

from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError

from news_aggregator.constants import DEFAULT_FEED_GROUPS_PATH
from news_aggregator.exceptions import InvalidConfigurationError
from news_aggregator.models.config import FeedGroups, OperatorConfig
from news_aggregator.utils.logging import get_logger

logger = get_logger(__name__)


def load_yaml_config[T: BaseModel](file_path: Path | str, model_class: type[T]) -> T:
    """
    Load and validate a YAML configuration file.

    Args:
        file_path: Path to YAML configuration file
        model_class: Pydantic model class to validate against

    Returns:
        Validated configuration instance

    Raises:
        FileNotFoundError: If config file doesn't exist
        ValidationError: If config doesn't match schema
        yaml.YAMLError: If YAML is malformed

    Examples:
        >>> from news_aggregator.models.config import OperatorConfig
        >>> config = load_yaml_config("config/operator.yaml", OperatorConfig)
    """
    path = Path(file_path)

    if not path.exists():
        logger.error("Configuration file not found", path=str(path))
        raise FileNotFoundError(f"Configuration file not found: {path}")

    try:
        with path.open("r") as f:
            raw_config = yaml.safe_load(f)

        # An empty document means "all defaults"
        config = model_class.model_validate(raw_config if raw_config is not None else {})
        logger.info("Configuration loaded", path=str(path), model=model_class.__name__)
        return config

    except yaml.YAMLError as e:
        logger.error("Invalid YAML syntax", path=str(path), error=str(e))
        raise

    except ValidationError as e:
        logger.error("Configuration validation failed", path=str(path), error=str(e))
        raise


def load_feed_groups(file_path: Path | str | None = DEFAULT_FEED_GROUPS_PATH) -> dict[str, str]:
    """
    Load the feed-group map.

    A missing file yields an empty map; an invalid one raises
    InvalidConfigurationError.
    """
    if file_path is None or not Path(file_path).exists():
        logger.debug("No feed-group map", path=str(file_path))
        return {}

    try:
        groups = load_yaml_config(file_path, FeedGroups)
    except (yaml.YAMLError, ValidationError) as e:
        raise InvalidConfigurationError(f"invalid feed-group map {file_path}: {e}") from e
    return dict(groups.root)


def load_operator_config(file_path: Path | str | None = None) -> OperatorConfig:
    """
    Load operator configuration; defaults when no file is given.

    Args:
        file_path: Path to operator.yaml file

    Returns:
        OperatorConfig instance
    """
    if file_path is None:
        return OperatorConfig()
    return load_yaml_config(file_path, OperatorConfig)
