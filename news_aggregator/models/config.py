"""Configuration models for the service, the operator and logging."""

import os
import re
from datetime import timedelta
from typing import Literal

from pydantic import BaseModel, Field, RootModel, field_validator

from news_aggregator.constants import (
    DEFAULT_AGGREGATOR_URL,
    DEFAULT_CERT_FILE_PATH,
    DEFAULT_CONFIG_MAP_NAME,
    DEFAULT_DICTIONARY_PATH,
    DEFAULT_FEED_GROUPS_PATH,
    DEFAULT_FINALIZER,
    DEFAULT_KEY_FILE_PATH,
    DEFAULT_MAX_RETRIES,
    DEFAULT_NAMESPACE,
    DEFAULT_PORT,
    DEFAULT_REFRESH_INTERVAL,
    DEFAULT_RETRY_MAX_WAIT,
    DEFAULT_RETRY_MIN_WAIT,
    DEFAULT_STORAGE_PATH,
    HTTP_CALL_TIMEOUT_SECONDS,
    RECONCILE_TIMEOUT_SECONDS,
)

_DURATION_RE = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_DURATION_UNITS = {"h": 3600.0, "m": 60.0, "s": 1.0, "ms": 0.001}


def parse_duration(value: str) -> timedelta:
    """
    Parse a duration such as ``12h``, ``30m``, ``1h30m`` or ``45s``.

    Raises:
        ValueError: If the text is not a sequence of number+unit pairs
    """
    text = value.strip()
    if not text:
        raise ValueError("empty duration")

    position = 0
    seconds = 0.0
    for match in _DURATION_RE.finditer(text):
        if match.start() != position:
            break
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position != len(text):
        raise ValueError(f"invalid duration: {value!r}")
    return timedelta(seconds=seconds)


class LoggingConfig(BaseModel):
    """Logging configuration for loguru."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(default="INFO")
    serialize: bool = Field(default=False, description="Serialize file logs to JSON")
    colorize: bool = Field(default=True, description="Colorize console output")
    file_path: str | None = Field(default=None, description="Optional log file")
    rotation: str = Field(default="50 MB", description="Log rotation size/time")
    retention: str = Field(default="14 days", description="Log retention period")
    compression: str = Field(default="zip", description="Compression format for rotated logs")


class ServiceConfig(BaseModel):
    """HTTPS service settings, read from the environment."""

    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    refresh_interval: timedelta = Field(default_factory=lambda: parse_duration(DEFAULT_REFRESH_INTERVAL))
    dictionary_path: str = Field(default=DEFAULT_DICTIONARY_PATH)
    storage_path: str = Field(default=DEFAULT_STORAGE_PATH)
    feed_groups_path: str = Field(default=DEFAULT_FEED_GROUPS_PATH)
    cert_file_path: str = Field(default=DEFAULT_CERT_FILE_PATH)
    key_file_path: str = Field(default=DEFAULT_KEY_FILE_PATH)
    host: str = Field(default="0.0.0.0")
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @field_validator("refresh_interval")
    @classmethod
    def interval_is_positive(cls, value: timedelta) -> timedelta:
        if value.total_seconds() <= 0:
            raise ValueError("refresh interval must be positive")
        return value

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> "ServiceConfig":
        """Build the configuration from PORT, TIMEOUT and the *_PATH variables."""
        env = os.environ if environ is None else environ
        values: dict[str, object] = {}

        if port := env.get("PORT"):
            values["port"] = int(port)
        if timeout := env.get("TIMEOUT"):
            values["refresh_interval"] = parse_duration(timeout)

        paths = {
            "MANAGER_CONFIG_PATH": "dictionary_path",
            "STORAGE_PATH": "storage_path",
            "FEED_GROUPS_PATH": "feed_groups_path",
            "CERT_FILE_PATH": "cert_file_path",
            "KEY_FILE_PATH": "key_file_path",
        }
        for variable, field_name in paths.items():
            if value := env.get(variable):
                values[field_name] = value

        if level := env.get("LOG_LEVEL"):
            values["logging"] = LoggingConfig(level=level.upper())

        return cls.model_validate(values)


class FeedGroups(RootModel[dict[str, str]]):
    """Feed-group map: group name -> comma-separated source list."""

    root: dict[str, str] = Field(default_factory=dict)

    @field_validator("root")
    @classmethod
    def values_not_empty(cls, value: dict[str, str]) -> dict[str, str]:
        empty = sorted(group for group, sources in value.items() if not sources.strip())
        if empty:
            raise ValueError(f"feed groups without sources: {', '.join(empty)}")
        return value


class RetryConfig(BaseModel):
    """Backoff applied to a reconcile that failed transiently."""

    max_attempts: int = Field(default=DEFAULT_MAX_RETRIES, ge=1)
    min_wait_seconds: float = Field(default=DEFAULT_RETRY_MIN_WAIT, ge=0)
    max_wait_seconds: float = Field(default=DEFAULT_RETRY_MAX_WAIT, ge=0)


class OperatorConfig(BaseModel):
    """Feed / HotNews controller configuration."""

    aggregator_url: str = Field(default=DEFAULT_AGGREGATOR_URL)
    namespace: str = Field(default=DEFAULT_NAMESPACE, description="Namespace whose Feeds are watched")
    config_map_name: str = Field(default=DEFAULT_CONFIG_MAP_NAME)
    config_map_namespace: str = Field(default=DEFAULT_NAMESPACE)
    finalizer: str = Field(default=DEFAULT_FINALIZER)
    verify_tls: bool = Field(default=False, description="Verify the aggregator certificate")
    request_timeout_seconds: float = Field(default=HTTP_CALL_TIMEOUT_SECONDS, gt=0)
    reconcile_timeout_seconds: float = Field(default=RECONCILE_TIMEOUT_SECONDS, gt=0)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
