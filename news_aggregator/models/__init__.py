"""Pydantic data models for the aggregator and the operator."""

from news_aggregator.models.article import Article, ArticleBuilder
from news_aggregator.models.config import (
    FeedGroups,
    LoggingConfig,
    OperatorConfig,
    RetryConfig,
    ServiceConfig,
    parse_duration,
)
from news_aggregator.models.operator import (
    Condition,
    ConditionType,
    ConfigMap,
    Feed,
    FeedSpec,
    FeedStatus,
    HotNews,
    HotNewsSpec,
    HotNewsStatus,
    ObjectMeta,
    Record,
    SummaryConfig,
)
from news_aggregator.models.resource import Format, Resource, validate_source_name

__all__ = [
    # Feed payloads
    "Article",
    "ArticleBuilder",
    "Format",
    "Resource",
    "validate_source_name",
    # Configuration
    "FeedGroups",
    "LoggingConfig",
    "OperatorConfig",
    "RetryConfig",
    "ServiceConfig",
    "parse_duration",
    # Declarative records
    "Condition",
    "ConditionType",
    "ConfigMap",
    "Feed",
    "FeedSpec",
    "FeedStatus",
    "HotNews",
    "HotNewsSpec",
    "HotNewsStatus",
    "ObjectMeta",
    "Record",
    "SummaryConfig",
]
