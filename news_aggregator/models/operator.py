"""Declarative records reconciled by the operator: Feed, HotNews and ConfigMap."""

from datetime import UTC, date, datetime
from enum import StrEnum
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from news_aggregator.constants import DEFAULT_TITLES_COUNT


class _CamelModel(BaseModel):
    """Accepts manifest style camelCase keys as well as field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ObjectMeta(_CamelModel):
    """Identity and lifecycle bookkeeping of a record."""

    name: str = Field(min_length=1)
    namespace: str = Field(default="default", min_length=1)
    uid: str = Field(default_factory=lambda: str(uuid4()))
    generation: int = Field(default=1, ge=1, description="Bumped on every spec change")
    finalizers: list[str] = Field(default_factory=list)
    deletion_timestamp: datetime | None = Field(default=None)

    @property
    def deleting(self) -> bool:
        return self.deletion_timestamp is not None


class ConditionType(StrEnum):
    ADDED = "Added"
    UPDATED = "Updated"
    DELETED = "Deleted"
    FAILED = "Failed"


class Condition(_CamelModel):
    """Immutable status record appended by a reconciler."""

    model_config = ConfigDict(frozen=True)

    type: ConditionType
    status: bool = Field(default=True)
    reason: str | None = Field(default=None)
    message: str | None = Field(default=None)
    last_update_time: datetime = Field(default_factory=lambda: datetime.now(UTC))


class FeedSpec(_CamelModel):
    name: str = Field(description="Source name registered with the aggregator")
    link: str = Field(description="Absolute URL of the feed")


class FeedStatus(_CamelModel):
    conditions: list[Condition] = Field(default_factory=list)
    observed_generation: int | None = Field(
        default=None, description="Generation of the spec the latest condition reflects"
    )

    @property
    def latest(self) -> Condition | None:
        """The authoritative observed state."""
        return self.conditions[-1] if self.conditions else None


class Feed(_CamelModel):
    kind: Literal["Feed"] = "Feed"
    metadata: ObjectMeta
    spec: FeedSpec
    status: FeedStatus = Field(default_factory=FeedStatus)


class SummaryConfig(_CamelModel):
    titles_count: int = Field(default=DEFAULT_TITLES_COUNT, ge=0)


class HotNewsSpec(_CamelModel):
    keywords: list[str] = Field(default_factory=list)
    date_start: datetime | None = Field(default=None)
    date_end: datetime | None = Field(default=None)
    feeds: list[str] = Field(default_factory=list)
    feed_groups: list[str] = Field(default_factory=list)
    summary_config: SummaryConfig = Field(default_factory=SummaryConfig)

    @field_validator("date_start", "date_end", mode="before")
    @classmethod
    def dates_are_instants(cls, value: object) -> object:
        # YAML reads a bare 2024-06-16 as a date
        if isinstance(value, date) and not isinstance(value, datetime):
            return datetime(value.year, value.month, value.day, tzinfo=UTC)
        return value


class HotNewsStatus(_CamelModel):
    news_link: str = Field(default="")
    articles_titles: list[str] = Field(default_factory=list)
    articles_count: int = Field(default=0)


class HotNews(_CamelModel):
    kind: Literal["HotNews"] = "HotNews"
    metadata: ObjectMeta
    spec: HotNewsSpec
    status: HotNewsStatus = Field(default_factory=HotNewsStatus)


class ConfigMap(_CamelModel):
    kind: Literal["ConfigMap"] = "ConfigMap"
    metadata: ObjectMeta
    data: dict[str, str] = Field(default_factory=dict)


Record = Feed | HotNews | ConfigMap
