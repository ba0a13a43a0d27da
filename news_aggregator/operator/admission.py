"""Write-time validation of Feed, HotNews and feed-group ConfigMap records."""

from collections.abc import Iterable, Mapping

from pydantic import HttpUrl, TypeAdapter, ValidationError

from news_aggregator.exceptions import AdmissionRejectedError, FieldError
from news_aggregator.models.operator import ConfigMap, Feed, HotNews, Record
from news_aggregator.models.resource import validate_source_name
from news_aggregator.operator.store import ObjectStore, Operation
from news_aggregator.utils.logging import get_logger

logger = get_logger(__name__)

_URL_ADAPTER = TypeAdapter(HttpUrl)


def split_group(value: str) -> list[str]:
    """Feed names of one comma-separated feed-group value."""
    return [part.strip() for part in value.split(",") if part.strip()]


def validate_feed(feed: Feed, existing: Iterable[Feed]) -> list[FieldError]:
    """Name rules, link syntax and name uniqueness within the namespace."""
    errors = [FieldError("spec.name", problem) for problem in validate_source_name(feed.spec.name)]

    try:
        _URL_ADAPTER.validate_python(feed.spec.link)
    except ValidationError:
        errors.append(FieldError("spec.link", f"{feed.spec.link!r} is not a valid absolute URL"))

    for other in existing:
        if other.metadata.uid == feed.metadata.uid or other.metadata.name == feed.metadata.name:
            continue
        if other.spec.name == feed.spec.name:
            errors.append(FieldError("spec.name", f"name {feed.spec.name!r} is already used by feed {other.metadata.name}"))
            break

    return errors


def validate_hotnews(hotnews: HotNews, feed_names: set[str], groups: Mapping[str, str] | None) -> list[FieldError]:
    """Keywords, date pair, listed feeds and feed groups."""
    spec = hotnews.spec
    errors: list[FieldError] = []

    if not [keyword for keyword in spec.keywords if keyword.strip()]:
        errors.append(FieldError("spec.keywords", "at least one keyword is required"))

    if spec.date_start is not None and spec.date_end is None:
        errors.append(FieldError("spec.dateEnd", "dateEnd is required when dateStart is set"))
    elif spec.date_end is not None and spec.date_start is None:
        errors.append(FieldError("spec.dateStart", "dateStart is required when dateEnd is set"))
    elif spec.date_start is not None and spec.date_end is not None and spec.date_end <= spec.date_start:
        errors.append(FieldError("spec.dateEnd", "dateEnd must be after dateStart"))

    if not spec.feeds and not spec.feed_groups:
        errors.append(FieldError("spec", "either feeds or feedGroups must be set"))

    for index, feed in enumerate(spec.feeds):
        if feed not in feed_names:
            errors.append(FieldError(f"spec.feeds[{index}]", f"feed {feed!r} does not exist"))

    if spec.feed_groups:
        if groups is None:
            errors.append(FieldError("spec.feedGroups", "feed-group ConfigMap does not exist"))
        else:
            for index, group in enumerate(spec.feed_groups):
                if group not in groups:
                    errors.append(FieldError(f"spec.feedGroups[{index}]", f"feed group {group!r} does not exist"))

    return errors


def validate_config_map(config_map: ConfigMap, feed_names: set[str]) -> list[FieldError]:
    """No empty values; every listed feed exists."""
    errors: list[FieldError] = []
    for group, value in sorted(config_map.data.items()):
        if not value.strip():
            errors.append(FieldError(f"data.{group}", "feed group cannot be empty"))
            continue
        for feed in split_group(value):
            if feed not in feed_names:
                errors.append(FieldError(f"data.{group}", f"feed {feed!r} does not exist"))
    return errors


class AdmissionController:
    """Admission hook installed on the object store."""

    def __init__(self, store: ObjectStore, config_map_name: str, config_map_namespace: str) -> None:
        self.store = store
        self.config_map_name = config_map_name
        self.config_map_namespace = config_map_namespace

    def _feed_names(self, namespace: str) -> set[str]:
        return {feed.spec.name for feed in self.store.list_records(Feed, namespace) if not feed.metadata.deleting}

    def _groups(self) -> dict[str, str] | None:
        for config_map in self.store.list_records(ConfigMap, self.config_map_namespace):
            if config_map.metadata.name == self.config_map_name:
                return config_map.data
        return None

    def _is_feed_group_map(self, config_map: ConfigMap) -> bool:
        return (
            config_map.metadata.name == self.config_map_name
            and config_map.metadata.namespace == self.config_map_namespace
        )

    def validate(self, operation: Operation, new: Record | None, old: Record | None) -> None:
        errors: list[FieldError] = []

        if operation is Operation.DELETE:
            if isinstance(old, Feed):
                errors = self._validate_feed_delete(old)
        elif isinstance(new, Feed):
            errors = validate_feed(new, self.store.list_records(Feed, new.metadata.namespace))
        elif isinstance(new, HotNews):
            errors = validate_hotnews(new, self._feed_names(new.metadata.namespace), self._groups())
        elif isinstance(new, ConfigMap) and self._is_feed_group_map(new):
            errors = validate_config_map(new, self._feed_names(new.metadata.namespace))

        if errors:
            record = new or old
            assert record is not None
            logger.warning(
                "Admission rejected",
                kind=record.kind,
                name=record.metadata.name,
                operation=operation.value,
                errors=len(errors),
            )
            raise AdmissionRejectedError(errors)

    def _validate_feed_delete(self, feed: Feed) -> list[FieldError]:
        users = [
            hotnews.metadata.name
            for hotnews in self.store.list_records(HotNews, feed.metadata.namespace)
            if feed.spec.name in hotnews.spec.feeds
        ]
        if not users:
            return []
        return [FieldError("metadata.name", f"feed {feed.spec.name!r} is used by HotNews {', '.join(users)}")]
