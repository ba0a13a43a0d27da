"""Event filters deciding which watch events trigger a reconcile."""

from news_aggregator.models.operator import ConfigMap, Feed, HotNews
from news_aggregator.operator.store import EventType, WatchEvent


def generation_changed(event: WatchEvent) -> bool:
    """Creates and deletes always pass; updates only when the generation moved."""
    if event.type is not EventType.MODIFIED or event.new is None or event.old is None:
        return True
    return event.new.metadata.generation != event.old.metadata.generation


def is_feed_in_namespace(event: WatchEvent, namespace: str) -> bool:
    return isinstance(event.record, Feed) and event.record.metadata.namespace == namespace


def is_hotnews(event: WatchEvent) -> bool:
    return isinstance(event.record, HotNews)


def is_feed_group_map(event: WatchEvent, name: str, namespace: str) -> bool:
    record = event.record
    return isinstance(record, ConfigMap) and record.metadata.name == name and record.metadata.namespace == namespace
