"""In-memory declarative object store for Feed, HotNews and ConfigMap records.

Stands in for the cluster API: it versions specs with a generation counter,
honours finalizers on delete, runs admission hooks before every write and
notifies watchers of every change.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from pathlib import Path
from typing import Annotated, NamedTuple, Protocol

import yaml
from pydantic import Field, TypeAdapter, ValidationError

from news_aggregator.exceptions import InvalidConfigurationError, NotFoundError
from news_aggregator.models.operator import ConfigMap, Feed, HotNews, Record
from news_aggregator.utils.logging import get_logger

logger = get_logger(__name__)

_RECORD_ADAPTER: TypeAdapter[Record] = TypeAdapter(Annotated[Feed | HotNews | ConfigMap, Field(discriminator="kind")])

# Manifests are applied dependencies first so admission can see them
_APPLY_ORDER = {"Feed": 0, "ConfigMap": 1, "HotNews": 2}


class ObjectKey(NamedTuple):
    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


class Operation(StrEnum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class EventType(StrEnum):
    ADDED = "ADDED"
    MODIFIED = "MODIFIED"
    DELETED = "DELETED"


@dataclass(frozen=True)
class WatchEvent:
    type: EventType
    new: Record | None
    old: Record | None

    @property
    def record(self) -> Record:
        record = self.new if self.new is not None else self.old
        assert record is not None
        return record

    @property
    def kind(self) -> str:
        return self.record.kind

    @property
    def key(self) -> ObjectKey:
        return key_of(self.record)


class AdmissionHook(Protocol):
    def validate(self, operation: Operation, new: Record | None, old: Record | None) -> None:
        """Raise AdmissionRejectedError to refuse the write."""


Listener = Callable[[WatchEvent], None]


def key_of(record: Record) -> ObjectKey:
    return ObjectKey(record.metadata.namespace, record.metadata.name)


def _desired_state(record: Record) -> object:
    if isinstance(record, ConfigMap):
        return record.data
    return record.spec


class ObjectStore:
    """
    Declarative records keyed by (kind, namespace, name).

    Readers always receive deep copies; writes go through apply,
    update_status, set_finalizers and delete.
    """

    def __init__(self) -> None:
        self._records: dict[tuple[str, str, str], Record] = {}
        self._removed: dict[tuple[str, str, str], Record] = {}
        self._listeners: list[Listener] = []
        self._admission: list[AdmissionHook] = []

    def add_admission(self, hook: AdmissionHook) -> None:
        self._admission.append(hook)

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _admit(self, operation: Operation, new: Record | None, old: Record | None) -> None:
        for hook in self._admission:
            hook.validate(operation, new, old)

    def _emit(self, event_type: EventType, new: Record | None, old: Record | None) -> None:
        event = WatchEvent(event_type, new, old)
        for listener in self._listeners:
            listener(event)

    # Reads

    def get[R: (Feed, HotNews, ConfigMap)](self, kind: type[R], namespace: str, name: str) -> R:
        kind_name = kind.model_fields["kind"].default
        record = self._records.get((kind_name, namespace, name))
        if record is None:
            raise NotFoundError(kind_name, namespace, name)
        return record.model_copy(deep=True)  # type: ignore[return-value]

    def last_known[R: (Feed, HotNews, ConfigMap)](self, kind: type[R], namespace: str, name: str) -> R | None:
        """Final state of a removed record, or None when it was never removed."""
        kind_name = kind.model_fields["kind"].default
        record = self._removed.get((kind_name, namespace, name))
        return None if record is None else record.model_copy(deep=True)  # type: ignore[return-value]

    def list_records[R: (Feed, HotNews, ConfigMap)](self, kind: type[R], namespace: str | None = None) -> list[R]:
        kind_name = kind.model_fields["kind"].default
        return [
            record.model_copy(deep=True)  # type: ignore[misc]
            for (record_kind, record_namespace, _), record in sorted(self._records.items())
            if record_kind == kind_name and (namespace is None or record_namespace == namespace)
        ]

    # Writes

    def apply(self, record: Record) -> Record:
        """
        Create or update the desired state of a record.

        A changed spec (or ConfigMap data) bumps the generation; metadata
        bookkeeping and status of an existing record are kept.

        Raises:
            AdmissionRejectedError: An admission hook refused the write
        """
        store_key = (record.kind, record.metadata.namespace, record.metadata.name)
        existing = self._records.get(store_key)

        if existing is None:
            created = record.model_copy(deep=True)
            created.metadata.generation = 1
            created.metadata.deletion_timestamp = None
            self._admit(Operation.CREATE, created, None)
            self._records[store_key] = created
            self._removed.pop(store_key, None)
            logger.info("Record created", kind=record.kind, key=str(key_of(record)))
            self._emit(EventType.ADDED, created.model_copy(deep=True), None)
            return created.model_copy(deep=True)

        updated = existing.model_copy(deep=True)
        if isinstance(updated, ConfigMap):
            updated.data = dict(record.data)  # type: ignore[union-attr]
        else:
            updated.spec = record.spec.model_copy(deep=True)  # type: ignore[union-attr]
        if _desired_state(updated) != _desired_state(existing):
            updated.metadata.generation += 1

        self._admit(Operation.UPDATE, updated, existing)
        self._records[store_key] = updated
        logger.info("Record updated", kind=record.kind, key=str(key_of(record)), generation=updated.metadata.generation)
        self._emit(EventType.MODIFIED, updated.model_copy(deep=True), existing)
        return updated.model_copy(deep=True)

    def update_status(self, record: Feed | HotNews) -> None:
        """Replace the status only; the generation is untouched."""
        store_key = (record.kind, record.metadata.namespace, record.metadata.name)
        existing = self._records.get(store_key)
        if existing is None or isinstance(existing, ConfigMap):
            raise NotFoundError(record.kind, record.metadata.namespace, record.metadata.name)

        updated = existing.model_copy(deep=True)
        updated.status = record.status.model_copy(deep=True)  # type: ignore[assignment]
        self._records[store_key] = updated
        self._emit(EventType.MODIFIED, updated.model_copy(deep=True), existing)

    def set_finalizers(self, record: Record, finalizers: Iterable[str]) -> None:
        """Replace finalizers; a record marked for deletion goes away once none remain."""
        store_key = (record.kind, record.metadata.namespace, record.metadata.name)
        existing = self._records.get(store_key)
        if existing is None:
            raise NotFoundError(record.kind, record.metadata.namespace, record.metadata.name)

        updated = existing.model_copy(deep=True)
        updated.metadata.finalizers = list(dict.fromkeys(finalizers))

        if updated.metadata.deleting and not updated.metadata.finalizers:
            del self._records[store_key]
            self._removed[store_key] = updated
            logger.info("Record removed", kind=record.kind, key=str(key_of(record)))
            self._emit(EventType.DELETED, None, updated)
            return

        self._records[store_key] = updated
        self._emit(EventType.MODIFIED, updated.model_copy(deep=True), existing)

    def delete(self, kind: type[Feed] | type[HotNews] | type[ConfigMap], namespace: str, name: str) -> None:
        """
        Delete a record, or mark it for deletion while finalizers are pending.

        Raises:
            NotFoundError: The record does not exist
            AdmissionRejectedError: An admission hook refused the delete
        """
        kind_name = kind.model_fields["kind"].default
        store_key = (kind_name, namespace, name)
        existing = self._records.get(store_key)
        if existing is None:
            raise NotFoundError(kind_name, namespace, name)

        self._admit(Operation.DELETE, None, existing)

        if not existing.metadata.finalizers:
            del self._records[store_key]
            self._removed[store_key] = existing
            logger.info("Record removed", kind=kind_name, key=f"{namespace}/{name}")
            self._emit(EventType.DELETED, None, existing)
            return

        if existing.metadata.deleting:
            return

        updated = existing.model_copy(deep=True)
        updated.metadata.deletion_timestamp = datetime.now(UTC)
        updated.metadata.generation += 1
        self._records[store_key] = updated
        logger.info("Record marked for deletion", kind=kind_name, key=f"{namespace}/{name}")
        self._emit(EventType.MODIFIED, updated.model_copy(deep=True), existing)


def parse_manifests(text: str) -> list[Record]:
    """Parse a multi-document YAML text into records."""
    try:
        documents = [document for document in yaml.safe_load_all(text) if document]
    except yaml.YAMLError as e:
        raise InvalidConfigurationError(f"invalid manifest YAML: {e}") from e

    records: list[Record] = []
    for document in documents:
        try:
            records.append(_RECORD_ADAPTER.validate_python(document))
        except ValidationError as e:
            raise InvalidConfigurationError(f"invalid manifest: {e}") from e
    return records


def load_manifests(paths: Iterable[Path | str]) -> list[Record]:
    """Read manifests from files or directories (``*.yaml`` / ``*.yml``)."""
    files: list[Path] = []
    for raw_path in paths:
        path = Path(raw_path)
        if path.is_dir():
            files.extend(sorted(p for p in path.iterdir() if p.suffix in (".yaml", ".yml")))
        elif path.exists():
            files.append(path)
        else:
            raise InvalidConfigurationError(f"manifest path not found: {path}")

    records: list[Record] = []
    for file in files:
        records.extend(parse_manifests(file.read_text()))
        logger.debug("Manifests read", path=str(file))

    return sorted(records, key=lambda record: _APPLY_ORDER[record.kind])
