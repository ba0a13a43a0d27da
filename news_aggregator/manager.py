"""Resource manager: source dictionary, snapshot storage and remote refresh."""

import json
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path

import aiohttp
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from news_aggregator.constants import (
    DEFAULT_DICTIONARY_PATH,
    NO_AVAILABLE_FEEDS,
    NO_AVAILABLE_SOURCES,
    REMOTE_FETCH_TIMEOUT_SECONDS,
)
from news_aggregator.exceptions import (
    FormatNotRemotelyRefreshableError,
    InvalidConfigurationError,
    RemoteFetchError,
    StorageIOError,
    UnknownSourceError,
    UnsupportedFormatError,
)
from news_aggregator.models.resource import Format, Resource, validate_source_name
from news_aggregator.storage import Storage
from news_aggregator.utils.logging import get_logger

logger = get_logger(__name__)


class SourceEntry(BaseModel):
    """One row of ``feeds_dictionary.json``."""

    source: str
    format: str
    link: str = Field(default="")


class SourceDetails(BaseModel):
    format: Format
    link: str


_DICTIONARY_ADAPTER = TypeAdapter(list[SourceEntry])


class ResourceManager:
    """
    Owns the storage handle, the source dictionary and the feed-group map.

    The dictionary is loaded once and rewritten atomically (temp file +
    rename) on every mutation.
    """

    def __init__(
        self,
        storage: Storage,
        dictionary_path: Path | str = DEFAULT_DICTIONARY_PATH,
        feed_groups: dict[str, str] | None = None,
        fetch_timeout: float = REMOTE_FETCH_TIMEOUT_SECONDS,
    ) -> None:
        self.storage = storage
        self.dictionary_path = Path(dictionary_path)
        self.fetch_timeout = fetch_timeout
        self._feed_groups = dict(feed_groups or {})
        self._sources: dict[str, SourceDetails] = self._load_dictionary()

    # Dictionary persistence

    def _load_dictionary(self) -> dict[str, SourceDetails]:
        path = self.dictionary_path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            if not path.exists() or path.stat().st_size == 0:
                path.write_text("[]")
                logger.info("Created empty source dictionary", path=str(path))
            raw = path.read_bytes()
        except OSError as e:
            raise StorageIOError(f"cannot load source dictionary {path}: {e}") from e

        try:
            entries = _DICTIONARY_ADAPTER.validate_json(raw)
        except ValidationError as e:
            raise InvalidConfigurationError(f"invalid source dictionary {path}: {e}") from e

        sources: dict[str, SourceDetails] = {}
        for entry in entries:
            format_ = Format.parse(entry.format)
            if format_ is Format.UNKNOWN:
                logger.warning("Skipping source with unknown format", source=entry.source, format=entry.format)
                continue
            sources[entry.source] = SourceDetails(format=format_, link=entry.link)

        logger.debug("Source dictionary loaded", path=str(path), sources=len(sources))
        return sources

    def _save_dictionary(self) -> None:
        entries = [
            SourceEntry(source=name, format=details.format.value, link=details.link)
            for name, details in sorted(self._sources.items())
        ]
        payload = json.dumps([entry.model_dump() for entry in entries], indent=2)

        directory = self.dictionary_path.parent
        tmp_path: str | None = None
        try:
            with tempfile.NamedTemporaryFile(
                "w", dir=directory, prefix=".feeds_dictionary.", suffix=".tmp", delete=False
            ) as tmp:
                tmp_path = tmp.name
                tmp.write(payload)
            os.replace(tmp_path, self.dictionary_path)
        except OSError as e:
            if tmp_path is not None:
                Path(tmp_path).unlink(missing_ok=True)
            raise StorageIOError(f"cannot save source dictionary {self.dictionary_path}: {e}") from e

    # Queries

    @property
    def sources(self) -> dict[str, SourceDetails]:
        return dict(self._sources)

    @property
    def feed_groups(self) -> dict[str, str]:
        return dict(self._feed_groups)

    def available_sources(self) -> str:
        """Comma-separated sources that have snapshots in storage."""
        sources = self.storage.available_sources()
        return ",".join(sources) if sources else NO_AVAILABLE_SOURCES

    def available_feeds(self) -> str:
        """Comma-separated sources registered in the dictionary."""
        return ",".join(sorted(self._sources)) if self._sources else NO_AVAILABLE_FEEDS

    def is_supported(self, source: str) -> bool:
        """Whether ``source`` is registered in the dictionary."""
        return source in self._sources

    def details(self, source: str) -> SourceDetails:
        """
        Format and link of a registered source.

        Raises:
            UnknownSourceError: the source is not registered
        """
        try:
            return self._sources[source]
        except KeyError:
            raise UnknownSourceError(source) from None

    # Dictionary mutation

    def register_source(self, name: str, link: str, format_: Format | str) -> None:
        """Add or replace a source and persist the dictionary."""
        problems = validate_source_name(name)
        if problems:
            raise InvalidConfigurationError(f"invalid source name {name!r}: {', '.join(problems)}")

        parsed = format_ if isinstance(format_, Format) else Format.parse(format_)
        if parsed is Format.UNKNOWN:
            raise UnsupportedFormatError(str(format_))

        action = "updated" if name in self._sources else "registered"
        self._sources[name] = SourceDetails(format=parsed, link=link)
        self._save_dictionary()
        logger.info(f"Source {action}", source=name, format=parsed.value, link=link)

    def update_source(self, name: str, link: str, format_: Format | str) -> None:
        self.register_source(name, link, format_)

    def delete_source(self, name: str) -> None:
        """Remove a source; deleting an unknown source is a no-op."""
        if self._sources.pop(name, None) is None:
            logger.debug("Source already absent", source=name)
            return
        self._save_dictionary()
        logger.info("Source deleted", source=name)

    # Resources

    def _resources_for(self, source: str) -> list[Resource]:
        details = self.details(source)
        resources = []
        for content in self.storage.read_source(source):
            if not content:
                logger.warning("Skipping empty snapshot", source=source)
                continue
            resources.append(Resource(source=source, format=details.format, content=content))
        return resources

    def all_resources(self) -> list[Resource]:
        """One resource per stored snapshot of every dictionary source."""
        resources: list[Resource] = []
        for source in sorted(self._sources):
            resources.extend(self._resources_for(source))
        return resources

    def selected_resources(self, names: Iterable[str]) -> list[Resource]:
        """Like all_resources, restricted to ``names``; unknown names fail fast."""
        selected = list(dict.fromkeys(name.strip() for name in names if name.strip()))
        for name in selected:
            if name not in self._sources:
                raise UnknownSourceError(name)

        resources: list[Resource] = []
        for name in selected:
            resources.extend(self._resources_for(name))
        return resources

    # Remote refresh

    async def update_resource(self, source: str, session: aiohttp.ClientSession | None = None) -> Path:
        """
        Download a source's link and store it as today's snapshot.

        Args:
            source: Dictionary source name
            session: Optional shared aiohttp session

        Returns:
            Path of the written snapshot

        Raises:
            UnknownSourceError: Source is not in the dictionary
            FormatNotRemotelyRefreshableError: Source is JSON
            RemoteFetchError: Non-200 answer or network failure
            StorageIOError: Snapshot could not be written
        """
        details = self.details(source)
        if details.format not in (Format.RSS, Format.HTML):
            raise FormatNotRemotelyRefreshableError(source, details.format.value)

        if session is None:
            async with aiohttp.ClientSession() as own_session:
                content = await self._fetch(source, details.link, own_session)
        else:
            content = await self._fetch(source, details.link, session)

        # Only a fully read body reaches storage
        return self.storage.write_snapshot(source, details.format.extension, content)

    async def _fetch(self, source: str, link: str, session: aiohttp.ClientSession) -> bytes:
        timeout = aiohttp.ClientTimeout(total=self.fetch_timeout)
        try:
            async with session.get(link, timeout=timeout) as response:
                if response.status != 200:
                    raise RemoteFetchError(
                        f"fetching {source} from {link} returned {response.status} {response.reason or ''}".strip(),
                        status=response.status,
                    )
                content = await response.read()
        except aiohttp.ClientError as e:
            raise RemoteFetchError(f"fetching {source} from {link} failed: {e}") from e
        except TimeoutError as e:
            raise RemoteFetchError(f"fetching {source} from {link} timed out") from e

        if not content:
            raise RemoteFetchError(f"fetching {source} from {link} returned an empty body", status=200)

        logger.debug("Fetched remote feed", source=source, link=link, size=len(content))
        return content

    async def update_all_sources(self) -> dict[str, Exception]:
        """
        Refresh every remotely refreshable source.

        Failures are logged and collected; one failing source does not stop
        the others.

        Returns:
            Mapping of source name to the error it raised
        """
        failures: dict[str, Exception] = {}
        refreshable = [
            name for name, details in sorted(self._sources.items()) if details.format in (Format.RSS, Format.HTML)
        ]
        logger.info("Refreshing sources", count=len(refreshable))

        async with aiohttp.ClientSession() as session:
            for name in refreshable:
                try:
                    await self.update_resource(name, session=session)
                except (RemoteFetchError, StorageIOError) as e:
                    logger.error("Source refresh failed", source=name, error=str(e))
                    failures[name] = e

        logger.info("Sources refreshed", refreshed=len(refreshable) - len(failures), failed=len(failures))
        return failures
