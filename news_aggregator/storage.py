"""Flat directory of dated feed snapshots: ``<source>_<YYYYMMDD>.<ext>``."""

import re
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from news_aggregator.constants import DEFAULT_STORAGE_PATH, SNAPSHOT_DATE_FORMAT
from news_aggregator.exceptions import StorageIOError
from news_aggregator.utils.logging import get_logger

logger = get_logger(__name__)

_SNAPSHOT_RE = re.compile(r"(?P<source>.+)_(?P<stamp>\d{8})\.(?P<extension>[A-Za-z0-9]+)")


def snapshot_source(file_name: str) -> str | None:
    """Source part of a snapshot file name.

    ``abc_news_20240101.xml`` belongs to ``abc_news``; names that are not
    dated snapshots fall back to the text before the first ``_``.
    """
    match = _SNAPSHOT_RE.fullmatch(file_name)
    if match:
        return match["source"]
    if "_" in file_name:
        return file_name.split("_", 1)[0]
    return None


class Storage:
    """
    Snapshot cache keyed by (source, day, extension).

    Writes for the same source and day overwrite each other; older days are
    kept. Per-file writes are not coordinated across processes.
    """

    def __init__(
        self,
        base_path: Path | str = DEFAULT_STORAGE_PATH,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.base_path = Path(base_path)
        self._clock = clock
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageIOError(f"cannot create storage directory {self.base_path}: {e}") from e

    def _file_names(self) -> list[str]:
        try:
            return sorted(path.name for path in self.base_path.iterdir() if path.is_file())
        except OSError as e:
            raise StorageIOError(f"cannot list storage directory {self.base_path}: {e}") from e

    def snapshot_path(self, source: str, extension: str, day: datetime | None = None) -> Path:
        """Path of the snapshot of ``source`` for ``day`` (today by default)."""
        stamp = (day or self._clock()).strftime(SNAPSHOT_DATE_FORMAT)
        return self.base_path / f"{source}_{stamp}.{extension}"

    def snapshot_files(self, source: str) -> list[Path]:
        """Files belonging to ``source``, sorted by name."""
        return [self.base_path / name for name in self._file_names() if snapshot_source(name) == source]

    def read_source(self, source: str) -> list[bytes]:
        """Contents of every snapshot of ``source``, in file name order."""
        contents: list[bytes] = []
        for path in self.snapshot_files(source):
            try:
                contents.append(path.read_bytes())
            except OSError as e:
                raise StorageIOError(f"cannot read snapshot {path}: {e}") from e
        return contents

    def read_concatenated(self, source: str) -> bytes:
        return b"".join(self.read_source(source))

    def available_sources(self) -> list[str]:
        """Deduplicated, sorted sources that have at least one snapshot."""
        sources = {snapshot_source(name) for name in self._file_names()}
        return sorted(source for source in sources if source)

    def write_snapshot(self, source: str, extension: str, content: bytes) -> Path:
        """Write today's snapshot of ``source``; same-day writes overwrite."""
        path = self.snapshot_path(source, extension)
        try:
            path.write_bytes(content)
        except OSError as e:
            raise StorageIOError(f"cannot write snapshot {path}: {e}") from e

        logger.info("Snapshot written", source=source, path=str(path), size=len(content))
        return path
