"""Error kinds raised across the aggregator.

Library code raises these; the surfaces (CLI, HTTP handlers, controller loop)
catch and translate them into exit codes, status codes and conditions.
"""

from dataclasses import dataclass


class NewsAggregatorError(Exception):
    """Base exception for every aggregator error."""


class ArticleInvariantViolatedError(NewsAggregatorError):
    """An article could not be built because an invariant does not hold."""


class MissingFieldError(ArticleInvariantViolatedError):
    """A required article field is empty."""

    field_name: str = ""

    def __init__(self, message: str | None = None):
        super().__init__(message or f"{self.field_name} cannot be empty")


class MissingTitleError(MissingFieldError):
    field_name = "title"


class MissingDescriptionError(MissingFieldError):
    field_name = "description"


class MissingDateError(MissingFieldError):
    field_name = "creationDate"


class MissingSourceError(MissingFieldError):
    field_name = "source"


class InvalidDateError(NewsAggregatorError):
    """A user supplied date does not follow the default layout."""


class UnparseableDateError(NewsAggregatorError):
    """No known layout matches a date found in a feed."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"unable to parse date: {value!r}")


class MalformedEnvelopeError(NewsAggregatorError):
    """Feed content does not have the expected structure."""


class NoParserForKeyError(NewsAggregatorError):
    """No parser is registered for a (format, source) pair."""

    def __init__(self, format_name: str, source: str):
        self.format_name = format_name
        self.source = source
        super().__init__(f"no parser registered for format {format_name!r} and source {source!r}")


class NoArticlesFoundError(NewsAggregatorError):
    """An HTML page yielded no usable article."""

    def __init__(self, message: str = "no articles found"):
        super().__init__(message)


class UnknownSourceError(NewsAggregatorError):
    """A source is not present in the source dictionary."""

    def __init__(self, source: str):
        self.source = source
        super().__init__(f'source "{source}" is not available')


class UnsupportedFormatError(NewsAggregatorError):
    """A format name is not one of RSS, JSON or HTML."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"unsupported format: {value!r}")


class StorageIOError(NewsAggregatorError):
    """Reading or writing the snapshot directory or the dictionary failed."""


class RemoteFetchError(NewsAggregatorError):
    """Downloading a remote feed failed."""

    def __init__(self, message: str, status: int | None = None):
        self.status = status
        super().__init__(message)


class FormatNotRemotelyRefreshableError(NewsAggregatorError):
    """The source format cannot be refreshed from its remote link."""

    def __init__(self, source: str, format_name: str):
        self.source = source
        self.format_name = format_name
        super().__init__(f"source {source!r} has format {format_name} which cannot be refreshed remotely")


class InvalidConfigurationError(NewsAggregatorError):
    """A component was wired with missing or invalid configuration."""


@dataclass(frozen=True)
class FieldError:
    """One admission failure: where and what."""

    path: str
    detail: str

    def __str__(self) -> str:
        return f"{self.path}: {self.detail}"


class AdmissionRejectedError(NewsAggregatorError):
    """A declarative write was rejected; carries every accumulated field error."""

    def __init__(self, errors: list[FieldError]):
        self.errors = list(errors)
        super().__init__("; ".join(str(error) for error in self.errors))


class NotFoundError(NewsAggregatorError):
    """A declarative record does not exist in the object store."""

    def __init__(self, kind: str, namespace: str, name: str):
        self.kind = kind
        self.namespace = namespace
        self.name = name
        super().__init__(f"{kind} {namespace}/{name} not found")


class AggregatorHTTPError(NewsAggregatorError):
    """The aggregator service answered with an unexpected status."""

    def __init__(self, method: str, url: str, status: int, reason: str | None = None):
        self.method = method
        self.url = url
        self.status = status
        self.reason = reason or ""
        super().__init__(f"{method} {url} returned {self.status_line}")

    @property
    def status_line(self) -> str:
        return f"{self.status} {self.reason}".strip()

    @property
    def transient(self) -> bool:
        """404, 429 and server errors may succeed later; other 4xx will not."""
        return self.status in (404, 429) or self.status >= 500


class AggregatorUnavailableError(NewsAggregatorError):
    """The aggregator service could not be reached or did not answer in time."""

    transient = True
