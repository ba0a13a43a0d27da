"""Raw feed payloads tagged with their source and format."""

import re
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from news_aggregator.constants import SOURCE_MAX_LENGTH, SOURCE_PATTERN

_SOURCE_RE = re.compile(SOURCE_PATTERN)


class Format(StrEnum):
    """Feed payload formats."""

    RSS = "RSS"
    JSON = "JSON"
    HTML = "HTML"
    UNKNOWN = "UNKNOWN"

    @classmethod
    def parse(cls, value: str) -> "Format":
        """Case-insensitive lookup; anything unrecognised is UNKNOWN."""
        normalized = value.strip().upper()
        for member in (cls.RSS, cls.JSON, cls.HTML):
            if member.value == normalized:
                return member
        return cls.UNKNOWN

    @property
    def extension(self) -> str:
        """Snapshot file extension for this format."""
        extensions = {Format.RSS: "xml", Format.JSON: "json", Format.HTML: "html"}
        try:
            return extensions[self]
        except KeyError:
            raise ValueError(f"format {self.value} has no snapshot extension") from None


def validate_source_name(value: str) -> list[str]:
    """Return every rule a source name breaks (empty list when valid)."""
    problems: list[str] = []
    if not value:
        problems.append("cannot be empty")
        return problems
    if len(value) > SOURCE_MAX_LENGTH:
        problems.append(f"must be at most {SOURCE_MAX_LENGTH} characters")
    if not _SOURCE_RE.fullmatch(value):
        problems.append("may only contain letters, digits, '-' and '_'")
    return problems


class Resource(BaseModel):
    """Raw payload of one snapshot: (source, format, content)."""

    model_config = ConfigDict(frozen=True)

    source: str = Field(min_length=1, description="Source identifier")
    format: Format = Field(description="Payload format")
    content: bytes = Field(min_length=1, description="Raw payload bytes")

    @field_validator("source")
    @classmethod
    def source_is_identifier(cls, value: str) -> str:
        problems = validate_source_name(value)
        if problems:
            raise ValueError(f"source {value!r} " + ", ".join(problems))
        return value

    @field_validator("format")
    @classmethod
    def format_is_known(cls, value: Format) -> Format:
        if value is Format.UNKNOWN:
            raise ValueError("resource format cannot be UNKNOWN")
        return value
