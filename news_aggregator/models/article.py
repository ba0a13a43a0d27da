"""Normalized article record and its builder."""

from datetime import UTC, datetime
from typing import Self

from pydantic import BaseModel, ConfigDict, Field

from news_aggregator.exceptions import (
    MissingDateError,
    MissingDescriptionError,
    MissingSourceError,
    MissingTitleError,
)

HUMAN_READABLE_FORMAT = "%d %b %y %H:%M %Z"  # RFC822


class Article(BaseModel):
    """Immutable news item produced by a parser."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    creation_date: datetime = Field(description="Publication instant (timezone aware)")
    source: str = Field(min_length=1)
    author: str = Field(default="")
    link: str = Field(default="")

    def human_readable_date(self) -> str:
        """Publication date as RFC822 in the local time zone."""
        return self.creation_date.astimezone().strftime(HUMAN_READABLE_FORMAT)


class ArticleBuilder:
    """Chainable article construction with invariant checks at build time."""

    def __init__(self) -> None:
        self._title = ""
        self._description = ""
        self._creation_date: datetime | None = None
        self._source = ""
        self._author = ""
        self._link = ""

    def set_title(self, title: str) -> Self:
        """Set the headline (required)."""
        self._title = title
        return self

    def set_description(self, description: str) -> Self:
        """Set the summary text."""
        self._description = description
        return self

    def set_creation_date(self, creation_date: datetime | None) -> Self:
        """Set the publication time; a naive value is taken as UTC."""
        self._creation_date = creation_date
        return self

    def set_source(self, source: str) -> Self:
        """Set the source identifier the article came from."""
        self._source = source
        return self

    def set_author(self, author: str) -> Self:
        """Set the author (optional)."""
        self._author = author
        return self

    def set_link(self, link: str) -> Self:
        """Set the article URL (optional)."""
        self._link = link
        return self

    def build(self) -> Article:
        """
        Build the article.

        Returns:
            A fully valid Article

        Raises:
            MissingTitleError: title is empty
            MissingDescriptionError: description is empty
            MissingDateError: creation date is unset or the zero instant
            MissingSourceError: source is empty
        """
        if not self._title:
            raise MissingTitleError()
        if not self._description:
            raise MissingDescriptionError()
        if self._creation_date is None:
            raise MissingDateError()
        if self._creation_date.replace(tzinfo=None) == datetime.min:
            raise MissingDateError()
        if not self._source:
            raise MissingSourceError()

        creation_date = self._creation_date
        if creation_date.tzinfo is None:
            creation_date = creation_date.replace(tzinfo=UTC)

        return Article(
            title=self._title,
            description=self._description,
            creation_date=creation_date,
            source=self._source,
            author=self._author,
            link=self._link,
        )
