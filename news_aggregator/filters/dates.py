"""Date-range filters parameterized by a ``YYYY-DD-MM`` instant."""

from collections.abc import Sequence
from datetime import datetime

from news_aggregator.filters.base import Filter
from news_aggregator.models.article import Article
from news_aggregator.parsers.dates import parse_default_date


class StartDateFilter(Filter):
    """Reject articles published strictly before the start instant."""

    def __init__(self, start: str | datetime) -> None:
        # InvalidDateError propagates from construction
        self.start = parse_default_date(start) if isinstance(start, str) else start

    def apply(self, articles: Sequence[Article]) -> list[Article]:
        return [article for article in articles if not article.creation_date < self.start]


class EndDateFilter(Filter):
    """Reject articles published strictly after the end instant."""

    def __init__(self, end: str | datetime) -> None:
        self.end = parse_default_date(end) if isinstance(end, str) else end

    def apply(self, articles: Sequence[Article]) -> list[Article]:
        return [article for article in articles if not article.creation_date > self.end]
