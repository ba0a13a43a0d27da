"""Filter interface and composition."""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from news_aggregator.models.article import Article


class Filter(ABC):
    """Pure predicate over an article list; never fails at apply time."""

    @abstractmethod
    def apply(self, articles: Sequence[Article]) -> list[Article]:
        """Return the matching articles, preserving order."""


class FilterChain(Filter):
    """Applies filters one after another, in order."""

    def __init__(self, *filters: Filter) -> None:
        self.filters: list[Filter] = list(filters)

    def apply(self, articles: Sequence[Article]) -> list[Article]:
        result = list(articles)
        for filter_ in self.filters:
            result = filter_.apply(result)
        return result


def compose(*filters: Filter) -> Filter:
    """Single filter equivalent to applying ``filters`` left to right."""
    return FilterChain(*filters)
