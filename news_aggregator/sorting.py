"""Deterministic article ordering by creation date."""

from collections.abc import Sequence
from enum import StrEnum

from news_aggregator.models.article import Article


class SortOrder(StrEnum):
    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: str) -> "SortOrder":
        """Case-insensitive; raises ValueError for anything but asc/desc."""
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"invalid sort order {value!r}: expected 'asc' or 'desc'") from None


def sort_by_date_asc(articles: Sequence[Article]) -> list[Article]:
    return sorted(articles, key=lambda article: article.creation_date)


def sort_by_date_desc(articles: Sequence[Article]) -> list[Article]:
    # reverse=True keeps equal dates in their prior relative order
    return sorted(articles, key=lambda article: article.creation_date, reverse=True)


def sort_articles(articles: Sequence[Article], order: SortOrder = SortOrder.ASC) -> list[Article]:
    if order is SortOrder.DESC:
        return sort_by_date_desc(articles)
    return sort_by_date_asc(articles)
