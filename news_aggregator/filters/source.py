"""Source filter."""

from collections.abc import Iterable, Sequence

from news_aggregator.filters.base import Filter
from news_aggregator.models.article import Article


class SourceFilter(Filter):
    """Keep articles from the given sources; an empty set keeps everything."""

    def __init__(self, sources: Iterable[str]) -> None:
        self.sources = frozenset(source.strip() for source in sources if source.strip())

    def apply(self, articles: Sequence[Article]) -> list[Article]:
        if not self.sources:
            return list(articles)
        return [article for article in articles if article.source in self.sources]
