"""Resource -> parser -> articles -> filter chain."""

from collections.abc import Iterable

from news_aggregator.exceptions import InvalidConfigurationError
from news_aggregator.filters.base import Filter
from news_aggregator.models.article import Article
from news_aggregator.models.resource import Resource
from news_aggregator.parsers.factory import ParserFactory
from news_aggregator.utils.logging import get_logger

logger = get_logger(__name__)


class Aggregator:
    """
    Accumulates articles parsed from resources and projects them through filters.

    An aggregator is request scoped and not safe for concurrent mutation.
    """

    def __init__(self, factory: ParserFactory | None) -> None:
        if factory is None:
            raise InvalidConfigurationError("aggregator requires a parser factory")
        self._factory = factory
        self._filters: list[Filter] = []
        self._articles: list[Article] = []

    @property
    def articles(self) -> list[Article]:
        """Everything accumulated so far, unfiltered."""
        return list(self._articles)

    @property
    def filters(self) -> list[Filter]:
        return list(self._filters)

    def add_filter(self, filter_: Filter) -> None:
        self._filters.append(filter_)

    def aggregate(self, resource: Resource) -> list[Article]:
        """
        Parse one resource and accumulate its articles.

        Returns:
            The articles parsed from this resource

        Raises:
            NoParserForKeyError: No parser for the resource's (format, source)
            NewsAggregatorError: Any parser error, unchanged
        """
        parser = self._factory.get_parser(resource.format, resource.source)
        parsed = parser.parse(resource)
        self._articles.extend(parsed)
        logger.debug("Resource aggregated", source=resource.source, articles=len(parsed))
        return parsed

    def aggregate_multiple(self, resources: Iterable[Resource]) -> list[Article]:
        """Aggregate every resource, then filter the accumulated list once."""
        for resource in resources:
            self.aggregate(resource)

        result = list(self._articles)
        for filter_ in self._filters:
            result = filter_.apply(result)

        logger.debug("Articles projected", total=len(self._articles), kept=len(result))
        return result
