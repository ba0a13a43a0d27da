"""Parser interface."""

from abc import ABC, abstractmethod

from news_aggregator.models.article import Article
from news_aggregator.models.resource import Resource


class Parser(ABC):
    """Turns one resource into articles. Parsing is pure: no I/O."""

    @abstractmethod
    def parse(self, resource: Resource) -> list[Article]:
        """
        Parse a resource.

        Raises:
            MalformedEnvelopeError: content does not have the expected structure
            UnparseableDateError: an item date matches no known layout
            ArticleInvariantViolatedError: an item misses a required field
            NoArticlesFoundError: nothing usable was found (HTML only)
        """
