"""Parser for RSS documents (``channel > item``)."""

import feedparser

from news_aggregator.exceptions import MalformedEnvelopeError
from news_aggregator.models.article import Article, ArticleBuilder
from news_aggregator.models.resource import Resource
from news_aggregator.parsers.base import Parser
from news_aggregator.parsers.dates import parse_date
from news_aggregator.utils.logging import get_logger

logger = get_logger(__name__)


class RssParser(Parser):
    """
    Parse RSS items with feedparser.

    Per item: title, link, pubDate, description and the Dublin Core creator
    (feedparser exposes ``dc:creator`` as ``author``).
    """

    def parse(self, resource: Resource) -> list[Article]:
        feed = feedparser.parse(resource.content)

        if feed.bozo and not feed.entries:
            raise MalformedEnvelopeError(
                f"invalid RSS document for {resource.source}: {feed.get('bozo_exception')}"
            )
        if feed.bozo:
            logger.debug("RSS parsed with warnings", source=resource.source, error=str(feed.bozo_exception))

        articles: list[Article] = []
        for entry in feed.entries:
            article = (
                ArticleBuilder()
                .set_title(entry.get("title", "").strip())
                .set_description(entry.get("summary", "").strip())
                .set_creation_date(parse_date(entry.get("published", "")))
                .set_source(resource.source)
                .set_author(entry.get("author", "").strip())
                .set_link(entry.get("link", "").strip())
                .build()
            )
            articles.append(article)

        return articles
