"""Parser for the USA-Today HTML listing page."""

from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag
from bs4.builder import ParserRejectedMarkup

from news_aggregator.exceptions import (
    ArticleInvariantViolatedError,
    MalformedEnvelopeError,
    NoArticlesFoundError,
    UnparseableDateError,
)
from news_aggregator.models.article import Article, ArticleBuilder
from news_aggregator.models.resource import Resource
from news_aggregator.parsers.base import Parser
from news_aggregator.parsers.dates import parse_date
from news_aggregator.utils.logging import get_logger

logger = get_logger(__name__)

BASE_URL = "https://usatoday.com"
ANCHOR_SELECTOR = "main.gnt_cw div.gnt_m_flm a.gnt_m_flm_a"
DATE_SELECTOR = "div.gnt_m_flm_sbt"


def _visible_title(anchor: Tag) -> str:
    """Anchor text without the nested date block."""
    parts = [
        text.strip()
        for text in anchor.find_all(string=True)
        if text.find_parent("div", class_="gnt_m_flm_sbt") is None
    ]
    return " ".join(part for part in parts if part)


class UsaTodayParser(Parser):
    """Items that fail to parse are dropped; an empty result is an error."""

    def parse(self, resource: Resource) -> list[Article]:
        try:
            soup = BeautifulSoup(resource.content, "html.parser")
        except ParserRejectedMarkup as e:
            raise MalformedEnvelopeError(f"invalid HTML for {resource.source}: {e}") from e

        articles: list[Article] = []
        for anchor in soup.select(ANCHOR_SELECTOR):
            date_block = anchor.select_one(DATE_SELECTOR)
            raw_date = str(date_block.get("data-c-dt", "")) if date_block else ""
            href = str(anchor.get("href", "")).strip()

            try:
                article = (
                    ArticleBuilder()
                    .set_title(_visible_title(anchor))
                    .set_description(str(anchor.get("data-c-br", "")).strip())
                    .set_creation_date(parse_date(raw_date))
                    .set_source(resource.source)
                    .set_link(urljoin(BASE_URL, href) if href else "")
                    .build()
                )
            except (UnparseableDateError, ArticleInvariantViolatedError) as e:
                logger.debug("Dropping USA-Today item", source=resource.source, error=str(e))
                continue

            articles.append(article)

        if not articles:
            raise NoArticlesFoundError()

        return articles
