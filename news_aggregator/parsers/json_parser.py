"""Parser for the vendor JSON envelope: ``{"articles": [...]}``."""

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from news_aggregator.exceptions import MalformedEnvelopeError
from news_aggregator.models.article import Article, ArticleBuilder
from news_aggregator.models.resource import Resource
from news_aggregator.parsers.base import Parser
from news_aggregator.parsers.dates import parse_date


class _EnvelopeSource(BaseModel):
    name: str | None = None


class _EnvelopeArticle(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    source: _EnvelopeSource | None = None
    author: str | None = None
    title: str | None = None
    description: str | None = None
    published_at: str | None = Field(default=None, alias="publishedAt")
    url: str | None = None


class _Envelope(BaseModel):
    articles: list[_EnvelopeArticle] = Field(default_factory=list)


def _clean(value: str | None) -> str:
    return (value or "").strip()


class JsonParser(Parser):
    """Each envelope item becomes one article; any bad item fails the parse."""

    def parse(self, resource: Resource) -> list[Article]:
        try:
            envelope = _Envelope.model_validate_json(resource.content)
        except ValidationError as e:
            raise MalformedEnvelopeError(f"invalid JSON envelope for {resource.source}: {e}") from e

        articles: list[Article] = []
        for item in envelope.articles:
            # The resource's source wins over the per-item source name
            article = (
                ArticleBuilder()
                .set_title(_clean(item.title))
                .set_description(_clean(item.description))
                .set_creation_date(parse_date(_clean(item.published_at)))
                .set_source(resource.source)
                .set_author(_clean(item.author))
                .set_link(_clean(item.url))
                .build()
            )
            articles.append(article)

        return articles
