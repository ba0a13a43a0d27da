"""HTTPS JSON service over the resource manager."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from typing import Annotated

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from fastapi import Body, FastAPI, Query, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel, ConfigDict, Field

from news_aggregator import __version__
from news_aggregator.aggregator import Aggregator
from news_aggregator.exceptions import (
    FormatNotRemotelyRefreshableError,
    InvalidConfigurationError,
    InvalidDateError,
    NewsAggregatorError,
    RemoteFetchError,
    UnknownSourceError,
    UnsupportedFormatError,
)
from news_aggregator.filters import EndDateFilter, KeywordFilter, SourceFilter, StartDateFilter
from news_aggregator.manager import ResourceManager
from news_aggregator.models.article import Article
from news_aggregator.parsers.factory import ParserFactory
from news_aggregator.sorting import SortOrder, sort_articles
from news_aggregator.utils.logging import get_logger

logger = get_logger(__name__)

REFRESH_JOB_ID = "refresh-sources"

# Checked in order; the first matching class decides the status code
_ERROR_STATUS: tuple[tuple[type[NewsAggregatorError], int], ...] = (
    (UnknownSourceError, status.HTTP_400_BAD_REQUEST),
    (InvalidDateError, status.HTTP_400_BAD_REQUEST),
    (UnsupportedFormatError, status.HTTP_400_BAD_REQUEST),
    (InvalidConfigurationError, status.HTTP_400_BAD_REQUEST),
    (FormatNotRemotelyRefreshableError, status.HTTP_400_BAD_REQUEST),
    (RemoteFetchError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


class ArticleResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    description: str
    creation_date: str = Field(alias="creationDate")
    source: str
    author: str
    link: str

    @classmethod
    def from_article(cls, article: Article) -> "ArticleResponse":
        return cls(
            title=article.title,
            description=article.description,
            creation_date=article.human_readable_date(),
            source=article.source,
            author=article.author,
            link=article.link,
        )


class SourceResponse(BaseModel):
    name: str
    format: str
    link: str


class SourcePayload(BaseModel):
    name: str = Field(min_length=1)
    url: str = Field(min_length=1)
    format: str = Field(min_length=1)


class DeleteSourcePayload(BaseModel):
    name: str = Field(min_length=1)


class MessageResponse(BaseModel):
    message: str


def _split(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _format_uptime(elapsed: timedelta) -> str:
    total = int(elapsed.total_seconds())
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours}h{minutes}m{seconds}s"


def create_app(
    manager: ResourceManager,
    factory: ParserFactory | None = None,
    version: str = __version__,
    refresh_interval: timedelta | None = None,
) -> FastAPI:
    """
    Build the service.

    Args:
        manager: Shared resource manager
        factory: Parser factory (defaults registered when omitted)
        version: Version reported by /status
        refresh_interval: Period of the scheduled refresh of every source;
            no scheduler runs when None

    Returns:
        FastAPI application
    """
    parser_factory = factory or ParserFactory()
    started_at = datetime.now(UTC)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        scheduler: AsyncIOScheduler | None = None
        if refresh_interval is not None:
            scheduler = AsyncIOScheduler(job_defaults={"coalesce": True, "max_instances": 1, "misfire_grace_time": 30})
            scheduler.add_job(
                manager.update_all_sources,
                "interval",
                seconds=refresh_interval.total_seconds(),
                id=REFRESH_JOB_ID,
            )
            scheduler.start()
            logger.info("Refresh scheduler started", interval=str(refresh_interval))
        app.state.scheduler = scheduler

        yield

        if scheduler is not None:
            scheduler.shutdown(wait=False)
            logger.info("Refresh scheduler stopped")

    app = FastAPI(title="News Aggregator", version=version, lifespan=lifespan)
    app.state.manager = manager

    @app.exception_handler(RequestValidationError)
    async def invalid_payload(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, f"invalid request: {exc.errors()}")

    @app.exception_handler(NewsAggregatorError)
    async def aggregator_error(request: Request, exc: NewsAggregatorError) -> JSONResponse:
        status_code = next(
            (code for error_class, code in _ERROR_STATUS if isinstance(exc, error_class)),
            status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
        logger.warning("Request failed", path=request.url.path, status=status_code, error=str(exc))
        return _error(status_code, str(exc))

    @app.get("/news", response_model=list[ArticleResponse])
    async def news(
        sources: str | None = None,
        keywords: str | None = None,
        date_start: Annotated[str | None, Query(alias="date-start")] = None,
        date_end: Annotated[str | None, Query(alias="date-end")] = None,
        sort_order: Annotated[str, Query(alias="sort-order")] = SortOrder.ASC.value,
    ) -> list[ArticleResponse] | JSONResponse:
        try:
            order = SortOrder.parse(sort_order)
        except ValueError as e:
            return _error(status.HTTP_400_BAD_REQUEST, str(e))

        def collect() -> list[Article]:
            # A fresh aggregator per request: filters are request scoped
            aggregator = Aggregator(parser_factory)
            selected = _split(sources)
            if selected:
                aggregator.add_filter(SourceFilter(selected))
            if keywords:
                aggregator.add_filter(KeywordFilter(_split(keywords)))
            if date_start:
                aggregator.add_filter(StartDateFilter(date_start))
            if date_end:
                aggregator.add_filter(EndDateFilter(date_end))

            resources = manager.selected_resources(selected) if selected else manager.all_resources()
            return sort_articles(aggregator.aggregate_multiple(resources), order)

        # Snapshot reads and parsing stay off the event loop
        articles = await run_in_threadpool(collect)
        return [ArticleResponse.from_article(article) for article in articles]

    @app.get("/sources", response_model=list[SourceResponse])
    async def list_sources() -> list[SourceResponse]:
        return [
            SourceResponse(name=name, format=details.format.value, link=details.link)
            for name, details in sorted(manager.sources.items())
        ]

    @app.post("/sources", status_code=status.HTTP_201_CREATED, response_model=MessageResponse)
    async def register_source(payload: SourcePayload) -> MessageResponse | JSONResponse:
        try:
            manager.register_source(payload.name, payload.url, payload.format)
        except (UnsupportedFormatError, InvalidConfigurationError) as e:
            return _error(status.HTTP_400_BAD_REQUEST, str(e))
        except NewsAggregatorError as e:
            logger.error("Source registration failed", source=payload.name, error=str(e))
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))
        return MessageResponse(message=f"source {payload.name} registered")

    @app.put("/sources", response_model=MessageResponse)
    async def update_source(payload: SourcePayload) -> MessageResponse | JSONResponse:
        try:
            manager.update_source(payload.name, payload.url, payload.format)
        except (UnsupportedFormatError, InvalidConfigurationError) as e:
            return _error(status.HTTP_400_BAD_REQUEST, str(e))
        except NewsAggregatorError as e:
            logger.error("Source update failed", source=payload.name, error=str(e))
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))
        return MessageResponse(message=f"source {payload.name} updated")

    @app.delete("/sources", response_model=MessageResponse)
    async def delete_source(payload: Annotated[DeleteSourcePayload, Body()]) -> MessageResponse | JSONResponse:
        try:
            manager.delete_source(payload.name)
        except NewsAggregatorError as e:
            logger.error("Source deletion failed", source=payload.name, error=str(e))
            return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))
        return MessageResponse(message=f"source {payload.name} deleted")

    @app.get("/update", response_model=MessageResponse)
    async def update_resource(source: str | None = None) -> MessageResponse | JSONResponse:
        if not source:
            return _error(status.HTTP_400_BAD_REQUEST, "missing source parameter")
        if not manager.is_supported(source):
            return _error(status.HTTP_400_BAD_REQUEST, f'source "{source}" is not supported')

        path = await manager.update_resource(source)
        return MessageResponse(message=f"source {source} updated: {path.name}")

    @app.get("/feeds")
    async def feed_groups() -> dict[str, str]:
        return manager.feed_groups

    @app.get("/status", response_class=PlainTextResponse)
    async def server_status() -> str:
        now = datetime.now(UTC)
        return "\n".join(
            [
                "Server Status:",
                f"Version: {version}",
                f"Uptime: {_format_uptime(now - started_at)}",
                f"Server Time: {now.isoformat()}",
            ]
        )

    return app
