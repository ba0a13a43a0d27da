#!/usr/bin/env python3
"""Command-line entry point.

Usage:
    news-aggregator                                  # every known article
    news-aggregator --sources bbc-world --keywords ukraine --sort-order desc
    news-aggregator serve                            # HTTPS JSON service
    news-aggregator update --source bbc-world        # refresh one snapshot (or all)
    news-aggregator reconcile manifests/             # run the Feed/HotNews controllers
"""

import asyncio
from pathlib import Path
from typing import Annotated

import typer
import uvicorn
import yaml
from dotenv import load_dotenv

from news_aggregator import __version__
from news_aggregator.aggregator import Aggregator
from news_aggregator.api.app import create_app
from news_aggregator.constants import DEFAULT_DICTIONARY_PATH, DEFAULT_STORAGE_PATH
from news_aggregator.exceptions import AdmissionRejectedError, NewsAggregatorError
from news_aggregator.filters import EndDateFilter, KeywordFilter, SourceFilter, StartDateFilter
from news_aggregator.manager import ResourceManager
from news_aggregator.models.config import LoggingConfig, ServiceConfig
from news_aggregator.models.operator import Feed, HotNews
from news_aggregator.operator.client import AggregatorClient
from news_aggregator.operator.runtime import OperatorRuntime
from news_aggregator.operator.store import ObjectStore, load_manifests
from news_aggregator.parsers.factory import ParserFactory
from news_aggregator.printer import ArticlePrinter
from news_aggregator.sorting import SortOrder, sort_articles
from news_aggregator.storage import Storage
from news_aggregator.utils.config_loader import load_feed_groups, load_operator_config
from news_aggregator.utils.logging import disable_logging, setup_logging

# Load environment variables from .env file
load_dotenv()

app = typer.Typer(help="Aggregate, filter and serve news feeds.", no_args_is_help=False)

MAX_FILTER_FLAGS = 4


def _split(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _configure_logging(verbose: bool) -> None:
    if verbose:
        setup_logging(LoggingConfig(level="DEBUG"))
    else:
        disable_logging()


@app.callback(invoke_without_command=True)
def news(
    ctx: typer.Context,
    sources: Annotated[str | None, typer.Option(help="Comma-separated sources to include")] = None,
    keywords: Annotated[str | None, typer.Option(help="Comma-separated keywords (stemmed)")] = None,
    date_start: Annotated[str | None, typer.Option("--date-start", help="Earliest date, YYYY-DD-MM")] = None,
    date_end: Annotated[str | None, typer.Option("--date-end", help="Latest date, YYYY-DD-MM")] = None,
    sort_order: Annotated[str | None, typer.Option("--sort-order", help="asc (default) or desc")] = None,
    storage_path: Annotated[Path, typer.Option(help="Snapshot directory")] = Path(DEFAULT_STORAGE_PATH),
    config_path: Annotated[Path, typer.Option(help="Source dictionary file")] = Path(DEFAULT_DICTIONARY_PATH),
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show library logs")] = False,
) -> None:
    """Print the articles of every known source, filtered and sorted."""
    if ctx.invoked_subcommand is not None:
        return

    _configure_logging(verbose)
    printer = ArticlePrinter(keywords=_split(keywords))

    given = [flag for flag in (sources, keywords, date_start, date_end, sort_order) if flag is not None]
    if len(given) > MAX_FILTER_FLAGS:
        printer.error(f"too many flags: at most {MAX_FILTER_FLAGS} filter flags may be combined")
        typer.echo(ctx.get_help())
        raise typer.Exit(code=2)

    try:
        order = SortOrder.parse(sort_order or SortOrder.ASC.value)
        manager = ResourceManager(Storage(storage_path), config_path)

        aggregator = Aggregator(ParserFactory())
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
        articles = sort_articles(aggregator.aggregate_multiple(resources), order)
    except (NewsAggregatorError, ValueError) as e:
        printer.error(str(e))
        raise typer.Exit(code=1) from e

    printer.print_articles(articles)


@app.command()
def serve() -> None:
    """Start the HTTPS JSON service (configured from the environment)."""
    printer = ArticlePrinter()
    try:
        config = ServiceConfig.from_env()
    except ValueError as e:
        printer.error(f"invalid service configuration: {e}")
        raise typer.Exit(code=1) from e

    setup_logging(config.logging)

    for path in (config.cert_file_path, config.key_file_path):
        if not Path(path).exists():
            printer.error(f"TLS file not found: {path}")
            raise typer.Exit(code=1)

    try:
        manager = ResourceManager(
            Storage(config.storage_path),
            config.dictionary_path,
            feed_groups=load_feed_groups(config.feed_groups_path),
        )
    except NewsAggregatorError as e:
        printer.error(str(e))
        raise typer.Exit(code=1) from e

    service = create_app(manager, version=__version__, refresh_interval=config.refresh_interval)
    printer.log(f"Serving on https://{config.host}:{config.port}")
    uvicorn.run(
        service,
        host=config.host,
        port=config.port,
        ssl_certfile=config.cert_file_path,
        ssl_keyfile=config.key_file_path,
    )


@app.command()
def update(
    source: Annotated[str | None, typer.Option(help="Source to refresh; every source when omitted")] = None,
    storage_path: Annotated[Path, typer.Option(help="Snapshot directory")] = Path(DEFAULT_STORAGE_PATH),
    config_path: Annotated[Path, typer.Option(help="Source dictionary file")] = Path(DEFAULT_DICTIONARY_PATH),
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show library logs")] = False,
) -> None:
    """Download fresh snapshots of remote sources."""
    _configure_logging(verbose)
    printer = ArticlePrinter()

    try:
        manager = ResourceManager(Storage(storage_path), config_path)
        if source:
            path = asyncio.run(manager.update_resource(source))
            printer.log(f"{source} updated: {path}")
            return
        failures = asyncio.run(manager.update_all_sources())
    except NewsAggregatorError as e:
        printer.error(str(e))
        raise typer.Exit(code=1) from e

    for name, error in failures.items():
        printer.warning(f"{name}: {error}")
    if failures:
        raise typer.Exit(code=1)
    printer.log("all sources updated")


@app.command()
def reconcile(
    manifests: Annotated[list[Path], typer.Argument(help="Manifest files or directories")],
    config_path: Annotated[Path | None, typer.Option("--config", help="Operator configuration YAML")] = None,
    aggregator_url: Annotated[str | None, typer.Option(help="Override the aggregator base URL")] = None,
) -> None:
    """Apply Feed, HotNews and ConfigMap manifests and reconcile them once."""
    printer = ArticlePrinter()

    try:
        config = load_operator_config(config_path)
        records = load_manifests(manifests)
    except (NewsAggregatorError, ValueError, FileNotFoundError) as e:
        printer.error(str(e))
        raise typer.Exit(code=1) from e

    if aggregator_url:
        config = config.model_copy(update={"aggregator_url": aggregator_url})
    setup_logging(config.logging)

    store = ObjectStore()
    rejected = 0

    async def run() -> None:
        nonlocal rejected
        async with AggregatorClient(
            config.aggregator_url,
            verify_tls=config.verify_tls,
            timeout=config.request_timeout_seconds,
        ) as client:
            runtime = OperatorRuntime(store, client, config)
            for record in records:
                try:
                    store.apply(record)
                except AdmissionRejectedError as e:
                    rejected += 1
                    printer.error(f"{record.kind} {record.metadata.name} rejected: {e}")
            await runtime.run_until_idle()

    asyncio.run(run())

    statuses = [
        {
            "kind": record.kind,
            "name": record.metadata.name,
            "namespace": record.metadata.namespace,
            "status": record.status.model_dump(mode="json", by_alias=True),
        }
        for record in [*store.list_records(Feed), *store.list_records(HotNews)]
    ]
    typer.echo(yaml.safe_dump(statuses, sort_keys=False))

    if rejected:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
