"""Recomputes HotNews summaries against the aggregator's /news endpoint."""

from collections.abc import Mapping
from urllib.parse import quote

from news_aggregator.exceptions import NotFoundError
from news_aggregator.models.operator import ConfigMap, HotNews, HotNewsSpec, HotNewsStatus
from news_aggregator.operator.admission import split_group
from news_aggregator.operator.client import AggregatorClient
from news_aggregator.operator.store import ObjectKey, ObjectStore
from news_aggregator.parsers.dates import format_default_date
from news_aggregator.utils.logging import get_logger

logger = get_logger(__name__)


def effective_sources(spec: HotNewsSpec, groups: Mapping[str, str]) -> list[str]:
    """Sorted union of the listed feeds and the feeds of every listed group."""
    sources = {feed.strip() for feed in spec.feeds if feed.strip()}
    for group in spec.feed_groups:
        if group not in groups:
            logger.warning("Unknown feed group", group=group)
            continue
        sources.update(split_group(groups[group]))
    return sorted(sources)


def _join(values: list[str]) -> str:
    return ",".join(quote(value, safe="") for value in values)


def build_news_url(base_url: str, spec: HotNewsSpec, sources: list[str]) -> str:
    """
    Build the /news query for a HotNews spec.

    Parameters appear in a fixed order (keywords, sources, date-start,
    date-end) and only when set. Dates use the aggregator's ``YYYY-DD-MM``
    query layout.
    """
    params: list[str] = []
    keywords = [keyword.strip() for keyword in spec.keywords if keyword.strip()]
    if keywords:
        params.append(f"keywords={_join(keywords)}")
    if sources:
        params.append(f"sources={_join(sources)}")
    if spec.date_start is not None:
        params.append(f"date-start={format_default_date(spec.date_start)}")
    if spec.date_end is not None:
        params.append(f"date-end={format_default_date(spec.date_end)}")

    url = f"{base_url.rstrip('/')}/news"
    return f"{url}?{'&'.join(params)}" if params else url


class HotNewsReconciler:
    """Reads the spec and the feed-group map, queries /news and writes the summary."""

    def __init__(
        self,
        store: ObjectStore,
        client: AggregatorClient,
        base_url: str,
        config_map_name: str,
        config_map_namespace: str,
    ) -> None:
        self.store = store
        self.client = client
        self.base_url = base_url
        self.config_map_name = config_map_name
        self.config_map_namespace = config_map_namespace

    def feed_groups(self) -> dict[str, str]:
        try:
            config_map = self.store.get(ConfigMap, self.config_map_namespace, self.config_map_name)
        except NotFoundError:
            logger.debug("Feed-group ConfigMap not found", name=self.config_map_name)
            return {}
        return config_map.data

    async def reconcile(self, key: ObjectKey) -> None:
        try:
            hotnews = self.store.get(HotNews, key.namespace, key.name)
        except NotFoundError:
            logger.debug("HotNews gone", key=str(key))
            return

        if hotnews.metadata.deleting:
            return

        sources = effective_sources(hotnews.spec, self.feed_groups())
        url = build_news_url(self.base_url, hotnews.spec, sources)

        # Errors propagate: a failed query leaves the status untouched
        titles = await self.client.fetch_titles(url)
        kept = titles[: hotnews.spec.summary_config.titles_count]

        hotnews.status = HotNewsStatus(news_link=url, articles_titles=kept, articles_count=len(kept))
        self.store.update_status(hotnews)
        logger.info("HotNews reconciled", key=str(key), articles=len(kept), link=url)
