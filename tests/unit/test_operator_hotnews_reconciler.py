"""Unit tests for the HotNews reconciler."""

import re
from datetime import UTC, datetime

import pytest
from aioresponses import aioresponses

from news_aggregator.exceptions import AggregatorHTTPError
from news_aggregator.models.operator import (
    ConfigMap,
    Feed,
    FeedSpec,
    HotNews,
    HotNewsSpec,
    ObjectMeta,
    SummaryConfig,
)
from news_aggregator.operator.client import AggregatorClient
from news_aggregator.operator.hotnews_reconciler import HotNewsReconciler, build_news_url, effective_sources
from news_aggregator.operator.store import ObjectKey, ObjectStore

BASE_URL = "https://aggregator.test:8443"
NEWS_URL = re.compile(r"^https://aggregator\.test:8443/news.*$")
NAMESPACE = "news-aggregator-namespace"
CONFIG_MAP = "hotnews-feeds-group"
KEY = ObjectKey(NAMESPACE, "ukraine")


class TestEffectiveSources:
    """Test effective_sources."""

    def test_union_is_sorted_and_unique(self) -> None:
        """Test listed feeds and group members are merged."""
        spec = HotNewsSpec(keywords=["x"], feeds=["bbc-world", "usa-today"], feed_groups=["world"])
        groups = {"world": "abc-news, bbc-world"}

        assert effective_sources(spec, groups) == ["abc-news", "bbc-world", "usa-today"]

    def test_unknown_groups_are_skipped(self) -> None:
        """Test groups missing from the map contribute nothing."""
        spec = HotNewsSpec(keywords=["x"], feed_groups=["sport"])
        assert effective_sources(spec, {}) == []


class TestBuildNewsUrl:
    """Test build_news_url."""

    def test_full_query(self) -> None:
        """Test parameter order and the YYYY-DD-MM date layout."""
        spec = HotNewsSpec(
            keywords=["ukraine", "run"],
            date_start=datetime(2024, 6, 16, tzinfo=UTC),
            date_end=datetime(2024, 6, 20, tzinfo=UTC),
        )

        url = build_news_url(BASE_URL + "/", spec, ["abc-news", "bbc-world"])

        assert url == (
            f"{BASE_URL}/news?keywords=ukraine,run&sources=abc-news,bbc-world"
            "&date-start=2024-16-06&date-end=2024-20-06"
        )

    def test_values_are_escaped(self) -> None:
        """Test keywords are percent-encoded."""
        spec = HotNewsSpec(keywords=["new york"])
        assert build_news_url(BASE_URL, spec, []) == f"{BASE_URL}/news?keywords=new%20york"

    def test_no_parameters(self) -> None:
        """Test the bare endpoint when nothing is set."""
        assert build_news_url(BASE_URL, HotNewsSpec(), []) == f"{BASE_URL}/news"


@pytest.fixture
def store() -> ObjectStore:
    object_store = ObjectStore()
    object_store.apply(
        Feed(
            metadata=ObjectMeta(name="bbc", namespace=NAMESPACE),
            spec=FeedSpec(name="bbc-world", link="https://feeds.example/bbc.xml"),
        )
    )
    object_store.apply(
        ConfigMap(metadata=ObjectMeta(name=CONFIG_MAP, namespace=NAMESPACE), data={"world": "bbc-world,abc-news"})
    )
    object_store.apply(
        HotNews(
            metadata=ObjectMeta(name="ukraine", namespace=NAMESPACE),
            spec=HotNewsSpec(keywords=["ukraine"], feed_groups=["world"], summary_config=SummaryConfig(titles_count=2)),
        )
    )
    return object_store


def make_reconciler(store: ObjectStore, client: AggregatorClient) -> HotNewsReconciler:
    return HotNewsReconciler(store, client, BASE_URL, CONFIG_MAP, NAMESPACE)


class TestHotNewsReconciler:
    """Test HotNewsReconciler."""

    @pytest.mark.asyncio
    async def test_status_is_written(self, store: ObjectStore) -> None:
        """Test link, truncated titles and count."""
        titles = [{"title": "First"}, {"title": "Second"}, {"title": "Third"}]
        with aioresponses() as mocked:
            mocked.get(NEWS_URL, status=200, payload=titles)
            async with AggregatorClient(BASE_URL) as client:
                await make_reconciler(store, client).reconcile(KEY)

        status = store.get(HotNews, NAMESPACE, "ukraine").status
        assert status.news_link == f"{BASE_URL}/news?keywords=ukraine&sources=abc-news,bbc-world"
        assert status.articles_titles == ["First", "Second"]
        assert status.articles_count == 2

    @pytest.mark.asyncio
    async def test_generation_is_untouched(self, store: ObjectStore) -> None:
        """Test writing the status does not bump the generation."""
        with aioresponses() as mocked:
            mocked.get(NEWS_URL, status=200, payload=[])
            async with AggregatorClient(BASE_URL) as client:
                await make_reconciler(store, client).reconcile(KEY)

        hotnews = store.get(HotNews, NAMESPACE, "ukraine")
        assert hotnews.metadata.generation == 1
        assert hotnews.status.articles_count == 0

    @pytest.mark.asyncio
    async def test_failure_leaves_status(self, store: ObjectStore) -> None:
        """Test query errors propagate and keep the previous status."""
        with aioresponses() as mocked:
            mocked.get(NEWS_URL, status=500)
            async with AggregatorClient(BASE_URL) as client:
                with pytest.raises(AggregatorHTTPError):
                    await make_reconciler(store, client).reconcile(KEY)

        assert store.get(HotNews, NAMESPACE, "ukraine").status.news_link == ""

    @pytest.mark.asyncio
    async def test_missing_record_is_noop(self) -> None:
        """Test nothing happens for unknown keys."""
        async with AggregatorClient(BASE_URL) as client:
            await make_reconciler(ObjectStore(), client).reconcile(KEY)

    def test_feed_groups_without_config_map(self) -> None:
        """Test an absent ConfigMap reads as no groups."""
        reconciler = HotNewsReconciler(ObjectStore(), AggregatorClient(BASE_URL), BASE_URL, CONFIG_MAP, NAMESPACE)
        assert reconciler.feed_groups() == {}
