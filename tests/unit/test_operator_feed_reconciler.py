"""Unit tests for the Feed reconciler."""

import pytest
from aioresponses import aioresponses
from yarl import URL

from news_aggregator.exceptions import AggregatorHTTPError, NotFoundError
from news_aggregator.models.operator import ConditionType, Feed, FeedSpec, ObjectMeta
from news_aggregator.operator.client import AggregatorClient
from news_aggregator.operator.feed_reconciler import FeedReconciler
from news_aggregator.operator.store import ObjectKey, ObjectStore

BASE_URL = "https://aggregator.test:8443"
SOURCES_URL = f"{BASE_URL}/sources"
NAMESPACE = "news-aggregator-namespace"
FINALIZER = "feeds.news-aggregator.com/finalizer"
KEY = ObjectKey(NAMESPACE, "bbc")


def make_feed(link: str = "https://feeds.example/bbc.xml") -> Feed:
    return Feed(metadata=ObjectMeta(name="bbc", namespace=NAMESPACE), spec=FeedSpec(name="bbc-world", link=link))


@pytest.fixture
def store() -> ObjectStore:
    return ObjectStore()


def conditions(store: ObjectStore) -> list[ConditionType]:
    return [condition.type for condition in store.get(Feed, NAMESPACE, "bbc").status.conditions]


class TestFeedReconciler:
    """Test FeedReconciler transitions."""

    @pytest.mark.asyncio
    async def test_new_feed_is_added(self, store: ObjectStore) -> None:
        """Test POST, Added condition and finalizer."""
        store.apply(make_feed())

        with aioresponses() as mocked:
            mocked.post(SOURCES_URL, status=201)
            async with AggregatorClient(BASE_URL) as client:
                await FeedReconciler(store, client, FINALIZER).reconcile(KEY)

            call = mocked.requests[("POST", URL(SOURCES_URL))][0]
            assert call.kwargs["json"]["name"] == "bbc-world"

        feed = store.get(Feed, NAMESPACE, "bbc")
        assert conditions(store) == [ConditionType.ADDED]
        assert feed.status.observed_generation == 1
        assert FINALIZER in feed.metadata.finalizers

    @pytest.mark.asyncio
    async def test_up_to_date_is_noop(self, store: ObjectStore) -> None:
        """Test no call and no condition when nothing changed."""
        store.apply(make_feed())

        with aioresponses() as mocked:
            mocked.post(SOURCES_URL, status=201)
            async with AggregatorClient(BASE_URL) as client:
                reconciler = FeedReconciler(store, client, FINALIZER)
                await reconciler.reconcile(KEY)
                await reconciler.reconcile(KEY)

            assert len(mocked.requests[("POST", URL(SOURCES_URL))]) == 1

        assert conditions(store) == [ConditionType.ADDED]

    @pytest.mark.asyncio
    async def test_spec_change_is_updated(self, store: ObjectStore) -> None:
        """Test PUT and Updated on a newer generation."""
        store.apply(make_feed())

        with aioresponses() as mocked:
            mocked.post(SOURCES_URL, status=201)
            mocked.put(SOURCES_URL, status=200)
            async with AggregatorClient(BASE_URL) as client:
                reconciler = FeedReconciler(store, client, FINALIZER)
                await reconciler.reconcile(KEY)
                store.apply(make_feed("https://feeds.example/new.xml"))
                await reconciler.reconcile(KEY)

            call = mocked.requests[("PUT", URL(SOURCES_URL))][0]
            assert call.kwargs["json"]["url"] == "https://feeds.example/new.xml"

        assert conditions(store) == [ConditionType.ADDED, ConditionType.UPDATED]
        assert store.get(Feed, NAMESPACE, "bbc").status.observed_generation == 2

    @pytest.mark.asyncio
    async def test_deletion_is_finalized(self, store: ObjectStore) -> None:
        """Test DELETE, finalizer removal and record removal."""
        store.apply(make_feed())

        with aioresponses() as mocked:
            mocked.post(SOURCES_URL, status=201)
            mocked.delete(SOURCES_URL, status=200)
            async with AggregatorClient(BASE_URL) as client:
                reconciler = FeedReconciler(store, client, FINALIZER)
                await reconciler.reconcile(KEY)
                store.delete(Feed, NAMESPACE, "bbc")
                assert store.get(Feed, NAMESPACE, "bbc").metadata.deleting
                await reconciler.reconcile(KEY)

            call = mocked.requests[("DELETE", URL(SOURCES_URL))][0]
            assert call.kwargs["json"] == {"name": "bbc-world"}

        with pytest.raises(NotFoundError):
            store.get(Feed, NAMESPACE, "bbc")

    @pytest.mark.asyncio
    async def test_permanent_failure_is_recorded(self, store: ObjectStore) -> None:
        """Test a 400 becomes a Failed condition, retried on the next spec change."""
        store.apply(make_feed())

        with aioresponses() as mocked:
            mocked.post(SOURCES_URL, status=400)
            mocked.post(SOURCES_URL, status=201)
            async with AggregatorClient(BASE_URL) as client:
                reconciler = FeedReconciler(store, client, FINALIZER)
                await reconciler.reconcile(KEY)

                failed = store.get(Feed, NAMESPACE, "bbc").status.latest
                assert failed is not None
                assert failed.type is ConditionType.FAILED
                assert failed.status is False
                assert failed.reason is not None and failed.reason.startswith("400")
                assert FINALIZER not in store.get(Feed, NAMESPACE, "bbc").metadata.finalizers

                await reconciler.reconcile(KEY)
                assert conditions(store) == [ConditionType.FAILED]

                store.apply(make_feed("https://feeds.example/fixed.xml"))
                await reconciler.reconcile(KEY)

        assert conditions(store) == [ConditionType.FAILED, ConditionType.ADDED]

    @pytest.mark.asyncio
    async def test_transient_failure_propagates(self, store: ObjectStore) -> None:
        """Test a 503 is raised for requeue without a condition."""
        store.apply(make_feed())

        with aioresponses() as mocked:
            mocked.post(SOURCES_URL, status=503)
            async with AggregatorClient(BASE_URL) as client:
                with pytest.raises(AggregatorHTTPError):
                    await FeedReconciler(store, client, FINALIZER).reconcile(KEY)

        assert conditions(store) == []

    @pytest.mark.asyncio
    async def test_missing_record_removes_registered_source(self, store: ObjectStore) -> None:
        """Test a vanished Feed that still held its source triggers a DELETE by source name."""
        store.apply(make_feed())

        with aioresponses() as mocked:
            mocked.post(SOURCES_URL, status=201)
            mocked.delete(SOURCES_URL, status=400)
            async with AggregatorClient(BASE_URL) as client:
                reconciler = FeedReconciler(store, client, FINALIZER)
                await reconciler.reconcile(KEY)
                store.set_finalizers(store.get(Feed, NAMESPACE, "bbc"), [])
                store.delete(Feed, NAMESPACE, "bbc")
                await reconciler.reconcile(KEY)

            call = mocked.requests[("DELETE", URL(SOURCES_URL))][0]
            assert call.kwargs["json"] == {"name": "bbc-world"}

    @pytest.mark.asyncio
    async def test_missing_failed_record_sends_nothing(self, store: ObjectStore) -> None:
        """Test a Feed deleted after a failed add leaves other sources alone."""
        store.apply(make_feed())

        with aioresponses() as mocked:
            mocked.post(SOURCES_URL, status=400)
            async with AggregatorClient(BASE_URL) as client:
                reconciler = FeedReconciler(store, client, FINALIZER)
                await reconciler.reconcile(KEY)
                store.delete(Feed, NAMESPACE, "bbc")
                await reconciler.reconcile(KEY)

            assert ("DELETE", URL(SOURCES_URL)) not in mocked.requests

    @pytest.mark.asyncio
    async def test_unknown_record_sends_nothing(self, store: ObjectStore) -> None:
        """Test a key the store never held is a no-op."""
        with aioresponses() as mocked:
            async with AggregatorClient(BASE_URL) as client:
                await FeedReconciler(store, client, FINALIZER).reconcile(KEY)

            assert not mocked.requests
