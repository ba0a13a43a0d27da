"""Wires the object store, admission, both reconcilers and their work queues."""

import asyncio

from news_aggregator.models.config import OperatorConfig
from news_aggregator.models.operator import Feed, HotNews
from news_aggregator.operator.admission import AdmissionController
from news_aggregator.operator.client import AggregatorClient
from news_aggregator.operator.controller import Controller
from news_aggregator.operator.feed_reconciler import FeedReconciler
from news_aggregator.operator.hotnews_reconciler import HotNewsReconciler
from news_aggregator.operator.predicates import (
    generation_changed,
    is_feed_group_map,
    is_feed_in_namespace,
    is_hotnews,
)
from news_aggregator.operator.store import EventType, ObjectStore, WatchEvent, key_of
from news_aggregator.utils.logging import get_logger

logger = get_logger(__name__)


class OperatorRuntime:
    """
    Routes store events to the Feed and HotNews controllers.

    - Feed events in the watched namespace: that Feed, and every HotNews of
      the namespace
    - HotNews events: that HotNews
    - feed-group ConfigMap events: every HotNews that uses feedGroups
    """

    def __init__(self, store: ObjectStore, client: AggregatorClient, config: OperatorConfig) -> None:
        self.store = store
        self.config = config

        store.add_admission(AdmissionController(store, config.config_map_name, config.config_map_namespace))

        self.feed_controller = Controller(
            "feed",
            FeedReconciler(store, client, config.finalizer),
            timeout=config.reconcile_timeout_seconds,
            retry=config.retry,
        )
        self.hotnews_controller = Controller(
            "hotnews",
            HotNewsReconciler(
                store,
                client,
                config.aggregator_url,
                config.config_map_name,
                config.config_map_namespace,
            ),
            timeout=config.reconcile_timeout_seconds,
            retry=config.retry,
        )
        store.subscribe(self.on_event)

    def on_event(self, event: WatchEvent) -> None:
        if not generation_changed(event):
            return

        if is_feed_in_namespace(event, self.config.namespace):
            # A finalized Feed has already been removed from the aggregator
            finalized = event.type is EventType.DELETED and event.record.metadata.deleting
            if not finalized:
                self.feed_controller.enqueue(event.key)
            for hotnews in self.store.list_records(HotNews, event.key.namespace):
                self.hotnews_controller.enqueue(key_of(hotnews))
        elif is_hotnews(event):
            self.hotnews_controller.enqueue(event.key)
        elif is_feed_group_map(event, self.config.config_map_name, self.config.config_map_namespace):
            for hotnews in self.store.list_records(HotNews):
                if hotnews.spec.feed_groups:
                    self.hotnews_controller.enqueue(key_of(hotnews))

    def resync(self) -> None:
        """Queue every known record, as on controller start."""
        for feed in self.store.list_records(Feed, self.config.namespace):
            self.feed_controller.enqueue(key_of(feed))
        for hotnews in self.store.list_records(HotNews):
            self.hotnews_controller.enqueue(key_of(hotnews))

    async def run_until_idle(self) -> None:
        """Run both controllers until neither has work left."""
        while self.feed_controller.pending or self.hotnews_controller.pending:
            await asyncio.gather(self.feed_controller.run_until_idle(), self.hotnews_controller.run_until_idle())
        logger.info(
            "Controllers idle",
            feeds_ok=self.feed_controller.succeeded,
            feeds_failed=self.feed_controller.failed,
            hotnews_ok=self.hotnews_controller.succeeded,
            hotnews_failed=self.hotnews_controller.failed,
        )
