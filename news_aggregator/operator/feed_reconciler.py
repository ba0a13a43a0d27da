"""Keeps the aggregator's source registry in sync with Feed records."""

from collections.abc import Awaitable, Callable

from news_aggregator.constants import DEFAULT_FINALIZER
from news_aggregator.exceptions import AggregatorHTTPError, NotFoundError
from news_aggregator.models.operator import Condition, ConditionType, Feed
from news_aggregator.operator.client import AggregatorClient
from news_aggregator.operator.store import ObjectKey, ObjectStore
from news_aggregator.utils.logging import get_logger

logger = get_logger(__name__)

FEED_FORMAT = "RSS"


class FeedReconciler:
    """
    One reconcile per Feed key.

    - gone: best effort DELETE of the source it still had registered
    - marked for deletion: DELETE, then Deleted and finalizer removal
    - no condition, Failed or Deleted: POST, then Added and finalizer
    - Added/Updated with a newer generation: PUT, then Updated

    A successful reconcile appends exactly one condition; a reconcile with
    nothing to do appends none. Transient HTTP failures propagate for
    requeue; permanent ones are recorded as Failed.
    """

    def __init__(self, store: ObjectStore, client: AggregatorClient, finalizer: str = DEFAULT_FINALIZER) -> None:
        self.store = store
        self.client = client
        self.finalizer = finalizer

    async def reconcile(self, key: ObjectKey) -> None:
        try:
            feed = self.store.get(Feed, key.namespace, key.name)
        except NotFoundError:
            await self._delete_missing(key)
            return

        if feed.metadata.deleting:
            await self._finalize(feed)
            return

        latest = feed.status.latest
        generation = feed.metadata.generation

        if latest is not None and latest.type is not ConditionType.DELETED:
            if feed.status.observed_generation == generation:
                logger.debug("Feed up to date", key=str(key), condition=latest.type.value)
                return

        if latest is None or latest.type in (ConditionType.FAILED, ConditionType.DELETED):
            await self._transition(
                feed,
                ConditionType.ADDED,
                lambda: self.client.add_source(feed.spec.name, feed.spec.link, FEED_FORMAT),
            )
        else:
            await self._transition(
                feed,
                ConditionType.UPDATED,
                lambda: self.client.update_source(feed.spec.name, feed.spec.link, FEED_FORMAT),
            )

    async def _delete_missing(self, key: ObjectKey) -> None:
        last = self.store.last_known(Feed, key.namespace, key.name)
        if last is None or not _has_registered_source(last):
            logger.debug("Feed gone without a registered source", key=str(key))
            return

        logger.info("Feed gone, removing source", key=str(key), source=last.spec.name)
        try:
            await self.client.delete_source(last.spec.name)
        except AggregatorHTTPError as e:
            if e.transient:
                raise
            logger.warning("Source removal rejected", key=str(key), status=e.status_line)

    async def _finalize(self, feed: Feed) -> None:
        if self.finalizer not in feed.metadata.finalizers:
            return

        succeeded = await self._transition(
            feed,
            ConditionType.DELETED,
            lambda: self.client.delete_source(feed.spec.name),
        )
        if succeeded:
            remaining = [name for name in feed.metadata.finalizers if name != self.finalizer]
            self.store.set_finalizers(feed, remaining)
            logger.info("Feed finalized", name=feed.metadata.name, source=feed.spec.name)

    async def _transition(
        self,
        feed: Feed,
        target: ConditionType,
        call: Callable[[], Awaitable[None]],
    ) -> bool:
        """Run one aggregator call and record its outcome; False when it failed permanently."""
        try:
            await call()
        except AggregatorHTTPError as e:
            if e.transient:
                raise
            logger.error(
                "Feed transition failed",
                name=feed.metadata.name,
                target=target.value,
                status=e.status_line,
            )
            self._append(feed, Condition(type=ConditionType.FAILED, status=False, reason=e.status_line, message=str(e)))
            return False

        if target is ConditionType.ADDED and self.finalizer not in feed.metadata.finalizers:
            self.store.set_finalizers(feed, [*feed.metadata.finalizers, self.finalizer])

        message = f"source {feed.spec.name} {target.value.lower()}"
        self._append(feed, Condition(type=target, reason=target.value, message=message))
        logger.info("Feed reconciled", name=feed.metadata.name, condition=target.value)
        return True

    def _append(self, feed: Feed, condition: Condition) -> None:
        status = feed.status.model_copy(deep=True)
        status.conditions.append(condition)
        status.observed_generation = feed.metadata.generation
        feed.status = status
        self.store.update_status(feed)


def _has_registered_source(feed: Feed) -> bool:
    """Whether the latest non-Failed condition left the source registered."""
    for condition in reversed(feed.status.conditions):
        if condition.type in (ConditionType.ADDED, ConditionType.UPDATED):
            return True
        if condition.type is ConditionType.DELETED:
            return False
    return False
