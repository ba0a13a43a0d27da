"""Feed and HotNews reconciliation against the aggregator service."""

from news_aggregator.operator.admission import AdmissionController
from news_aggregator.operator.client import AggregatorClient
from news_aggregator.operator.controller import Controller
from news_aggregator.operator.feed_reconciler import FeedReconciler
from news_aggregator.operator.hotnews_reconciler import HotNewsReconciler, build_news_url, effective_sources
from news_aggregator.operator.runtime import OperatorRuntime
from news_aggregator.operator.store import ObjectKey, ObjectStore, load_manifests, parse_manifests

__all__ = [
    "AdmissionController",
    "AggregatorClient",
    "Controller",
    "FeedReconciler",
    "HotNewsReconciler",
    "ObjectKey",
    "ObjectStore",
    "OperatorRuntime",
    "build_news_url",
    "effective_sources",
    "load_manifests",
    "parse_manifests",
]
