"""Composable article filters."""

from news_aggregator.filters.base import Filter, FilterChain, compose
from news_aggregator.filters.dates import EndDateFilter, StartDateFilter
from news_aggregator.filters.keyword import KeywordFilter, Stemmer
from news_aggregator.filters.source import SourceFilter

__all__ = [
    "Filter",
    "FilterChain",
    "compose",
    "KeywordFilter",
    "Stemmer",
    "SourceFilter",
    "StartDateFilter",
    "EndDateFilter",
]
