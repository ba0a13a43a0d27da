"""Feed parsers and their (format, source) dispatch."""

from news_aggregator.parsers.base import Parser
from news_aggregator.parsers.dates import format_default_date, parse_date, parse_default_date
from news_aggregator.parsers.factory import ParserFactory
from news_aggregator.parsers.json_parser import JsonParser
from news_aggregator.parsers.rss_parser import RssParser
from news_aggregator.parsers.usa_today import UsaTodayParser

__all__ = [
    "Parser",
    "ParserFactory",
    "JsonParser",
    "RssParser",
    "UsaTodayParser",
    "parse_date",
    "parse_default_date",
    "format_default_date",
]
