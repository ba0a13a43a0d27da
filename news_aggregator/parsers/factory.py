"""Parser dispatch keyed by (format, source)."""

from news_aggregator.exceptions import NoParserForKeyError
from news_aggregator.models.resource import Format
from news_aggregator.parsers.base import Parser
from news_aggregator.parsers.json_parser import JsonParser
from news_aggregator.parsers.rss_parser import RssParser
from news_aggregator.parsers.usa_today import UsaTodayParser

DEFAULT_PARSERS: dict[tuple[Format, str], type[Parser]] = {
    (Format.JSON, "nbc-news"): JsonParser,
    (Format.RSS, "abc-news"): RssParser,
    (Format.RSS, "washington-times"): RssParser,
    (Format.RSS, "bbc-world"): RssParser,
    (Format.HTML, "usa-today"): UsaTodayParser,
}


class ParserFactory:
    """Exact-key parser registry; there is no wildcard fallback."""

    def __init__(self, register_defaults: bool = True) -> None:
        self._parsers: dict[tuple[Format, str], Parser] = {}
        if register_defaults:
            for (format_, source), parser_class in DEFAULT_PARSERS.items():
                self.register_parser(format_, source, parser_class())

    def register_parser(self, format_: Format, source: str, parser: Parser) -> None:
        """Register a parser; re-registering a key replaces it."""
        self._parsers[(format_, source)] = parser

    def get_parser(self, format_: Format, source: str) -> Parser:
        """
        Look up the parser registered for exactly (format, source).

        Raises:
            NoParserForKeyError: nothing is registered under that key
        """
        try:
            return self._parsers[(format_, source)]
        except KeyError:
            raise NoParserForKeyError(format_.value, source) from None

    def keys(self) -> list[tuple[Format, str]]:
        """Registered (format, source) keys, sorted."""
        return sorted(self._parsers)
