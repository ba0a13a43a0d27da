"""Terminal rendering of article projections and CLI messages."""

import re
from collections.abc import Sequence
from itertools import groupby
from typing import TextIO

import typer

from news_aggregator.filters.keyword import Stemmer
from news_aggregator.models.article import Article

_WORD_RE = re.compile(r"\w+")


class ArticlePrinter:
    """
    Prints articles grouped by source.

    Words whose stem contains a stemmed keyword are underlined in titles and
    descriptions.
    """

    def __init__(self, keywords: Sequence[str] = (), color: bool | None = None, file: TextIO | None = None):
        self._stemmer = Stemmer()
        self._terms = [self._stemmer.stem_text(keyword) for keyword in keywords if keyword.strip()]
        self._color = color
        self._file = file

    def _echo(self, message: str = "", err: bool = False) -> None:
        typer.echo(message, file=self._file, err=err and self._file is None, color=self._color)

    def highlight(self, text: str) -> str:
        if not self._terms:
            return text

        def underline(match: re.Match[str]) -> str:
            word = match.group(0)
            stem = self._stemmer.stem_word(word)
            if any(term in stem or stem in term.split() for term in self._terms):
                return typer.style(word, underline=True)
            return word

        return _WORD_RE.sub(underline, text)

    def print_articles(self, articles: Sequence[Article]) -> None:
        if not articles:
            self.warning("No news found for the given filters")
            return

        # groupby needs its input ordered by the grouping key; keep first-seen order of sources
        order = {source: index for index, source in enumerate(dict.fromkeys(a.source for a in articles))}
        grouped = sorted(articles, key=lambda article: order[article.source])

        for source, items in groupby(grouped, key=lambda article: article.source):
            self._echo(typer.style(f"=== {source} ===", bold=True))
            for article in items:
                self._echo(f"Title: {self.highlight(article.title)}")
                self._echo(f"Description: {self.highlight(article.description)}")
                self._echo(f"Date: {article.human_readable_date()}")
                if article.author:
                    self._echo(f"Author: {article.author}")
                if article.link:
                    self._echo(f"Link: {article.link}")
                self._echo()

        self.log(f"{len(articles)} articles")

    def error(self, message: str) -> None:
        self._echo(f"[Error] {message}", err=True)

    def warning(self, message: str) -> None:
        self._echo(f"[Warning] {message}")

    def log(self, message: str) -> None:
        self._echo(f"[Log] {message}")
