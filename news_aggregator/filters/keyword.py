"""Stemmed keyword filter."""

import re
from collections.abc import Iterable, Sequence

from nltk.stem.porter import PorterStemmer

from news_aggregator.filters.base import Filter
from news_aggregator.models.article import Article

_WORD_RE = re.compile(r"\w+")


class Stemmer:
    """Lower-cases text and Porter-stems each word."""

    def __init__(self) -> None:
        self._stemmer = PorterStemmer()

    def stem_word(self, word: str) -> str:
        return self._stemmer.stem(word.lower())

    def stem_text(self, text: str) -> str:
        return " ".join(self.stem_word(word) for word in _WORD_RE.findall(text.lower()))


class KeywordFilter(Filter):
    """
    Keep articles whose stemmed title or description contains a stemmed keyword.

    ``"run"`` matches "Running in the park"; an empty keyword list matches
    everything.
    """

    def __init__(self, keywords: Iterable[str], stemmer: Stemmer | None = None) -> None:
        self.keywords = [keyword.strip() for keyword in keywords if keyword.strip()]
        self._stemmer = stemmer or Stemmer()
        self._terms = [self._stemmer.stem_text(keyword) for keyword in self.keywords]
        self._terms = [term for term in self._terms if term]

    @property
    def terms(self) -> list[str]:
        """Stemmed keywords."""
        return list(self._terms)

    def matches(self, article: Article) -> bool:
        if not self._terms:
            return True
        title = self._stemmer.stem_text(article.title)
        description = self._stemmer.stem_text(article.description)
        return any(term in title or term in description for term in self._terms)

    def apply(self, articles: Sequence[Article]) -> list[Article]:
        if not self.keywords:
            return list(articles)
        return [article for article in articles if self.matches(article)]
