"""Shared pytest fixtures and configuration."""

from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path

import pytest

from news_aggregator.manager import ResourceManager
from news_aggregator.models.article import Article
from news_aggregator.storage import Storage

RSS_DOCUMENT = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0" xmlns:dc="http://purl.org/dc/elements/1.1/">
  <channel>
    <title>BBC News - World</title>
    <link>https://www.bbc.co.uk/news/world</link>
    <description>World news</description>
    <item>
      <title>Ukraine talks resume</title>
      <description>Diplomats meet again in Geneva</description>
      <pubDate>Thu, 28 May 2020 14:15:22 +0000</pubDate>
      <link>https://bbc.example/ukraine</link>
      <dc:creator>Jane Reporter</dc:creator>
    </item>
    <item>
      <title>Running in the park</title>
      <description>City marathon draws record crowds</description>
      <pubDate>Fri, 29 May 2020 09:00:00 +0000</pubDate>
      <link>https://bbc.example/marathon</link>
    </item>
  </channel>
</rss>
"""

JSON_ENVELOPE = b"""{
  "status": "ok",
  "articles": [
    {
      "source": {"id": null, "name": "NBC News"},
      "author": " Alex Writer ",
      "title": " Markets rally ",
      "description": " Stocks close higher ",
      "publishedAt": "2024-05-28T14:15:22Z",
      "url": "https://nbc.example/markets"
    },
    {
      "source": {"id": null, "name": "NBC News"},
      "author": null,
      "title": "Best city to live",
      "description": "A new ranking is out",
      "publishedAt": "2024-05-29T08:00:00Z",
      "url": "https://nbc.example/cities"
    }
  ]
}
"""

USA_TODAY_PAGE = b"""<!DOCTYPE html>
<html>
  <body>
    <main class="gnt_cw">
      <div class="gnt_m_flm">
        <a class="gnt_m_flm_a" href="/article_url" data-c-br="Test description">Test title<div class="gnt_m_flm_sbt" data-c-dt="June 3, 2024"></div></a>
        <a class="gnt_m_flm_a" href="/broken" data-c-br="Broken description">Broken item<div class="gnt_m_flm_sbt" data-c-dt="sometime soon"></div></a>
      </div>
    </main>
  </body>
</html>
"""

EMPTY_USA_TODAY_PAGE = b"""<!DOCTYPE html>
<html><body><main class="gnt_cw"><div class="gnt_m_flm"></div></main></body></html>
"""

SNAPSHOT_DAY = datetime(2024, 6, 20, 12, 0)


@pytest.fixture
def rss_document() -> bytes:
    return RSS_DOCUMENT


@pytest.fixture
def json_envelope() -> bytes:
    return JSON_ENVELOPE


@pytest.fixture
def usa_today_page() -> bytes:
    return USA_TODAY_PAGE


@pytest.fixture
def make_article() -> Callable[..., Article]:
    """Factory for articles with sensible defaults."""

    def _make(
        title: str = "Sample title",
        description: str = "Sample description",
        creation_date: datetime | None = None,
        source: str = "bbc-world",
        author: str = "",
        link: str = "",
    ) -> Article:
        return Article(
            title=title,
            description=description,
            creation_date=creation_date or datetime(2024, 6, 20, tzinfo=UTC),
            source=source,
            author=author,
            link=link,
        )

    return _make


@pytest.fixture
def storage_dir(tmp_path: Path) -> Path:
    return tmp_path / "storage"


@pytest.fixture
def storage(storage_dir: Path) -> Storage:
    """Storage with a fixed clock so snapshot names are predictable."""
    return Storage(storage_dir, clock=lambda: SNAPSHOT_DAY)


@pytest.fixture
def dictionary_path(tmp_path: Path) -> Path:
    return tmp_path / "config" / "feeds_dictionary.json"


@pytest.fixture
def manager(storage: Storage, dictionary_path: Path) -> ResourceManager:
    """Manager with bbc-world (RSS), nbc-news (JSON) and usa-today (HTML) registered and stored."""
    resource_manager = ResourceManager(storage, dictionary_path, feed_groups={"world": "bbc-world,abc-news"})
    resource_manager.register_source("bbc-world", "https://feeds.example/bbc.xml", "rss")
    resource_manager.register_source("nbc-news", "", "json")
    resource_manager.register_source("usa-today", "https://usatoday.example/world", "html")

    storage.write_snapshot("bbc-world", "xml", RSS_DOCUMENT)
    storage.write_snapshot("nbc-news", "json", JSON_ENVELOPE)
    storage.write_snapshot("usa-today", "html", USA_TODAY_PAGE)
    return resource_manager


@pytest.fixture
def empty_usa_today_page() -> bytes:
    return EMPTY_USA_TODAY_PAGE
