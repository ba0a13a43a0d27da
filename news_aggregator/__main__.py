"""Allow ``python -m news_aggregator``."""

from news_aggregator.main import app

app()
