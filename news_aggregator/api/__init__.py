"""HTTPS JSON service."""

from news_aggregator.api.app import create_app

__all__ = ["create_app"]
