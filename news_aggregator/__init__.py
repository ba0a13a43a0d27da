"""News aggregator: feed ingestion, projection and reconciliation."""

__version__ = "1.0.0"
