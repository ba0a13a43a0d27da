"""Unit tests for logging setup."""

from pathlib import Path

from loguru import logger

from news_aggregator.models.config import LoggingConfig
from news_aggregator.utils.logging import disable_logging, get_logger, setup_logging


class TestLogging:
    """Test loguru configuration helpers."""

    def test_file_sink(self, tmp_path: Path) -> None:
        """Test messages reach the configured file with the module name."""
        log_file = tmp_path / "logs" / "news.log"
        setup_logging(LoggingConfig(level="INFO", colorize=False, file_path=str(log_file)))

        get_logger("news_aggregator.tests").info("Snapshot written")
        disable_logging()

        content = log_file.read_text()
        assert "Snapshot written" in content
        assert "news_aggregator.tests" in content

    def test_level_threshold(self, tmp_path: Path) -> None:
        """Test messages below the level are dropped."""
        log_file = tmp_path / "news.log"
        setup_logging(LoggingConfig(level="WARNING", colorize=False, file_path=str(log_file)))

        get_logger("quiet").info("Not written")
        get_logger("quiet").warning("Written")
        disable_logging()

        content = log_file.read_text()
        assert "Written" in content
        assert "Not written" not in content

    def test_get_logger_binds_name(self) -> None:
        """Test the bound name reaches records."""
        records: list[dict] = []
        sink_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
        try:
            get_logger("news_aggregator.storage").debug("Bound")
        finally:
            logger.remove(sink_id)

        assert records[-1]["extra"]["name"] == "news_aggregator.storage"
