"""Tests for logging service configuration."""

import logging

from rentledger.config import Settings
from rentledger.services.logging import configure_logging, resolve_log_level


class TestConfigureLogging:
    """Test server logging configuration."""

    def setup_method(self):
        """Save original handlers before each test."""
        self.root_logger = logging.getLogger()
        self.original_handlers = self.root_logger.handlers.copy()
        self.original_level = self.root_logger.level

    def teardown_method(self):
        """Restore original handlers after each test."""
        for handler in self.root_logger.handlers[:]:
            handler.close()
            self.root_logger.removeHandler(handler)
        for handler in self.original_handlers:
            self.root_logger.addHandler(handler)
        self.root_logger.setLevel(self.original_level)

    def test_creates_log_directory(self, tmp_path) -> None:
        log_file = tmp_path / "test_logs" / "server.log"
        assert not log_file.parent.exists()

        returned = configure_logging(Settings(log_file=str(log_file)))

        assert log_file.parent.exists()
        assert returned == log_file

    def test_replaces_earlier_handlers(self, tmp_path) -> None:
        settings = Settings(log_file=str(tmp_path / "server.log"))

        configure_logging(settings)
        configure_logging(settings)

        assert len(self.root_logger.handlers) == 2

    def test_uses_settings_level(self, tmp_path) -> None:
        configure_logging(Settings(log_file=str(tmp_path / "server.log"), log_level="warning"))

        assert self.root_logger.level == logging.WARNING
        for handler in self.root_logger.handlers:
            assert handler.level == logging.WARNING

    def test_writes_to_file(self, tmp_path) -> None:
        log_file = tmp_path / "server.log"
        configure_logging(Settings(log_file=str(log_file), log_level="INFO"))

        logging.getLogger("rentledger.test").info("allocated 70000.00")

        for handler in self.root_logger.handlers:
            handler.flush()
        assert "rentledger.test - INFO - allocated 70000.00" in log_file.read_text()


class TestResolveLogLevel:
    """Tests for resolve_log_level."""

    def test_known_names(self):
        assert resolve_log_level("DEBUG") == logging.DEBUG
        assert resolve_log_level("error") == logging.ERROR

    def test_unknown_level_falls_back_to_info(self):
        assert resolve_log_level("chatty") == logging.INFO
