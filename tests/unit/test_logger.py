"""Unit tests for logger configuration."""

import io

from loguru import logger as _logger

from news_aggregation.logger import get_logger, setup_logger


class TestSetupLogger:
    """Tests for setup_logger function."""

    def test_setup_logger_adds_handlers(self, test_config):
        """Test that setup_logger adds a working handler."""
        test_config.logging.file_enabled = False
        _logger.remove()

        setup_logger()

        output = io.StringIO()
        handler_id = _logger.add(output, format="{message}")
        _logger.info("Test")
        assert "Test" in output.getvalue()
        _logger.remove(handler_id)

    def test_setup_logger_with_custom_values(self, tmp_path, test_config):
        """Test setup_logger with custom values."""
        log_file = tmp_path / "test.log"
        test_config.logging.console_enabled = False

        _logger.remove()
        setup_logger(level="DEBUG", log_file=str(log_file))

        _logger.info("Test message")
        _logger.remove()  # Flushes the enqueued file handler

        content = log_file.read_text()
        assert "Test message" in content
        assert "INFO" in content

    def test_level_filters_messages(self, tmp_path, test_config):
        """Test that messages below the level are dropped."""
        log_file = tmp_path / "level.log"
        test_config.logging.console_enabled = False

        _logger.remove()
        setup_logger(level="WARNING", log_file=str(log_file))

        _logger.info("quiet")
        _logger.warning("loud")
        _logger.remove()

        content = log_file.read_text()
        assert "loud" in content
        assert "quiet" not in content

    def test_file_handler_disabled(self, tmp_path, test_config):
        """Test disabling file handler."""
        log_file = tmp_path / "disabled.log"
        test_config.logging.file_enabled = False

        _logger.remove()
        setup_logger(log_file=str(log_file))
        _logger.info("No file")

        assert not log_file.exists()

    def test_file_sink_omits_variable_values(self, tmp_path, test_config):
        """Test that tracebacks in the log file do not include local variable values."""
        log_file = tmp_path / "errors.log"
        test_config.logging.console_enabled = False

        _logger.remove()
        setup_logger(log_file=str(log_file))

        api_token = "s3cr3t-value"
        try:
            raise RuntimeError(f"failed after {len(api_token)} chars")
        except RuntimeError:
            _logger.exception("Request failed")
        _logger.remove()

        content = log_file.read_text()
        assert "Request failed" in content
        assert "RuntimeError" in content
        assert "s3cr3t-value" not in content


class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_logger_binds_name(self):
        """Test that the module name is bound to records."""
        output = io.StringIO()
        handler_id = _logger.add(output, format="{extra[name]}|{message}")

        get_logger("news_aggregation.test").info("bound")

        _logger.remove(handler_id)
        assert "news_aggregation.test|bound" in output.getvalue()

    def test_get_logger_without_name(self):
        assert get_logger() is _logger
