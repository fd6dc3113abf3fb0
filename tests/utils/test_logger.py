import logging
import sys
from io import StringIO

from stock_tracker.utils.logger import get_logger, set_level, set_stream


def test_console_logging(capsys):
    """Test that logger prints to console when no log_file is provided."""
    logger = get_logger("test_console_logger", level="INFO")
    logger.info("console log message")

    captured = capsys.readouterr()
    assert "console log message" in captured.out
    assert "test_console_logger" in captured.out


def test_file_logging(tmp_path):
    """Test that logger writes logs to a file when log_file is provided."""
    log_file = tmp_path / "logs" / "test.log"
    logger = get_logger("test_file_logger", level="DEBUG", log_file=str(log_file))
    logger.error("file log message")

    for handler in logger.handlers:
        handler.flush()

    assert log_file.exists(), f"Log file was not created at {log_file}"
    assert "file log message" in log_file.read_text()


def test_logger_level_info_suppresses_debug(capsys):
    """Test that DEBUG messages are suppressed when level=INFO is set."""
    logger = get_logger("test_info_logger", level="INFO")
    logger.debug("this should NOT appear")
    logger.info("this should appear")

    captured = capsys.readouterr()
    assert "this should appear" in captured.out
    assert "this should NOT appear" not in captured.out


def test_logger_reuse_does_not_duplicate_handlers():
    """Test that calling get_logger multiple times does not duplicate handlers."""
    logger1 = get_logger("test_reuse_logger")
    logger2 = get_logger("test_reuse_logger")

    assert logger1 is logger2
    assert len(logger1.handlers) == 1


def test_invalid_log_level_defaults_to_info():
    logger = get_logger("test_invalid_level_logger", level="NOT_A_LEVEL")
    assert logger.level == logging.INFO


def test_set_level_only_touches_package_loggers():
    package_logger = get_logger("stock_tracker.test_set_level")
    other_logger = get_logger("test_set_level_other", level="INFO")

    try:
        set_level("DEBUG")
        assert package_logger.level == logging.DEBUG
        assert other_logger.level == logging.INFO
    finally:
        set_level("INFO")


def test_set_stream_redirects_package_loggers():
    existing = get_logger("stock_tracker.test_stream_existing")
    other = get_logger("test_stream_other")
    stream = StringIO()

    try:
        set_stream(stream)
        created = get_logger("stock_tracker.test_stream_created")
        existing.info("existing logger line")
        created.info("new logger line")

        assert "existing logger line" in stream.getvalue()
        assert "new logger line" in stream.getvalue()
        assert other.handlers[0].stream is not stream
    finally:
        set_stream(sys.stdout)
