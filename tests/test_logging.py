"""
Tests for the logging configuration module.
"""

import logging

import pytest

from relocation_insights.logging_config import NAMESPACE, NOISY_LOGGERS, setup_logging, get_logger


@pytest.fixture(autouse=True)
def cleanup_logger():
    yield
    logger = logging.getLogger(NAMESPACE)
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)


def flush_handlers():
    for handler in logging.getLogger(NAMESPACE).handlers:
        handler.flush()


class TestSetupLogging:
    def test_file_and_console_handlers(self, tmp_path):
        setup_logging(level="WARNING", log_file=str(tmp_path / "app.log"))

        logger = logging.getLogger(NAMESPACE)
        assert logger.level == logging.DEBUG
        levels = sorted(h.level for h in logger.handlers)
        assert levels == [logging.DEBUG, logging.WARNING]

    def test_unknown_level_falls_back_to_info(self, tmp_path):
        setup_logging(level="chatty", log_file=str(tmp_path / "app.log"))
        console = [h for h in logging.getLogger(NAMESPACE).handlers if not isinstance(h, logging.FileHandler)]
        assert [h.level for h in console] == [logging.INFO]

    def test_creates_log_directory(self, tmp_path):
        setup_logging(level="INFO", log_file=str(tmp_path / "logs" / "nested" / "app.log"))
        assert (tmp_path / "logs" / "nested").is_dir()

    def test_repeated_setup_does_not_stack_handlers(self, tmp_path):
        setup_logging(log_file=str(tmp_path / "app.log"))
        setup_logging(log_file=str(tmp_path / "app.log"))
        assert len(logging.getLogger(NAMESPACE).handlers) == 2

    def test_module_messages_reach_file(self, tmp_path):
        log_file = tmp_path / "app.log"
        setup_logging(level="DEBUG", log_file=str(log_file))

        get_logger("relocation_insights.providers.census").info("Resolved El Paso, TX")
        flush_handlers()

        content = log_file.read_text()
        assert "Resolved El Paso, TX" in content
        assert "relocation_insights.providers.census" in content

    def test_noisy_loggers_quieted(self, tmp_path):
        setup_logging(level="DEBUG", log_file=str(tmp_path / "app.log"))
        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING


class TestGetLogger:
    @pytest.mark.parametrize("name, expected", [
        ("relocation_insights.data.seed", "relocation_insights.data.seed"),
        ("relocation_insights", "relocation_insights"),
        ("__main__", "relocation_insights.__main__"),
        ("seed_locations", "relocation_insights.seed_locations"),
        ("relocation_insights_extra", "relocation_insights.relocation_insights_extra"),
    ])
    def test_namespacing(self, name, expected):
        assert get_logger(name).name == expected

    def test_script_logger_propagates_to_package(self, tmp_path):
        log_file = tmp_path / "app.log"
        setup_logging(log_file=str(log_file))

        get_logger("__main__").info("Migration complete")
        flush_handlers()

        assert "Migration complete" in log_file.read_text()
