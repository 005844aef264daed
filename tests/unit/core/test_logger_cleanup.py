"""Tests for logger cleanup through the BaseCloseable cascade."""

import pytest

from gitforensics.core.config import Config
from gitforensics.core.log import ConsoleSink, FileSink, Logger

# Logger.setup() reconfigures logfire globally
pytestmark = pytest.mark.usefixtures("restore_logging")


def _file_logger(path):
    return Logger(
        console=ConsoleSink(enabled=False),
        file=FileSink(enabled=True, path=str(path)),
    )


def test_context_manager_closes_file(tmp_path):
    logger = _file_logger(tmp_path / "test.log")
    logger.setup(log_root=tmp_path, session_name="test")

    assert logger.file._file is not None
    assert not logger.file._file.closed

    with logger:
        logger.info("test message")

    assert logger.file._file.closed


def test_closes_on_exception(tmp_path):
    logger = _file_logger(tmp_path / "test.log")
    logger.setup(log_root=tmp_path, session_name="test")

    with pytest.raises(ValueError), logger:
        logger.info("before exception")
        raise ValueError("test exception")

    assert logger.file._file.closed


def test_config_close_cascades_to_file_sink(tmp_path):
    """Config.close() reaches Logger and then FileSink."""
    config = Config(
        logger=_file_logger(tmp_path / "cascade.log"),
        log_root=tmp_path,
        session_name="cascade",
    )

    # Opened by the validator when it installed the global logger
    assert not config.logger.file._file.closed

    config.close()

    assert config.logger.file._file.closed


def test_disabled_file_sink_closes_cleanly(tmp_path):
    logger = Logger(console=ConsoleSink(enabled=True))
    logger.setup(log_root=tmp_path, session_name="console-only")

    logger.close()

    assert logger.file._file is None


def test_default_path_expands_root_and_session(tmp_path):
    logger = Logger(
        console=ConsoleSink(enabled=False),
        file=FileSink(enabled=True),
    )
    logger.setup(log_root=tmp_path, session_name="expand")

    with logger:
        logger.info("written to default path")

    log_file = tmp_path / "expand" / "gitforensics.log"
    assert "written to default path" in log_file.read_text()
