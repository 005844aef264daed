"""Test per-sink log level filtering."""

import pytest

from gitforensics.core.log import (
    ConsoleSink,
    FileSink,
    LevelFilteringExporter,
    setup_logger,
)

pytestmark = pytest.mark.usefixtures("restore_logging")

LEVELS = ["spew", "trace", "debug", "info", "warn", "error"]


@pytest.fixture
def file_logger(tmp_path, request):
    """Logger writing only to a file at the requested level."""
    log_file = tmp_path / f"{request.param}.log"
    logger = setup_logger(
        log_root=tmp_path,
        session_name="levels",
        console=ConsoleSink(enabled=False),
        file=FileSink(enabled=True, level=request.param, path=str(log_file)),
    )
    return logger, log_file


@pytest.mark.parametrize("file_logger", LEVELS, indirect=True)
def test_sink_level_threshold(file_logger):
    """Messages below the sink level are dropped, the rest kept."""
    logger, log_file = file_logger
    level = log_file.stem

    for name in LEVELS:
        getattr(logger, name)(f"{name.upper()} message")
    logger.close()

    content = log_file.read_text()
    threshold = LEVELS.index(level)
    for i, name in enumerate(LEVELS):
        if i < threshold:
            assert f"{name.upper()} message" not in content
        else:
            assert f"{name.upper()} message" in content


def test_sink_inherits_logger_level(tmp_path):
    log_file = tmp_path / "inherit.log"

    logger = setup_logger(
        log_root=tmp_path,
        session_name="inherit",
        level="warn",
        console=ConsoleSink(enabled=False),
        file=FileSink(enabled=True, path=str(log_file)),
    )

    assert logger.file.level == "warn"
    logger.info("Midpoint suggested")
    logger.warn("Boundary missing from history")
    logger.close()

    content = log_file.read_text()
    assert "Midpoint suggested" not in content
    assert "Boundary missing from history" in content


def test_level_ordering():
    """spew < trace < debug < info < warn < error < fatal."""
    thresholds = LevelFilteringExporter._level_thresholds

    ordered = [thresholds[name] for name in LEVELS + ["fatal"]]
    assert ordered == sorted(ordered)
    assert len(set(ordered)) == len(ordered)

    assert thresholds['spew'] == 1  # SEVERITY_NUMBER_TRACE
    assert thresholds['trace'] == 3  # SEVERITY_NUMBER_TRACE3
    assert thresholds['info'] == 9  # SEVERITY_NUMBER_INFO


@pytest.mark.parametrize("num,name", [
    (1, "spew"), (2, "spew"), (3, "trace"), (5, "debug"),
    (9, "info"), (13, "warn"), (17, "error"), (21, "fatal"), (0, "unknown"),
])
def test_level_name(num, name):
    assert LevelFilteringExporter.level_name(num) == name
