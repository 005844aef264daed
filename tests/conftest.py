"""Pytest configuration and fixtures for gitforensics tests."""

import tempfile
from pathlib import Path

import pytest

from gitforensics.bisect.models import CommitRef
from gitforensics.core.log import ConsoleSink, setup_logger


def _setup_test_logging():
    setup_logger(
        log_root=Path(tempfile.gettempdir()) / "gitforensics-tests",
        session_name="test",
        console=ConsoleSink(level="debug"),
    )


@pytest.fixture(autouse=True, scope="session")
def configure_logging():
    """Console-only debug logging for the whole test run."""
    _setup_test_logging()


@pytest.fixture
def restore_logging():
    """Reinstall the test logger after a test replaces it."""
    yield
    _setup_test_logging()


def _make_commits(count: int) -> list[CommitRef]:
    return [
        CommitRef(hash=f"{i:04d}" + "a" * 36, message=f"commit {i}")
        for i in range(count)
    ]


@pytest.fixture
def make_commits():
    """Factory for oldest-first commits with recognizable fake hashes."""
    return _make_commits


@pytest.fixture
def commits():
    """Ten oldest-first commits."""
    return _make_commits(10)


@pytest.fixture
def hashes(commits):
    return [c.hash for c in commits]
