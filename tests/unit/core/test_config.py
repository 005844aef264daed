"""Tests for configuration loading and template substitution."""

import sys
from pathlib import Path

import platformdirs
import pytest

from gitforensics.bisect.models import HistoryOrder
from gitforensics.core.config import State
from gitforensics.core.yaml_settings import cli_includes

pytestmark = pytest.mark.usefixtures("restore_logging")


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    """Empty working directory with a clean argv."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(sys, "argv", ["gitforensics"])
    return tmp_path


def test_package_defaults(workdir):
    state = State()

    history = state.config.history
    assert history.ref == "HEAD"
    assert history.max_count == 100
    assert history.file is None
    assert history.order is HistoryOrder.OLDEST_FIRST
    assert state.config.persistence.enabled
    assert state.config.session_name == "bisect"


def test_state_file_template_expanded(workdir):
    state_file = State().config.persistence.state_file

    assert isinstance(state_file, Path)
    assert "{" not in str(state_file)
    assert state_file.name == "git-forensics-bisect-state.json"
    assert str(state_file).startswith(
        platformdirs.user_state_dir("gitforensics", appauthor=False)
    )


def test_runtime_templates_left_alone(workdir):
    """{log_root} and {session_name} expand when the file sink opens."""
    file_sink = State().config.logger.file

    assert file_sink.path == "{log_root}/{session_name}/gitforensics.log"
    assert file_sink.format_template.startswith("{timestamp:")


def test_project_file_overrides_defaults(workdir):
    (workdir / "gitforensics.yaml").write_text(
        "config:\n"
        "  history:\n"
        "    ref: release\n"
        "    order: newest_first\n"
    )

    history = State().config.history

    assert history.ref == "release"
    assert history.order is HistoryOrder.NEWEST_FIRST
    # Siblings from the defaults survive the merge
    assert history.max_count == 100


def test_include_directive(workdir):
    (workdir / "shared.yaml").write_text(
        "config:\n"
        "  history:\n"
        "    ref: shared\n"
        "    max_count: 7\n"
    )
    (workdir / "gitforensics.yaml").write_text(
        "include: shared.yaml\n"
        "config:\n"
        "  history:\n"
        "    ref: local\n"
    )

    history = State().config.history

    assert history.ref == "local"
    assert history.max_count == 7


def test_cli_include_overrides_project_file(workdir, tmp_path_factory):
    extra = tmp_path_factory.mktemp("extra") / "extra.yaml"
    extra.write_text("config:\n  session_name: from-include\n")
    (workdir / "gitforensics.yaml").write_text(
        "config:\n  session_name: from-project\n"
    )
    sys.argv = ["gitforensics", "--include", str(extra), "status"]

    assert State().config.session_name == "from-include"


def test_environment_fills_unset_keys(workdir, monkeypatch):
    monkeypatch.setenv("GITFORENSICS_CONFIG__HISTORY__FILE", "commits.yaml")

    assert State().config.history.file == Path("commits.yaml")


def test_config_reference_template(workdir):
    state = State()

    assert state._substitute_string("{config.history.ref}~1") == "HEAD~1"
    assert state._substitute_string("{config.nothing}") == "{config.nothing}"
    assert state._substitute_string("{workdir}") == "{workdir}"


class TestIncludeErrors:
    def _source(self, path):
        from gitforensics.core.yaml_settings import (
            YamlWithIncludesSettingsSource,
        )
        return YamlWithIncludesSettingsSource(State, yaml_file=str(path))

    def test_circular_include(self, workdir):
        (workdir / "a.yaml").write_text("include: b.yaml\n")
        (workdir / "b.yaml").write_text("include: a.yaml\n")

        with pytest.raises(ValueError, match="Circular include"):
            self._source(workdir / "a.yaml")

    def test_missing_include(self, workdir):
        (workdir / "a.yaml").write_text("include: absent.yaml\n")

        with pytest.raises(FileNotFoundError):
            self._source(workdir / "a.yaml")

    def test_include_list_is_merged_in_order(self, workdir):
        (workdir / "one.yaml").write_text("config:\n  session_name: one\n")
        (workdir / "two.yaml").write_text("config:\n  session_name: two\n")
        (workdir / "main.yaml").write_text(
            "include:\n  - one.yaml\n  - two.yaml\n"
        )

        data = self._source(workdir / "main.yaml")()

        assert data["config"]["session_name"] == "two"


@pytest.mark.parametrize("argv,expected", [
    (["prog"], []),
    (["prog", "--include", "a.yaml"], ["a.yaml"]),
    (["prog", "--include", "a.yaml", "good", "--include", "b.yaml"],
     ["a.yaml", "b.yaml"]),
    (["prog", "status", "--include"], []),
])
def test_cli_includes(argv, expected):
    assert cli_includes(argv) == expected
