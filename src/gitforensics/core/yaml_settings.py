"""YAML configuration loading with include directive support."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import yaml
from platformdirs import user_config_dir
from pydantic_settings import BaseSettings, YamlConfigSettingsSource

from gitforensics.core.log import logger

DEFAULTS_FILE = Path(__file__).parent.parent / "defaults" / "default.yaml"


def cli_includes(argv: list[str] | None = None) -> list[str]:
    """Collect the values of every --include option in argv.

    pydantic-settings parses the command line after the settings
    sources have run, so include files are picked out of argv here.

    Args:
        argv: Argument list; sys.argv when None

    Returns:
        Include paths in command-line order
    """
    argv = sys.argv if argv is None else argv
    includes = []
    i = 1
    while i < len(argv):
        if argv[i] == "--include" and i + 1 < len(argv):
            includes.append(argv[i + 1])
            i += 1
        i += 1
    return includes


class YamlWithIncludesSettingsSource(YamlConfigSettingsSource):
    """YAML settings source honoring include: directives.

    Deep merges, lowest priority first: package defaults, the user
    config file, ./gitforensics.yaml, then any --include files given on
    the command line. Each file may itself include others.
    """

    def __init__(
        self, settings_cls: type[BaseSettings], yaml_file=None
    ):
        """
        Args:
            settings_cls: The Settings class being initialized
            yaml_file: Optional override for the project config file
        """
        includes = cli_includes()

        base = yaml_file or settings_cls.model_config.get("yaml_file")
        if base and includes:
            yaml_file = (
                [base] if isinstance(base, (str, os.PathLike))
                else list(base)
            ) + includes
        elif includes:
            yaml_file = includes
        else:
            yaml_file = base

        super().__init__(settings_cls, yaml_file)

    def _read_files(self, files, deep_merge: bool = True):  # noqa: ARG002
        """Load and deep merge every configuration file.

        Order, later files winning:
        1. Package defaults (defaults/default.yaml), always present
        2. User config (~/.config/gitforensics/gitforensics.yaml)
        3. Project config (./gitforensics.yaml)
        4. --include files from the command line

        Missing files are skipped.

        Args:
            files: Project config and include paths from __init__
            deep_merge: Ignored; merging is always deep

        Returns:
            Merged configuration dict
        """
        result = {}

        files_to_load = [
            DEFAULTS_FILE,
            Path(user_config_dir("gitforensics", appauthor=False))
            / "gitforensics.yaml",
        ]

        if files:
            if isinstance(files, (str, os.PathLike)):
                files = [files]
            files_to_load.extend(Path(f).expanduser() for f in files)

        for file_path in files_to_load:
            if file_path.is_file():
                logger.debug(
                    "Loading configuration", file=str(file_path)
                )
                data = self._load_file_recursive(file_path, set())
                result = self._deep_merge(result, data)
            else:
                logger.spew(
                    "Configuration file not found (skipping)",
                    file=str(file_path),
                )

        return result

    def _load_file_recursive(
        self, filepath: Path, visited: set[Path]
    ) -> dict:
        """Load a YAML file with its include: directives resolved.

        Included files are merged in order, later ones winning, and the
        including file is merged over all of them.

        Raises:
            ValueError: If an include cycle is found
            FileNotFoundError: If an included file does not exist
        """
        filepath = filepath.resolve()
        if filepath in visited:
            raise ValueError(f"Circular include: {filepath}")
        visited.add(filepath)

        with open(filepath, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        if "include" in data:
            includes = data.pop("include") or []
            if isinstance(includes, str):
                includes = [includes]

            merged = {}
            for inc in includes:
                inc_path = self._resolve_path(inc, filepath)
                logger.debug(
                    "Including configuration",
                    included_from=str(filepath),
                    include_file=str(inc_path),
                )
                inc_data = self._load_file_recursive(
                    inc_path, visited.copy()
                )
                merged = self._deep_merge(merged, inc_data)
            data = self._deep_merge(merged, data)

        return data

    def _resolve_path(
        self, include_path: str, relative_to: Path
    ) -> Path:
        """Resolve an include path against the including file.

        Args:
            include_path: Path as written in the include: directive
            relative_to: File containing the directive

        Returns:
            Absolute path; ~ is expanded
        """
        path = Path(include_path).expanduser()
        if path.is_absolute():
            return path
        return (relative_to.parent / path).resolve()

    def _deep_merge(self, base: dict, override: dict) -> dict:
        """Merge override into a copy of base.

        Nested dicts merge key by key; any other value in override
        replaces the one in base, lists included.

        Args:
            base: Lower priority dict, not modified
            override: Higher priority dict

        Returns:
            New merged dict
        """
        result = base.copy()
        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result
