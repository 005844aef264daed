"""Application configuration."""

from __future__ import annotations

import os
import re
from enum import Enum
from pathlib import Path
from typing import Any

import platformdirs
from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from gitforensics.bisect.models import HistoryOrder
from gitforensics.core.base import BaseConfig
from gitforensics.core.log import Logger
from gitforensics.core.yaml_settings import YamlWithIncludesSettingsSource
from gitforensics.persistence.store import STORAGE_KEY

# Modules reachable from templates, e.g. {platformdirs.user_state_dir}
TEMPLATE_NAMESPACE = {
    'os': os,
    'platformdirs': platformdirs,
    'Path': Path,
}

APP_NAME = "gitforensics"


class HistoryConfig(BaseConfig):
    """Where the commit sequence comes from."""

    workdir: Path = Field(
        default=Path("."),
        description="Git working directory to read history from",
    )
    ref: str = Field(
        default="HEAD",
        description="Branch, tag or commit whose history is bisected",
    )
    max_count: int | None = Field(
        default=100,
        description="Most recent commits to load (none for all)",
    )
    file: Path | None = Field(
        default=None,
        description=(
            "YAML/JSON list of commits to use instead of git "
            "(hash strings or mappings with a hash key)"
        ),
    )
    order: HistoryOrder = Field(
        default=HistoryOrder.OLDEST_FIRST,
        description="Order of the entries in file",
    )


class PersistenceConfig(BaseConfig):
    """Where an active bisect session is kept between runs."""

    enabled: bool = Field(
        default=True,
        description="Save the session after every change",
    )
    state_file: Path = Field(
        default=Path(
            f"{{platformdirs.user_state_dir}}/{STORAGE_KEY}.json"
        ),
        description="Session state file (supports {platformdirs.*})",
    )


class Config(BaseConfig):
    """Configuration sections loaded from YAML/env/CLI."""

    logger: Logger | None = Field(
        default=None,
        description="Logger sinks; set up globally once config loads",
    )
    history: HistoryConfig = Field(
        default_factory=HistoryConfig,
        description="Commit history source",
    )
    persistence: PersistenceConfig = Field(
        default_factory=PersistenceConfig,
        description="Session state persistence",
    )
    session_name: str = Field(
        default="bisect",
        description="Name used for the log directory and service name",
    )
    log_level: str = Field(
        default="info",
        alias="log-level",
        description=(
            "Default log level: 'spew', 'trace', 'debug', 'info', "
            "'warn', 'error', 'fatal'"
        ),
    )
    log_root: Path = Field(
        default_factory=(
            lambda: Path(platformdirs.user_state_dir()) / APP_NAME
        ),
        description="Root directory for log files",
    )

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode='after')
    def _setup_logger(self) -> 'Config':
        """Install the global logger from the loaded sink settings."""
        from gitforensics.core.log import setup_logger

        if self.logger is None:
            self.logger = Logger(level=self.log_level)

        setup_logger(
            log_root=self.log_root,
            session_name=self.session_name,
            level=self.logger.level,
            console=self.logger.console,
            file=self.logger.file,
        )
        return self

    def close(self):
        """Close the global logger, then any other closeable sections."""
        from gitforensics.core.log import logger
        logger.close()
        super().close()


class State(BaseSettings):
    """Application state handed to every command.

    Loaded, highest priority first, from init arguments, YAML files
    (with include: support), .env, and GITFORENSICS_* environment
    variables using __ for nesting:

        GITFORENSICS_CONFIG__HISTORY__WORKDIR=/src/project
    """

    config: Config = Field(
        default_factory=Config,
        description="Application configuration (from YAML/env/CLI)",
    )
    include: list[str] | None = Field(
        default=None,
        description=(
            "Additional YAML files to include and merge; "
            "--include on the command line"
        ),
    )

    model_config = SettingsConfigDict(
        yaml_file="gitforensics.yaml",
        env_file=".env",
        env_prefix="GITFORENSICS_",
        env_nested_delimiter="__",
        cli_implicit_flags=True,
        cli_use_class_docs_for_groups=True,
        extra='ignore',
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            YamlWithIncludesSettingsSource(settings_cls),
            dotenv_settings,
            env_settings,
            file_secret_settings,
        )

    @model_validator(mode="after")
    def substitute_templates(self) -> "State":
        """Expand {config.*} and {platformdirs.*} templates in place."""
        self._substitute_recursive(self)
        return self

    def _substitute_recursive(self, obj: Any) -> None:
        if isinstance(obj, BaseModel):
            for field_name in obj.__class__.model_fields:
                value = getattr(obj, field_name)
                new_value = self._substitute_value(value)
                if new_value is not value:
                    setattr(obj, field_name, new_value)
        elif isinstance(obj, dict):
            for key in obj:
                obj[key] = self._substitute_value(obj[key])
        elif isinstance(obj, list):
            for i in range(len(obj)):
                obj[i] = self._substitute_value(obj[i])

    def _substitute_value(self, value: Any) -> Any:
        if isinstance(value, Enum):
            return value
        elif isinstance(value, str):
            return self._substitute_string(value)
        elif isinstance(value, Path):
            substituted = self._substitute_string(str(value))
            return value if substituted == str(value) else Path(substituted)
        elif isinstance(value, (BaseModel, dict, list)):
            self._substitute_recursive(value)
            return value
        else:
            return value

    def _substitute_string(self, value: str) -> str:
        """Replace {dotted.path} references with their values.

        A path starting with a TEMPLATE_NAMESPACE module is looked up in
        that module, anything else on this State; callables are called
        with the application name. Unresolvable references are left
        alone.

            "{config.history.workdir}/bisect.yaml" -> "./bisect.yaml"
            "{platformdirs.user_state_dir}" -> "~/.local/state/gitforensics"
        """
        def replace_template(match):
            parts = match.group(1).split(".")

            if parts[0] in TEMPLATE_NAMESPACE:
                obj = TEMPLATE_NAMESPACE[parts[0]]
                parts = parts[1:]
            else:
                obj = self

            try:
                for part in parts:
                    obj = getattr(obj, part)
                if callable(obj):
                    obj = obj(APP_NAME, appauthor=False)
                return str(obj)
            except (AttributeError, TypeError):
                return match.group(0)

        return re.sub(r'\{([a-z._]+)\}', replace_template, value)


__all__ = ["Config", "HistoryConfig", "PersistenceConfig", "State"]
