"""Logger with composable output sinks, backed by logfire."""

from __future__ import annotations

import contextlib
import os
from abc import abstractmethod
from pathlib import Path
from typing import Any

from opentelemetry.proto.logs.v1 import logs_pb2
from opentelemetry.sdk.trace import ReadableSpan
from opentelemetry.sdk.trace.export import SpanExporter, SpanExportResult
from pydantic import Field, PrivateAttr, model_validator

from gitforensics.core.base import BaseConfig

_current_logger: Logger | None = None


class _LoggerProxy:
    """Forwards attribute access to the active Logger.

    Until setup_logger() has run, every method is a no-op so library
    code can log unconditionally.
    """
    def __getattr__(self, name):
        if _current_logger is None:
            def _noop(*args, **kwargs):  # noqa: ARG001
                pass
            return _noop
        return getattr(_current_logger, name)

    def __enter__(self):
        """Context manager support, so `with logger:` closes sinks."""
        if _current_logger is None:
            return self
        return _current_logger.__enter__()

    def __exit__(self, *args):
        """Close the active logger, if any."""
        if _current_logger is None:
            return False
        return _current_logger.__exit__(*args)


# Imported everywhere as `from gitforensics.core.log import logger`
logger = _LoggerProxy()


class LevelFilteringExporter(SpanExporter):
    """Span exporter that drops spans below a minimum level.

    Wraps another exporter and forwards only the spans whose
    `logfire.level_num` attribute reaches the threshold. Each sink gets
    its own instance, so sinks filter independently.
    """

    # Level names to OpenTelemetry severity numbers; the only mapping
    # between the two, used for filtering and for display
    _level_thresholds = {
        'spew': logs_pb2.SEVERITY_NUMBER_TRACE,    # 1, per-candidate noise
        'trace': logs_pb2.SEVERITY_NUMBER_TRACE3,  # 3
        'debug': logs_pb2.SEVERITY_NUMBER_DEBUG,   # 5
        'info': logs_pb2.SEVERITY_NUMBER_INFO,     # 9
        'warn': logs_pb2.SEVERITY_NUMBER_WARN,     # 13
        'error': logs_pb2.SEVERITY_NUMBER_ERROR,   # 17
        'fatal': logs_pb2.SEVERITY_NUMBER_FATAL,   # 21
    }

    def __init__(self, exporter: SpanExporter, min_level: str | None):
        """
        Args:
            exporter: Exporter that receives the spans kept
            min_level: Lowest level name forwarded; info when unset or
                unknown
        """
        self._exporter = exporter
        self._min_severity = self._level_thresholds.get(
            (min_level or 'info').lower(), logs_pb2.SEVERITY_NUMBER_INFO
        )

    @classmethod
    def level_name(cls, level_num: int) -> str:
        """Map a severity number back to the closest level name."""
        for name in ('fatal', 'error', 'warn', 'info', 'debug', 'trace',
                     'spew'):
            if level_num >= cls._level_thresholds[name]:
                return name
        return "unknown"

    def export(self, spans: list[ReadableSpan]) -> SpanExportResult:
        """Forward spans at or above the minimum severity.

        Lower severity numbers are more verbose. Spans without a level
        count as info.
        """
        kept = [
            span for span in spans
            if (span.attributes or {}).get(
                'logfire.level_num', logs_pb2.SEVERITY_NUMBER_INFO
            ) >= self._min_severity
        ]
        if kept:
            return self._exporter.export(kept)
        return SpanExportResult.SUCCESS

    def shutdown(self) -> None:
        """Shut down the wrapped exporter."""
        self._exporter.shutdown()

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        """Flush the wrapped exporter."""
        return self._exporter.force_flush(timeout_millis)


class Sink(BaseConfig):
    """One independent log destination.

    Closed automatically through the BaseCloseable cascade.
    """

    enabled: bool = Field(default=True, description="Enable this sink")
    level: str | None = Field(
        default=None,
        description=(
            "Log level for this sink; inherits Logger.level when unset. "
            "Valid: spew, trace, debug, info, warn, error, fatal"
        )
    )
    escape_special_characters: bool = Field(
        default=False,
        description="Escape newlines/tabs so each record stays on one line"
    )
    format_template: str | None = Field(
        default=None,
        description=(
            "str.format template with {timestamp}, {level}, {message}, "
            "{location}, {function}, {priority}; JSON when unset"
        )
    )

    _processor: Any = PrivateAttr(default=None)

    @staticmethod
    def _escape_special_chars(text: str) -> str:
        """Escape backslashes and control whitespace for one-line output."""
        return (text
            .replace('\\', '\\\\')
            .replace('\n', '\\n')
            .replace('\r', '\\r')
            .replace('\t', '\\t')
        )

    @staticmethod
    def _extract_span_data(span) -> dict:
        """Collect the fields a format_template can reference.

        Returns:
            Dict with timestamp (aware datetime), level, message,
            location (filepath:lineno), function and priority (RFC 5424
            PRI value)
        """
        from datetime import UTC, datetime

        attrs = span.attributes or {}
        filepath = attrs.get("code.filepath", "")
        lineno = attrs.get("code.lineno", "")
        level_name = LevelFilteringExporter.level_name(
            attrs.get("logfire.level_num", logs_pb2.SEVERITY_NUMBER_INFO)
        )

        # RFC 5424 severities, facility=user(1)
        severity = {
            "spew": 7, "trace": 7, "debug": 7, "info": 6,
            "warn": 4, "error": 3, "fatal": 3,
        }.get(level_name, 6)

        return {
            'timestamp': datetime.fromtimestamp(
                span.start_time / 1e9, tz=UTC
            ),
            'level': level_name,
            'message': attrs.get("logfire.msg", span.name),
            'location': f"{filepath}:{lineno}" if filepath else "",
            'function': attrs.get("code.function", ""),
            'priority': 8 + severity,
        }

    def _format_span(self, span) -> str:
        """Render one span as a line of output.

        Without a format_template the span is written as OpenTelemetry
        JSON. Otherwise the template is applied and keyword attributes
        from the logging call are appended after a separator.
        """
        if not self.format_template:
            return span.to_json() + os.linesep

        data = self._extract_span_data(span)
        if self.escape_special_characters:
            data['message'] = self._escape_special_chars(data['message'])

        try:
            formatted = self.format_template.format(**data)
        except KeyError as e:
            return f"ERROR: Invalid template field {e}\n"

        # Keyword attributes passed to logger calls, minus
        # instrumentation internals
        attrs = span.attributes or {}
        skip_prefixes = ('otel.', 'telemetry.', 'service.', 'process.',
                         'code.', 'logfire.')
        extra = {
            k: v for k, v in attrs.items()
            if not k.startswith(skip_prefixes)
        }
        if extra:
            attrs_str = ' '.join(
                f"{k}={v!r}" for k, v in sorted(extra.items())
            )
            formatted = f"{formatted} │ {attrs_str}"

        return formatted + '\n'

    @abstractmethod
    def create_processor(self, log_root: Path, session_name: str):
        """Create the OpenTelemetry span processor for this sink.

        Args:
            log_root: Root directory for log files
            session_name: Current bisect session name

        Returns:
            SpanProcessor, or None when logfire handles output itself
        """

    def close(self):
        """Shut down this sink's processor.

        Called through the BaseCloseable cascade from Logger.close().
        """
        if self._processor:
            with contextlib.suppress(Exception):
                self._processor.shutdown()


class ConsoleSink(Sink):
    """Terminal output, rendered by logfire itself."""

    verbose: bool = Field(
        default=False,
        description="Show span attributes on the console"
    )
    colors: str = Field(
        default="auto",
        description="Color mode: auto, always, never"
    )

    def create_processor(self, log_root: Path, session_name: str):
        """Console output is configured by logfire.configure()."""
        return None


class FileSink(Sink):
    """Append-only log file, one record per span."""

    enabled: bool = Field(
        default=False,
        description="Enable file logging"
    )
    path: str = Field(
        default="{log_root}/{session_name}/gitforensics.log",
        description="Log file path; {log_root} and {session_name} expand"
    )

    _file: Any = PrivateAttr(default=None)

    def create_processor(self, log_root: Path, session_name: str):
        """Open the log file and wrap it in a filtered batch processor.

        The path template is expanded with log_root and session_name,
        and missing parent directories are created.
        """
        from opentelemetry.sdk.trace.export import (
            BatchSpanProcessor,
            ConsoleSpanExporter,
        )

        log_path = Path(
            self.path.format(log_root=log_root, session_name=session_name)
        )
        log_path.parent.mkdir(parents=True, exist_ok=True)

        # Line buffered; stays open until close()
        self._file = open(log_path, "a", buffering=1, encoding="utf-8")  # noqa: SIM115

        exporter = ConsoleSpanExporter(
            out=self._file,
            formatter=self._format_span
        )
        return BatchSpanProcessor(
            LevelFilteringExporter(exporter, self.level)
        )

    def close(self):
        """Shut down the processor, then flush and close the file.

        The processor goes first so queued spans reach the file.
        """
        super().close()

        if self._file and not self._file.closed:
            with contextlib.suppress(OSError):
                self._file.flush()
                self._file.close()


class Logger(BaseConfig):
    """Logger with a console sink and a file sink.

    Logging methods delegate to logfire; keyword arguments become span
    attributes:

        logger.info("Midpoint suggested", midpoint=sha[:8])
    """

    level: str = Field(
        default="info",
        description=(
            "Default level for sinks that do not set their own. "
            "Valid: spew, trace, debug, info, warn, error, fatal"
        )
    )
    console: ConsoleSink = Field(
        default_factory=ConsoleSink,
        description="Console output configuration"
    )
    file: FileSink = Field(
        default_factory=FileSink,
        description="File logging configuration"
    )

    @model_validator(mode='after')
    def _cascade_level_to_sinks(self) -> 'Logger':
        """Give sinks without their own level the logger's level."""
        for sink in (self.console, self.file):
            if sink.level is None:
                sink.level = self.level
        return self

    def setup(self, log_root: Path, session_name: str):
        """Create processors for enabled sinks and configure logfire.

        Args:
            log_root: Root directory for log files
            session_name: Names the log directory and the logfire
                service (gitforensics-<session_name>)
        """
        import logfire
        from logfire import ConsoleOptions

        for sink in (self.console, self.file):
            if sink.enabled:
                sink._processor = sink.create_processor(
                    log_root, session_name
                )

        processors = [
            self.file._processor
        ] if self.file.enabled and self.file._processor else None

        console_config = (
            ConsoleOptions(
                # logfire has no spew level
                min_log_level=(
                    "trace" if self.console.level == "spew"
                    else self.console.level
                ),
                verbose=self.console.verbose,
                colors=self.console.colors,
                include_timestamps=True,
            )
            if self.console.enabled
            else False
        )

        logfire.configure(
            service_name=f"gitforensics-{session_name}",
            send_to_logfire=False,
            console=console_config,
            additional_span_processors=processors,
        )

    def info(self, msg: str, **kwargs):
        """Log at info level; kwargs become span attributes."""
        import logfire
        logfire.info(msg, **kwargs)

    def debug(self, msg: str, **kwargs):
        """Log at debug level."""
        import logfire
        logfire.debug(msg, **kwargs)

    def trace(self, msg: str, **kwargs):
        """Log at trace level, below debug."""
        import logfire
        logfire.log(
            level=LevelFilteringExporter._level_thresholds['trace'],
            msg_template=msg,
            attributes=kwargs if kwargs else None
        )

    def spew(self, msg: str, **kwargs):
        """Below trace; per-candidate noise only."""
        import logfire
        logfire.log(
            level=LevelFilteringExporter._level_thresholds['spew'],
            msg_template=msg,
            attributes=kwargs if kwargs else None
        )

    def warn(self, msg: str, **kwargs):
        """Log at warn level."""
        import logfire
        logfire.warn(msg, **kwargs)

    warning = warn

    def error(self, msg: str, **kwargs):
        """Log at error level."""
        import logfire
        logfire.error(msg, **kwargs)

    def span(self, msg: str, **kwargs):
        """Span context manager:

            with logger.span("Loading history", workdir=str(path)):
                ...
        """
        import logfire
        return logfire.span(msg, **kwargs)

    def __getattr__(self, name):
        """Anything else (exception, notice, ...) goes to logfire."""
        import logfire
        return getattr(logfire, name)


def setup_logger(
    log_root: Path,
    session_name: str,
    level: str = "info",
    console: ConsoleSink | None = None,
    file: FileSink | None = None,
) -> Logger:
    """Install the global logger used by the `logger` proxy.

    Called by Config once settings are loaded; tests call it directly.
    """
    global _current_logger

    _current_logger = Logger(
        level=level,
        console=console or ConsoleSink(),
        file=file or FileSink(),
    )
    _current_logger.setup(log_root, session_name)

    return _current_logger
