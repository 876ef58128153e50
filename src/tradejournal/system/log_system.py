"""Centralized logging for tradejournal.

structlog renders every event; stdlib logging owns the handlers, so
records from third-party libraries share the same console and file
output. Console output is human-oriented, file output is JSON lines.

Event names are dotted, component first:
    reporting.report.started / reporting.report.completed
"""

import inspect
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Literal

import structlog
from pydantic import BaseModel, Field

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_LOG_FILE = Path("logs/tradejournal.log")

_TIMESTAMP_FORMATS = {
    "compact": "%y%m%d-%H%M%S",  # 240701-093000.12
    "time": "%H:%M:%S",  # 09:30:00.12
    "short": "%m%dT%H%M%S",  # 0701T093000
}

_LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
_RESET = "\033[0m"
_GRAY = "\033[90m"


class LoggingConfig(BaseModel):
    """Configuration for the logging system.

    What gets logged at each level:

    INFO (default):
    - One line per report built (trade counts, total P&L, timing)

    DEBUG:
    - Report inputs (closed/open trade counts, starting capital)

    WARNING:
    - Recoverable problems in caller-supplied data

    Timestamp formats: "iso", "compact" (YYMMDD-HHMMSS.cc),
    "time" (HH:MM:SS.cc) and "short" (MMDDTHHMMSS).
    """

    level: LogLevel = Field(default="INFO", description="Minimum console log level")
    format: Literal["console", "json"] = Field(default="console", description="Console output format")
    timestamp_format: Literal["iso", "compact", "time", "short"] = Field(
        default="compact",
        description="Timestamp format written under the log_timestamp key",
    )
    enable_file: bool = Field(default=False, description="Also write JSON lines to a file")
    file_path: Path | None = Field(default=None, description="Log file (logs/tradejournal.log if None)")
    file_level: LogLevel = Field(default="WARNING", description="Minimum file log level")
    file_rotation: bool = Field(default=True, description="Rotate the file when it reaches max_file_size_mb")
    max_file_size_mb: int = Field(default=10, ge=1)
    backup_count: int = Field(default=3, ge=0)
    console_width: int = Field(default=0, ge=0, description="Truncate console lines (0 = no limit)")


def add_log_timestamp(fmt: str) -> Any:
    """
    Processor adding a UTC timestamp with centiseconds.

    Written to 'log_timestamp' so it never collides with event fields
    such as 'date' on equity curve points.
    """
    pattern = _TIMESTAMP_FORMATS.get(fmt)

    def processor(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        now = datetime.now(timezone.utc)
        if pattern is None:
            event_dict["log_timestamp"] = now.isoformat()
        elif fmt == "short":
            event_dict["log_timestamp"] = now.strftime(pattern)
        else:
            event_dict["log_timestamp"] = f"{now.strftime(pattern)}.{now.microsecond // 10000:02d}"
        return event_dict

    return processor


class ConsoleRenderer:
    """
    Render one event as a single console line.

    Layout: timestamp [level] event | key=value ... (module:line)
    Context keys are sorted; keys starting with '_' are hidden.
    """

    def __init__(self, console_width: int = 0):
        self._width = console_width

    def __call__(self, logger: Any, name: str, event_dict: dict[str, Any]) -> str:
        timestamp = event_dict.pop("log_timestamp", "")
        level = str(event_dict.pop("level", "info")).upper()
        event = event_dict.pop("event", "")
        filename = event_dict.pop("filename", "")
        lineno = event_dict.pop("lineno", "")
        logger_name = event_dict.pop("logger", "")
        exception = event_dict.pop("exception", None)

        parts = [timestamp, f"[{_LEVEL_COLORS.get(level, '')}{level.lower()}{_RESET}]", event]

        context = " ".join(f"{key}={value}" for key, value in sorted(event_dict.items()) if not key.startswith("_"))
        if context:
            parts.append(f"{_GRAY}|{_RESET} {context}")

        if filename and lineno:
            where = f"{Path(filename).stem}:{lineno}"
            if logger_name and logger_name != "tradejournal":
                where = f"{logger_name}.{where}"
            parts.append(f"{_GRAY}({where}){_RESET}")

        line = " ".join(p for p in parts if p)
        if self._width and len(line) > self._width:
            line = line[: self._width - 3] + "..."
        if exception:
            line = f"{line}\n{exception}"
        return line


class LoggerFactory:
    """
    Configures logging once and hands out structlog loggers.

    Example:
        # At startup
        LoggerFactory.configure(LoggingConfig(level="DEBUG", enable_file=True))

        # In modules
        logger = LoggerFactory.get_logger()
        logger.info("reporting.report.completed", total_trades=42)

    Library modules may also use structlog.get_logger(__name__) directly;
    those loggers pick up this configuration on first use.
    """

    _config: LoggingConfig | None = None
    _configured: bool = False

    @classmethod
    def configure(cls, config: LoggingConfig | None = None) -> None:
        """
        Configure structlog and the stdlib root logger.

        Args:
            config: LoggingConfig instance. If None, uses default configuration.
        """
        config = config or LoggingConfig()
        if config.enable_file and config.file_path is None:
            config.file_path = DEFAULT_LOG_FILE
        cls._config = config

        pre_chain = cls._shared_processors(config.timestamp_format)
        handlers = [cls._console_handler(config, pre_chain)]
        root_level = getattr(logging, config.level)

        if config.enable_file:
            handlers.append(cls._file_handler(config, pre_chain))
            root_level = min(root_level, getattr(logging, config.file_level))

        logging.basicConfig(level=root_level, handlers=handlers, force=True)

        if config.format == "console":
            exception_processors = [
                structlog.dev.set_exc_info,
                structlog.processors.ExceptionRenderer(structlog.dev.plain_traceback),  # type: ignore[arg-type]
            ]
        else:
            exception_processors = [structlog.processors.format_exc_info]

        structlog.configure(
            processors=[*pre_chain, *exception_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
            wrapper_class=structlog.stdlib.BoundLogger,
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        cls._configured = True

    @staticmethod
    def _shared_processors(timestamp_format: str) -> list[Any]:
        """Processors applied to structlog events and foreign stdlib records alike."""
        return [
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            add_log_timestamp(timestamp_format),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.CallsiteParameterAdder(
                [
                    structlog.processors.CallsiteParameter.FILENAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            ),
        ]

    @staticmethod
    def _console_handler(config: LoggingConfig, pre_chain: list[Any]) -> logging.Handler:
        renderer: Any
        if config.format == "console":
            renderer = ConsoleRenderer(config.console_width)
        else:
            renderer = structlog.processors.JSONRenderer()

        handler = logging.StreamHandler(stream=sys.stdout)
        handler.setLevel(getattr(logging, config.level))
        handler.setFormatter(structlog.stdlib.ProcessorFormatter(processor=renderer, foreign_pre_chain=pre_chain))
        return handler

    @staticmethod
    def _file_handler(config: LoggingConfig, pre_chain: list[Any]) -> logging.Handler:
        """JSON-lines file handler, rotating unless disabled."""
        file_path = config.file_path or DEFAULT_LOG_FILE
        file_path.parent.mkdir(parents=True, exist_ok=True)

        handler: logging.Handler
        if config.file_rotation:
            handler = RotatingFileHandler(
                filename=str(file_path),
                maxBytes=config.max_file_size_mb * 1024 * 1024,
                backupCount=config.backup_count,
                encoding="utf-8",
            )
        else:
            handler = logging.FileHandler(filename=str(file_path), encoding="utf-8")

        handler.setLevel(getattr(logging, config.file_level))
        handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                processor=structlog.processors.JSONRenderer(),
                foreign_pre_chain=pre_chain,
            )
        )
        return handler

    @classmethod
    def get_logger(cls, name: str | None = None):
        """
        Get a configured logger, configuring with defaults on first use.

        Args:
            name: Logger name. If None, uses the calling module's __name__.
        """
        if not cls._configured:
            cls.configure()

        if name is None:
            frame = inspect.currentframe()
            caller = frame.f_back if frame else None
            name = caller.f_globals.get("__name__", "tradejournal") if caller else "tradejournal"

        return structlog.get_logger(name)

    @classmethod
    def get_config(cls) -> LoggingConfig:
        """Current configuration (defaults when not configured)."""
        return cls._config if cls._config is not None else LoggingConfig()

    @classmethod
    def is_configured(cls) -> bool:
        return cls._configured

    @classmethod
    def reset(cls) -> None:
        """Drop all handlers and structlog configuration (used by tests)."""
        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
            handler.close()
        root_logger.setLevel(logging.NOTSET)
        cls._config = None
        cls._configured = False
        structlog.reset_defaults()
