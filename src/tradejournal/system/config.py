"""
System configuration.

One configuration for the whole library, loaded once per process:
- ReportingConfig: How performance reports are built (starting capital, parallelism)
- LoggingConfig: Logging configuration (converted to log_system.LoggingConfig)
- SystemConfig: Container with load(), _from_dict(), merge, env substitution

Lookup order for the YAML file:
1. Explicit path passed to SystemConfig.load() / get_system_config()
2. TRADEJOURNAL_CONFIG environment variable
3. config/system.yaml in the working directory
4. Built-in defaults

Values may reference environment variables as ${VAR}.
"""

import os
import re
from dataclasses import asdict, dataclass, field
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from tradejournal.system import log_system

CONFIG_ENV_VAR = "TRADEJOURNAL_CONFIG"
DEFAULT_CONFIG_PATH = Path("config/system.yaml")

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")
_TRUE_STRINGS = {"true", "1"}
_FALSE_STRINGS = {"false", "0"}


@dataclass
class ReportingConfig:
    """Performance report settings.

    Attributes:
        starting_capital: Account balance used when the caller supplies none
        parallel: Run the analyzers on a thread pool
        max_workers: Thread pool size when parallel is enabled
    """

    starting_capital: Decimal = Decimal("10000")
    parallel: bool = False
    max_workers: int = 5

    def __post_init__(self) -> None:
        """Coerce YAML and ${VAR} values to their field types and validate ranges."""
        self.starting_capital = parse_starting_capital(self.starting_capital)
        self.parallel = _parse_bool("parallel", self.parallel)
        try:
            self.max_workers = int(self.max_workers)
        except (TypeError, ValueError) as e:
            raise ValueError(f"max_workers must be an integer, got {self.max_workers!r}") from e
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {self.max_workers}")


def parse_starting_capital(value: Any) -> Decimal:
    """
    Convert a starting balance to a finite, positive Decimal.

    Raises:
        ValueError: If value is not a number, is NaN or infinite, or is not positive
    """
    try:
        capital = Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"starting_capital must be a number, got {value!r}") from e
    if not capital.is_finite() or capital <= 0:
        raise ValueError(f"starting_capital must be positive, got {value}")
    return capital


def _parse_bool(name: str, value: Any) -> bool:
    """Accept booleans and the strings true/false/1/0 (any case)."""
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_STRINGS:
        return True
    if text in _FALSE_STRINGS:
        return False
    raise ValueError(f"{name} must be true or false, got {value!r}")


@dataclass
class LoggingConfig:
    """Logging settings as written in the system YAML file."""

    level: str = "INFO"
    format: str = "console"
    timestamp_format: str = "compact"
    enable_file: bool = False
    file_path: str = "logs/tradejournal.log"
    file_level: str = "WARNING"
    file_rotation: bool = True
    max_file_size_mb: int = 10
    backup_count: int = 3
    console_width: int = 0

    def to_logger_config(self) -> log_system.LoggingConfig:
        """Convert to the validated log_system.LoggingConfig."""
        values = asdict(self)
        values["file_path"] = Path(self.file_path)
        return log_system.LoggingConfig(**values)


@dataclass
class SystemConfig:
    """Complete system configuration."""

    reporting: ReportingConfig = field(default_factory=ReportingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def load(cls, path: Path | str | None = None) -> "SystemConfig":
        """
        Load configuration from YAML, merged over built-in defaults.

        Args:
            path: Config file. If None, uses TRADEJOURNAL_CONFIG or
                  config/system.yaml. A missing file yields defaults.

        Returns:
            SystemConfig instance
        """
        config_path = cls._resolve_path(path)

        data: dict[str, Any] = {}
        if config_path is not None and config_path.exists():
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}

        return cls._from_dict(_substitute_env_vars(data))

    @staticmethod
    def _resolve_path(path: Path | str | None) -> Path | None:
        if path is not None:
            return Path(path)
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if env_path:
            return Path(env_path)
        if DEFAULT_CONFIG_PATH.exists():
            return DEFAULT_CONFIG_PATH
        return None

    @classmethod
    def _from_dict(cls, data: dict[str, Any]) -> "SystemConfig":
        """Build config from a (possibly partial) dictionary."""
        defaults = {
            "reporting": asdict(ReportingConfig()),
            "logging": asdict(LoggingConfig()),
        }
        merged = _deep_merge(defaults, data)

        return cls(
            reporting=ReportingConfig(**merged["reporting"]),
            logging=LoggingConfig(**merged["logging"]),
        )


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into a copy of base; override wins on conflict."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _substitute_env_vars(value: Any) -> Any:
    """Replace ${VAR} with the environment value; undefined variables are left as-is."""
    if isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env_vars(v) for v in value]
    if isinstance(value, str):
        return _ENV_VAR_PATTERN.sub(lambda m: os.environ.get(m.group(1), m.group(0)), value)
    return value


_system_config: SystemConfig | None = None


def get_system_config(path: Path | str | None = None) -> SystemConfig:
    """
    Get the process-wide system configuration.

    Args:
        path: Explicit config file. When given, the file is loaded and
              replaces the cached instance.
    """
    global _system_config
    if path is not None or _system_config is None:
        _system_config = SystemConfig.load(path)
    return _system_config


def reload_system_config(path: Path | str | None = None) -> SystemConfig:
    """Force a reload and cache the new instance."""
    global _system_config
    _system_config = SystemConfig.load(path)
    return _system_config
