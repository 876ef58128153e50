"""
System configuration package.

Provides consolidated system-level configuration for the library.

Exports:
    - SystemConfig: Complete system configuration dataclass
    - ReportingConfig: Performance report settings
    - get_system_config: Get system config singleton
    - reload_system_config: Force reload system config
    - LoggerFactory: Factory for creating configured loggers
    - LoggingConfig: Logging configuration model
"""

from tradejournal.system.config import ReportingConfig, SystemConfig, get_system_config, reload_system_config
from tradejournal.system.log_system import LoggerFactory, LoggingConfig

__all__ = [
    "SystemConfig",
    "ReportingConfig",
    "get_system_config",
    "reload_system_config",
    "LoggerFactory",
    "LoggingConfig",
]
