"""
tradejournal - Trading Journal Performance Analytics

Public API for turning journaled trades into performance reports.
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("tradejournal")
except PackageNotFoundError:
    __version__ = "0.0.0.dev"  # Fallback for development


__all__ = [
    "__version__",
]
