"""
Base Analyzer Abstract Class.

All trade analyzers inherit from BaseAnalyzer and implement compute().
Analyzers turn a sequence of closed trades into one derived result.

Philosophy:
- Analyzers are pure folds: compute() never mutates its input or the analyzer
- Analyzers hold configuration only, never per-call state
- Analyzers are independent: any subset can run, in any order or in parallel
- Analyzers are combined by the ReportingService into a PerformanceReport

Registry Name: Derived from class name (e.g., StreakTracker → "streak_tracker")
"""

import re
from abc import ABC, abstractmethod
from typing import Generic, Sequence, TypeVar

from tradejournal.libraries.performance.models import TradeRecord

ResultT = TypeVar("ResultT")


class BaseAnalyzer(ABC, Generic[ResultT]):
    """
    Abstract base class for all trade analyzers.

    Responsibilities:
    - Compute one derived result from closed trades
    - Resolve empty input and zero divisors to documented defaults
    - Ignore open trades passed in by mistake
    - Sort by entry date when the result depends on trade order

    Does NOT:
    - Store results between calls
    - Raise on empty or unsorted input (mixed naive/aware dates do raise)

    Example Implementation:
        ```python
        class TradeCounter(BaseAnalyzer[int]):
            def compute(self, trades: Sequence[TradeRecord]) -> int:
                return len(trades)

            @property
            def display_name(self) -> str:
                return "Trade Count"
        ```
    """

    @abstractmethod
    def compute(self, trades: Sequence[TradeRecord]) -> ResultT:
        """
        Compute the analyzer result.

        Args:
            trades: Trades in any order; open trades are skipped

        Returns:
            Immutable result model

        Note:
            - Must be deterministic (same input → same output)
            - Must return the documented default for empty input
        """

    @property
    def name(self) -> str:
        """
        Analyzer identifier in snake_case.

        Example:
            EquityCurveBuilder → "equity_curve_builder"
        """
        return re.sub(r"(?<!^)(?=[A-Z])", "_", type(self).__name__).lower()

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Human-readable analyzer name for logs and reports."""

    def __call__(self, trades: Sequence[TradeRecord]) -> ResultT:
        return self.compute(trades)
