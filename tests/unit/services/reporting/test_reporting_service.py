"""Unit tests for ReportingService."""

import json
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import patch

import pytest

from tradejournal.services.reporting.models import PerformanceReport
from tradejournal.services.reporting.service import ReportingService, compute_cache_key
from tradejournal.system.config import ReportingConfig, SystemConfig


@pytest.fixture
def service():
    """Create a sequential service with a small starting balance."""
    return ReportingService(ReportingConfig(starting_capital=Decimal("1000")))


@pytest.fixture
def journal(make_trade):
    """A mixed journal: several setups, hours and months, one open trade."""
    return [
        make_trade(120, datetime(2024, 6, 3, 9, 35), setup_id="orb", setup_name="Opening Range", r_multiple=2),
        make_trade(-60, datetime(2024, 6, 4, 10, 5), setup_id="orb", r_multiple=-1),
        make_trade(45, datetime(2024, 6, 11, 14, 20), setup_id="vwap", r_multiple="0.75"),
        make_trade(0, datetime(2024, 6, 14, 15, 0)),
        make_trade(-30, datetime(2024, 7, 2, 9, 45), setup_id="vwap", r_multiple="-0.5"),
        make_trade(80, datetime(2024, 7, 9, 11, 10), setup_id="orb", r_multiple="1.6"),
        make_trade(15, datetime(2024, 7, 13, 12, 0)),
        make_trade(is_open=True, setup_id="orb"),
    ]


# ============================================
# Scenario Tests
# ============================================


class TestBuildReport:
    """Test build_report end to end over small journals."""

    def test_mixed_trades(self, service, make_trades):
        """Test wins and losses against a 1000 balance."""
        # Arrange
        trades = make_trades([100, -50, 30])

        # Act
        report = service.build_report(trades)

        # Assert
        assert [p.balance for p in report.equity_curve] == [
            Decimal("1100.00"),
            Decimal("1050.00"),
            Decimal("1080.00"),
        ]
        assert report.max_drawdown_pct == Decimal("4.55")
        assert report.metrics.win_rate_pct == Decimal("66.67")
        assert report.metrics.profit_factor == Decimal("2.60")
        assert report.metrics.total_pnl == Decimal("80.00")
        assert report.starting_capital == Decimal("1000.00")
        assert report.ending_balance == Decimal("1080.00")
        assert report.total_return_pct == Decimal("8.00")

    def test_streaks(self, service, make_trades):
        """Test streaks for W, W, L, W."""
        report = service.build_report(make_trades([10, 20, -5, 15]))

        assert report.streaks.current_streak == 1
        assert report.streaks.longest_win_streak == 2
        assert report.streaks.longest_loss_streak == 1

    def test_empty_journal(self, service):
        """Test an empty trade set yields an all-empty report."""
        # Act
        report = service.build_report([])

        # Assert
        assert report.is_empty
        assert report.total_trades == 0
        assert report.metrics.win_rate_pct == Decimal("0")
        assert report.metrics.profit_factor == Decimal("0")
        assert report.equity_curve == []
        assert report.streaks.current_streak == 0
        assert report.time_analysis.hourly == []
        assert report.time_analysis.daily == []
        assert report.time_analysis.monthly == []
        assert report.setup_analysis == []
        assert report.daily_pnl == []
        assert report.r_multiple_distribution == []
        assert report.ending_balance == Decimal("1000.00")
        assert report.total_return_pct == Decimal("0.00")
        assert report.max_drawdown_pct == Decimal("0.00")

    def test_open_trades_are_excluded(self, service, journal):
        """Test open trades are ignored but counted."""
        report = service.build_report(journal)

        assert report.open_trades_excluded == 1
        assert report.total_trades == 7
        assert len(report.equity_curve) == 7

    def test_only_open_trades(self, service, make_trade):
        """Test a journal of open trades reports as empty."""
        report = service.build_report([make_trade(is_open=True), make_trade(is_open=True)])

        assert report.is_empty
        assert report.open_trades_excluded == 2

    def test_input_order_does_not_matter(self, service, journal):
        """Test the report is independent of the caller's ordering."""
        forward = service.build_report(journal)
        backward = service.build_report(list(reversed(journal)))

        assert forward.to_json() == backward.to_json()

    def test_repeated_builds_are_identical(self, service, journal):
        """Test building twice gives byte-identical output."""
        assert service.build_report(journal).to_json() == service.build_report(journal).to_json()

    def test_ending_balance_matches_total_pnl(self, service, journal):
        """Test the last curve point equals starting capital plus total P&L."""
        report = service.build_report(journal)

        assert report.ending_balance == report.starting_capital + report.metrics.total_pnl
        assert report.equity_curve[-1].balance == report.ending_balance

    def test_partitions_cover_every_trade(self, service, journal):
        """Test hourly, daily and monthly buckets each account for every closed trade."""
        report = service.build_report(journal)

        for partition in (
            report.time_analysis.hourly,
            report.time_analysis.daily,
            report.time_analysis.monthly,
        ):
            assert sum(b.trade_count for b in partition) == report.total_trades
            assert sum(b.pnl for b in partition) == report.metrics.total_pnl

    def test_setup_analysis(self, service, journal):
        """Test setups are ranked by pnl and unassigned trades are left out."""
        report = service.build_report(journal)

        assert [b.key for b in report.setup_analysis] == ["orb", "vwap"]
        assert report.setup_analysis[0].label == "Opening Range"
        assert report.setup_analysis[0].pnl == Decimal("140.00")
        assert report.setup_analysis[1].pnl == Decimal("15.00")
        assert sum(b.trade_count for b in report.setup_analysis) == 5

    def test_monthly_pnl_view(self, service, journal):
        """Test monthly P&L mirrors the monthly time buckets."""
        report = service.build_report(journal)

        assert [b.key for b in report.monthly_pnl] == ["2024-06", "2024-07"]
        assert [b.pnl for b in report.monthly_pnl] == [Decimal("105.00"), Decimal("65.00")]

    def test_daily_pnl_series(self, service, journal):
        """Test one point per exit day ending at total P&L."""
        report = service.build_report(journal)

        assert len(report.daily_pnl) == 7
        assert report.daily_pnl[0].cumulative_pnl == Decimal("120.00")
        assert report.daily_pnl[1].cumulative_pnl == Decimal("60.00")
        assert report.daily_pnl[-1].cumulative_pnl == report.metrics.total_pnl

    def test_r_multiple_distribution(self, service, journal):
        """Test only trades with an R-multiple are counted."""
        report = service.build_report(journal)

        counts = {b.label: b.trade_count for b in report.r_multiple_distribution}
        assert sum(counts.values()) == 5
        assert counts["2R to 3R"] == 1
        assert counts["-1R to -0.5R"] == 1
        assert counts["-0.5R to 0R"] == 1
        assert counts["Below -2R"] == 0

    def test_mixed_naive_and_aware_entries_rejected(self, service, make_trade):
        """Test a journal mixing naive and tz-aware entry dates raises ValueError."""
        trades = [
            make_trade(10, datetime(2024, 7, 1, 9, 0)),
            make_trade(20, datetime(2024, 7, 2, 9, 0, tzinfo=timezone.utc)),
        ]

        with pytest.raises(ValueError, match="naive and tz-aware"):
            service.build_report(trades)

    def test_mixed_timezones_rejected_with_open_trade(self, service, make_trade):
        """Test an aware open trade in a naive journal is also rejected."""
        trades = [
            make_trade(10, datetime(2024, 7, 1, 9, 0)),
            make_trade(entry_date=datetime(2024, 7, 2, 9, 0, tzinfo=timezone.utc), is_open=True),
        ]

        with pytest.raises(ValueError, match="naive and tz-aware"):
            service.build_report(trades)

    def test_aware_journal_builds(self, service, make_trade):
        """Test a uniformly tz-aware journal builds normally."""
        trades = [
            make_trade(-5, datetime(2024, 7, 2, 13, 0, tzinfo=timezone.utc)),
            make_trade(10, datetime(2024, 7, 1, 13, 0, tzinfo=timezone.utc)),
        ]

        report = service.build_report(trades)

        assert [p.trade_pnl for p in report.equity_curve] == [Decimal("10.00"), Decimal("-5.00")]


# ============================================
# Configuration Tests
# ============================================


class TestStartingCapital:
    """Test starting capital resolution."""

    def test_explicit_capital_overrides_config(self, service, make_trades):
        """Test a per-call starting capital wins over the configured one."""
        report = service.build_report(make_trades([100]), starting_capital="2000")

        assert report.starting_capital == Decimal("2000.00")
        assert report.ending_balance == Decimal("2100.00")
        assert report.total_return_pct == Decimal("5.00")

    @pytest.mark.parametrize("capital", [0, "-1", Decimal("-1000")])
    def test_non_positive_capital_rejected(self, service, make_trades, capital):
        """Test starting capital must be positive."""
        with pytest.raises(ValueError, match="must be positive"):
            service.build_report(make_trades([100]), starting_capital=capital)

    @pytest.mark.parametrize("capital", ["Infinity", "NaN", "abc", Decimal("-Infinity")])
    def test_non_finite_or_non_numeric_capital_rejected(self, service, make_trades, capital):
        """Test capital that is not a finite number raises ValueError."""
        with pytest.raises(ValueError, match="starting_capital must be"):
            service.build_report(make_trades([100]), starting_capital=capital)

    def test_default_config_comes_from_system_config(self, make_trades):
        """Test the service falls back to the process-wide configuration."""
        # Arrange
        system_config = SystemConfig(reporting=ReportingConfig(starting_capital=Decimal("500")))

        # Act
        with patch("tradejournal.services.reporting.service.get_system_config", return_value=system_config):
            service = ReportingService()
        report = service.build_report(make_trades([50]))

        # Assert
        assert service.config.starting_capital == Decimal("500")
        assert report.ending_balance == Decimal("550.00")


class TestParallelExecution:
    """Test analyzers on a thread pool."""

    def test_parallel_matches_sequential(self, journal):
        """Test parallel and sequential builds give identical reports."""
        # Arrange
        sequential = ReportingService(ReportingConfig(starting_capital=Decimal("1000"), parallel=False))
        parallel = ReportingService(ReportingConfig(starting_capital=Decimal("1000"), parallel=True, max_workers=3))

        # Act & Assert
        assert parallel.build_report(journal).to_json() == sequential.build_report(journal).to_json()

    def test_single_worker(self, make_trades):
        """Test a one-thread pool still runs every analyzer."""
        service = ReportingService(ReportingConfig(starting_capital=Decimal("1000"), parallel=True, max_workers=1))

        report = service.build_report(make_trades([100, -50, 30]))

        assert report.metrics.total_pnl == Decimal("80.00")
        assert len(report.equity_curve) == 3
        assert len(report.time_analysis.hourly) == 24


# ============================================
# Cache Key Tests
# ============================================


class TestCacheKey:
    """Test compute_cache_key fingerprints."""

    def test_report_carries_cache_key(self, service, journal):
        """Test the report cache key matches the standalone helper."""
        report = service.build_report(journal)

        assert report.cache_key == compute_cache_key(journal, Decimal("1000"))
        assert len(report.cache_key) == 64

    def test_order_independent(self, journal):
        """Test the key does not depend on input order."""
        capital = Decimal("1000")

        assert compute_cache_key(journal, capital) == compute_cache_key(list(reversed(journal)), capital)

    def test_changes_with_capital(self, journal):
        """Test a different starting capital gives a different key."""
        assert compute_cache_key(journal, Decimal("1000")) != compute_cache_key(journal, Decimal("1001"))

    def test_changes_with_trades(self, journal):
        """Test dropping a trade changes the key."""
        assert compute_cache_key(journal, Decimal("1000")) != compute_cache_key(journal[1:], Decimal("1000"))

    def test_decimal_scale_does_not_change_key(self, make_trade):
        """Test 100 and 100.00 hash the same."""
        when = datetime(2024, 7, 1, 9, 30)
        short = make_trade(Decimal("100"), when, trade_id="T1")
        padded = make_trade(Decimal("100.00"), when, trade_id="T1")

        assert compute_cache_key([short], Decimal("1000")) == compute_cache_key([padded], Decimal("1000.00"))

    def test_pnl_value_changes_key(self, make_trade):
        """Test a different P&L still changes the key."""
        when = datetime(2024, 7, 1, 9, 30)
        first = make_trade(100, when, trade_id="T1")
        second = make_trade(101, when, trade_id="T1")

        assert compute_cache_key([first], Decimal("1000")) != compute_cache_key([second], Decimal("1000"))


# ============================================
# Serialization Tests
# ============================================


class TestReportSerialization:
    """Test PerformanceReport JSON output."""

    def test_to_json_field_names_and_types(self, service, make_trades):
        """Test decimals serialize as strings and dates as ISO-8601."""
        # Arrange
        report = service.build_report(make_trades([100, -50, 30]))

        # Act
        data = json.loads(report.to_json())

        # Assert
        assert data["metrics"]["total_pnl"] == "80.00"
        assert data["equity_curve"][0]["balance"] == "1100.00"
        assert data["equity_curve"][0]["date"] == "2024-07-02T09:30:00"
        assert data["streaks"] == {"current_streak": 1, "longest_win_streak": 1, "longest_loss_streak": 1}
        assert set(data) == {
            "cache_key",
            "starting_capital",
            "ending_balance",
            "total_return_pct",
            "max_drawdown_pct",
            "open_trades_excluded",
            "metrics",
            "equity_curve",
            "streaks",
            "time_analysis",
            "setup_analysis",
        }

    def test_json_round_trip(self, service, journal):
        """Test a report survives a JSON round trip."""
        report = service.build_report(journal)

        assert PerformanceReport.model_validate_json(report.to_json()) == report
