from __future__ import annotations

import time

import pytest

from tradedesk.trading.analytics import PerformanceAnalytics

# Central European time with its DST rules, as a POSIX TZ string
CET_RULES = "CET-1CEST,M3.5.0,M10.5.0/3"


@pytest.fixture
def analytics() -> PerformanceAnalytics:
    return PerformanceAnalytics()


@pytest.fixture
def cet_local_time(monkeypatch):
    """Run the test with the process local timezone set to CET/CEST."""
    if not hasattr(time, "tzset"):
        pytest.skip("time.tzset is not available on this platform")
    monkeypatch.setenv("TZ", CET_RULES)
    time.tzset()
    yield
    monkeypatch.undo()
    time.tzset()
