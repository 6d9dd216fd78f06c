"""
Tests for the Qt glue: ChartBridge payloads and the queued dispatcher.
"""

import json
from datetime import datetime, timezone

import pytest

QtCore = pytest.importorskip("PyQt6.QtCore")

from renko_app.chart.chart_bridge import ChartBridge, state_payload, status_text  # noqa: E402
from renko_app.data.models import ChartState, RefreshPhase  # noqa: E402
from renko_app.indicators.renko import build_renko  # noqa: E402
from renko_app.ui.qt_driver import QtDispatcher, QtTimer  # noqa: E402


@pytest.fixture(scope="module")
def qapp():
    return QtCore.QCoreApplication.instance() or QtCore.QCoreApplication([])


@pytest.fixture
def bridge(qapp):
    b = ChartBridge()
    b.events = []
    b.chartLoaded.connect(lambda s: b.events.append(("loaded", json.loads(s))))
    b.chartCleared.connect(lambda: b.events.append(("cleared", None)))
    b.errorRaised.connect(lambda m: b.events.append(("error", m)))
    b.showLoading.connect(lambda: b.events.append(("loading", None)))
    b.hideLoading.connect(lambda: b.events.append(("idle", None)))
    return b


def _ready_state(scenario_bars) -> ChartState:
    return ChartState(
        phase=RefreshPhase.READY,
        asset_id="bitcoin",
        requested_name="Bitcoin",
        bars=scenario_bars,
        result=build_renko(scenario_bars, 5),
        last_refreshed_at=datetime(2026, 10, 16, 12, 0, tzinfo=timezone.utc),
    )


def test_state_payload(scenario_bars) -> None:
    payload = state_payload(_ready_state(scenario_bars))

    assert payload["phase"] == "ready"
    assert payload["requestedName"] == "Bitcoin"
    assert payload["lastRefreshedAt"] == "2026-10-16T12:00:00+00:00"
    assert payload["bricks"][0]["close"] == 105
    assert [m["text"] for m in payload["markers"]] == ["High: 110.00", "Low: 95.00"]


def test_ready_state_emits_chart(bridge, scenario_bars) -> None:
    bridge.publish(_ready_state(scenario_bars))

    assert bridge.events[0] == ("idle", None)
    kind, payload = bridge.events[1]
    assert kind == "loaded"
    assert payload["brickSize"] == 5


def test_failed_state_clears_and_reports(bridge) -> None:
    bridge.publish(ChartState(phase=RefreshPhase.FAILED, asset_id="x", requested_name="X", message="boom"))
    assert bridge.events == [("idle", None), ("error", "boom"), ("cleared", None)]


def test_fetching_new_asset_clears_previous_chart(bridge) -> None:
    bridge.publish(ChartState(phase=RefreshPhase.FETCHING, asset_id="x"))
    assert bridge.events == [("loading", None), ("cleared", None)]


def test_dispatcher_runs_callable(qapp) -> None:
    calls = []
    dispatch = QtDispatcher()
    dispatch(lambda: calls.append(1))
    assert calls == [1]


def test_status_text_cleared_on_empty_ready_after_failure() -> None:
    """An empty chart that loads fine still wipes a previous failure message."""
    failed = ChartState(phase=RefreshPhase.FAILED, asset_id="x", requested_name="X", message="boom")
    empty_ready = ChartState(phase=RefreshPhase.READY, asset_id="x", requested_name="X")

    assert status_text(failed) == "boom"
    assert empty_ready.bricks == []
    assert status_text(empty_ready) == ""


def test_status_text_untouched_while_fetching() -> None:
    assert status_text(ChartState(phase=RefreshPhase.FETCHING, asset_id="x")) is None


def test_status_text_shows_deselect_message() -> None:
    state = ChartState(phase=RefreshPhase.IDLE, message="No real-time market data")
    assert status_text(state) == "No real-time market data"


def test_qt_timer_restart_and_stop(qapp) -> None:
    timer = QtTimer()
    timer.start(60_000, lambda: None)
    first = timer._timer
    assert first.isActive() and first.interval() == 60_000

    timer.start(1_000, lambda: None)
    assert timer._timer is not first
    assert not first.isActive()

    timer.stop()
    assert timer._timer is None
    timer.stop()  # idempotent
