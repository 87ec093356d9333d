from __future__ import annotations

from datetime import date

from conftest import FakeActions, FakeNotifier, StubProber
from nexus_watch.bot import locations_text, status_text
from nexus_watch.config import WatchConfig
from nexus_watch.locations import Location
from nexus_watch.models import ProbeResult, WatchOutcome, WatchSession
from nexus_watch.watcher import WatchController


def _controller() -> WatchController:
    return WatchController(
        service=None,  # type: ignore[arg-type]
        actions=FakeActions(),
        notifier=FakeNotifier(),
        config=WatchConfig(),
        prober=StubProber([ProbeResult.unavailable()]),
    )


def test_status_without_watch() -> None:
    assert "No watch started" in status_text(_controller())


def test_status_escapes_last_error() -> None:
    controller = _controller()
    controller._session = WatchSession(
        location=Location.BLAINE,
        active=False,
        terminated=True,
        outcome=WatchOutcome.ERROR_BUDGET_EXHAUSTED,
        consecutive_error_count=3,
        probes_count=7,
        last_error="unexpected <div> markup",
        found_date=date(2024, 6, 10),
    )

    text = status_text(controller)

    assert "Blaine (US70)" in text
    assert "State: stopped" in text
    assert "Probes: 7" in text
    assert "Outcome: error_budget_exhausted" in text
    assert "Found date: 2024-06-10" in text
    assert "&lt;div&gt;" in text


def test_locations_text_lists_every_center() -> None:
    text = locations_text()
    for location in Location:
        assert f"<code>{location.code}</code>" in text
