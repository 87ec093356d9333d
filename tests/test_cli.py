from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from nexus_watch import __main__ as cli
from nexus_watch.config import load_settings
from nexus_watch.locations import Location
from nexus_watch.models import WatchOutcome, WatchSession


def _session(outcome: WatchOutcome) -> WatchSession:
    return WatchSession(location=Location.BLAINE, active=False, terminated=True, outcome=outcome)


def test_locations_lists_catalog(capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["locations"]) == 0
    out = capsys.readouterr().out
    assert "US30  Sweetgrass" in out
    assert "CA00  Fort Erie" in out


@pytest.mark.parametrize(
    "outcome, code",
    [
        (WatchOutcome.FOUND, 0),
        (WatchOutcome.CLOSED, 1),
        (WatchOutcome.ERROR_BUDGET_EXHAUSTED, 1),
        (WatchOutcome.CANCELLED, 130),
    ],
)
def test_watch_exit_code_follows_outcome(outcome: WatchOutcome, code: int) -> None:
    settings = load_settings({})

    with (
        patch("nexus_watch.__main__.get_settings", return_value=settings),
        patch("nexus_watch.__main__.setup_logging"),
        patch("nexus_watch.__main__.run_console_watch", new=AsyncMock(return_value=_session(outcome))) as run,
    ):
        assert cli.main(["watch", "blaine"]) == code
        run.assert_awaited_once_with(settings, Location.BLAINE)


def test_unknown_location_exits_with_usage_error(capsys: pytest.CaptureFixture[str]) -> None:
    with (
        patch("nexus_watch.__main__.get_settings", return_value=load_settings({})),
        patch("nexus_watch.__main__.setup_logging"),
        patch("nexus_watch.__main__.run_console_watch") as run,
    ):
        assert cli.main(["watch", "US99"]) == 2
        run.assert_not_called()
    assert "Unknown enrollment center" in capsys.readouterr().err


def test_invalid_configuration_exits_with_2() -> None:
    with patch("nexus_watch.__main__.get_settings", side_effect=ValueError("bad float")):
        assert cli.main(["watch", "US30"]) == 2


def test_watch_without_outcome_exits_with_1() -> None:
    unfinished = WatchSession(location=Location.BLAINE, active=False, terminated=True)

    with (
        patch("nexus_watch.__main__.get_settings", return_value=load_settings({})),
        patch("nexus_watch.__main__.setup_logging"),
        patch("nexus_watch.__main__.run_console_watch", new=AsyncMock(return_value=unfinished)),
    ):
        assert cli.main(["watch", "US70"]) == 1
