"""Tests for kickoff reconciliation against official sources.

Verifies that:
1. Games are matched by canonical pairing, round and time proximity
2. Tiny or implausibly large deltas produce no override
3. A failing source never breaks the pass or other leagues
4. Merge order is deterministic regardless of completion order
"""

import threading
from datetime import UTC, datetime, timedelta

from rugbyclaw.consumers.reconciliation import (
    KickoffReconciler,
    match_kickoff_overrides,
    select_candidates,
)
from rugbyclaw.core.errors import SourceError
from rugbyclaw.core.interfaces import OfficialFixtureSource
from rugbyclaw.core.types import GameStatus, KickoffSource, OfficialFixture

KICKOFF = datetime(2026, 2, 14, 15, 0, tzinfo=UTC)


def _fixture(
    home="Bordeaux Begles",
    away="Castres Olympique",
    kickoff=KICKOFF + timedelta(minutes=30),
    round=17,
    league_id="16",
    source_id="lnr-1",
):
    return OfficialFixture(
        source_id=source_id,
        home_name=home,
        away_name=away,
        kickoff=kickoff,
        round=round,
        league_id=league_id,
    )


class FakeSource(OfficialFixtureSource):
    """In-memory source returning canned fixtures (or raising) per league."""

    def __init__(self, name, fixtures_by_league, error=None, delay=None):
        self._name = name
        self._fixtures = fixtures_by_league
        self._error = error
        self._delay = delay
        self.calls: list[str] = []
        self._lock = threading.Lock()
        self.closed = False

    @property
    def name(self):
        return self._name

    @property
    def league_ids(self):
        return frozenset(self._fixtures)

    def fetch_official_fixtures(self, league_id, season_hint_games):
        with self._lock:
            self.calls.append(league_id)
        if self._delay is not None:
            self._delay.wait(timeout=2)
        if self._error is not None:
            raise self._error
        return list(self._fixtures[league_id])

    def close(self):
        self.closed = True


# =============================================================================
# MATCHING
# =============================================================================


class TestMatchKickoffOverrides:
    def test_aliased_pairing_same_round(self, make_game):
        game = make_game(kickoff=KICKOFF)
        overrides = match_kickoff_overrides([game], [_fixture()], "16", source="lnr")

        assert set(overrides) == {"1001"}
        assert overrides["1001"].kickoff == KICKOFF + timedelta(minutes=30)
        assert overrides["1001"].source == "lnr"
        assert overrides["1001"].provenance == KickoffSource.SECONDARY

    def test_round_mismatch_skipped(self, make_game):
        game = make_game(kickoff=KICKOFF)
        assert match_kickoff_overrides([game], [_fixture(round=18)], "16") == {}

    def test_unknown_round_still_matches(self, make_game):
        game = make_game(kickoff=KICKOFF, round=None)
        assert "1001" in match_kickoff_overrides([game], [_fixture(round=18)], "16")

    def test_reversed_pairing_not_matched(self, make_game):
        game = make_game(kickoff=KICKOFF)
        fixture = _fixture(home="Castres Olympique", away="Bordeaux Begles")
        assert match_kickoff_overrides([game], [fixture], "16") == {}

    def test_delta_below_minimum(self, make_game):
        game = make_game(kickoff=KICKOFF)
        fixture = _fixture(kickoff=KICKOFF + timedelta(seconds=30))
        assert match_kickoff_overrides([game], [fixture], "16") == {}

    def test_delta_above_maximum(self, make_game):
        game = make_game(kickoff=KICKOFF)
        fixture = _fixture(kickoff=KICKOFF + timedelta(days=32))
        assert match_kickoff_overrides([game], [fixture], "16") == {}

    def test_closest_candidate_wins(self, make_game):
        game = make_game(kickoff=KICKOFF, round=None)
        fixtures = [
            _fixture(kickoff=KICKOFF + timedelta(days=20), source_id="a"),
            _fixture(kickoff=KICKOFF - timedelta(hours=2), source_id="b"),
            _fixture(kickoff=KICKOFF + timedelta(minutes=5), source_id="c"),
        ]
        overrides = match_kickoff_overrides([game], fixtures, "16")
        assert overrides["1001"].kickoff == KICKOFF + timedelta(minutes=5)


class TestSelectCandidates:
    def test_filters_status_and_league(self, make_game):
        games = [
            make_game(game_id="1", league_id="76"),
            make_game(game_id="2", status=GameStatus.FINISHED),
            make_game(game_id="3"),
            make_game(game_id="4", league_id="13"),
            make_game(game_id="5", league_id="76"),
        ]
        by_league = select_candidates(games)

        assert list(by_league) == ["76", "16", "13"]
        assert [g.id for g in by_league["76"]] == ["1", "5"]
        assert [g.id for g in by_league["16"]] == ["3"]


# =============================================================================
# RECONCILER
# =============================================================================


class TestKickoffReconciler:
    def test_override_from_source(self, make_game):
        source = FakeSource("lnr", {"16": [_fixture()]})
        reconciler = KickoffReconciler([source])

        overrides = reconciler.resolve_overrides([make_game(kickoff=KICKOFF)])

        assert overrides["1001"].kickoff == KICKOFF + timedelta(minutes=30)
        assert overrides["1001"].source == "lnr"

    def test_no_candidates_no_calls(self, make_game):
        source = FakeSource("lnr", {"16": [_fixture()]})
        reconciler = KickoffReconciler([source])

        games = [
            make_game(status=GameStatus.LIVE),
            make_game(game_id="2", status=GameStatus.FINISHED),
        ]
        report = reconciler.resolve_overrides_detailed(games)

        assert report.overrides == {}
        assert report.candidate_count == 0
        assert source.calls == []
        assert report.completed_at is not None

    def test_failing_source_isolated(self, make_game):
        broken = FakeSource("lnr", {"16": []}, error=SourceError("lnr", "returned 503"))
        urc = FakeSource(
            "urc",
            {
                "76": [
                    _fixture(
                        home="Munster Rugby",
                        away="Leinster Rugby",
                        kickoff=KICKOFF + timedelta(minutes=35),
                        round=None,
                        league_id="76",
                    )
                ]
            },
        )
        games = [
            make_game(kickoff=KICKOFF),
            make_game(
                game_id="2002",
                home="Munster Rugby",
                away="Leinster Rugby",
                league_id="76",
                kickoff=KICKOFF,
            ),
        ]

        report = KickoffReconciler([broken, urc]).resolve_overrides_detailed(games)

        assert set(report.overrides) == {"2002"}
        assert [(o.source, o.ok) for o in report.outcomes] == [("lnr", False), ("urc", True)]
        assert "503" in report.failed[0].error

    def test_unexpected_exception_isolated(self, make_game):
        broken = FakeSource("lnr", {"16": []}, error=KeyError("boom"))
        report = KickoffReconciler([broken]).resolve_overrides_detailed([make_game()])

        assert report.overrides == {}
        assert report.failed[0].error.startswith("KeyError")

    def test_merge_order_is_registration_order(self, make_game):
        # "slow" finishes last but is registered last, so it still wins
        release = threading.Event()
        fast = FakeSource("fast", {"16": [_fixture(kickoff=KICKOFF + timedelta(minutes=30))]})
        slow = FakeSource(
            "slow", {"16": [_fixture(kickoff=KICKOFF + timedelta(minutes=45))]}, delay=release
        )
        reconciler = KickoffReconciler([fast, slow], max_workers=2)

        timer = threading.Timer(0.05, release.set)
        timer.start()
        try:
            overrides = reconciler.resolve_overrides([make_game(kickoff=KICKOFF)])
        finally:
            timer.cancel()

        assert overrides["1001"].source == "slow"
        assert overrides["1001"].kickoff == KICKOFF + timedelta(minutes=45)

    def test_report_to_dict(self, make_game):
        source = FakeSource("lnr", {"16": [_fixture()]})
        report = KickoffReconciler([source]).resolve_overrides_detailed([make_game()])

        data = report.to_dict()

        assert data["candidate_count"] == 1
        assert data["override_count"] == 1
        assert data["outcomes"] == [
            {"source": "lnr", "league_id": "16", "ok": True, "fixtures": 1, "error": None}
        ]

    def test_close_closes_every_source(self):
        sources = [FakeSource("lnr", {"16": []}), FakeSource("urc", {"76": []})]
        KickoffReconciler(sources).close()

        assert [s.closed for s in sources] == [True, True]
