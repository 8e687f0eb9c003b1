"""Kickoff reconciliation against official sources.

The primary upstream is authoritative for scores and status but sometimes
wrong about kickoff times (placeholders, late reschedules). For scheduled
games in leagues known to drift, official fixture lists are fetched and
matched by team pairing, round and time proximity.

Matching rules:
- Team names are canonicalized per league (normalize + alias table)
- Candidates with a known round that differs from the game's are skipped
- The closest candidate wins, but only within MAX_KICKOFF_DELTA
- An override is emitted only if the official time differs by at least
  MIN_OVERRIDE_DELTA

Reconciliation is best-effort enrichment: a failing source contributes no
overrides and is reported in the outcome list, never raised.
"""

import logging
from collections import defaultdict
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from datetime import UTC, datetime

from rugbyclaw.core.errors import SourceError
from rugbyclaw.core.interfaces import OfficialFixtureSource
from rugbyclaw.core.types import (
    Game,
    GameStatus,
    KickoffOverride,
    OfficialFixture,
    SourceOutcome,
)
from rugbyclaw.providers.official.aliases import fixture_pair_key
from rugbyclaw.providers.official.base import extract_round
from rugbyclaw.utilities.constants import (
    MAX_KICKOFF_DELTA,
    MIN_OVERRIDE_DELTA,
    VERIFICATION_LEAGUE_IDS,
)

logger = logging.getLogger(__name__)


# =============================================================================
# TYPES
# =============================================================================


@dataclass
class ReconciliationReport:
    """Results from one reconciliation pass."""

    overrides: dict[str, KickoffOverride] = field(default_factory=dict)
    outcomes: list[SourceOutcome] = field(default_factory=list)
    candidate_count: int = 0
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    completed_at: datetime | None = None

    @property
    def failed(self) -> list[SourceOutcome]:
        return [o for o in self.outcomes if not o.ok]

    def to_dict(self) -> dict:
        """Convert to dict for JSON serialization."""
        return {
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "candidate_count": self.candidate_count,
            "override_count": len(self.overrides),
            "outcomes": [
                {
                    "source": o.source,
                    "league_id": o.league_id,
                    "ok": o.ok,
                    "fixtures": len(o.fixtures),
                    "error": o.error,
                }
                for o in self.outcomes
            ],
        }


# =============================================================================
# MATCHING
# =============================================================================


def select_candidates(games: Iterable[Game]) -> dict[str, list[Game]]:
    """Scheduled games in verification leagues, grouped by league id.

    League order follows first appearance in the input.
    """
    by_league: dict[str, list[Game]] = {}
    for game in games:
        if game.status != GameStatus.SCHEDULED:
            continue
        if game.league.id not in VERIFICATION_LEAGUE_IDS:
            continue
        by_league.setdefault(game.league.id, []).append(game)
    return by_league


def match_kickoff_overrides(
    games: Sequence[Game],
    fixtures: Sequence[OfficialFixture],
    league_id: str,
    source: str = "secondary",
) -> dict[str, KickoffOverride]:
    """Match upstream games to official fixtures of one league.

    Pure function: no I/O, deterministic for a given input.
    """
    by_pair: dict[str, list[OfficialFixture]] = defaultdict(list)
    for fixture in fixtures:
        key = fixture_pair_key(fixture.home_name, fixture.away_name, fixture.league_id or league_id)
        by_pair[key].append(fixture)
    for bucket in by_pair.values():
        bucket.sort(key=lambda f: f.kickoff)

    overrides: dict[str, KickoffOverride] = {}
    for game in games:
        game_league = game.league.id or league_id
        key = fixture_pair_key(game.home_team.name, game.away_team.name, game_league)
        candidates = by_pair.get(key)
        if not candidates:
            continue

        game_round = extract_round(game.round)
        best: OfficialFixture | None = None
        best_delta = None

        for candidate in candidates:
            # Same pairing can occur twice a season; round tells them apart
            known = game_round is not None and candidate.round is not None
            if known and game_round != candidate.round:
                continue
            delta = abs(candidate.kickoff - game.reported_kickoff)
            if delta > MAX_KICKOFF_DELTA:
                continue
            if best_delta is None or delta < best_delta:
                best, best_delta = candidate, delta

        if best is not None and best_delta >= MIN_OVERRIDE_DELTA:
            overrides[game.id] = KickoffOverride(kickoff=best.kickoff, source=source)
            logger.debug(
                "[RECONCILE] %s %s v %s: %s -> %s (%s)",
                game.id,
                game.home_team.name,
                game.away_team.name,
                game.reported_kickoff.isoformat(),
                best.kickoff.isoformat(),
                source,
            )

    return overrides


# =============================================================================
# RECONCILER
# =============================================================================


class KickoffReconciler:
    """Fans out to official sources and merges the resulting overrides.

    Sources for different leagues are queried concurrently. Results are merged
    in a fixed order (league first appearance, then source registration
    order) so the outcome never depends on completion order.

    Usage:
        reconciler = KickoffReconciler(create_official_sources())
        overrides = reconciler.resolve_overrides(games)
    """

    def __init__(self, sources: Sequence[OfficialFixtureSource], max_workers: int = 4):
        self._sources = list(sources)
        self._max_workers = max(1, max_workers)

    @property
    def sources(self) -> list[OfficialFixtureSource]:
        return list(self._sources)

    def close(self) -> None:
        """Close every source (their lazily created HTTP clients)."""
        for source in self._sources:
            source.close()

    def _fetch(
        self,
        source: OfficialFixtureSource,
        league_id: str,
        games: list[Game],
    ) -> SourceOutcome:
        """Ask one source about one league. Never raises."""
        try:
            fixtures = source.fetch_official_fixtures(league_id, games)
        except SourceError as e:
            logger.info("[RECONCILE] %s unavailable for league %s: %s", source.name, league_id, e)
            return SourceOutcome(source=source.name, league_id=league_id, error=str(e))
        except Exception as e:
            logger.warning(
                "[RECONCILE] %s failed for league %s: %s", source.name, league_id, e, exc_info=True
            )
            return SourceOutcome(
                source=source.name, league_id=league_id, error=f"{type(e).__name__}: {e}"
            )
        return SourceOutcome(source=source.name, league_id=league_id, fixtures=tuple(fixtures))

    def resolve_overrides_detailed(self, games: Iterable[Game]) -> ReconciliationReport:
        """Run one reconciliation pass and report per-source outcomes."""
        report = ReconciliationReport()
        by_league = select_candidates(games)
        report.candidate_count = sum(len(g) for g in by_league.values())

        tasks = [
            (league_id, index, source)
            for league_id in by_league
            for index, source in enumerate(self._sources)
            if source.supports_league(league_id)
        ]
        if not tasks:
            report.completed_at = datetime.now(UTC)
            return report

        results: dict[tuple[str, int], SourceOutcome] = {}
        with ThreadPoolExecutor(max_workers=min(self._max_workers, len(tasks))) as executor:
            futures = {
                executor.submit(self._fetch, source, league_id, by_league[league_id]): (
                    league_id,
                    index,
                )
                for league_id, index, source in tasks
            }
            for future in as_completed(futures):
                results[futures[future]] = future.result()

        for league_id, index, _source in tasks:
            outcome = results[(league_id, index)]
            report.outcomes.append(outcome)
            if not outcome.ok:
                continue
            try:
                league_overrides = match_kickoff_overrides(
                    by_league[league_id], outcome.fixtures, league_id, source=outcome.source
                )
            except Exception as e:
                logger.warning(
                    "[RECONCILE] Matching %s fixtures for league %s failed: %s",
                    outcome.source,
                    league_id,
                    e,
                )
                continue
            report.overrides.update(league_overrides)

        report.completed_at = datetime.now(UTC)
        logger.debug(
            "[RECONCILE] %d candidates, %d overrides, %d failed sources",
            report.candidate_count,
            len(report.overrides),
            len(report.failed),
        )
        return report

    def resolve_overrides(self, games: Iterable[Game]) -> dict[str, KickoffOverride]:
        """Map of upstream match id to corrected kickoff."""
        return self.resolve_overrides_detailed(games).overrides
