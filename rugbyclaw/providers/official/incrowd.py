"""InCrowd rugby-union feed (rugbyviz provider).

Serves Premiership, Six Nations, Super Rugby and both European cups. The
feed keys seasons as YYYY00 / YYYY01 depending on competition, so every
plausible window around the games' kickoff years is queried and the
results merged.
"""

import logging
from collections.abc import Sequence

from rugbyclaw.core.errors import SourceError
from rugbyclaw.core.types import Game, OfficialFixture
from rugbyclaw.providers.official.base import (
    OfficialSource,
    clean_name,
    extract_round,
    parse_kickoff,
    season_hint_years,
)
from rugbyclaw.utilities.cache import make_cache_key
from rugbyclaw.utilities.constants import (
    CHALLENGE_CUP_LEAGUE_ID,
    CHAMPIONS_CUP_LEAGUE_ID,
    INCROWD_LEAGUE_IDS,
    PREMIERSHIP_LEAGUE_ID,
    SIX_NATIONS_LEAGUE_ID,
    SUPER_RUGBY_LEAGUE_ID,
)
from rugbyclaw.utilities.fuzzy_match import normalize_text

logger = logging.getLogger(__name__)

INCROWD_MATCHES_URL = "https://rugby-union-feeds.incrowdsports.com/v1/matches"
INCROWD_PROVIDER = "rugbyviz"
INCROWD_PAGE_SIZE = 500

INCROWD_COMPETITION_IDS = {
    PREMIERSHIP_LEAGUE_ID: 1011,
    SIX_NATIONS_LEAGUE_ID: 1055,
    SUPER_RUGBY_LEAGUE_ID: 1020,
    CHAMPIONS_CUP_LEAGUE_ID: 1008,
    CHALLENGE_CUP_LEAGUE_ID: 1026,
}

_UNKNOWN_TEAM_NAMES = frozenset({"tbc", "to be confirmed"})


def resolve_season_ids(games: Sequence[Game]) -> list[int]:
    """Season windows for the games' kickoff years, ascending.

    A 2026 kickoff yields [202500, 202501, 202600, 202601].
    """
    ids: set[int] = set()
    for year in season_hint_years(games):
        ids.update({year * 100, year * 100 + 1, (year - 1) * 100, (year - 1) * 100 + 1})
    return sorted(ids)


def _is_unknown_team(name: str) -> bool:
    return normalize_text(name) in _UNKNOWN_TEAM_NAMES


def parse_incrowd_matches(payload: object, league_id: str) -> list[OfficialFixture]:
    """Fixtures from one feed page. Malformed or TBC records are skipped."""
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, list):
        return []

    fixtures = []
    for match in data:
        if not isinstance(match, dict):
            continue
        home_team = match.get("homeTeam")
        away_team = match.get("awayTeam")
        home = clean_name(home_team.get("name")) if isinstance(home_team, dict) else None
        away = clean_name(away_team.get("name")) if isinstance(away_team, dict) else None
        kickoff = parse_kickoff(match.get("date"))
        source_id = str(match.get("id") or "")

        if not home or not away or not kickoff or not source_id:
            continue
        if _is_unknown_team(home) or _is_unknown_team(away):
            continue

        fixtures.append(
            OfficialFixture(
                source_id=source_id,
                home_name=home,
                away_name=away,
                kickoff=kickoff,
                round=extract_round(match.get("round")),
                league_id=league_id,
            )
        )
    return fixtures


class InCrowdSource(OfficialSource):
    """Fixtures from the InCrowd rugby-union JSON feed."""

    @property
    def name(self) -> str:
        return "incrowd"

    @property
    def league_ids(self) -> frozenset[str]:
        return INCROWD_LEAGUE_IDS

    def fetch_official_fixtures(
        self,
        league_id: str,
        season_hint_games: Sequence[Game],
    ) -> list[OfficialFixture]:
        competition_id = INCROWD_COMPETITION_IDS.get(league_id)
        if not competition_id or not season_hint_games:
            return []

        season_ids = resolve_season_ids(season_hint_games)
        cache_key = make_cache_key("incrowd", league_id, ",".join(map(str, season_ids)))
        cached = self._get_cached(cache_key)
        if cached is not None:
            return cached

        by_id: dict[str, OfficialFixture] = {}
        any_window_succeeded = False

        for season_id in season_ids:
            params = {
                "provider": INCROWD_PROVIDER,
                "compId": str(competition_id),
                "season": str(season_id),
                "pageSize": str(INCROWD_PAGE_SIZE),
            }
            try:
                response = self._request(
                    "GET",
                    INCROWD_MATCHES_URL,
                    params=params,
                    headers={"Accept": "application/json"},
                )
                payload = response.json()
            except (SourceError, ValueError) as e:
                logger.debug(
                    "[INCROWD] Season %d for league %s unavailable: %s", season_id, league_id, e
                )
                continue

            any_window_succeeded = True
            for fixture in parse_incrowd_matches(payload, league_id):
                by_id[fixture.source_id] = fixture

        if not any_window_succeeded:
            raise SourceError(self.name, f"no season window succeeded for league {league_id}")

        fixtures = sorted(by_id.values(), key=lambda f: f.kickoff)
        logger.debug("[INCROWD] %d fixtures for league %s", len(fixtures), league_id)

        self._store_cached(cache_key, fixtures)
        return fixtures
