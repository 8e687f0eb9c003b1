"""United Rugby Championship GraphQL source.

The URC site's GraphQL endpoint also returns friendlies and other
competitions for the same season ids; those are filtered out by name.
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
from rugbyclaw.utilities.constants import URC_LEAGUE_ID
from rugbyclaw.utilities.fuzzy_match import normalize_text

logger = logging.getLogger(__name__)

URC_GRAPHQL_URL = "https://www.unitedrugby.com/graphql"
URC_MATCH_LIMIT = 500
URC_COMPETITION_NAME = "united rugby championship"

URC_MATCHES_QUERY = (
    "query($season_id:[Int], $limit:Int){ "
    'matches(season_id:$season_id, limit:$limit, orderBy:"match_data.dateTime", order:"ASC"){ '
    "id season_id season_name match_data { dateTime round competition { name } "
    "homeTeam { name shortName } awayTeam { name shortName } } } }"
)


def resolve_season_ids(games: Sequence[Game]) -> list[int]:
    """URC season ids (YYYY01) for each kickoff year and the year before."""
    ids: set[int] = set()
    for year in season_hint_years(games):
        ids.update({year * 100 + 1, (year - 1) * 100 + 1})
    return sorted(ids)


def parse_urc_matches(payload: object) -> list[OfficialFixture]:
    """Fixtures from a GraphQL response. Other competitions are dropped."""
    data = payload.get("data") if isinstance(payload, dict) else None
    matches = data.get("matches") if isinstance(data, dict) else None
    if not isinstance(matches, list):
        return []

    fixtures = []
    for match in matches:
        if not isinstance(match, dict):
            continue
        match_data = match.get("match_data")
        if not isinstance(match_data, dict):
            continue

        competition = match_data.get("competition")
        competition_name = (
            normalize_text(competition.get("name") or "") if isinstance(competition, dict) else ""
        )
        if competition_name and competition_name != URC_COMPETITION_NAME:
            continue

        kickoff = parse_kickoff(match_data.get("dateTime"))
        home_team = match_data.get("homeTeam")
        away_team = match_data.get("awayTeam")
        home = clean_name(home_team.get("name")) if isinstance(home_team, dict) else None
        away = clean_name(away_team.get("name")) if isinstance(away_team, dict) else None
        source_id = str(match.get("id") or "")

        if not kickoff or not home or not away or not source_id:
            continue

        fixtures.append(
            OfficialFixture(
                source_id=source_id,
                home_name=home,
                away_name=away,
                kickoff=kickoff,
                round=extract_round(match_data.get("round")),
                league_id=URC_LEAGUE_ID,
            )
        )
    return fixtures


class URCSource(OfficialSource):
    """Fixtures from the United Rugby Championship GraphQL API."""

    @property
    def name(self) -> str:
        return "urc"

    @property
    def league_ids(self) -> frozenset[str]:
        return frozenset({URC_LEAGUE_ID})

    def fetch_official_fixtures(
        self,
        league_id: str,
        season_hint_games: Sequence[Game],
    ) -> list[OfficialFixture]:
        if league_id != URC_LEAGUE_ID or not season_hint_games:
            return []

        season_ids = resolve_season_ids(season_hint_games)
        cache_key = make_cache_key("urc", ",".join(map(str, season_ids)))
        cached = self._get_cached(cache_key)
        if cached is not None:
            return cached

        response = self._request(
            "POST",
            URC_GRAPHQL_URL,
            json={
                "query": URC_MATCHES_QUERY,
                "variables": {"season_id": season_ids, "limit": URC_MATCH_LIMIT},
            },
            headers={"Accept": "application/json"},
        )
        try:
            payload = response.json()
        except ValueError as e:
            raise SourceError(self.name, f"malformed GraphQL response: {e}") from e

        fixtures = parse_urc_matches(payload)
        logger.debug("[URC] %d fixtures for seasons %s", len(fixtures), season_ids)

        self._store_cached(cache_key, fixtures)
        return fixtures
