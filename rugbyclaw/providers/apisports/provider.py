"""API-Sports rugby provider.

Fetches through ApiSportsClient and normalizes into our dataclass format.
Scheduled games in verification leagues are cross-checked against official
sources, then every game gets its kickoff resolved with precedence
manual > secondary > provider.
"""

import logging
import re
from collections.abc import Callable, Iterable, Sequence
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

from rugbyclaw.consumers.kickoff import resolve_kickoff
from rugbyclaw.core.errors import ProviderError, ProviderErrorCode
from rugbyclaw.core.types import (
    Game,
    GameStatus,
    KickoffOverride,
    League,
    ProviderRuntimeMeta,
    ProxyStatus,
    Score,
    Team,
)
from rugbyclaw.providers.apisports.client import ApiSportsClient
from rugbyclaw.providers.official.base import parse_kickoff
from rugbyclaw.utilities.constants import CALENDAR_YEAR_LEAGUE_IDS, get_league_by_id
from rugbyclaw.utilities.response_cache import CACHE_PROFILES

if TYPE_CHECKING:
    from rugbyclaw.consumers.reconciliation import KickoffReconciler

logger = logging.getLogger(__name__)

STATUS_MAP = {
    # Not started
    "NS": GameStatus.SCHEDULED,
    "TBD": GameStatus.SCHEDULED,
    # In play
    "1H": GameStatus.LIVE,
    "2H": GameStatus.LIVE,
    "HT": GameStatus.LIVE,
    "ET": GameStatus.LIVE,
    "BT": GameStatus.LIVE,
    "P": GameStatus.LIVE,
    "INT": GameStatus.LIVE,
    # Done
    "FT": GameStatus.FINISHED,
    "AET": GameStatus.FINISHED,
    "PEN": GameStatus.FINISHED,
    "AWD": GameStatus.FINISHED,
    "WO": GameStatus.FINISHED,
    "PST": GameStatus.POSTPONED,
    "POST": GameStatus.POSTPONED,
    "SUSP": GameStatus.POSTPONED,
    "CANC": GameStatus.CANCELLED,
    "ABD": GameStatus.CANCELLED,
}


def map_status(short: str | None, long: str | None = None) -> GameStatus:
    """Map an API-Sports status to ours, falling back on the long label."""
    code = (short or "").upper()
    if code in STATUS_MAP:
        return STATUS_MAP[code]

    long_lower = (long or "").lower()
    if "finish" in long_lower:
        return GameStatus.FINISHED
    if "live" in long_lower or "half" in long_lower:
        return GameStatus.LIVE
    if "postpon" in long_lower:
        return GameStatus.POSTPONED
    if "cancel" in long_lower:
        return GameStatus.CANCELLED
    return GameStatus.SCHEDULED


def get_current_season(league_id: str | None = None, today: date | None = None) -> int:
    """Season year the upstream files current games under.

    Six Nations and Super Rugby run within a calendar year. Everything else
    runs Aug-Jun and is filed under the starting year, so Jan-Jul belongs to
    the previous year's season.
    """
    today = today or datetime.now(UTC).date()
    if league_id in CALENDAR_YEAR_LEAGUE_IDS:
        return today.year
    if today.month < 8:
        return today.year - 1
    return today.year


def _slugify(name: str) -> str:
    return re.sub(r"\s+", "_", name.strip().lower())


class ApiSportsProvider:
    """Rugby data from API-Sports with kickoff verification.

    Pure fetch + normalize layer on top of ApiSportsClient. Kickoff fields on
    returned games are derived per call and never cached.
    """

    def __init__(
        self,
        client: ApiSportsClient,
        reconciler: "KickoffReconciler | None" = None,
        manual_overrides: dict[str, KickoffOverride] | None = None,
        now: Callable[[], datetime] | None = None,
    ):
        self._client = client
        self._reconciler = reconciler
        self._manual_overrides = manual_overrides or {}
        self._now = now or (lambda: datetime.now(UTC))

    @property
    def name(self) -> str:
        return self._client.name

    def is_proxy_mode(self) -> bool:
        return self._client.is_proxy_mode()

    def consume_runtime_meta(self) -> ProviderRuntimeMeta:
        """Drain trace ids and stale-fallback flags for the last operation."""
        return self._client.consume_runtime_meta()

    def get_proxy_status(self) -> ProxyStatus | None:
        return self._client.get_proxy_status()

    # =========================================================================
    # Parsing
    # =========================================================================

    def _parse_team(self, data: dict) -> Team:
        country = data.get("country") if isinstance(data.get("country"), dict) else {}
        return Team(
            id=str(data["id"]),
            name=data["name"],
            badge=data.get("logo"),
            country=country.get("name"),
        )

    def _parse_game(self, data: dict) -> Game | None:
        """Parse an API-Sports game record. Returns None if malformed."""
        try:
            league_data = data.get("league") or {}
            league_id = str(league_data["id"])
            league = get_league_by_id(league_id)
            if league is None:
                country = data.get("country") or {}
                league = League(
                    id=league_id,
                    slug=_slugify(league_data.get("name", league_id)),
                    name=league_data.get("name", league_id),
                    country=country.get("name") or "",
                )

            timestamp = data.get("timestamp")
            if isinstance(timestamp, (int, float)) and not isinstance(timestamp, bool):
                kickoff = datetime.fromtimestamp(timestamp, UTC)
            else:
                kickoff = parse_kickoff(data.get("date"))
            if kickoff is None:
                logger.debug("[API-SPORTS] Game %s has no kickoff", data.get("id"))
                return None

            status = data.get("status") or {}
            teams = data["teams"]
            home = teams["home"]
            away = teams["away"]

            scores = data.get("scores") or {}
            score = None
            if isinstance(scores.get("home"), int) and isinstance(scores.get("away"), int):
                score = Score(home=scores["home"], away=scores["away"])

            return Game(
                id=str(data["id"]),
                home_team=Team(id=str(home["id"]), name=home["name"], badge=home.get("logo")),
                away_team=Team(id=str(away["id"]), name=away["name"], badge=away.get("logo")),
                league=league,
                status=map_status(status.get("short"), status.get("long")),
                reported_kickoff=kickoff,
                round=str(data["week"]) if data.get("week") else None,
                score=score,
                reported_time=data.get("time"),
                reported_timezone=data.get("timezone"),
            )
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            game_id = data.get("id") if isinstance(data, dict) else None
            logger.debug("[API-SPORTS] Skipping malformed game %s: %s", game_id, e)
            return None

    def _parse_games(self, records: object) -> list[Game]:
        if not isinstance(records, list):
            return []
        games = []
        for record in records:
            if isinstance(record, dict) and (game := self._parse_game(record)):
                games.append(game)
        return games

    def _parse_teams(self, records: object) -> list[Team]:
        if not isinstance(records, list):
            return []
        teams = []
        for record in records:
            try:
                teams.append(self._parse_team(record))
            except (KeyError, TypeError, AttributeError) as e:
                logger.debug("[API-SPORTS] Skipping malformed team: %s", e)
        return teams

    # =========================================================================
    # Kickoff resolution
    # =========================================================================

    def _resolve_kickoffs(self, games: Sequence[Game], verify: bool = True) -> list[Game]:
        """Apply manual and (optionally) reconciled overrides to every game."""
        secondary: dict[str, KickoffOverride] = {}
        if verify and self._reconciler is not None and games:
            secondary = self._reconciler.resolve_overrides(games)

        now = self._now()
        return [
            resolve_kickoff(
                game,
                manual=self._manual_overrides.get(game.id),
                secondary=secondary.get(game.id),
                now=now,
            )
            for game in games
        ]

    @staticmethod
    def _dedupe(games: Iterable[Game]) -> list[Game]:
        seen: dict[str, Game] = {}
        for game in games:
            seen.setdefault(game.id, game)
        return list(seen.values())

    def _season_games(self, league_id: str, profile: str) -> list[Game]:
        season = get_current_season(league_id, self._now().date())
        records = self._client.fetch(
            "games", {"league": league_id, "season": season}, CACHE_PROFILES[profile]
        )
        return self._parse_games(records)

    # =========================================================================
    # Public API
    # =========================================================================

    def get_league_fixtures(self, league_id: str) -> list[Game]:
        """Upcoming scheduled games for a league, soonest first."""
        games = self._resolve_kickoffs(self._season_games(league_id, "standard"))
        now = self._now()
        upcoming = [g for g in games if g.status == GameStatus.SCHEDULED and g.kickoff > now]
        return sorted(upcoming, key=lambda g: g.kickoff)

    def get_league_results(self, league_id: str) -> list[Game]:
        """Finished games for a league, most recent first."""
        games = self._resolve_kickoffs(self._season_games(league_id, "standard"), verify=False)
        finished = [g for g in games if g.status == GameStatus.FINISHED]
        return sorted(finished, key=lambda g: g.kickoff, reverse=True)

    def get_match(self, match_id: str) -> Game | None:
        """Single game by id, or None if the upstream doesn't know it."""
        records = self._client.fetch("games", {"id": match_id}, CACHE_PROFILES["live"])
        games = self._parse_games(records)
        if not games:
            return None
        return self._resolve_kickoffs(games[:1])[0]

    def _collect_across_leagues(
        self, league_ids: Sequence[str], fetch_one: Callable[[str], list[Game]]
    ) -> list[Game]:
        """Fetch per league; a failing league is skipped unless the key is bad."""
        games: list[Game] = []
        for league_id in league_ids:
            try:
                games.extend(fetch_one(league_id))
            except ProviderError as e:
                if e.code == ProviderErrorCode.UNAUTHORIZED:
                    raise
                logger.warning("[API-SPORTS] Skipping league %s: %s", league_id, e)
        return self._dedupe(games)

    def get_today(self, league_ids: Sequence[str], date_ymd: str | None = None) -> list[Game]:
        """Games on one UTC date (default today) across leagues, by kickoff."""
        date_str = date_ymd or self._now().date().isoformat()

        def fetch_one(league_id: str) -> list[Game]:
            records = self._client.fetch(
                "games", {"league": league_id, "date": date_str}, CACHE_PROFILES["live"]
            )
            return self._parse_games(records)

        games = self._resolve_kickoffs(self._collect_across_leagues(league_ids, fetch_one))
        return sorted(games, key=lambda g: g.kickoff)

    def get_live(self, league_ids: Sequence[str]) -> list[Game]:
        """Games currently in play across leagues, by kickoff."""

        def fetch_one(league_id: str) -> list[Game]:
            return [g for g in self._season_games(league_id, "live") if g.status == GameStatus.LIVE]

        games = self._collect_across_leagues(league_ids, fetch_one)
        games = self._resolve_kickoffs(games, verify=False)
        return sorted(games, key=lambda g: g.kickoff)

    def search_teams(self, query: str) -> list[Team]:
        records = self._client.fetch("teams", {"search": query}, CACHE_PROFILES["search"])
        return self._parse_teams(records)

    def get_league_teams(self, league_id: str) -> list[Team]:
        season = get_current_season(league_id, self._now().date())
        records = self._client.fetch(
            "teams", {"league": league_id, "season": season}, CACHE_PROFILES["long"]
        )
        return self._parse_teams(records)

    def close(self) -> None:
        self._client.close()
        if self._reconciler is not None:
            self._reconciler.close()
