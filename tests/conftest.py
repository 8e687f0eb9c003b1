"""Shared fixtures: controllable clock, temp-dir caches, game builders."""

from datetime import UTC, datetime, timedelta

import httpx
import pytest

from rugbyclaw.core.types import Game, GameStatus, Team
from rugbyclaw.utilities.constants import get_league_by_id
from rugbyclaw.utilities.response_cache import ResponseCache

FROZEN_NOW = datetime(2026, 2, 1, 12, 0, tzinfo=UTC)


class FakeClock:
    """Callable clock for injectable `now` parameters."""

    def __init__(self, start: datetime = FROZEN_NOW):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def response_cache(tmp_path, clock):
    return ResponseCache(tmp_path / "cache", now=clock)


def _make_game(
    game_id: str = "1001",
    home: str = "Union Bordeaux-Bègles",
    away: str = "Castres Olympique",
    league_id: str = "16",
    kickoff: datetime = datetime(2026, 2, 14, 15, 0, tzinfo=UTC),
    round: str | None = "17",
    status: GameStatus = GameStatus.SCHEDULED,
    reported_time: str | None = None,
    reported_timezone: str | None = "UTC",
) -> Game:
    return Game(
        id=game_id,
        home_team=Team(id=f"{game_id}-h", name=home),
        away_team=Team(id=f"{game_id}-a", name=away),
        league=get_league_by_id(league_id),
        status=status,
        reported_kickoff=kickoff,
        round=round,
        reported_time=reported_time or kickoff.strftime("%H:%M"),
        reported_timezone=reported_timezone,
    )


@pytest.fixture
def make_game():
    """Factory for normalized Game records (Top 14 Bordeaux v Castres by default)."""
    return _make_game


def _api_game(
    game_id: int = 1001,
    home: str = "Union Bordeaux-Bègles",
    away: str = "Castres Olympique",
    league_id: int = 16,
    kickoff: datetime = datetime(2026, 2, 14, 15, 0, tzinfo=UTC),
    week: str = "17",
    short: str = "NS",
    long: str = "Not Started",
    scores: tuple = (None, None),
) -> dict:
    return {
        "id": game_id,
        "date": kickoff.isoformat(),
        "time": kickoff.strftime("%H:%M"),
        "timestamp": int(kickoff.timestamp()),
        "timezone": "UTC",
        "week": week,
        "status": {"long": long, "short": short},
        "country": {"id": 10, "name": "France", "code": "FR", "flag": ""},
        "league": {"id": league_id, "name": "Top 14", "type": "League", "logo": "", "season": 2025},
        "teams": {
            "home": {"id": game_id * 10 + 1, "name": home, "logo": "home.png"},
            "away": {"id": game_id * 10 + 2, "name": away, "logo": "away.png"},
        },
        "scores": {"home": scores[0], "away": scores[1]},
    }


@pytest.fixture
def api_game():
    """Factory for raw API-Sports game records."""
    return _api_game


def clone_response(response: httpx.Response) -> httpx.Response:
    """Fresh copy of a canned response; httpx binds each response to one request."""
    return httpx.Response(
        response.status_code, headers=response.headers, content=response.content
    )


def envelope(response: list, errors=None) -> dict:
    return {"get": "games", "errors": errors if errors is not None else [], "response": response}


class ScriptedTransport:
    """httpx.MockTransport handler replaying a fixed list of responses.

    Each item is an httpx.Response or an exception instance to raise.
    The last item repeats once the script runs out.
    """

    def __init__(self, *script):
        self.script = list(script)
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests) - 1, len(self.script) - 1)
        item = self.script[index]
        if isinstance(item, Exception):
            raise item
        return clone_response(item)

    @property
    def calls(self) -> int:
        return len(self.requests)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))


@pytest.fixture
def make_envelope():
    """Factory for API-Sports response envelopes."""
    return envelope


@pytest.fixture
def scripted():
    """Factory for ScriptedTransport: scripted(resp1, resp2, ...)."""
    return ScriptedTransport
