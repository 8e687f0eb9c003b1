"""Shared plumbing for official (secondary) fixture sources.

Each source owns a lazily created httpx client and a short-TTL in-memory
cache of the fixture lists it fetched. Everything here fails closed:
transport errors and non-2xx responses become SourceError, individual
malformed records are skipped by the concrete parsers.
"""

import logging
import re
import threading
from collections.abc import Callable, Iterable
from datetime import UTC, datetime

import httpx
from dateutil import parser as date_parser

from rugbyclaw.config import USER_AGENT, Config
from rugbyclaw.core.errors import SourceError
from rugbyclaw.core.interfaces import OfficialFixtureSource
from rugbyclaw.core.types import Game, OfficialFixture
from rugbyclaw.utilities.cache import OFFICIAL_FIXTURES_TTL, TTLCache

logger = logging.getLogger(__name__)

_LNR_ROUND_RE = re.compile(r"j(\d+)", re.IGNORECASE)
_ANY_NUMBER_RE = re.compile(r"(\d+)")


def extract_round(value: object) -> int | None:
    """Parse a round/week label into an integer.

    extract_round(17) -> 17
    extract_round("/competitions/top14/j17-bordeaux-castres") -> 17
    extract_round("Round 5") -> 5
    extract_round("Final") -> None
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if not value:
        return None

    text = str(value)
    match = _LNR_ROUND_RE.search(text) or _ANY_NUMBER_RE.search(text)
    if not match:
        return None
    return int(match.group(1))


def parse_kickoff(value: object) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    Naive timestamps are taken as UTC. Returns None for anything unparseable.
    """
    if not isinstance(value, str) or not value.strip():
        return None
    try:
        parsed = date_parser.isoparse(value.strip())
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def clean_name(value: object) -> str | None:
    """Trimmed team name, or None if missing/blank."""
    if not isinstance(value, str):
        return None
    return value.strip() or None


def season_hint_years(games: Iterable[Game]) -> list[int]:
    """Distinct UTC kickoff years of the games being reconciled, ascending."""
    return sorted({game.reported_kickoff.astimezone(UTC).year for game in games})


class OfficialSource(OfficialFixtureSource):
    """Base class for HTTP-backed official fixture sources.

    Subclasses implement name, league_ids and fetch_official_fixtures and
    use _request / _get_cached / _store_cached for I/O.
    """

    def __init__(
        self,
        http_client: httpx.Client | None = None,
        cache: TTLCache | None = None,
        timeout: float | None = None,
        now: Callable[[], datetime] | None = None,
    ):
        self._client = http_client
        self._owns_client = http_client is None
        self._client_lock = threading.Lock()
        self._timeout = timeout or Config.HTTP_TIMEOUT
        self._cache = cache or TTLCache(default_ttl=OFFICIAL_FIXTURES_TTL, now=now)

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    self._client = httpx.Client(
                        timeout=self._timeout,
                        headers={"User-Agent": USER_AGENT},
                        follow_redirects=True,
                    )
        return self._client

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """Issue one request; SourceError on transport failure or non-2xx."""
        headers = {"User-Agent": USER_AGENT, **kwargs.pop("headers", {})}
        try:
            response = self._get_client().request(method, url, headers=headers, **kwargs)
        except (httpx.RequestError, RuntimeError, OSError) as e:
            raise SourceError(self.name, f"request to {url} failed: {e}") from e

        if not response.is_success:
            raise SourceError(self.name, f"{url} returned {response.status_code}")
        return response

    def _get_cached(self, key: str) -> list[OfficialFixture] | None:
        cached = self._cache.get(key)
        if cached is None:
            return None
        logger.debug("[%s] Cache hit: %s", self.name.upper(), key)
        return list(cached)

    def _store_cached(self, key: str, fixtures: list[OfficialFixture]) -> None:
        self._cache.set(key, tuple(fixtures))

    def clear_cache(self) -> None:
        self._cache.clear()

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client and self._owns_client:
            self._client.close()
            self._client = None
