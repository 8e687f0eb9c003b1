"""LNR (Ligue Nationale de Rugby) fixture source for Top 14 and Pro D2.

The league home pages embed the fixture list as a JSON array inside a
Vue-style attribute:

    <matches-carousel :matches='[{&quot;id&quot;: 123, ...}]'>

The page can carry several such blocks (current round, next round, ...).
Each is HTML-unescaped and decoded independently; a broken block is
ignored without affecting the others.
"""

import html
import json
import logging
import re
from collections.abc import Sequence

from rugbyclaw.core.types import Game, OfficialFixture
from rugbyclaw.providers.official.base import (
    OfficialSource,
    clean_name,
    extract_round,
    parse_kickoff,
)
from rugbyclaw.utilities.cache import make_cache_key
from rugbyclaw.utilities.constants import LNR_LEAGUE_IDS, PRO_D2_LEAGUE_ID, TOP14_LEAGUE_ID

logger = logging.getLogger(__name__)

LNR_SOURCE_URLS = {
    TOP14_LEAGUE_ID: "https://top14.lnr.fr/",
    PRO_D2_LEAGUE_ID: "https://prod2.lnr.fr/",
}

_MATCHES_ATTR_RE = re.compile(r":matches='([^']+)'")


def _parse_match(match: object, league_id: str) -> OfficialFixture | None:
    if not isinstance(match, dict):
        return None

    hosting = match.get("hosting_club")
    visiting = match.get("visiting_club")
    timer = match.get("timer")
    home = clean_name(hosting.get("name")) if isinstance(hosting, dict) else None
    away = clean_name(visiting.get("name")) if isinstance(visiting, dict) else None
    kickoff = parse_kickoff(timer.get("firstPeriodStartDate")) if isinstance(timer, dict) else None
    source_id = str(match.get("id") or "")

    if not home or not away or not kickoff or not source_id:
        return None

    return OfficialFixture(
        source_id=source_id,
        home_name=home,
        away_name=away,
        kickoff=kickoff,
        round=extract_round(match.get("link")),
        league_id=league_id,
    )


def parse_lnr_fixtures(page: str, league_id: str) -> list[OfficialFixture]:
    """Extract fixtures from an LNR league page.

    Missing or malformed blobs yield no fixtures; never raises.
    """
    fixtures = []
    for block in _MATCHES_ATTR_RE.finditer(page):
        try:
            matches = json.loads(html.unescape(block.group(1)))
        except ValueError:
            logger.debug("[LNR] Skipping malformed :matches block")
            continue
        if not isinstance(matches, list):
            continue

        for match in matches:
            fixture = _parse_match(match, league_id)
            if fixture:
                fixtures.append(fixture)

    return fixtures


class LNRSource(OfficialSource):
    """Top 14 / Pro D2 fixtures scraped from the LNR league home pages."""

    @property
    def name(self) -> str:
        return "lnr"

    @property
    def league_ids(self) -> frozenset[str]:
        return LNR_LEAGUE_IDS

    def fetch_official_fixtures(
        self,
        league_id: str,
        season_hint_games: Sequence[Game],
    ) -> list[OfficialFixture]:
        url = LNR_SOURCE_URLS.get(league_id)
        if not url:
            return []

        # The home page only ever shows the current season; hints are unused
        cache_key = make_cache_key("lnr", league_id)
        cached = self._get_cached(cache_key)
        if cached is not None:
            return cached

        response = self._request(
            "GET", url, headers={"Accept": "text/html,application/xhtml+xml"}
        )
        fixtures = parse_lnr_fixtures(response.text, league_id)
        logger.debug("[LNR] %d fixtures for league %s", len(fixtures), league_id)

        self._store_cached(cache_key, fixtures)
        return fixtures
