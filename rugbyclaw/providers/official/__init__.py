"""Official (secondary) kickoff sources.

League websites and federation feeds used only to corroborate or correct
kickoff times reported by the primary upstream.
"""

from rugbyclaw.providers.official.aliases import canonicalize_team, fixture_pair_key
from rugbyclaw.providers.official.base import OfficialSource, extract_round, parse_kickoff
from rugbyclaw.providers.official.incrowd import InCrowdSource
from rugbyclaw.providers.official.lnr import LNRSource, parse_lnr_fixtures
from rugbyclaw.providers.official.urc import URCSource


def create_official_sources(http_client=None) -> list[OfficialSource]:
    """All official sources, optionally sharing one HTTP client."""
    return [
        LNRSource(http_client=http_client),
        URCSource(http_client=http_client),
        InCrowdSource(http_client=http_client),
    ]


__all__ = [
    "InCrowdSource",
    "LNRSource",
    "OfficialSource",
    "URCSource",
    "canonicalize_team",
    "create_official_sources",
    "extract_round",
    "fixture_pair_key",
    "parse_kickoff",
    "parse_lnr_fixtures",
]
