"""API-Sports rugby provider."""

from rugbyclaw.providers.apisports.client import ApiSportsClient
from rugbyclaw.providers.apisports.provider import (
    ApiSportsProvider,
    get_current_season,
    map_status,
)

__all__ = ["ApiSportsClient", "ApiSportsProvider", "get_current_season", "map_status"]
