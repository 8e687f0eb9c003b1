"""Provider layer - rugby data sources.

This is the SINGLE place where the primary provider is wired together:
response cache, fetch client, official-source reconciler and manual
overrides. Callers own the returned provider's lifecycle (close()).
"""

import httpx

from rugbyclaw.config import Config, get_cache_dir
from rugbyclaw.providers.apisports import ApiSportsClient, ApiSportsProvider
from rugbyclaw.utilities.response_cache import ResponseCache

# =============================================================================
# PROVIDER FACTORY FUNCTIONS
# =============================================================================


def create_reconciler(http_client: httpx.Client | None = None):
    """Factory for the kickoff reconciler over every official source."""
    from rugbyclaw.consumers.reconciliation import KickoffReconciler
    from rugbyclaw.providers.official import create_official_sources

    return KickoffReconciler(create_official_sources(http_client=http_client))


def create_provider(
    api_key: str | None = None,
    cache: ResponseCache | None = None,
    http_client: httpx.Client | None = None,
    official_sources: bool | None = None,
) -> ApiSportsProvider:
    """Factory for the API-Sports provider with injected dependencies.

    Args:
        api_key: API-Sports key; falls back to Config.API_KEY, else free mode
        cache: Response cache; defaults to the on-disk cache under the cache dir
        http_client: Shared httpx client for the upstream and official sources
        official_sources: Override Config.OFFICIAL_SOURCES_ENABLED
    """
    from rugbyclaw.services.kickoff_overrides import load_kickoff_overrides

    client = ApiSportsClient(
        cache or ResponseCache(get_cache_dir()),
        api_key=api_key if api_key is not None else Config.API_KEY,
        http_client=http_client,
    )

    enabled = Config.OFFICIAL_SOURCES_ENABLED if official_sources is None else official_sources
    return ApiSportsProvider(
        client,
        reconciler=create_reconciler(http_client) if enabled else None,
        manual_overrides=load_kickoff_overrides(),
    )


__all__ = [
    "ApiSportsClient",
    "ApiSportsProvider",
    "create_provider",
    "create_reconciler",
]
