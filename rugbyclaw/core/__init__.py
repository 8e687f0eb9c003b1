"""Core types, errors and interfaces."""

from rugbyclaw.core.errors import (
    ExitCode,
    ProviderError,
    ProviderErrorCode,
    SourceError,
    exit_code_for_error,
    exit_label,
)
from rugbyclaw.core.interfaces import OfficialFixtureSource
from rugbyclaw.core.types import (
    Game,
    GameStatus,
    KickoffConfidence,
    KickoffOverride,
    KickoffSource,
    League,
    OfficialFixture,
    ProviderRuntimeMeta,
    ProxyStatus,
    Score,
    SourceOutcome,
    Team,
)

__all__ = [
    "ExitCode",
    "Game",
    "GameStatus",
    "KickoffConfidence",
    "KickoffOverride",
    "KickoffSource",
    "League",
    "OfficialFixture",
    "OfficialFixtureSource",
    "ProviderError",
    "ProviderErrorCode",
    "ProviderRuntimeMeta",
    "ProxyStatus",
    "Score",
    "SourceError",
    "SourceOutcome",
    "Team",
    "exit_code_for_error",
    "exit_label",
]
