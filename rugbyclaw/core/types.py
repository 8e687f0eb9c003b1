"""Core data types for rugbyclaw.

All data structures are dataclasses with attribute access.
Timestamps are timezone-aware datetimes in UTC.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class GameStatus(str, Enum):
    SCHEDULED = "scheduled"
    LIVE = "live"
    FINISHED = "finished"
    POSTPONED = "postponed"
    CANCELLED = "cancelled"


class KickoffConfidence(str, Enum):
    """Whether a kickoff time can be shown as-is."""

    EXACT = "exact"
    PENDING = "pending"  # upstream time looks like a placeholder


class KickoffSource(str, Enum):
    """Where a resolved kickoff time came from."""

    PROVIDER = "provider"
    SECONDARY = "secondary"
    MANUAL = "manual"


@dataclass(frozen=True)
class League:
    """Competition identity (API-Sports league id)."""

    id: str
    slug: str
    name: str
    country: str


@dataclass(frozen=True)
class Team:
    """Team identity."""

    id: str
    name: str
    badge: str | None = None
    country: str | None = None


@dataclass(frozen=True)
class Score:
    home: int
    away: int


@dataclass
class Game:
    """A single match from the primary upstream.

    reported_kickoff is what the upstream said. The resolved_* and kickoff_*
    fields are derived at read time by applying override precedence
    (manual > secondary > provider) and are never cached.
    """

    id: str
    home_team: Team
    away_team: Team
    league: League
    status: GameStatus
    reported_kickoff: datetime
    round: str | None = None
    score: Score | None = None

    # Raw upstream time fields, kept for the placeholder heuristic
    reported_time: str | None = None  # "HH:MM"
    reported_timezone: str | None = None

    resolved_kickoff: datetime | None = None
    kickoff_confidence: KickoffConfidence = KickoffConfidence.EXACT
    kickoff_source: KickoffSource = KickoffSource.PROVIDER

    @property
    def kickoff(self) -> datetime:
        """Kickoff to display: resolved if known, else as reported."""
        return self.resolved_kickoff or self.reported_kickoff


@dataclass(frozen=True)
class OfficialFixture:
    """One fixture as published by a secondary (official) source."""

    source_id: str
    home_name: str
    away_name: str
    kickoff: datetime
    round: int | None
    league_id: str


@dataclass(frozen=True)
class KickoffOverride:
    """A corrected kickoff for one upstream match.

    source: free-form tag naming who supplied the time (e.g. "lnr", "incrowd").
    provenance: "manual" for operator-curated entries, "secondary" for
        entries computed by reconciliation.
    """

    kickoff: datetime
    source: str
    provenance: KickoffSource = KickoffSource.SECONDARY


@dataclass
class ProviderRuntimeMeta:
    """Diagnostics for one logical user-facing operation.

    Produced by draining the fetch client; draining resets it.
    """

    trace_id: str | None = None
    trace_ids: list[str] = field(default_factory=list)
    stale_fallback: bool = False
    cached_at: datetime | None = None  # stalest cache hit served
    stale_fallback_count: int = 0
    stale_fallback_timestamps: list[datetime] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "trace_id": self.trace_id,
            "trace_ids": list(self.trace_ids),
            "stale_fallback": self.stale_fallback,
            "cached_at": _iso_z(self.cached_at) if self.cached_at else None,
            "stale_fallback_count": self.stale_fallback_count,
            "stale_fallback_timestamps": [_iso_z(ts) for ts in self.stale_fallback_timestamps],
        }


def _iso_z(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class ProxyStatus:
    """Health and quota report from the free-mode proxy."""

    status: str
    mode: str | None = None
    trace_id: str | None = None
    day_limit: int | None = None
    day_remaining: int | None = None
    minute_limit: int | None = None
    minute_remaining: int | None = None


@dataclass(frozen=True)
class SourceOutcome:
    """Result of asking one secondary source about one league.

    Exactly one of fixtures (ok) or error (failed) is meaningful.
    """

    source: str
    league_id: str
    fixtures: tuple[OfficialFixture, ...] = ()
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
