"""Kickoff trust: placeholder detection and override precedence.

Precedence for the kickoff shown to users:
    manual (operator-curated) > secondary (official source) > provider

A provider time is flagged pending only when nothing corroborates it and
it looks like one of the upstream's placeholder slots.
"""

import re
from dataclasses import replace
from datetime import UTC, datetime

from rugbyclaw.core.types import (
    Game,
    GameStatus,
    KickoffConfidence,
    KickoffOverride,
    KickoffSource,
)
from rugbyclaw.utilities.constants import (
    LNR_LEAGUE_IDS,
    LNR_PLACEHOLDER_UTC_TIMES,
    PLACEHOLDER_HORIZON,
)

_HHMM_RE = re.compile(r"^\d{2}:\d{2}$")


def looks_like_placeholder_kickoff(game: Game, now: datetime | None = None) -> bool:
    """True if the upstream time looks like an unconfirmed LNR slot.

    The upstream publishes Top 14 / Pro D2 games at round UTC hours until the
    league confirms broadcast slots. A time is suspicious when it is a whole
    UTC hour and either one of the usual placeholder slots or more than 24h out.
    """
    if game.league.id not in LNR_LEAGUE_IDS:
        return False
    if not game.reported_time or not game.reported_timezone:
        return False
    if game.reported_timezone.upper() != "UTC":
        return False
    if not _HHMM_RE.match(game.reported_time):
        return False
    if not game.reported_time.endswith(":00"):
        return False

    if game.reported_time in LNR_PLACEHOLDER_UTC_TIMES:
        return True

    now = now or datetime.now(UTC)
    return game.reported_kickoff - now > PLACEHOLDER_HORIZON


def resolve_kickoff(
    game: Game,
    manual: KickoffOverride | None = None,
    secondary: KickoffOverride | None = None,
    now: datetime | None = None,
) -> Game:
    """Return a copy of game with resolved kickoff, confidence and source set."""
    if manual is not None:
        return replace(
            game,
            resolved_kickoff=manual.kickoff,
            kickoff_confidence=KickoffConfidence.EXACT,
            kickoff_source=KickoffSource.MANUAL,
        )

    if secondary is not None:
        return replace(
            game,
            resolved_kickoff=secondary.kickoff,
            kickoff_confidence=KickoffConfidence.EXACT,
            kickoff_source=KickoffSource.SECONDARY,
        )

    pending = game.status == GameStatus.SCHEDULED and looks_like_placeholder_kickoff(game, now)
    return replace(
        game,
        resolved_kickoff=game.reported_kickoff,
        kickoff_confidence=KickoffConfidence.PENDING if pending else KickoffConfidence.EXACT,
        kickoff_source=KickoffSource.PROVIDER,
    )


def merge_overrides(*maps: dict[str, KickoffOverride]) -> dict[str, KickoffOverride]:
    """Merge override maps; later maps win for the same match id."""
    merged: dict[str, KickoffOverride] = {}
    for overrides in maps:
        merged.update(overrides)
    return merged
