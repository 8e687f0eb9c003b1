"""Consumer layer - kickoff reconciliation and trust."""

from rugbyclaw.consumers.kickoff import (
    looks_like_placeholder_kickoff,
    merge_overrides,
    resolve_kickoff,
)
from rugbyclaw.consumers.reconciliation import (
    KickoffReconciler,
    ReconciliationReport,
    match_kickoff_overrides,
    select_candidates,
)

__all__ = [
    "KickoffReconciler",
    "ReconciliationReport",
    "looks_like_placeholder_kickoff",
    "match_kickoff_overrides",
    "merge_overrides",
    "resolve_kickoff",
    "select_candidates",
]
