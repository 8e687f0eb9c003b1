"""Service layer - file-backed stores."""

from rugbyclaw.services.kickoff_overrides import (
    get_kickoff_override_paths,
    load_kickoff_overrides,
    parse_kickoff_overrides,
)

__all__ = [
    "get_kickoff_override_paths",
    "load_kickoff_overrides",
    "parse_kickoff_overrides",
]
