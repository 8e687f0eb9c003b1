"""Operator-curated kickoff overrides.

Two JSON files, both mapping upstream match id to an override:

    {"123456": {"kickoff": "2026-02-14T20:05:00Z", "source": "lnr"}}

The bundled file ships with the package; the user file lives in the config
dir and wins on conflicts. An unreadable file counts as empty and a bad
entry is skipped without affecting its neighbours.
"""

import json
import logging
from pathlib import Path

from rugbyclaw.config import get_bundled_overrides_path, get_user_overrides_path
from rugbyclaw.core.types import KickoffOverride, KickoffSource
from rugbyclaw.providers.official.base import parse_kickoff

logger = logging.getLogger(__name__)

DEFAULT_OVERRIDE_SOURCE = "secondary"


def _read_json_object(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("[OVERRIDES] Ignoring unreadable %s: %s", path, e)
        return {}
    if not isinstance(raw, dict):
        logger.warning("[OVERRIDES] Ignoring %s: top level is not an object", path)
        return {}
    return raw


def parse_kickoff_overrides(raw: dict) -> dict[str, KickoffOverride]:
    """Validate raw entries; entries without a parseable kickoff are dropped."""
    parsed: dict[str, KickoffOverride] = {}
    for match_id, value in raw.items():
        if not isinstance(value, dict):
            continue
        kickoff = parse_kickoff(value.get("kickoff"))
        if kickoff is None:
            logger.debug("[OVERRIDES] Skipping %s: bad kickoff %r", match_id, value.get("kickoff"))
            continue
        source = value.get("source")
        source = source.strip() if isinstance(source, str) else ""
        parsed[str(match_id)] = KickoffOverride(
            kickoff=kickoff,
            source=source or DEFAULT_OVERRIDE_SOURCE,
            provenance=KickoffSource.MANUAL,
        )
    return parsed


def load_kickoff_overrides(
    bundled_path: Path | None = None,
    user_path: Path | None = None,
) -> dict[str, KickoffOverride]:
    """Load bundled then user overrides; user entries win."""
    bundled_path = bundled_path or get_bundled_overrides_path()
    user_path = user_path or get_user_overrides_path()
    bundled = parse_kickoff_overrides(_read_json_object(bundled_path))
    user = parse_kickoff_overrides(_read_json_object(user_path))

    merged = {**bundled, **user}
    if merged:
        logger.debug(
            "[OVERRIDES] Loaded %d manual overrides (%d bundled, %d user)",
            len(merged),
            len(bundled),
            len(user),
        )
    return merged


def get_kickoff_override_paths() -> dict[str, Path]:
    """Where the override files are read from."""
    return {
        "bundled": get_bundled_overrides_path(),
        "user": get_user_overrides_path(),
    }
