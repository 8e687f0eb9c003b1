"""Tests for operator-curated kickoff override files."""

import json
from datetime import UTC, datetime

import pytest

from rugbyclaw.config import Config
from rugbyclaw.core.types import KickoffSource
from rugbyclaw.services.kickoff_overrides import (
    get_kickoff_override_paths,
    load_kickoff_overrides,
    parse_kickoff_overrides,
)


@pytest.fixture
def override_files(tmp_path):
    bundled = tmp_path / "bundled.json"
    user = tmp_path / "user.json"

    def write(path, data):
        path.write_text(data if isinstance(data, str) else json.dumps(data), encoding="utf-8")

    return bundled, user, write


class TestParseKickoffOverrides:
    def test_valid_entry(self):
        overrides = parse_kickoff_overrides(
            {"123": {"kickoff": "2026-02-14T20:05:00Z", "source": "lnr"}}
        )

        override = overrides["123"]
        assert override.kickoff == datetime(2026, 2, 14, 20, 5, tzinfo=UTC)
        assert override.source == "lnr"
        assert override.provenance == KickoffSource.MANUAL

    def test_offset_normalized_to_utc(self):
        overrides = parse_kickoff_overrides({"1": {"kickoff": "2026-02-14T21:05:00+01:00"}})
        assert overrides["1"].kickoff == datetime(2026, 2, 14, 20, 5, tzinfo=UTC)

    def test_default_source(self):
        overrides = parse_kickoff_overrides(
            {
                "1": {"kickoff": "2026-02-14T20:05:00Z"},
                "2": {"kickoff": "2026-02-14T20:05:00Z", "source": "  "},
            }
        )
        assert overrides["1"].source == "secondary"
        assert overrides["2"].source == "secondary"

    def test_bad_entries_skipped(self):
        overrides = parse_kickoff_overrides(
            {
                "1": {"kickoff": "not a date"},
                "2": {"source": "lnr"},
                "3": "2026-02-14T20:05:00Z",
                "4": {"kickoff": 1771099500},
                "5": {"kickoff": "2026-02-14T20:05:00Z"},
            }
        )
        assert list(overrides) == ["5"]


class TestLoadKickoffOverrides:
    def test_user_wins(self, override_files):
        bundled, user, write = override_files
        write(
            bundled,
            {
                "1": {"kickoff": "2026-02-14T15:30:00Z", "source": "lnr"},
                "2": {"kickoff": "2026-02-15T16:00:00Z", "source": "lnr"},
            },
        )
        write(user, {"2": {"kickoff": "2026-02-15T16:35:00Z", "source": "me"}})

        overrides = load_kickoff_overrides(bundled, user)

        assert overrides["1"].kickoff == datetime(2026, 2, 14, 15, 30, tzinfo=UTC)
        assert overrides["2"].kickoff == datetime(2026, 2, 15, 16, 35, tzinfo=UTC)
        assert overrides["2"].source == "me"

    def test_missing_files(self, tmp_path):
        assert load_kickoff_overrides(tmp_path / "a.json", tmp_path / "b.json") == {}

    def test_malformed_file_counts_as_empty(self, override_files):
        bundled, user, write = override_files
        write(bundled, {"1": {"kickoff": "2026-02-14T15:30:00Z"}})
        write(user, "{not json")

        assert list(load_kickoff_overrides(bundled, user)) == ["1"]

    def test_non_object_file_counts_as_empty(self, override_files):
        bundled, user, write = override_files
        write(bundled, "[1, 2, 3]")

        assert load_kickoff_overrides(bundled, user) == {}

    def test_bundled_file_ships_with_package(self, tmp_path):
        assert load_kickoff_overrides(user_path=tmp_path / "none.json") == {}


class TestOverridePaths:
    def test_paths(self, tmp_path, monkeypatch):
        monkeypatch.setattr(Config, "CONFIG_DIR", str(tmp_path))
        paths = get_kickoff_override_paths()

        assert paths["user"] == tmp_path.resolve() / "kickoff-overrides.json"
        assert paths["bundled"].name == "kickoff-overrides.json"
        assert paths["bundled"].parent.name == "data"
