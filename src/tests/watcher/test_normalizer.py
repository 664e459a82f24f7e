"""Tests for editor artifact path normalization."""

import pytest

from glimpse.watcher import normalize_path


class TestNormalizePath:
    """Tests for normalize_path."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("debug.log", "debug.log"),
            ("debug.log~", "debug.log"),
            ("main.go.swp", "main.go"),
            ("config.tmp", "config"),
            (".#lock.go", "lock.go"),
            ("#auto-save.go#", "auto-save.go"),
            ("/path/to/debug.log~", "/path/to/debug.log"),
            ("src/pkg/.#server.go", "src/pkg/server.go"),
            ("src/pkg/#server.go#", "src/pkg/server.go"),
        ],
    )
    def test_rules(self, raw, expected):
        """Test each artifact rule."""
        assert normalize_path(raw) == expected

    @pytest.mark.parametrize("path", ["a.go~", "dir/b.py.swp", "c.txt.tmp"])
    def test_suffix_removed_once_and_idempotent(self, path):
        """Test that exactly one suffix is removed and the result is stable."""
        normalized = normalize_path(path)
        assert path.startswith(normalized)
        assert len(path) - len(normalized) in (1, 4)
        assert normalize_path(normalized) == normalized

    def test_prefix_rules_only_touch_basename(self):
        """Test lock and autosave markers in directory names are kept."""
        assert normalize_path("#dir#/.#file.go") == "#dir#/file.go"
        assert normalize_path(".#dir/main.go") == ".#dir/main.go"

    def test_single_hash_unchanged(self):
        """Test that a lone '#' is not an autosave file."""
        assert normalize_path("src/#") == "src/#"

    def test_bare_lock_marker_unchanged(self):
        """Test that a basename of just '.#' is not collapsed to its directory."""
        assert normalize_path("src/.#") == "src/.#"
        assert normalize_path(".#") == ".#"

    def test_first_rule_wins(self):
        """Test that suffix rules take precedence over basename rules."""
        assert normalize_path(".#notes.swp") == ".#notes"
