"""Built-in directory tiers, exclude globs and the starter .atlasignore."""

from __future__ import annotations

import pytest

from codeatlas.core.excludes import (
    DEFAULT_EXCLUDE_GLOBS,
    DEFAULT_PRUNABLE_DIRS,
    HARDCODED_DIRS,
    PRUNABLE_DIRS,
    STARTER_IGNORE_PATTERNS,
    generate_atlasignore_template,
    is_hardcoded_dir,
)


class TestDirectoryTiers:
    """Tests for the directory constants."""

    def test_tiers_do_not_overlap(self) -> None:
        assert not HARDCODED_DIRS & DEFAULT_PRUNABLE_DIRS
        assert PRUNABLE_DIRS == HARDCODED_DIRS | DEFAULT_PRUNABLE_DIRS

    @pytest.mark.parametrize("name", [".git", ".svn", ".hg", ".codeatlas"])
    def test_hardcoded(self, name: str) -> None:
        assert is_hardcoded_dir(name)

    @pytest.mark.parametrize("name", ["node_modules", "dist", "build", "coverage", "backups"])
    def test_prunable_but_overridable(self, name: str) -> None:
        assert name in PRUNABLE_DIRS
        assert not is_hardcoded_dir(name)

    def test_all_lowercase(self) -> None:
        """All entries are lowercase for consistent matching."""
        for entry in PRUNABLE_DIRS:
            assert entry == entry.lower()


class TestExcludeGlobs:
    """Tests for DEFAULT_EXCLUDE_GLOBS."""

    @pytest.mark.parametrize(
        "glob", ["*.min.*", "*.db", "*.db-wal", ".github/agents/*", "*.png", "*.woff2"]
    )
    def test_contains(self, glob: str) -> None:
        assert glob in DEFAULT_EXCLUDE_GLOBS

    def test_no_duplicates(self) -> None:
        assert len(DEFAULT_EXCLUDE_GLOBS) == len(set(DEFAULT_EXCLUDE_GLOBS))


class TestAtlasignoreTemplate:
    """Tests for generate_atlasignore_template function."""

    def test_mentions_negation(self) -> None:
        template = generate_atlasignore_template()
        assert "!build/" in template
        assert template.endswith("\n")

    def test_active_patterns(self) -> None:
        active = [
            line
            for line in generate_atlasignore_template().splitlines()
            if line and not line.startswith("#")
        ]
        assert active == ["package-lock.json", "yarn.lock", "pnpm-lock.yaml", "*.map"]
        assert tuple(active) == STARTER_IGNORE_PATTERNS
