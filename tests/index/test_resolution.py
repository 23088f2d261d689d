"""Tests for import path resolution."""

import pytest

from codeatlas.index._internal.resolution import (
    candidate_paths,
    normalize_import_path,
    resolve_import,
)


class TestNormalizeImportPath:
    """Joining import strings onto the importer's directory."""

    @pytest.mark.parametrize(
        ("from_path", "import_path", "expected"),
        [
            ("src/app.js", "./util", "src/util"),
            ("src/app.js", "../lib/a", "lib/a"),
            ("src/deep/app.js", "./../x/./y", "src/x/y"),
            ("app.js", "./a", "a"),
            ("src/app.js", "/lib/a", "lib/a"),
        ],
    )
    def test_join(self, from_path: str, import_path: str, expected: str) -> None:
        assert normalize_import_path(from_path, import_path) == expected

    @pytest.mark.parametrize("import_path", ["../../outside", "../.."])
    def test_escaping_the_root(self, import_path: str) -> None:
        assert normalize_import_path("src/app.js", import_path) is None


class TestCandidatePaths:
    """Suffix probing order."""

    def test_order_uses_importer_extension(self) -> None:
        assert candidate_paths("src/app.ts", "./a") == [
            "src/a",
            "src/a.ts",
            "src/a.json",
            "src/a/index.ts",
        ]

    def test_default_extension(self) -> None:
        assert candidate_paths("bin/run", "./a")[1] == "bin/a.js"


class TestResolveImport:
    """Lookup against known paths."""

    PRIORITY = {"lib/a": 1, "lib/a.js": 2, "lib/a.json": 3, "lib/a/index.js": 4}

    @pytest.mark.parametrize(
        ("present", "expected"),
        [
            (["lib/a", "lib/a.js", "lib/a.json", "lib/a/index.js"], 1),
            (["lib/a.js", "lib/a.json", "lib/a/index.js"], 2),
            (["lib/a.json", "lib/a/index.js"], 3),
            (["lib/a/index.js"], 4),
        ],
    )
    def test_first_existing_candidate_wins(self, present: list[str], expected: int) -> None:
        lookup = {path: self.PRIORITY[path] for path in present}
        assert resolve_import("src/main.js", "../lib/a", lookup) == expected

    def test_missing_target(self) -> None:
        assert resolve_import("src/main.js", "./nope", {"src/main.js": 1}) is None

    def test_external_never_resolves(self) -> None:
        """A package name resolves to nothing even if a file of that name exists."""
        assert resolve_import("main.js", "lodash", {"lodash": 5, "lodash.js": 6}) is None

    def test_escaping_root_never_resolves(self) -> None:
        assert resolve_import("main.js", "../main", {"main.js": 1}) is None

    def test_callable_lookup(self) -> None:
        seen: list[str] = []

        def lookup(path: str) -> int | None:
            seen.append(path)
            return 9 if path == "src/b.json" else None

        assert resolve_import("src/a.js", "./b", lookup) == 9
        assert seen == ["src/b", "src/b.js", "src/b.json"]
