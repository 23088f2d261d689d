"""Tests for the generated JSON artifacts."""

import json
from collections.abc import Callable
from pathlib import Path

import pytest

from codeatlas.core.errors import StorageError
from codeatlas.git.identity import RepositoryIdentity
from codeatlas.index.models import DependencyEdge
from codeatlas.index.ops import RepositoryIndexer
from codeatlas.index.store import RepositoryStore
from codeatlas.reporting.artifacts import (
    build_code_index,
    build_insights,
    build_metrics,
    build_repo_map,
    build_used_by,
    outgoing_counts,
    write_artifacts,
)

MakeTree = Callable[[dict[str, str | bytes]], Path]

PROJECT = {
    "index.html": "<html></html>\n",
    "src/main.js": (
        "import { a } from './lib/a.js';\n"
        "import { b } from './lib/b.js';\n"
        "import gone from './gone';\n"
        "function start() {\n"
        "  if (a) { return b; }\n"
        "}\n"
    ),
    "src/lib/a.js": "import { b } from './b.js';\nfunction a() {}\nmodule.exports = { a };\n",
    "src/lib/b.js": "function b() {}\nexport { b };\n",
    "lib/main.js": "function start() {}\n",
    "docs/guide.md": "# Guide\n",
}


def _edge(i: int, src: str, dst: str | None) -> DependencyEdge:
    return DependencyEdge(
        id=i,
        from_file=src,
        to_file=dst,
        dependency_type="import",
        import_path=f"./{dst or 'gone'}",
        is_resolved=dst is not None,
    )


@pytest.fixture
def scanned(
    make_tree: MakeTree, store: RepositoryStore, identity: RepositoryIdentity
) -> int:
    root = make_tree(PROJECT)
    result = RepositoryIndexer(root, store, identity=identity).scan(write_artifacts=False)
    return result.repo_id


class TestGraphHelpers:
    """Pure helpers over dependency edges."""

    def test_used_by_ignores_unresolved(self) -> None:
        edges = [_edge(1, "a.js", "b.js"), _edge(2, "c.js", "b.js"), _edge(3, "a.js", None)]
        assert build_used_by(edges) == {"b.js": ["a.js", "c.js"]}

    def test_outgoing_counts_order(self) -> None:
        edges = [
            _edge(1, "z.js", "a.js"),
            _edge(2, "b.js", "a.js"),
            _edge(3, "b.js", None),
            _edge(4, "a.js", "z.js"),
        ]
        assert outgoing_counts(edges) == [("b.js", 2), ("a.js", 1), ("z.js", 1)]

    def test_insights(self) -> None:
        files = [
            {"path": "a.js", "complexity_score": 3.0, "lines_count": 10},
            {"path": "b.js", "complexity_score": 0.0, "lines_count": 50},
        ]
        insights = build_insights(files, [_edge(1, "a.js", "b.js")])

        assert [i["type"] for i in insights] == ["complexity", "connectivity", "size"]
        assert insights[0]["files"] == [{"path": "a.js", "score": 3.0}]
        assert insights[2]["files"][0] == {"path": "b.js", "lines": 50}

    def test_insights_without_complexity_or_edges(self) -> None:
        files = [{"path": "a.md", "complexity_score": 0.0, "lines_count": 1}]
        assert [i["type"] for i in build_insights(files, [])] == ["size"]


class TestRepoMap:
    """repo-map.json."""

    def test_sections(self, store: RepositoryStore, scanned: int) -> None:
        repo_map = build_repo_map(store, scanned)

        assert set(repo_map) == {
            "metadata",
            "structure",
            "files",
            "relationships",
            "components",
            "insights",
        }
        assert repo_map["metadata"]["totalFiles"] == 6
        assert "JavaScript" in repo_map["metadata"]["languages"]
        assert repo_map["structure"]["directories"] == [".", "docs", "lib", "src", "src/lib"]
        assert repo_map["files"]["src/lib/b.js"]["type"] == "JavaScript"

    def test_entry_points_only_at_root_or_src(self, store: RepositoryStore, scanned: int) -> None:
        entry_points = build_repo_map(store, scanned)["structure"]["entryPoints"]
        assert {(e["file"], e["type"]) for e in entry_points} == {
            ("index.html", "main"),
            ("src/main.js", "module"),
        }

    def test_relationships(self, store: RepositoryStore, scanned: int) -> None:
        relationships = build_repo_map(store, scanned)["relationships"]

        pairs = {(d["from"], d["to"]) for d in relationships["dependencies"]}
        assert pairs == {
            ("src/main.js", "src/lib/a.js"),
            ("src/main.js", "src/lib/b.js"),
            ("src/main.js", None),
            ("src/lib/a.js", "src/lib/b.js"),
        }
        assert sorted(relationships["usedBy"]["src/lib/b.js"]) == ["src/lib/a.js", "src/main.js"]


class TestCodeIndex:
    """code-index.json."""

    def test_functions_and_exports(self, store: RepositoryStore, scanned: int) -> None:
        index = build_code_index(store, scanned)

        assert index["functions"]["a"]["file"] == "src/lib/a.js"
        assert index["functions"]["a"]["exported"] is True
        assert index["exports"]["b"][0]["file"] == "src/lib/b.js"

    def test_duplicate_function_name_last_path_wins(
        self, store: RepositoryStore, scanned: int
    ) -> None:
        assert build_code_index(store, scanned)["functions"]["start"]["file"] == "src/main.js"


class TestMetrics:
    """metrics.json."""

    def test_rollup(self, store: RepositoryStore, scanned: int) -> None:
        metrics = build_metrics(store, scanned)

        assert metrics["repository"] == {"name": "widgets", "owner": "acme", "url": None}
        assert metrics["files"]["total"] == 6
        assert metrics["functions"]["total"] == 4
        percentages = [lang["percentage"] for lang in metrics["languages"]]
        assert all(round(p, 2) == p for p in percentages)
        most_dependent = metrics["dependencies"]["mostDependent"][0]
        assert (most_dependent["path"], most_dependent["outgoing"]) == ("src/main.js", 3)

    def test_unknown_repository(self, store: RepositoryStore) -> None:
        with pytest.raises(StorageError):
            build_metrics(store, 404)


class TestWriteArtifacts:
    """All four files land in the data directory."""

    def test_writes_and_overwrites(
        self, store: RepositoryStore, scanned: int, tmp_path: Path
    ) -> None:
        data_dir = tmp_path / "out" / "data"
        first = write_artifacts(store, scanned, data_dir)
        second = write_artifacts(store, scanned, data_dir)

        assert [p.name for p in first] == [p.name for p in second] == [
            "repo-map.json",
            "code-index.json",
            "metrics.json",
            "ARCHITECTURE.md",
        ]
        assert json.loads((data_dir / "metrics.json").read_text())["files"]["total"] == 6
        assert (data_dir / "ARCHITECTURE.md").read_text().startswith("# Repository Architecture")
