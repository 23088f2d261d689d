"""Tests for ARCHITECTURE.md rendering."""

from collections.abc import Callable
from pathlib import Path

from codeatlas.git.identity import RepositoryIdentity
from codeatlas.index.models import ComplexityEntry, DependencyEdge
from codeatlas.index.ops import RepositoryIndexer
from codeatlas.index.store import RepositoryStore
from codeatlas.reporting.architecture import (
    format_top_dependencies,
    identify_technical_debt,
    render_architecture,
)

MakeTree = Callable[[dict[str, str | bytes]], Path]


def _entry(path: str, score: float) -> ComplexityEntry:
    return ComplexityEntry(path=path, name=path, file_complexity=score, function_count=1)


class TestTechnicalDebt:
    """Fixed thresholds on file complexity."""

    def test_nothing_to_report(self) -> None:
        assert identify_technical_debt([_entry("a.js", 20)]) == (
            "No significant technical debt identified."
        )

    def test_high(self) -> None:
        report = identify_technical_debt([_entry("a.js", 21), _entry("b.js", 5)])
        assert report == "- 1 files have high complexity (>20)"

    def test_very_high_counts_in_both(self) -> None:
        report = identify_technical_debt([_entry("a.js", 51), _entry("b.js", 30)])
        assert report.splitlines() == [
            "- 2 files have high complexity (>20)",
            "- 1 files are very large and may benefit from refactoring",
        ]


class TestTopDependencies:
    def test_empty(self) -> None:
        assert format_top_dependencies([]) == "No dependencies found."

    def test_counts_outgoing_edges(self) -> None:
        edges = [
            DependencyEdge(
                id=i,
                from_file=src,
                to_file=None,
                dependency_type="import",
                import_path="./x",
                is_resolved=False,
            )
            for i, src in enumerate(["b.js", "a.js", "b.js"])
        ]
        assert format_top_dependencies(edges).splitlines() == [
            "- **b.js** depends on 2 other files",
            "- **a.js** depends on 1 other files",
        ]


class TestRenderArchitecture:
    """Full document from a scanned tree."""

    def test_sections(
        self, make_tree: MakeTree, store: RepositoryStore, identity: RepositoryIdentity
    ) -> None:
        root = make_tree(
            {
                "index.html": "<html></html>\n",
                "src/app.js": "import x from './missing';\nfunction go() {}\n",
                "README.md": "# Readme\n",
            }
        )
        result = RepositoryIndexer(root, store, identity=identity).scan(write_artifacts=False)
        doc = render_architecture(store, result.repo_id)

        for heading in (
            "# Repository Architecture",
            "## Overview",
            "## Component Breakdown",
            "### UI Components",
            "### Configuration",
            "## Dependency Graph",
            "## File Statistics",
            "## Complexity Analysis",
            "### Technical Debt",
        ):
            assert heading in doc
        assert "**acme/widgets**" in doc
        assert "- **Total Files**: 3" in doc
        assert "Total Dependencies: 1" in doc
        assert "Unresolved: 1" in doc
        assert "- **src/app.js** depends on 1 other files" in doc
        assert "- **Total Functions**: 1" in doc
        assert "No significant technical debt identified." in doc

    def test_empty_repository(self, store: RepositoryStore, repo_id: int) -> None:
        doc = render_architecture(store, repo_id)
        assert "- **Primary Language**: n/a" in doc
        assert "No dependencies found." in doc
