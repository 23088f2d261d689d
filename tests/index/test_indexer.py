"""End-to-end tests for RepositoryIndexer scans."""

from collections.abc import Callable
from pathlib import Path
from unittest.mock import patch

import pytest

from codeatlas.config.models import CodeAtlasConfig, IndexConfig
from codeatlas.core.errors import ErrorCode, ScanError
from codeatlas.git.identity import RepositoryIdentity
from codeatlas.index._internal.analysis import (
    AnalysisResult,
    FileCategory,
    analyze_source,
)
from codeatlas.index.models import ComponentType, ScanStatus
from codeatlas.index.ops import RepositoryIndexer, classify_component
from codeatlas.index.store import RepositoryStore

MakeTree = Callable[[dict[str, str | bytes]], Path]


def _indexer(
    root: Path,
    store: RepositoryStore,
    identity: RepositoryIdentity,
    config: CodeAtlasConfig | None = None,
    data_dir: Path | None = None,
) -> RepositoryIndexer:
    return RepositoryIndexer(root, store, config, data_dir=data_dir, identity=identity)


class TestSingleFile:
    """One script file."""

    def test_add_function(
        self, make_tree: MakeTree, store: RepositoryStore, identity: RepositoryIdentity
    ) -> None:
        root = make_tree({"math.js": "function add(a,b){return a+b;}"})
        result = _indexer(root, store, identity).scan(write_artifacts=False)

        assert result.status == ScanStatus.COMPLETED
        assert result.files_scanned == 1
        assert result.functions_found == 1
        record = store.get_file_by_path(result.repo_id, "math.js")
        assert record is not None
        assert record.code_lines == 1
        assert record.file_type == "JavaScript"
        (fn,) = store.get_functions_by_file(record.id)
        assert fn.name == "add"
        assert fn.complexity == 1
        assert fn.is_exported is False

        scan = store.get_scan(result.scan_id)
        assert scan is not None
        assert scan.status == ScanStatus.COMPLETED.value
        assert scan.files_scanned == 1
        repo = store.get_repository(result.repo_id)
        assert repo is not None
        assert (repo.repo_owner, repo.repo_name) == ("acme", "widgets")
        assert repo.total_files == 1
        assert repo.last_updated is not None


class TestDependencies:
    """Import edges and their targets."""

    def test_resolved_edge(
        self, make_tree: MakeTree, store: RepositoryStore, identity: RepositoryIdentity
    ) -> None:
        root = make_tree(
            {
                "src/main.js": "import { x } from './util.js';\n",
                "src/util.js": "export const x = 1;\n",
            }
        )
        result = _indexer(root, store, identity).scan(write_artifacts=False)
        (edge,) = store.get_dependency_graph(result.repo_id)
        assert (edge.from_file, edge.to_file) == ("src/main.js", "src/util.js")
        assert edge.is_resolved is True
        assert edge.dependency_type == "import"
        assert result.dependencies_linked == 1

    def test_missing_target(
        self, make_tree: MakeTree, store: RepositoryStore, identity: RepositoryIdentity
    ) -> None:
        root = make_tree({"src/main.js": "import { x } from './util.js';\n"})
        result = _indexer(root, store, identity).scan(write_artifacts=False)
        (edge,) = store.get_dependency_graph(result.repo_id)
        assert edge.to_file is None
        assert edge.is_resolved is False

    def test_backward_reference_resolves_immediately(
        self, make_tree: MakeTree, store: RepositoryStore, identity: RepositoryIdentity
    ) -> None:
        root = make_tree({"b.js": "const a = require('./a');\n", "a.js": "module.exports = 1;\n"})
        result = _indexer(root, store, identity).scan(write_artifacts=False)
        (edge,) = store.get_dependency_graph(result.repo_id)
        assert edge.to_file == "a.js"
        assert result.dependencies_linked == 0

    def test_external_imports_stay_unresolved(
        self, make_tree: MakeTree, store: RepositoryStore, identity: RepositoryIdentity
    ) -> None:
        root = make_tree({"app.js": "import React from 'react';\n", "react.js": ""})
        result = _indexer(root, store, identity).scan(write_artifacts=False)
        (edge,) = store.get_dependency_graph(result.repo_id)
        assert edge.import_path == "react"
        assert edge.to_file is None


class TestScanFailure:
    """A scan that dies part way."""

    def test_failure_midway_keeps_earlier_files(
        self, make_tree: MakeTree, store: RepositoryStore, identity: RepositoryIdentity
    ) -> None:
        root = make_tree({f"{name}.js": f"const {name} = 1;\n" for name in "abcd"})
        calls = {"n": 0}

        def flaky(path: str, content: str) -> AnalysisResult:
            calls["n"] += 1
            if calls["n"] == 3:
                raise RuntimeError("disk on fire")
            return analyze_source(path, content)

        indexer = _indexer(root, store, identity)
        with patch("codeatlas.index.ops.analyze_source", side_effect=flaky):
            with pytest.raises(ScanError) as exc_info:
                indexer.scan(write_artifacts=False)

        assert exc_info.value.code == ErrorCode.SCAN_ABORTED
        repo = store.get_latest_repository()
        assert repo is not None and repo.id is not None
        (scan,) = store.list_scans(repo.id)
        assert scan.status == ScanStatus.FAILED.value
        assert scan.files_scanned == 2
        assert sorted(store.get_file_paths(repo.id)) == ["a.js", "b.js"]
        assert repo.total_files == 0
        assert repo.last_updated is None

    def test_undecodable_file_is_counted_not_fatal(
        self, make_tree: MakeTree, store: RepositoryStore, identity: RepositoryIdentity
    ) -> None:
        root = make_tree({"bad.js": b"\xff\xfe\x00\x81", "good.js": "let a;\n"})
        result = _indexer(root, store, identity).scan(write_artifacts=False)
        assert result.status == ScanStatus.COMPLETED
        assert result.errors_count == 1
        assert result.failed_paths == ["bad.js"]
        assert list(store.get_file_paths(result.repo_id)) == ["good.js"]
        scan = store.get_scan(result.scan_id)
        assert scan is not None and scan.errors_count == 1

    def test_root_must_be_a_directory(
        self, tmp_path: Path, store: RepositoryStore, identity: RepositoryIdentity
    ) -> None:
        with pytest.raises(ScanError) as exc_info:
            _indexer(tmp_path / "missing", store, identity).scan()
        assert exc_info.value.code == ErrorCode.SCAN_ROOT_INVALID


class TestRescan:
    """Child row policy and pruning across scans."""

    def test_replace_keeps_one_copy(
        self, make_tree: MakeTree, store: RepositoryStore, identity: RepositoryIdentity
    ) -> None:
        root = make_tree({"a.js": "import b from './b';\nfunction f() {}\n", "b.js": ""})
        indexer = _indexer(root, store, identity)
        first = indexer.scan(write_artifacts=False)
        file_id = store.get_file_paths(first.repo_id)["a.js"]
        second = indexer.scan(write_artifacts=False)

        assert second.repo_id == first.repo_id
        assert store.get_file_paths(second.repo_id)["a.js"] == file_id
        assert len(store.get_functions_by_file(file_id)) == 1
        assert len(store.list_imports(file_id)) == 1
        assert len(store.get_dependency_graph(second.repo_id)) == 1
        assert [s.status for s in store.list_scans(second.repo_id)] == ["completed", "completed"]

    def test_accumulate_duplicates_child_rows(
        self, make_tree: MakeTree, store: RepositoryStore, identity: RepositoryIdentity
    ) -> None:
        root = make_tree({"a.js": "function f() {}\n"})
        config = CodeAtlasConfig(index=IndexConfig(replace_child_rows=False))
        indexer = _indexer(root, store, identity, config)
        indexer.scan(write_artifacts=False)
        result = indexer.scan(write_artifacts=False)
        file_id = store.get_file_paths(result.repo_id)["a.js"]
        assert [fn.name for fn in store.get_functions_by_file(file_id)] == ["f", "f"]

    def test_changed_content_updates_row(
        self, make_tree: MakeTree, store: RepositoryStore, identity: RepositoryIdentity
    ) -> None:
        root = make_tree({"a.js": "let a;\n"})
        indexer = _indexer(root, store, identity)
        result = indexer.scan(write_artifacts=False)
        before = store.get_file_by_path(result.repo_id, "a.js")
        (root / "a.js").write_text("let a;\nlet b;\nlet c;\n")
        indexer.scan(write_artifacts=False)
        after = store.get_file_by_path(result.repo_id, "a.js")
        assert before is not None and after is not None
        assert after.id == before.id
        assert after.lines_count == 4
        assert after.hash != before.hash

    def test_prune_removes_deleted_files(
        self, make_tree: MakeTree, store: RepositoryStore, identity: RepositoryIdentity
    ) -> None:
        root = make_tree({"a.js": "let a;\n", "style.css": "a {}\n"})
        indexer = _indexer(root, store, identity)
        indexer.scan(write_artifacts=False)
        (root / "style.css").unlink()

        kept = indexer.scan(write_artifacts=False)
        assert "style.css" in store.get_file_paths(kept.repo_id)

        pruned = indexer.scan(prune=True, write_artifacts=False)
        assert pruned.files_pruned == 1
        assert list(store.get_file_paths(pruned.repo_id)) == ["a.js"]
        assert [lang.name for lang in store.get_language_stats(pruned.repo_id)] == ["JavaScript"]
        repo = store.get_repository(pruned.repo_id)
        assert repo is not None and repo.total_files == 1

    def test_pruning_an_imported_file_keeps_the_edge(
        self, make_tree: MakeTree, store: RepositoryStore, identity: RepositoryIdentity
    ) -> None:
        root = make_tree({"a.js": "import b from './b.js';\n", "b.js": "let b;\n"})
        indexer = _indexer(root, store, identity)
        first = indexer.scan(write_artifacts=False)
        assert [e.to_file for e in store.get_dependency_graph(first.repo_id)] == ["b.js"]
        (root / "b.js").unlink()

        result = indexer.scan(prune=True, write_artifacts=False)

        a_id = store.get_file_paths(result.repo_id)["a.js"]
        (edge,) = store.get_dependency_graph(result.repo_id)
        assert (edge.from_file, edge.to_file, edge.is_resolved) == ("a.js", None, False)
        assert edge.import_path == "./b.js"
        assert len(store.list_imports(a_id)) == 1

    def test_pruning_unresolves_edges_of_files_not_rescanned(
        self, make_tree: MakeTree, store: RepositoryStore, identity: RepositoryIdentity
    ) -> None:
        root = make_tree({"a.js": "import b from './b.js';\n", "b.js": "let b;\n"})
        config = CodeAtlasConfig(index=IndexConfig(replace_child_rows=False))
        indexer = _indexer(root, store, identity, config)
        indexer.scan(write_artifacts=False)
        (root / "b.js").unlink()

        result = indexer.scan(prune=True, write_artifacts=False)

        # the first scan's edge survives, now unresolved, next to the new one
        edges = store.get_dependency_graph(result.repo_id)
        assert [(e.to_file, e.is_resolved) for e in edges] == [(None, False), (None, False)]


class TestScanScope:
    """What gets walked and how it is labelled."""

    def test_too_large_files_are_skipped(
        self, make_tree: MakeTree, store: RepositoryStore, identity: RepositoryIdentity
    ) -> None:
        root = make_tree({"big.js": "x" * (1024 * 1024 + 1), "small.js": "let a;\n"})
        config = CodeAtlasConfig(index=IndexConfig(max_file_size_mb=1))
        result = _indexer(root, store, identity, config).scan(write_artifacts=False)
        assert result.skipped_too_large == ["big.js"]
        assert list(store.get_file_paths(result.repo_id)) == ["small.js"]

    def test_extra_ignore_patterns(
        self, make_tree: MakeTree, store: RepositoryStore, identity: RepositoryIdentity
    ) -> None:
        root = make_tree({"legacy/old.js": "", "new.js": ""})
        config = CodeAtlasConfig(index=IndexConfig(extra_ignore_patterns=["legacy/"]))
        result = _indexer(root, store, identity, config).scan(write_artifacts=False)
        assert list(store.get_file_paths(result.repo_id)) == ["new.js"]

    def test_data_dir_inside_tree_is_not_indexed(
        self, make_tree: MakeTree, store: RepositoryStore, identity: RepositoryIdentity
    ) -> None:
        root = make_tree({"app.js": "let a;\n", "docs/atlas/repo-map.json": "{}"})
        indexer = _indexer(root, store, identity, data_dir=root / "docs" / "atlas")
        result = indexer.scan()
        assert list(store.get_file_paths(result.repo_id)) == ["app.js"]
        assert len(result.artifacts) == 4

    def test_components_and_languages(
        self, make_tree: MakeTree, store: RepositoryStore, identity: RepositoryIdentity
    ) -> None:
        root = make_tree(
            {
                "index.html": "<p></p>\n",
                "src/app.js": "let a;\nlet b;\n",
                "test/app.test.js": "test();\n",
                "README.md": "# Widgets\n",
            }
        )
        result = _indexer(root, store, identity).scan(write_artifacts=False)
        assignments = store.get_component_assignments(result.repo_id)
        assert assignments[ComponentType.UI.value] == ["index.html"]
        assert assignments[ComponentType.LOGIC.value] == ["src/app.js"]
        assert assignments[ComponentType.TEST.value] == ["test/app.test.js"]
        assert assignments[ComponentType.DOCUMENTATION.value] == ["README.md"]

        languages = {lang.name: lang for lang in store.get_language_stats(result.repo_id)}
        assert set(languages) == {"HTML", "JavaScript", "Markdown"}
        assert languages["JavaScript"].file_count == 2
        assert sum(lang.percentage for lang in languages.values()) == pytest.approx(100.0)


class TestClassifyComponent:
    """One taxonomy component per file."""

    @pytest.mark.parametrize(
        ("path", "category", "expected"),
        [
            ("src/a.test.js", FileCategory.SCRIPT, ComponentType.TEST),
            ("styles/main.css", FileCategory.STYLESHEET, ComponentType.UI),
            ("src/a.js", FileCategory.SCRIPT, ComponentType.LOGIC),
            ("db/schema.sql", FileCategory.DATA, ComponentType.DATA),
            ("docs/guide.md", FileCategory.DOC, ComponentType.DOCUMENTATION),
            ("package.json", FileCategory.CONFIG, ComponentType.CONFIG),
            ("deploy.sh", FileCategory.SHELL, ComponentType.INFRASTRUCTURE),
        ],
    )
    def test_rules(self, path: str, category: FileCategory, expected: ComponentType) -> None:
        assert classify_component(path, category) == expected
