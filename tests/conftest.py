"""Root conftest.py for test configuration.

Ensures local src/ directory takes priority over any installed packages, and
isolates every test from the user's global config, CODEATLAS__ environment
variables and logging handlers left behind by CLI invocations.
"""

import logging
import os
import sys
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
import structlog

# Insert local src directory at the beginning of sys.path
# This ensures that the local codeatlas package is used, not any installed one
_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

from codeatlas.git.identity import RepositoryIdentity  # noqa: E402
from codeatlas.index.store import RepositoryStore  # noqa: E402


@pytest.fixture(autouse=True)
def isolated_config(
    tmp_path_factory: pytest.TempPathFactory, monkeypatch: pytest.MonkeyPatch
) -> None:
    """No global config file and no CODEATLAS__ env vars leak into a test."""
    global_dir = tmp_path_factory.mktemp("global-config")
    monkeypatch.setattr(
        "codeatlas.config.loader.GLOBAL_CONFIG_PATH", global_dir / "config.yaml"
    )
    for key in list(os.environ):
        if key.upper().startswith("CODEATLAS__"):
            monkeypatch.delenv(key)


@pytest.fixture(autouse=True)
def reset_logging() -> Generator[None, None, None]:
    yield
    root = logging.getLogger()
    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler):
            handler.close()
    root.handlers.clear()
    structlog.reset_defaults()


@pytest.fixture
def store(tmp_path: Path) -> Generator[RepositoryStore, None, None]:
    """Connected store with schema, outside any scanned tree."""
    s = RepositoryStore(tmp_path / "store" / "repo.db")
    s.connect()
    yield s
    s.close()


@pytest.fixture
def repo_id(store: RepositoryStore) -> int:
    repo = store.get_or_create_repository("acme", "widgets", "https://github.com/acme/widgets")
    assert repo.id is not None
    return repo.id


@pytest.fixture
def identity() -> RepositoryIdentity:
    return RepositoryIdentity("acme", "widgets", None, "config")


@pytest.fixture
def make_tree(tmp_path: Path) -> Callable[[dict[str, str | bytes]], Path]:
    """Write {relative path: content} under tmp_path/tree and return the root."""

    def _make(files: dict[str, str | bytes]) -> Path:
        root = tmp_path / "tree"
        root.mkdir(exist_ok=True)
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(content)
        return root

    return _make
