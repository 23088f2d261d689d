"""Shared fixtures for atlas command tests."""

from pathlib import Path

import pytest
from click.testing import CliRunner

from codeatlas.cli.main import cli

DEMO_FILES = {
    "src/main.js": (
        "import { helper } from './util.js';\n"
        "import missing from './missing';\n"
        "import React from 'react';\n"
        "\n"
        "async function main() {\n"
        "  if (helper()) {\n"
        "    return 1;\n"
        "  }\n"
        "}\n"
    ),
    "src/util.js": "function helper() {\n  return true;\n}\nmodule.exports = { helper };\n",
    "index.html": "<html><body></body></html>\n",
    "README.md": "# Demo\n",
}


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def demo_repo(tmp_path: Path) -> Path:
    """Small JavaScript project, not yet scanned."""
    root = tmp_path / "demo"
    for rel, content in DEMO_FILES.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root


@pytest.fixture
def scanned_repo(runner: CliRunner, demo_repo: Path) -> Path:
    """demo_repo after one `atlas scan`."""
    result = runner.invoke(cli, ["--root", str(demo_repo), "scan"])
    assert result.exit_code == 0, result.output
    return demo_repo
