"""atlas export command - dump the index as one JSON document."""

import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import click

from codeatlas.cli.utils import (
    cli_errors,
    dump_row,
    open_store,
    require_repository_id,
    resolve_context,
)
from codeatlas.index.store import RepositoryStore


def build_export(store: RepositoryStore, repo_id: int) -> dict[str, Any]:
    """Repository record, every file, the dependency graph and rollup metrics."""
    repo = store.get_repository(repo_id)
    return {
        "exportedAt": datetime.now(UTC).isoformat(),
        "repository": dump_row(repo) if repo else None,
        "files": store.get_all_files(repo_id),
        "dependencies": [edge.model_dump() for edge in store.get_dependency_graph(repo_id)],
        "metrics": store.get_repository_metrics(repo_id).model_dump(),
    }


@click.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write to this file instead of stdout",
)
@click.pass_context
def export_command(ctx: click.Context, output: Path | None) -> None:
    """Export repository, files, dependencies and metrics as JSON."""
    with cli_errors():
        cli_ctx = resolve_context(ctx)
        with open_store(cli_ctx) as store:
            repo_id = require_repository_id(store)
            payload = build_export(store, repo_id)

    text = json.dumps(payload, indent=2, default=str)
    if output is None:
        click.echo(text)
    else:
        output.write_text(text + "\n", encoding="utf-8")
        click.echo(f"Exported to {output}", err=True)
