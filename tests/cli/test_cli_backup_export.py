"""Tests for atlas export, backup and migrate."""

import json
import shutil
from datetime import UTC, datetime
from pathlib import Path

import click
import pytest
from click.testing import CliRunner

from codeatlas.cli.backup import next_backup_name, validate_backup_destination
from codeatlas.cli.main import cli
from codeatlas.cli.utils import cli_errors
from codeatlas.core.errors import CliError, ErrorCode
from codeatlas.index.store import RepositoryStore


class TestExportCommand:
    """atlas export."""

    def test_stdout(self, runner: CliRunner, scanned_repo: Path) -> None:
        result = runner.invoke(cli, ["--root", str(scanned_repo), "export"])

        assert result.exit_code == 0, result.output
        payload = json.loads(result.stdout)
        assert set(payload) == {"exportedAt", "repository", "files", "dependencies", "metrics"}
        assert payload["repository"]["repo_name"] == "demo"
        assert len(payload["files"]) == 4
        assert len(payload["dependencies"]) == 3
        assert payload["metrics"]["files"]["total_files"] == 4

    def test_output_file(self, runner: CliRunner, scanned_repo: Path, tmp_path: Path) -> None:
        target = tmp_path / "export.json"
        result = runner.invoke(cli, ["--root", str(scanned_repo), "export", "-o", str(target)])

        assert result.exit_code == 0, result.output
        assert result.stdout == ""
        assert json.loads(target.read_text())["repository"]["repo_owner"] == "local"


class TestBackupCommand:
    """atlas backup."""

    def test_default_name(self, runner: CliRunner, scanned_repo: Path) -> None:
        result = runner.invoke(cli, ["--root", str(scanned_repo), "backup"])

        assert result.exit_code == 0, result.output
        (backup,) = (scanned_repo / ".codeatlas" / "backups").glob("repo-*.db")
        with RepositoryStore(backup) as store:
            repo = store.get_latest_repository()
            assert repo is not None
            assert repo.repo_name == "demo"

    def test_two_default_backups_in_a_row(self, runner: CliRunner, scanned_repo: Path) -> None:
        for _ in range(2):
            result = runner.invoke(cli, ["--root", str(scanned_repo), "backup"])
            assert result.exit_code == 0, result.output

        assert len(list((scanned_repo / ".codeatlas" / "backups").glob("repo-*.db"))) == 2

    def test_next_name_is_numbered_when_taken(self, tmp_path: Path) -> None:
        now = datetime(2024, 5, 1, 12, 30, 45, tzinfo=UTC)
        assert next_backup_name(tmp_path, now=now) == "repo-20240501-123045.db"

        (tmp_path / "repo-20240501-123045.db").touch()
        (tmp_path / "repo-20240501-123045-1.db").touch()

        assert next_backup_name(tmp_path, now=now) == "repo-20240501-123045-2.db"
        assert next_backup_name(tmp_path, "pre-init", now=now) == "pre-init-20240501-123045.db"

    def test_named(self, runner: CliRunner, scanned_repo: Path) -> None:
        result = runner.invoke(cli, ["--root", str(scanned_repo), "backup", "--name", "snap.db"])

        assert result.exit_code == 0, result.output
        assert (scanned_repo / ".codeatlas" / "backups" / "snap.db").is_file()
        assert "Backup written to" in result.stderr

    @pytest.mark.parametrize("name", ["../evil.db", "..", "sub/evil.db", "/tmp/evil.db"])
    def test_rejects_names_outside_backup_dir(
        self, runner: CliRunner, scanned_repo: Path, name: str
    ) -> None:
        result = runner.invoke(cli, ["--root", str(scanned_repo), "backup", "--name", name])

        assert result.exit_code == 1
        assert "Backup path rejected" in result.stderr
        assert not (scanned_repo / ".codeatlas" / "evil.db").exists()

    def test_refuses_to_overwrite(self, runner: CliRunner, scanned_repo: Path) -> None:
        args = ["--root", str(scanned_repo), "backup", "--name", "snap.db"]
        assert runner.invoke(cli, args).exit_code == 0
        result = runner.invoke(cli, args)
        assert result.exit_code == 1
        assert "already exists" in result.stderr

    def test_without_store(self, runner: CliRunner, demo_repo: Path) -> None:
        result = runner.invoke(cli, ["--root", str(demo_repo), "backup"])
        assert result.exit_code == 1
        assert not (demo_repo / ".codeatlas" / "backups").exists()


class TestValidateBackupDestination:
    """Name checks before anything touches the disk."""

    def test_accepts_plain_name(self, tmp_path: Path) -> None:
        assert validate_backup_destination(tmp_path, "a-1.db") == tmp_path.resolve() / "a-1.db"

    @pytest.mark.parametrize("name", ["..", ".", "a b.db", "x/../../y.db", ""])
    def test_rejects(self, tmp_path: Path, name: str) -> None:
        with pytest.raises(CliError) as exc_info:
            validate_backup_destination(tmp_path / "backups", name)
        assert exc_info.value.code == ErrorCode.CLI_BACKUP_PATH_REJECTED


class TestMigrateCommand:
    """atlas migrate."""

    def test_imports_scan_artifacts(
        self, runner: CliRunner, scanned_repo: Path, tmp_path: Path
    ) -> None:
        data_dir = tmp_path / "legacy"
        shutil.copytree(scanned_repo / ".codeatlas" / "data", data_dir)
        target = tmp_path / "target"
        target.mkdir()

        result = runner.invoke(cli, ["--root", str(target), "migrate", "--data-dir", str(data_dir)])

        assert result.exit_code == 0, result.output
        assert "Imported 4 files, 2 functions" in result.stderr
        with RepositoryStore(target / ".codeatlas" / "repo.db") as store:
            repo = store.get_latest_repository()
            assert repo is not None
            assert repo.id is not None
            assert len(store.get_file_paths(repo.id)) == 4

    def test_missing_repo_map(self, runner: CliRunner, demo_repo: Path, tmp_path: Path) -> None:
        empty = tmp_path / "empty"
        empty.mkdir()
        result = runner.invoke(cli, ["--root", str(demo_repo), "migrate", "--data-dir", str(empty)])

        assert result.exit_code == 1
        assert "Legacy data file not found" in result.stderr


class TestCliErrors:
    """Failures raised inside a command body become one-line click errors."""

    def test_os_error_names_the_path(self) -> None:
        with pytest.raises(click.ClickException) as exc_info:
            with cli_errors():
                raise PermissionError(13, "Permission denied", "/srv/atlas/repo.db")
        assert exc_info.value.exit_code == 1
        assert exc_info.value.message == (
            "File operation failed on /srv/atlas/repo.db: Permission denied"
        )

    def test_atlas_error_keeps_its_message(self) -> None:
        with pytest.raises(click.ClickException) as exc_info:
            with cli_errors():
                raise CliError.no_repository()
        assert exc_info.value.message == CliError.no_repository().message
