"""Repository identity: owner, name and URL for the indexed tree.

Resolution order:
1. explicit values from RepositoryConfig
2. the configured git remote (default "origin"), parsed as host[:/]owner/name[.git]
3. defaults: RepositoryConfig.default_owner and the root directory name
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

import pygit2
import structlog

from codeatlas.config.models import RepositoryConfig

logger = structlog.get_logger()

_REMOTE_URL_RE = re.compile(r"[:/]([^/:]+)/([^/.]+)(?:\.git)?/?$")


@dataclass(frozen=True, slots=True)
class RepositoryIdentity:
    owner: str
    name: str
    url: str | None
    source: str  # "config", "git" or "default"


def parse_remote_url(url: str) -> tuple[str, str] | None:
    """(owner, name) from an https or scp-style remote URL."""
    match = _REMOTE_URL_RE.search(url.strip())
    if not match:
        return None
    return match.group(1), match.group(2)


def read_remote_url(root: Path, remote: str = "origin") -> str | None:
    """URL of the named remote of the git repository containing root, if any."""
    discovered = pygit2.discover_repository(str(root))
    if discovered is None:
        return None
    try:
        repo = pygit2.Repository(discovered)
    except pygit2.GitError:
        return None
    try:
        return repo.remotes[remote].url
    except (KeyError, ValueError, pygit2.GitError):
        return None


def detect_identity(root: Path, config: RepositoryConfig | None = None) -> RepositoryIdentity:
    """Work out who owns the repository at root. Never raises on detection failure."""
    config = config or RepositoryConfig()
    default_name = root.resolve().name or "repository"

    if config.owner and config.name:
        return RepositoryIdentity(config.owner, config.name, config.url, "config")

    url = config.url or read_remote_url(root, config.remote)
    parsed = parse_remote_url(url) if url else None
    if parsed is not None:
        owner, name = parsed
        identity = RepositoryIdentity(config.owner or owner, config.name or name, url, "git")
    else:
        identity = RepositoryIdentity(
            config.owner or config.default_owner, config.name or default_name, url, "default"
        )
    logger.debug(
        "repository_identity_detected",
        owner=identity.owner,
        name=identity.name,
        source=identity.source,
    )
    return identity
