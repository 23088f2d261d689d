"""Git-derived facts about the indexed repository."""

from codeatlas.git.identity import (
    RepositoryIdentity,
    detect_identity,
    parse_remote_url,
    read_remote_url,
)

__all__ = [
    "RepositoryIdentity",
    "detect_identity",
    "parse_remote_url",
    "read_remote_url",
]
