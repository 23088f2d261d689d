"""The handful of options a repository owner edits by hand.

``atlas init`` writes them to ``.codeatlas/config.yaml`` as a flat mapping;
the loader maps each onto its full configuration section.
"""

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

from codeatlas.core.errors import ConfigError

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_MAX_FILE_SIZE_MB = 10
DEFAULT_LOG_LEVEL: LogLevel = "WARNING"


class UserConfig(BaseModel):
    """Options written by `atlas init`."""

    owner: str | None = Field(
        default=None,
        description="Repository owner. Detected from the 'origin' remote when unset.",
    )
    name: str | None = Field(
        default=None,
        description="Repository name. Detected from the 'origin' remote when unset.",
    )
    max_file_size_mb: int = Field(
        default=DEFAULT_MAX_FILE_SIZE_MB,
        description="Skip files larger than this (MB) during scanning.",
    )
    log_level: LogLevel = Field(
        default=DEFAULT_LOG_LEVEL,
        description="Log level. INFO logs every indexed file.",
    )


# (comment, key, placeholder shown when the option is left at its default)
_TEMPLATE: tuple[tuple[str | None, str, Any], ...] = (
    ("Repository identity (detected from git remote 'origin' when unset)", "owner", "my-org"),
    (None, "name", "my-repo"),
    (
        "Maximum file size to scan (MB). Files larger than this are skipped.",
        "max_file_size_mb",
        DEFAULT_MAX_FILE_SIZE_MB,
    ),
    ("Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL", "log_level", DEFAULT_LOG_LEVEL),
)


def write_user_config(path: Path, config: UserConfig | None = None) -> None:
    """Write ``config`` with comments; options left at their default stay commented out."""
    cfg = config or UserConfig()
    defaults = UserConfig()

    lines = [
        "# CodeAtlas Configuration",
        "# Environment variables override this file: CODEATLAS__<SECTION>__<KEY>",
    ]
    for comment, key, placeholder in _TEMPLATE:
        if comment:
            lines += ["", f"# {comment}"]
        value = getattr(cfg, key)
        if value is None or value == getattr(defaults, key):
            lines.append(f"# {key}: {placeholder}")
        else:
            lines.append(f"{key}: {value}")
    lines.append("")

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(lines), encoding="utf-8")


def load_user_config(path: Path) -> UserConfig:
    """Read the flat options; a missing file yields the defaults.

    Raises ConfigError on unparsable YAML or an invalid value.
    """
    if not path.is_file():
        return UserConfig()
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top level must be a mapping")

    known = {key: value for key, value in data.items() if key in UserConfig.model_fields}
    try:
        return UserConfig(**known)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise ConfigError.invalid_value(location, first.get("input"), first["msg"]) from e
