"""Resolve the effective CodeAtlas configuration for one repository.

Layers, later ones winning: built-in defaults, the global YAML file, the
repository's ``.codeatlas/config.yaml``, ``CODEATLAS__SECTION__KEY``
environment variables, then keyword overrides passed to ``load_config``.
The repository file may mix the flat options written by ``atlas init`` with
full sections.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from codeatlas.config.models import (
    CodeAtlasConfig,
    DatabaseConfig,
    IndexConfig,
    LoggingConfig,
    OutputConfig,
    RepositoryConfig,
)
from codeatlas.config.user_config import load_user_config
from codeatlas.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/codeatlas/config.yaml").expanduser()

ATLAS_DIR_NAME = ".codeatlas"

_SECTIONS = ("logging", "database", "index", "repository", "output")

# Flat user option -> (section, key)
_FLAT_OPTIONS = {
    "owner": ("repository", "owner"),
    "name": ("repository", "name"),
    "max_file_size_mb": ("index", "max_file_size_mb"),
    "log_level": ("logging", "level"),
}


def _read_yaml_mapping(path: Path) -> dict[str, Any]:
    if not path.is_file():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top level must be a mapping")
    return data


def _merge_layers(lower: dict[str, Any], upper: dict[str, Any]) -> dict[str, Any]:
    merged = dict(lower)
    for key, value in upper.items():
        below = merged.get(key)
        merged[key] = (
            _merge_layers(below, value)
            if isinstance(below, dict) and isinstance(value, dict)
            else value
        )
    return merged


class _YamlSource(PydanticBaseSettingsSource):
    """Lowest-precedence source serving the merged YAML layers."""

    def __init__(self, settings_cls: type[BaseSettings], layers: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._layers = layers

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        value = self._layers.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        return self._layers


def _settings_for(layers: dict[str, Any]) -> type[BaseSettings]:
    """A settings class bound to this call's YAML layers.

    Built per call so concurrent loads for different repositories never share
    a source.
    """

    class CodeAtlasSettings(BaseSettings):
        model_config = SettingsConfigDict(
            env_prefix="CODEATLAS__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        database: DatabaseConfig = DatabaseConfig()
        index: IndexConfig = IndexConfig()
        repository: RepositoryConfig = RepositoryConfig()
        output: OutputConfig = OutputConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            return (init_settings, env_settings, _YamlSource(settings_cls, layers))

    return CodeAtlasSettings


def _repo_layer(config_path: Path) -> dict[str, Any]:
    """Sectioned view of the repository config file.

    Full sections in the file win over the flat options they overlap.
    """
    user_config = load_user_config(config_path)
    layer: dict[str, Any] = {}
    for option in sorted(user_config.model_fields_set & _FLAT_OPTIONS.keys()):
        section, key = _FLAT_OPTIONS[option]
        layer.setdefault(section, {})[key] = getattr(user_config, option)

    raw = _read_yaml_mapping(config_path)
    sections = {key: raw[key] for key in _SECTIONS if isinstance(raw.get(key), dict)}
    return _merge_layers(layer, sections)


def load_config(repo_root: Path | None = None, **kwargs: Any) -> CodeAtlasConfig:
    """Effective configuration for ``repo_root`` (the working directory by default).

    Keyword overrides are keyed by section, e.g. ``output={"top_n": 7}``.
    Raises ConfigError for unparsable YAML and for the first invalid value.
    """
    root = repo_root or Path.cwd()
    layers = _merge_layers(
        _read_yaml_mapping(GLOBAL_CONFIG_PATH),
        _repo_layer(root / ATLAS_DIR_NAME / "config.yaml"),
    )

    try:
        settings = _settings_for(layers)(**kwargs)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise ConfigError.invalid_value(location, first.get("input"), first["msg"]) from e
    return CodeAtlasConfig.model_validate(settings.model_dump())


@dataclass(frozen=True)
class AtlasPaths:
    """Resolved on-disk locations for one repository."""

    root: Path
    store: Path
    data_dir: Path
    backup_dir: Path

    @property
    def atlas_dir(self) -> Path:
        return self.root / ATLAS_DIR_NAME


def _resolve(repo_root: Path, value: str | None, default: Path) -> Path:
    if not value:
        return default
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = repo_root / path
    return path


def get_atlas_paths(repo_root: Path, config: CodeAtlasConfig | None = None) -> AtlasPaths:
    """Get store, artifact and backup locations for a repo, respecting config."""
    config = config or load_config(repo_root)
    root = repo_root.resolve()
    atlas_dir = root / ATLAS_DIR_NAME
    return AtlasPaths(
        root=root,
        store=_resolve(root, config.database.path, atlas_dir / "repo.db"),
        data_dir=_resolve(root, config.output.data_dir, atlas_dir / "data"),
        backup_dir=_resolve(root, config.output.backup_dir, atlas_dir / "backups"),
    )
