"""Configuration models and helpers for Covercraft."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Literal, Optional, Tuple
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml
from PIL import ImageColor
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .logging import get_logger

DEFAULT_POLICY_VERSION = "3"


@dataclass(frozen=True)
class BootstrapReport:
    """Summary of files/directories created during initialisation."""

    base_created: bool
    library_dir_created: bool
    global_config_created: bool
    global_config_overwritten: bool


class ConfigError(RuntimeError):
    """Raised when configuration files cannot be parsed or are invalid."""


@dataclass(frozen=True)
class ConfigPaths:
    """Resolved filesystem locations used by the application."""

    base_dir: Path
    global_config: Path
    library_dir: Path

    @classmethod
    def default(cls) -> "ConfigPaths":
        """Return default locations under the user's home directory."""

        base = Path.home() / ".covercraft"
        return cls.from_base_dir(base)

    @classmethod
    def from_base_dir(cls, base_dir: Path) -> "ConfigPaths":
        """Construct paths using ``base_dir`` as root."""

        base_dir = base_dir.expanduser()
        return cls(
            base_dir=base_dir,
            global_config=base_dir / "config.yml",
            library_dir=base_dir / "library",
        )

    def resolve_library_dir(self, configured: Optional[Path]) -> Path:
        """Resolve the library directory, honouring an optional override.

        Relative overrides are interpreted against ``base_dir``.
        """

        if configured is None:
            return self.library_dir
        candidate = Path(configured).expanduser()
        return candidate if candidate.is_absolute() else self.base_dir / candidate


class RuntimeSettings(BaseModel):
    """Runtime-level defaults."""

    timezone: str = Field(default="UTC")
    log_level: str = Field(default="INFO")
    library_dir: Optional[Path] = None

    model_config = ConfigDict(extra="forbid")


class CollageSettings(BaseModel):
    """Controls how playlist composites are selected and drawn."""

    policy_version: str = Field(default=DEFAULT_POLICY_VERSION, min_length=1)
    rotation: Literal["hashed", "legacy"] = "hashed"
    failure_mode: Literal["abort", "placeholder"] = "abort"
    placeholder_color: str = Field(default="#000000")
    output_format: Literal["PNG", "JPEG", "WEBP"] = "PNG"
    jpeg_quality: int = Field(default=90, ge=1, le=100)

    model_config = ConfigDict(extra="forbid")

    @field_validator("output_format", mode="before")
    @classmethod
    def _upper_format(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @field_validator("placeholder_color")
    @classmethod
    def _check_color(cls, value: str) -> str:
        try:
            ImageColor.getrgb(value)
        except ValueError as exc:
            raise ValueError(f"Unrecognised placeholder colour: {value!r}") from exc
        return value

    @property
    def placeholder_rgba(self) -> Tuple[int, int, int, int]:
        rgb = ImageColor.getrgb(self.placeholder_color)
        if len(rgb) == 4:
            return rgb  # type: ignore[return-value]
        return (rgb[0], rgb[1], rgb[2], 255)


class GlobalConfig(BaseModel):
    """Top-level configuration file model."""

    runtime: RuntimeSettings = Field(default_factory=RuntimeSettings)
    collage: CollageSettings = Field(default_factory=CollageSettings)

    model_config = ConfigDict(extra="forbid")


class ItemDefinition(BaseModel):
    """A single library entity as written in a manifest."""

    id: UUID
    name: str
    kind: str
    image: Optional[str] = None
    parent: Optional[UUID] = None

    model_config = ConfigDict(extra="forbid")


class PlaylistDefinition(BaseModel):
    """A playlist and the ordered ids of its members."""

    id: UUID
    name: str
    image: Optional[str] = None
    members: List[UUID] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


class LibraryManifest(BaseModel):
    """Contents of one YAML file under the library directory."""

    items: List[ItemDefinition] = Field(default_factory=list)
    playlists: List[PlaylistDefinition] = Field(default_factory=list)

    model_config = ConfigDict(extra="forbid")


def resolve_timezone(tz_name: str) -> tuple[ZoneInfo, str]:
    """Return the zone for ``tz_name`` and its label, falling back to UTC."""

    try:
        tz = ZoneInfo(tz_name)
        label = tz.key if hasattr(tz, "key") else str(tz)
        return tz, label
    except (ZoneInfoNotFoundError, ValueError):
        get_logger(__name__).warning("config.timezone_unknown", timezone=tz_name, fallback="UTC")
        return ZoneInfo("UTC"), "UTC"


def _read_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except FileNotFoundError as exc:
        raise ConfigError(f"Configuration file not found: {path}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse YAML file: {path}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"Expected mapping at top level of {path}")
    return data


def load_global_config(path: Path) -> GlobalConfig:
    """Load and validate the global configuration file."""

    payload = _read_yaml(path)
    try:
        return GlobalConfig.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {path}: {exc}") from exc


def iter_manifest_paths(library_dir: Path) -> Iterable[Path]:
    """Yield YAML files describing library contents."""

    if not library_dir.exists():
        return []
    return sorted(p for p in library_dir.iterdir() if p.suffix in {".yml", ".yaml"} and p.is_file())


def load_library_manifests(library_dir: Path) -> List[Tuple[Path, LibraryManifest]]:
    """Load every manifest in ``library_dir`` paired with its source path."""

    manifests: List[Tuple[Path, LibraryManifest]] = []
    for path in iter_manifest_paths(library_dir):
        payload = _read_yaml(path)
        try:
            manifests.append((path, LibraryManifest.model_validate(payload)))
        except ValidationError as exc:
            raise ConfigError(f"Invalid library manifest: {path}: {exc}") from exc
    return manifests


def _default_global_config(paths: ConfigPaths) -> Dict[str, Any]:
    """Dictionary representing the starter global configuration."""

    return {
        "runtime": {
            "timezone": "UTC",
            "log_level": "INFO",
            "library_dir": str(paths.library_dir),
        },
        "collage": {
            "policy_version": DEFAULT_POLICY_VERSION,
            "rotation": "hashed",
            "failure_mode": "abort",
            "placeholder_color": "#000000",
            "output_format": "PNG",
            "jpeg_quality": 90,
        },
    }


def _write_yaml(path: Path, data: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(data, handle, sort_keys=False)


def bootstrap(paths: ConfigPaths, overwrite: bool = False) -> BootstrapReport:
    """Ensure configuration directories/files exist.

    Parameters
    ----------
    paths:
        Target filesystem layout.
    overwrite:
        When ``True`` the global config file is re-written even if it already exists.
    """

    base_created = False
    library_dir_created = False
    global_config_created = False
    global_config_overwritten = False

    if not paths.base_dir.exists():
        paths.base_dir.mkdir(parents=True, exist_ok=True)
        base_created = True

    if not paths.library_dir.exists():
        paths.library_dir.mkdir(parents=True, exist_ok=True)
        library_dir_created = True

    existing_global = paths.global_config.exists()
    if not existing_global or overwrite:
        _write_yaml(paths.global_config, _default_global_config(paths))
        global_config_created = True
        global_config_overwritten = existing_global and overwrite

    return BootstrapReport(
        base_created=base_created,
        library_dir_created=library_dir_created,
        global_config_created=global_config_created,
        global_config_overwritten=global_config_overwritten,
    )
