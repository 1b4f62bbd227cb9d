"""Shared application context for Covercraft CLI commands."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .config import ConfigPaths, GlobalConfig, load_global_config, load_library_manifests
from .library import Library, build_library


@dataclass
class AppContext:
    """Container for resolved configuration used by CLI commands."""

    paths: ConfigPaths
    global_config: GlobalConfig
    library_dir: Path
    library: Library


def determine_paths(config_dir: Optional[Path]) -> ConfigPaths:
    """Resolve configuration paths based on optional CLI override."""

    return ConfigPaths.from_base_dir(config_dir) if config_dir else ConfigPaths.default()


def load_context(paths: ConfigPaths) -> AppContext:
    """Load global configuration and library manifests from disk."""

    global_config = load_global_config(paths.global_config)
    library_dir = paths.resolve_library_dir(global_config.runtime.library_dir)
    library = build_library(load_library_manifests(library_dir))

    return AppContext(
        paths=paths,
        global_config=global_config,
        library_dir=library_dir,
        library=library,
    )
