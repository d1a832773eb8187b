"""Load application configs from Python references."""

from __future__ import annotations

from dataclasses import is_dataclass
import importlib
import importlib.util
from pathlib import Path
from types import ModuleType
from typing import Any

from podman_compose_mgr.config.schema import AppConfig, BuildConfig, ScanConfig, TuiConfig
from podman_compose_mgr.domain.errors import ConfigError


def _load_module(module_ref: str) -> ModuleType:
    path_candidate = Path(module_ref).expanduser()
    if path_candidate.exists():
        module_name = f"_pcm_cfg_{path_candidate.stem}"
        spec = importlib.util.spec_from_file_location(module_name, path_candidate)
        if spec is None or spec.loader is None:
            raise ConfigError(f"Could not load module from path: {path_candidate}")
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)
        return module
    return importlib.import_module(module_ref)


def _resolve_attr(obj: Any, attr_path: str) -> Any:
    value = obj
    for part in attr_path.split("."):
        value = getattr(value, part)
    return value


def load_object(reference: str) -> Any:
    """Load object by `module_or_path:attribute` reference."""

    if ":" not in reference:
        raise ConfigError("Config reference must be in form 'module_or_path:attribute'.")
    module_ref, attr = reference.split(":", maxsplit=1)
    module = _load_module(module_ref)
    return _resolve_attr(module, attr)


def default_app_config(root: Path) -> AppConfig:
    """Build a default config bound to a specific scan root."""

    return AppConfig(scan=ScanConfig(root=str(root.resolve())))


def load_app_config(
    config_ref: str | None,
    root: Path,
    include_patterns: list[str] | None = None,
    exclude_patterns: list[str] | None = None,
    build_args: list[str] | None = None,
    no_cache: bool | None = None,
    dry_run: bool | None = None,
) -> AppConfig:
    """Load an AppConfig from reference or create a default, then apply CLI overrides."""

    if config_ref is None:
        config = default_app_config(root)
    else:
        loaded = load_object(config_ref)
        if not isinstance(loaded, AppConfig) or not is_dataclass(loaded):
            type_name = type(loaded).__name__
            raise ConfigError(f"Config reference must resolve to AppConfig, got {type_name}.")
        config = loaded

    # CLI input remains the source of truth for the scan root.
    config.scan.root = str(root.resolve())
    if include_patterns:
        config.scan.include_patterns = list(include_patterns)
    if exclude_patterns:
        config.scan.exclude_patterns = list(exclude_patterns)
    if build_args:
        config.build.build_args = list(build_args)
    if no_cache is not None:
        config.build.no_cache = no_cache
    if dry_run is not None:
        config.dry_run = dry_run
    return config


def app_config_from_dict(payload: dict[str, Any]) -> AppConfig:
    """Reconstruct an AppConfig from a plain dictionary."""

    return AppConfig(
        scan=ScanConfig(**payload.get("scan", {})),
        build=BuildConfig(**payload.get("build", {})),
        tui=TuiConfig(**payload.get("tui", {})),
        dry_run=bool(payload.get("dry_run", False)),
    )
