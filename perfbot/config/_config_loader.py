"""Config loader utilities bridging OmegaConf YAML files and Pydantic schemas."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from omegaconf import OmegaConf
from pydantic import ValidationError

from perfbot.errors import ConfigFormatError

from ._schemas import BotConfigSchema

logger = logging.getLogger(__name__)
CONFIG_FILE_SUFFIXES = (".yaml", ".yml")


def _load_raw_config(path: Path) -> Any:
    """Load and resolve an OmegaConf configuration file."""
    cfg = OmegaConf.load(path)
    OmegaConf.resolve(cfg)
    return OmegaConf.to_container(cfg, resolve=True)


def load_bot_config(path: str | Path) -> BotConfigSchema:
    """Load the bot configuration file, expanding project includes."""
    # Loader responsibilities:
    # 1. Read and resolve OmegaConf input (supporting ${oc.env:...} interpolation).
    # 2. Expand ``projects`` includes (files or directories of per-repository YAML).
    # 3. Let Pydantic schemas handle structural validation and coercion.
    resolved_path = Path(path).expanduser().resolve()
    if not resolved_path.exists():
        raise ConfigFormatError(f"Configuration file '{resolved_path}' does not exist.")
    data = _load_raw_config(resolved_path)

    if not isinstance(data, dict):
        raise ConfigFormatError(f"Configuration root must be a mapping, got {type(data).__name__}.")

    data = dict(data)
    try:
        data["projects"] = _normalize_projects_field(data.get("projects"), base_dir=resolved_path.parent)
        config = BotConfigSchema(**data)
    except ValidationError as exc:
        raise ConfigFormatError(f"Invalid configuration in '{resolved_path}'", exc) from exc
    except (ValueError, FileNotFoundError) as exc:
        raise ConfigFormatError(f"Invalid configuration in '{resolved_path}': {exc}") from exc

    logger.debug("Loaded configuration for %d project(s) from %s", len(config.projects), resolved_path)
    return config


def _normalize_projects_field(value: Any, *, base_dir: Path) -> dict[str, Any]:
    """Return a mapping of repository full name to raw project entry."""
    if value is None:
        return {}

    normalized: dict[str, Any] = {}

    def _add_entry(entry: Mapping[str, Any], *, key_hint: str | None = None) -> None:
        if not isinstance(entry, Mapping):
            raise ValueError("projects entries must be mappings.")
        adapted = dict(entry)
        declared = adapted.get("repo_full_name")
        if key_hint and declared and str(declared) != key_hint:
            raise ValueError(f"projects['{key_hint}'] declares repo_full_name '{declared}'.")
        repo = declared or key_hint
        if not repo:
            raise ValueError("projects entries must include a 'repo_full_name'.")
        adapted["repo_full_name"] = str(repo)
        key = str(repo)
        if key in normalized:
            raise ValueError(f"Duplicate project '{key}' in configuration.")
        normalized[key] = adapted

    if isinstance(value, Mapping) and all(isinstance(v, Mapping) for v in value.values()):
        for key, entry in value.items():
            _add_entry(entry, key_hint=str(key))
        return normalized

    for entry in _collect_entries(value, base_dir=base_dir, context="projects"):
        _add_entry(entry)
    return normalized


def _collect_entries(source: Any, *, base_dir: Path, context: str) -> list[dict[str, Any]]:
    if source is None:
        return []
    if isinstance(source, Mapping):
        return [dict(source)]
    if isinstance(source, (str, Path)):
        return _collect_entries_from_path(source, base_dir=base_dir, context=context)
    if isinstance(source, list):
        entries: list[dict[str, Any]] = []
        for index, item in enumerate(source):
            item_context = f"{context}[{index}]"
            if isinstance(item, Mapping):
                entries.append(dict(item))
            elif isinstance(item, (str, Path)):
                entries.extend(_collect_entries_from_path(item, base_dir=base_dir, context=item_context))
            else:
                raise ValueError(f"{item_context} must be a mapping or path.")
        return entries
    raise ValueError(f"{context} must be provided as a mapping, list, or path.")


def _collect_entries_from_path(source: str | Path, *, base_dir: Path, context: str) -> list[dict[str, Any]]:
    path = _resolve_include_path(source, base_dir=base_dir)
    if not path.exists():
        raise FileNotFoundError(f"{context} path '{path}' does not exist.")
    if path.is_dir():
        entries: list[dict[str, Any]] = []
        for child in sorted(path.iterdir()):
            if child.is_file() and child.suffix.lower() in CONFIG_FILE_SUFFIXES:
                entries.extend(
                    _collect_entries_from_path(child, base_dir=child.parent, context=f"{context}/{child.name}")
                )
        return entries

    loaded = _load_raw_config(path)
    if loaded is None:
        return []
    if isinstance(loaded, Mapping):
        if not loaded:
            return []
        # A single project file carries repo_full_name at its root.
        if "repo_full_name" in loaded:
            return [dict(loaded)]
        if not all(isinstance(v, Mapping) for v in loaded.values()):
            msg = f"{context} included projects must be a project mapping, a mapping of repo→project, or a list."
            raise ValueError(msg)
        entries = []
        for key, value in loaded.items():
            entry = dict(value)
            declared = entry.setdefault("repo_full_name", str(key))
            if str(declared) != str(key):
                raise ValueError(f"{context} project '{key}' declares repo_full_name '{declared}'.")
            entries.append(entry)
        return entries
    if isinstance(loaded, list):
        entries = []
        for index, item in enumerate(loaded):
            if not isinstance(item, Mapping):
                raise ValueError(f"{context}[{index}] in included projects must be a mapping.")
            entries.append(dict(item))
        return entries
    raise ValueError(f"{context} included projects must be a project mapping, a mapping of repo→project, or a list.")


def _resolve_include_path(source: str | Path, *, base_dir: Path) -> Path:
    path = Path(source).expanduser()
    if not path.is_absolute():
        path = (base_dir / path).resolve()
    else:
        path = path.resolve()
    return path


__all__ = ["load_bot_config"]
