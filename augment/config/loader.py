"""Configuration loading & validation.

Precedence (last wins): base.yaml → overrides.local.yaml → ENV
(PICTURE_LINK__SECTION__KEY).

Every section is optional; a missing config directory yields defaults.
Unknown keys are rejected.
"""
from __future__ import annotations

import logging
import os
import pathlib
import threading
from functools import lru_cache
from typing import Any, Dict

import yaml
from pydantic import BaseModel, ConfigDict

from augment import metrics
from augment.errors import validate_error_type

from .schemas.core import PluginConfig, PreviewConfig, TreeConfig
from .schemas.observability import LoggingConfig

logger = logging.getLogger(__name__)


class AggregatedConfig(BaseModel):
    schema_version: int = 1
    tree: TreeConfig = TreeConfig()
    preview: PreviewConfig = PreviewConfig()
    plugin: PluginConfig = PluginConfig()
    logging: LoggingConfig = LoggingConfig()

    model_config = ConfigDict(extra="forbid")


DEFAULT_CONFIG_DIR = "configs"
CONFIG_DIR_ENV = "PICTURE_LINK_CONFIG_DIR"
ENV_PREFIX = "PICTURE_LINK__"


class ConfigError(Exception):
    pass


def _load_yaml_if_exists(path: pathlib.Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path.name}: top level must be a mapping")
    return data


def _merge_dict(
    base: Dict[str, Any], override: Dict[str, Any]
) -> Dict[str, Any]:
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            base[k] = _merge_dict(base[k], v)
        else:
            base[k] = v
    return base


def _cast_env_value(value: str) -> Any:
    if value.lower() in {"true", "false"}:
        return value.lower() == "true"
    try:
        return int(value)
    except ValueError:
        try:
            return float(value)
        except ValueError:
            return value


def _apply_env(cfg: Dict[str, Any]) -> None:
    prefix_len = len(ENV_PREFIX)
    for env_key, value in os.environ.items():
        if not env_key.startswith(ENV_PREFIX):
            continue
        path_parts = env_key[prefix_len:].lower().split("__")
        target = cfg
        for part in path_parts[:-1]:
            if part not in target or not isinstance(target[part], dict):
                target[part] = {}
            target = target[part]
        target[path_parts[-1]] = _cast_env_value(value)
        dotted_path = ".".join(path_parts)
        metrics.inc("env_override_total", {"path": dotted_path})
        logger.info("config env override path=%s source=env", dotted_path)


_lock = threading.Lock()


def _resolve_config_dir() -> pathlib.Path:
    """Resolve config directory each call honoring env var changes."""
    return pathlib.Path(os.getenv(CONFIG_DIR_ENV, DEFAULT_CONFIG_DIR))


def _migrate_legacy(data: Dict[str, Any]) -> Dict[str, Any]:
    """Older files spelled the single plugin option in camelCase."""
    if "schema_version" not in data:
        data["schema_version"] = 1
    plugin = data.get("plugin")
    if isinstance(plugin, dict) and "openInBrowser" in plugin:
        logger.warning(
            "config: plugin.openInBrowser is deprecated, "
            "use plugin.open_in_browser_default"
        )
        plugin.setdefault(
            "open_in_browser_default", plugin.pop("openInBrowser")
        )
    return data


def _validate(raw: Dict[str, Any]) -> AggregatedConfig:
    try:
        return AggregatedConfig.model_validate(raw)
    except Exception as e:  # noqa: BLE001
        code = validate_error_type("config-invalid")
        metrics.inc("config_validation_errors_total", {"code": code})
        raise ConfigError(f"config validation failed: {e}") from e


@lru_cache(maxsize=1)
def get_config() -> AggregatedConfig:  # noqa: D401
    with _lock:
        cfg_dir = _resolve_config_dir()
        base_cfg = _load_yaml_if_exists(cfg_dir / "base.yaml")
        overrides_cfg = _load_yaml_if_exists(cfg_dir / "overrides.local.yaml")
        merged = _merge_dict(base_cfg, overrides_cfg)
        _apply_env(merged)
        return _validate(_migrate_legacy(merged))


def clear_config_cache() -> None:
    """Clear cached config (primarily for tests)."""
    get_config.cache_clear()


def as_dict() -> Dict[str, Any]:
    return get_config().model_dump()
