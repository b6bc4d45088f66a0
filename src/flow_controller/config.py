"""Configuration helpers for flow-controller."""

from __future__ import annotations

import copy
import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml

from . import settings

logger = logging.getLogger(__name__)

PACKAGE_ROOT = Path(__file__).parent.parent.parent
LOCAL_CONFIG_PATH = PACKAGE_ROOT / "config.local.yaml"
USER_CONFIG_PATH = settings.config_dir / "config.yaml"

ENGINE_URL_ENV = "FLOW_CONTROLLER_ENGINE_URL"
CONFIG_PATH_ENV = "FLOW_CONTROLLER_CONFIG"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

DEFAULT_CONFIG = {
    "engine": {
        "base_url": settings.engine_base_url,
        "timeout": settings.engine_timeout,
    },
    "server": {
        "host": settings.server_host,
        "port": settings.server_port,
    },
    "logging": {
        "level": settings.log_level,
    },
}


def config_defaults() -> dict:
    """Return default configuration values."""
    return copy.deepcopy(DEFAULT_CONFIG)


def config_schema() -> dict:
    """Return JSON Schema for configuration."""
    return {
        "$schema": "https://json-schema.org/draft/2020-12/schema",
        "type": "object",
        "properties": {
            "engine": {
                "type": "object",
                "properties": {
                    "base_url": {"type": "string", "pattern": "^https?://"},
                    "timeout": {"type": "number", "exclusiveMinimum": 0},
                },
                "additionalProperties": False,
            },
            "server": {
                "type": "object",
                "properties": {
                    "host": {"type": "string"},
                    "port": {"type": "integer", "minimum": 1, "maximum": 65535},
                },
                "additionalProperties": False,
            },
            "logging": {
                "type": "object",
                "properties": {
                    "level": {"type": "string", "enum": list(LOG_LEVELS)},
                },
                "additionalProperties": False,
            },
        },
        "additionalProperties": False,
    }


def _deep_merge(base: dict, update: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in update.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _load_config_file(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.warning(f"Ignoring unreadable config file {path}: {e}")
        return {}
    if not isinstance(data, dict):
        return {}
    return data


def _default_config_path() -> Path:
    env_path = os.environ.get(CONFIG_PATH_ENV)
    if env_path:
        return Path(env_path)
    if LOCAL_CONFIG_PATH.exists():
        return LOCAL_CONFIG_PATH
    return USER_CONFIG_PATH


def load_config(config_path: Optional[Path] = None) -> dict:
    """Load resolved configuration (defaults, then config file, then environment)."""
    path = config_path or _default_config_path()
    base = config_defaults()
    file_config = _load_config_file(path)
    merged = _deep_merge(base, file_config)

    env_url = os.environ.get(ENGINE_URL_ENV)
    if env_url:
        merged["engine"]["base_url"] = env_url

    return merged


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config_dict(data: Any) -> list[str]:
    """Validate a config dict against the schema."""
    errors: list[str] = []
    if not isinstance(data, dict):
        return ["Config must be a mapping/object"]

    allowed_top = {"engine", "server", "logging"}
    for key in data:
        if key not in allowed_top:
            errors.append(f"Unknown config key: {key}")

    if "engine" in data and isinstance(data["engine"], dict):
        for key in data["engine"]:
            if key not in {"base_url", "timeout"}:
                errors.append(f"Unknown engine key: {key}")
        base_url = data["engine"].get("base_url")
        if base_url is not None and (
            not isinstance(base_url, str)
            or not base_url.startswith(("http://", "https://"))
        ):
            errors.append("engine.base_url must be an http(s) URL")
        timeout = data["engine"].get("timeout")
        if timeout is not None and (not _is_number(timeout) or timeout <= 0):
            errors.append("engine.timeout must be a positive number")
    elif "engine" in data:
        errors.append("engine must be an object")

    if "server" in data and isinstance(data["server"], dict):
        for key in data["server"]:
            if key not in {"host", "port"}:
                errors.append(f"Unknown server key: {key}")
        port = data["server"].get("port")
        if port is not None and (not _is_int(port) or not (1 <= port <= 65535)):
            errors.append("server.port must be between 1 and 65535")
    elif "server" in data:
        errors.append("server must be an object")

    if "logging" in data and isinstance(data["logging"], dict):
        for key in data["logging"]:
            if key != "level":
                errors.append(f"Unknown logging key: {key}")
        level = data["logging"].get("level")
        if level is not None and level not in LOG_LEVELS:
            errors.append(f"logging.level must be one of {', '.join(LOG_LEVELS)}")
    elif "logging" in data:
        errors.append("logging must be an object")

    return errors


def validate_config_file(config_path: Optional[Path] = None) -> list[str]:
    """Validate the config file. Returns list of errors (empty = valid)."""
    path = config_path or _default_config_path()
    if not path.exists():
        return []
    try:
        data = yaml.safe_load(path.read_text()) or {}
    except yaml.YAMLError as e:
        return [f"Invalid YAML in {path}: {e}"]
    return validate_config_dict(data)
