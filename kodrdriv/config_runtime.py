"""Runtime configuration for kodrdriv - centralized configuration management."""

import copy
import os
from pathlib import Path
from typing import Any

import yaml

from kodrdriv.utils.constants import CONFIG_FILE_NAME, CONTEXT_FILE_NAME, DEFAULT_CONFIG_DIR, ENV_PREFIX
from kodrdriv.utils.logging import logger

DEFAULTS = {
    "tree": {
        "directories": [],
        "exclude": [],
        "executable": "kodrdriv",
    },
    "paths": {
        "config_dir": str(DEFAULT_CONFIG_DIR),
        "output_directory": ".",
        "context_file": CONTEXT_FILE_NAME,
    },
}


def _coerce_env_value(raw: str, default_value: Any) -> Any:
    if isinstance(default_value, bool):
        return raw.strip().lower() in ("1", "true", "yes", "on")
    if isinstance(default_value, int):
        return int(raw)
    if isinstance(default_value, float):
        return float(raw)
    if isinstance(default_value, list):
        return [v.strip() for v in raw.split(",") if v.strip()]
    return raw


def load_runtime_config(root: str = ".", config_dir: str | None = None) -> dict[str, Any]:
    """
    Load runtime configuration from .kodrdriv/config.yaml and environment variables.

    Config priority (highest to lowest):
    1. Environment variables (KODRDRIV_<SECTION>_<KEY>)
    2. <config_dir>/config.yaml
    3. Built-in defaults

    Keys that are not in DEFAULTS, and values whose type does not match the
    default, are ignored.

    Args:
        root: Root directory to look for the config directory in
        config_dir: Config directory, relative to root (default: .kodrdriv)

    Returns:
        Configuration dictionary with merged values
    """
    cfg = copy.deepcopy(DEFAULTS)

    path = Path(root) / (config_dir or DEFAULTS["paths"]["config_dir"]) / CONFIG_FILE_NAME
    try:
        if path.exists():
            with open(path, encoding="utf-8") as f:
                user = yaml.safe_load(f) or {}

            if isinstance(user, dict):
                for section in cfg:
                    if section in user and isinstance(user[section], dict):
                        for key, value in user[section].items():
                            if key in cfg[section] and isinstance(value, type(cfg[section][key])):
                                cfg[section][key] = value
                            else:
                                logger.debug(f"Ignoring config value {section}.{key} from {path}")
    except (yaml.YAMLError, OSError) as e:
        logger.warning(f"Could not load config file from {path}: {e}")
        logger.info("Continuing with default configuration")

    for section in cfg:
        for key in cfg[section]:
            env_var = f"{ENV_PREFIX}_{section.upper()}_{key.upper()}"
            if env_var in os.environ:
                try:
                    cfg[section][key] = _coerce_env_value(os.environ[env_var], cfg[section][key])
                except ValueError:
                    logger.warning(f"Invalid value for {env_var}: {os.environ[env_var]!r}, using default")

    return cfg
