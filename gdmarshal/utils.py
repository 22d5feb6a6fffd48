import json
import os
from importlib import resources
from pathlib import Path
from typing import Any

import tomli as toml

from gdmarshal import logging as gdmarshal_logging

logger = gdmarshal_logging.get_logger(__name__)

_RESOURCE_PACKAGE = "gdmarshal._resources"
_DEFAULT_CONFIG_NAME = "gdmarshal.default.toml"


######## Config Helpers ########
def _merge_configs(config, default_config):
    config_out = {}

    for key, default_value in default_config.items():
        if key in config:
            if isinstance(config[key], dict) and isinstance(default_value, dict):
                config_out[key] = _merge_configs(config[key], default_value)
            elif isinstance(config[key], dict) or isinstance(default_value, dict):
                raise TypeError(f"Type mismatch for key '{key}': "
                                f"config has {type(config[key])}, default_config has {type(default_value)}")
            # Otherwise, config[key] takes precedence
            else:
                config_out[key] = config[key]
        else:
            config_out[key] = default_value

    # Add keys that are only in config
    for key, value in config.items():
        if key not in default_config:
            config_out[key] = value

    return config_out


def read_resource_text(name: str) -> str:
    """Return the text of a bundled resource file."""
    try:
        resource = resources.files(_RESOURCE_PACKAGE).joinpath(name)
        with resource.open("r", encoding="utf-8") as handle:
            return handle.read()
    except (FileNotFoundError, ModuleNotFoundError):
        fallback = Path(__file__).resolve().parent / "_resources" / name
        with open(fallback, "r", encoding="utf-8") as handle:
            return handle.read()


def load_default_config():
    """Load the bundled default configuration from packaged resources."""
    resource_dir = Path(__file__).resolve().parent / "_resources"
    candidate = resource_dir / _DEFAULT_CONFIG_NAME
    if candidate.is_file():
        with open(candidate, "rb") as f:
            return toml.load(f)

    raise FileNotFoundError(f"Could not load _resources/{_DEFAULT_CONFIG_NAME}")


def try_load_config(config_file=None):
    """Load user configuration merged with defaults.

    Resolution order:
    1. Explicit `config_file` argument.
    2. `GDMARSHAL_CONFIG` environment variable.
    3. `./gdmarshal.toml` relative to current working directory.
    4. `gdmarshal.toml` inside the repository checkout (development mode).
    If none are found, return the default config alone.
    """
    default_config = load_default_config()

    def _load_user_config(path: Path) -> dict:
        with open(path, "rb") as f:
            return toml.load(f)

    if config_file:
        candidate = Path(config_file).expanduser()
        if not candidate.is_file():
            raise FileNotFoundError(f"Could not find config file {candidate}")
        user_config = _load_user_config(candidate)
        return _merge_configs(user_config, default_config)

    env_candidate = os.environ.get("GDMARSHAL_CONFIG")
    if env_candidate:
        env_path = Path(env_candidate).expanduser()
        if not env_path.is_file():
            raise FileNotFoundError(f"GDMARSHAL_CONFIG={env_candidate} does not point to a readable file")
        user_config = _load_user_config(env_path)
        return _merge_configs(user_config, default_config)

    cwd_candidate = Path.cwd() / "gdmarshal.toml"
    if cwd_candidate.is_file():
        user_config = _load_user_config(cwd_candidate)
        return _merge_configs(user_config, default_config)

    # Load from repository root if in development mode
    package_dir = Path(__file__).resolve().parent
    repo_candidate = package_dir.parent / "gdmarshal.toml"
    if repo_candidate.is_file():
        user_config = _load_user_config(repo_candidate)
        return _merge_configs(user_config, default_config)

    logger.info("No user config found; falling back to default configuration only")
    return default_config


def policy_names(config: dict, table: str, class_name: str | None) -> frozenset[str]:
    """Return the method names listed under ``[policy.<table>]`` for a class.

    Utility functions have no owning class and use the ``"@utility"`` key.
    """
    policy = config.get("policy", {}).get(table, {}) if config else {}
    key = class_name if class_name is not None else "@utility"
    names = policy.get(key, [])
    if not isinstance(names, list):
        raise TypeError(f"policy.{table}.{key} must be a list of method names")
    return frozenset(names)


######## File Helpers ########
def read_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def write_json(path: str, data: Any) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)
        f.write("\n")
