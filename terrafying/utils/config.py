from collections.abc import Mapping
from typing import Any

import toml

_config: dict[str, Any] = {}


class ConfigNotFound(Exception):
    pass


def get_config() -> dict[str, Any]:
    return _config


def init(config: Mapping[str, Any]) -> dict[str, Any]:
    global _config  # noqa: PLW0603
    _config = dict(config)
    return _config


def init_from_toml(configfile: str) -> dict[str, Any]:
    try:
        return init(toml.load(configfile))
    except FileNotFoundError:
        raise ConfigNotFound(f"config file {configfile} not found") from None


def section(path: str) -> dict[str, Any]:
    """Return a (possibly nested, "/" separated) section, or {} if it is absent."""
    config: Any = get_config()
    for t in path.split("/"):
        if not isinstance(config, Mapping) or t not in config:
            return {}
        config = config[t]
    return dict(config)

