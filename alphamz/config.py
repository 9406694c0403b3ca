"""Layered configuration of alphamz.

The default configuration shipped with alphamz is updated with user configs, given as yaml or json files or as
dictionaries. Later configs overwrite earlier ones and lists are replaced as a whole.
Keys that do not exist in the default configuration and values of a different type are rejected.

Example
-------

.. code-block:: python

    config = load_config(["experiment.yaml", {"peak_detection": {"kind": "local_maxima"}}])
    detector = PeakDetector.from_config(config)

"""

import json
import logging
import os
from collections import UserDict
from copy import deepcopy

import yaml

from alphamz.exceptions import KeyAddedConfigError, TypeMismatchConfigError

logger = logging.getLogger()

DEFAULT = "default"
USER_DEFINED = "user defined"

DEFAULT_CONFIG_PATH = os.path.join(
    os.path.dirname(__file__), "constants", "default.yaml"
)


class Config(UserDict):
    """Read-only dict of configuration values, loaded from and saved to yaml or json."""

    def __init__(self, data: dict = None, name: str = DEFAULT) -> None:
        # UserDict.__init__ would call the overwritten update()
        self.data = {**data} if data is not None else {}
        self.name = name

    def from_yaml(self, path: str) -> None:
        with open(path) as f:
            self.data = yaml.safe_load(f)

    def from_json(self, path: str) -> None:
        with open(path) as f:
            self.data = json.load(f)

    def to_yaml(self, path: str) -> None:
        with open(path, "w") as f:
            yaml.dump(self.data, f, sort_keys=False)

    def to_json(self, path: str) -> None:
        with open(path, "w") as f:
            json.dump(self.data, f)

    def __setitem__(self, key, item):
        raise NotImplementedError("Use update() to update the config.")

    def __delitem__(self, key):
        raise NotImplementedError("Use update() to update the config.")

    def copy(self):
        raise NotImplementedError("Use deepcopy() to copy the config.")

    def update(self, configs: list["Config"]) -> None:
        """Update the values with one or more other configs, the last config wins.

        Each changed value is logged with the name of the config that set it.
        If any config is invalid, no value is changed.

        Parameters
        ----------

        configs : list[Config]
            Configs applied in order.

        Raises
        ------
        KeyAddedConfigError
            If a config contains a key not present in this config.

        TypeMismatchConfigError
            If a value has a different type than the value it replaces.

        """
        updated = deepcopy(self.data)

        for config in configs:
            logger.info(f"Updating config with '{config.name}'")
            for key, previous, value in _update(updated, config.data, config.name):
                logger.info(f"{key}: {value} [{config.name}, previously: {previous}]")

        self.data = updated


def load_default_config() -> Config:
    """Load the default configuration shipped with alphamz.

    Returns
    -------
    Config
        Config object named 'default'.

    """
    config = Config(name=DEFAULT)
    config.from_yaml(DEFAULT_CONFIG_PATH)
    return config


def load_config(user_configs: list[str | dict] | None = None) -> Config:
    """Load the default configuration updated with user configs.

    Parameters
    ----------

    user_configs : list[str | dict], optional
        Paths of yaml or json files, or dictionaries, applied in order. By default none.

    Returns
    -------
    Config
        The updated default config.

    """
    config = load_default_config()
    config.update([_as_config(user_config) for user_config in user_configs or []])
    return config


def _as_config(user_config: str | dict) -> Config:
    if isinstance(user_config, dict):
        return Config(user_config, name=USER_DEFINED)

    config = Config(name=os.path.basename(user_config))
    if user_config.endswith(".json"):
        config.from_json(user_config)
    else:
        config.from_yaml(user_config)
    return config


def _coerce_bool(value):
    # "true"/"false" strings are common when values are passed on the command line
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    return value


def _is_number(value) -> bool:
    return isinstance(value, int | float) and not isinstance(value, bool)


def _is_compatible(target_value, update_value) -> bool:
    if target_value is None or type(target_value) is type(update_value):
        return True
    return _is_number(target_value) and _is_number(update_value)


def _update(
    target_config: dict,
    update_config: dict,
    config_name: str,
    parent_keys: str = "",
) -> list[tuple[str, object, object]]:
    """Recursively update `target_config` in place with the values of `update_config`.

    Nested dictionaries are updated key by key, all other values including lists are replaced.

    Returns
    -------
    list[tuple[str, object, object]]
        Dotted key, previous value and new value of every changed value.

    """
    changes = []

    for key, update_value in update_config.items():
        full_key = f"{parent_keys}.{key}" if parent_keys else key

        if key not in target_config:
            raise KeyAddedConfigError(full_key, update_value, config_name)

        target_value = target_config[key]
        update_value = _coerce_bool(update_value)

        if not _is_compatible(target_value, update_value):
            raise TypeMismatchConfigError(
                full_key,
                update_value,
                config_name,
                f"{type(update_value)} != {type(target_value)}",
            )

        if isinstance(target_value, dict):
            changes += _update(target_value, update_value, config_name, full_key)
        elif target_value != update_value:
            target_config[key] = update_value
            changes.append((full_key, target_value, update_value))

    return changes
