"""Layered settings: explicit values, environment, config file and defaults."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

CONFIG_NAME = "config"
_CONFIG_EXTENSIONS = ("yaml", "yml", "json")
_PACKAGE_BASE = Path(__file__).resolve().parent.parent
_MISSING = object()

_LOG_LEVELS = {
    "panic": logging.CRITICAL,
    "fatal": logging.CRITICAL,
    "error": logging.ERROR,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "info": logging.INFO,
    "debug": logging.DEBUG,
    "trace": logging.DEBUG,
}


class ConfigFileNotFoundError(FileNotFoundError):
    """Raised when no config file is found in any search path."""

    def __init__(self, name: str, locations: list[Path]) -> None:
        super().__init__(f'Config File "{name}" Not Found in {[str(p) for p in locations]}')
        self.name = name
        self.locations = list(locations)


def _lower_keys(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    return value


def _lookup(tree: dict, parts: list[str]) -> Any:
    node: Any = tree
    for part in parts:
        if not isinstance(node, dict) or part not in node:
            return _MISSING
        node = node[part]
    return node


def _store(tree: dict, parts: list[str], value: Any) -> None:
    *parents, last = parts
    node = tree
    for part in parents:
        child = node.get(part)
        if not isinstance(child, dict):
            child = {}
            node[part] = child
        node = child
    node[last] = _lower_keys(value)


class Config:
    """Settings looked up by dotted, case-insensitive keys.

    Precedence, highest first: values given to ``set``, environment variables
    (when ``automatic_env`` is on), the config file, then defaults.
    """

    def __init__(self, *, automatic_env: bool = False, config_name: str = CONFIG_NAME) -> None:
        self.automatic_env = automatic_env
        self.config_name = config_name
        self.config_file: Path | None = None
        self.config_file_used: Path | None = None
        self._paths: list[Path] = []
        self._defaults: dict = {}
        self._file: dict = {}
        self._overrides: dict = {}

    @staticmethod
    def _parts(key: str) -> list[str]:
        return key.lower().split(".")

    @property
    def config_paths(self) -> tuple[Path, ...]:
        return tuple(self._paths)

    def get(self, key: str, default: Any = None) -> Any:
        parts = self._parts(key)
        value = _lookup(self._overrides, parts)
        if value is not _MISSING:
            return value
        if self.automatic_env:
            env_value = os.environ.get(key.upper())
            if env_value:
                return env_value
        for layer in (self._file, self._defaults):
            value = _lookup(layer, parts)
            if value is not _MISSING:
                return value
        return default

    def set(self, key: str, value: Any) -> None:
        _store(self._overrides, self._parts(key), value)

    def set_default(self, key: str, value: Any) -> None:
        _store(self._defaults, self._parts(key), value)

    def add_config_path(self, path: str | os.PathLike[str]) -> None:
        directory = Path(path)
        if directory not in self._paths:
            self._paths.append(directory)

    def load(self, config_file: str | os.PathLike[str]) -> Path:
        """Use ``config_file`` as the config file and read it."""
        self.config_file = Path(config_file)
        return self.read_in_config()

    def read_in_config(self) -> Path:
        """Read the config file, searching the config paths if none was given."""
        path = self.config_file if self.config_file is not None else self._find_config_file()
        with path.open(encoding="utf-8") as handle:
            data = yaml.safe_load(handle)
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise ValueError(f"config file {path} does not hold a mapping")
        self._file = _lower_keys(data)
        self.config_file_used = path
        return path

    def _find_config_file(self) -> Path:
        for directory in self._paths:
            for extension in _CONFIG_EXTENSIONS:
                candidate = directory / f"{self.config_name}.{extension}"
                if candidate.is_file():
                    return candidate
        raise ConfigFileNotFoundError(self.config_name, self._paths)


def init_config(config_file: str | os.PathLike[str] | None = None) -> Config:
    """Build the settings from ``config_file`` or the standard locations."""
    config = Config(automatic_env=True)
    if config_file:
        config.config_file = Path(config_file)
    else:
        config.add_config_path(Path.home() / ".carbonifer")
        config.add_config_path("/etc/carbonifer/")
        config.add_config_path("./.carbonifer")

    try:
        config.read_in_config()
    except ConfigFileNotFoundError:
        pass

    data_path = str(config.get("data.path") or "")
    if data_path and not Path(data_path).is_absolute():
        data_path = str(_PACKAGE_BASE / data_path)
    config.set("data.path", data_path)

    if config.config_file_used is not None:
        logger.info("Using config file: %s", config.config_file_used)

    _configure_logging(config)
    check_data_dir(config)
    return config


def _configure_logging(config: Config) -> None:
    level = config.get("log.level")
    if level is None or level == "":
        return
    name = str(level).lower()
    if name not in _LOG_LEVELS:
        raise ValueError(f"not a valid log level: {level!r}")
    logging.getLogger("carbonifer").setLevel(_LOG_LEVELS[name])


def check_data_dir(config: Config) -> Path | None:
    """Check that the configured data directory exists and is not empty."""
    data_path = config.get("data.path")
    if not data_path:
        return None
    path = Path(str(data_path)).absolute()
    try:
        with os.scandir(path) as entries:
            empty = next(entries, None) is None
    except FileNotFoundError as exc:
        raise FileNotFoundError(f'Cannot read data directory "{path}": {exc.strerror}') from exc
    except OSError as exc:
        raise OSError(f'Cannot read data directory "{path}": {exc.strerror}') from exc
    if empty:
        raise ValueError(f'Empty data directory "{path}"')
    return path