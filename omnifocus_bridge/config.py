"""Configuration for the OmniFocus bridge using YAML files."""

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable

import structlog
import yaml

logger = structlog.get_logger()

CONFIG_DIR_NAME = ".omnifocus-bridge"
CONFIG_FILE_NAME = "config.yaml"


def _positive_seconds(value: Any) -> float:
    seconds = float(value)
    if seconds <= 0:
        raise ValueError("must be a positive number of seconds")
    return seconds


def _non_empty(value: Any) -> str:
    text = str(value).strip()
    if not text:
        raise ValueError("must not be empty")
    return text


@dataclass(frozen=True)
class Setting:
    default: Any
    parse: Callable[[Any], Any]
    help: str


SETTINGS: dict[str, Setting] = {
    "osascript.path": Setting("osascript", _non_empty, "AppleScript interpreter executable"),
    "app.name": Setting("OmniFocus", _non_empty, "Application the scripts talk to"),
    "runner.timeout": Setting(None, _positive_seconds, "Seconds to wait for osascript (unset waits forever)"),
}


def global_config_dir() -> Path:
    return Path.home() / CONFIG_DIR_NAME


class Config:
    """Bridge settings layered from YAML files.

    A value comes from the local ``.omnifocus-bridge/config.yaml`` under the
    working directory, else from ``~/.omnifocus-bridge/config.yaml``, else from
    :data:`SETTINGS`. Writes go to one file only: the global one when
    ``use_global`` is set, the local one otherwise.
    """

    def __init__(self, use_global: bool = False, config_dir: Path | None = None) -> None:
        """Load the configuration layers.

        Args:
            use_global: Read and write the global file only
            config_dir: Directory of the writable file (overrides use_global)
        """
        if config_dir is None:
            config_dir = global_config_dir() if use_global else Path.cwd() / CONFIG_DIR_NAME
        self.is_global = use_global
        self.path = Path(config_dir) / CONFIG_FILE_NAME
        self.values = load_settings(self.path)

        self.fallback: dict[str, Any] = {}
        fallback_path = global_config_dir() / CONFIG_FILE_NAME
        if not use_global and fallback_path != self.path:
            try:
                self.fallback = load_settings(fallback_path)
            except ValueError as e:
                logger.warning("Ignoring unreadable global config", path=str(fallback_path), error=str(e))

        logger.debug("Config loaded", path=str(self.path), keys=sorted(self.values), fallback_keys=sorted(self.fallback))

    def source(self, key: str) -> str | None:
        """Which layer supplies ``key``: local, global, default, or None."""
        if key in self.values:
            return "global" if self.is_global else "local"
        if key in self.fallback:
            return "global"
        if key in SETTINGS and SETTINGS[key].default is not None:
            return "default"
        return None

    def get(self, key: str, default: Any = None) -> Any:
        if key in self.values:
            return self.values[key]
        if key in self.fallback:
            return self.fallback[key]
        if key in SETTINGS and SETTINGS[key].default is not None:
            return SETTINGS[key].default
        return default

    def set(self, key: str, value: Any) -> Any:
        """Validate and store ``value``; returns the stored form."""
        setting = SETTINGS.get(key)
        if setting is None:
            raise KeyError(f"Unknown setting {key!r} (known: {', '.join(SETTINGS)})")
        try:
            parsed = setting.parse(value)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Invalid value for {key}: {e}") from e
        logger.info("Setting config value", key=key, path=str(self.path))
        self.values[key] = parsed
        self.save()
        return parsed

    def unset(self, key: str) -> bool:
        """Remove ``key`` from the writable file; False when it was not set there."""
        if key not in self.values:
            return False
        logger.info("Unsetting config value", key=key, path=str(self.path))
        self.values.pop(key)
        self.save()
        return True

    def save(self) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(yaml.safe_dump(self.values, default_flow_style=False, sort_keys=True))
        except OSError as e:
            logger.error("Failed to write config", path=str(self.path), error=str(e))
            raise ValueError(f"Cannot write {self.path}: {e}") from e

    @property
    def osascript_path(self) -> str:
        return str(self.get("osascript.path"))

    @property
    def app_name(self) -> str:
        return str(self.get("app.name"))

    @property
    def timeout(self) -> float | None:
        return self.get("runner.timeout")


def load_settings(path: Path) -> dict[str, Any]:
    """Read one YAML settings file; a missing file is empty.

    Unknown keys and values their setting cannot parse are dropped with a
    warning, so one bad line never stops the bridge from starting.
    """
    if not path.exists():
        return {}
    try:
        data = yaml.safe_load(path.read_text())
    except (OSError, yaml.YAMLError) as e:
        logger.error("Failed to read config", path=str(path), error=str(e))
        raise ValueError(f"Cannot read {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{path} must contain a mapping of settings")

    settings: dict[str, Any] = {}
    for key, value in data.items():
        setting = SETTINGS.get(key)
        if setting is None:
            logger.warning("Unknown config key ignored", path=str(path), key=key)
            continue
        try:
            settings[key] = setting.parse(value)
        except (TypeError, ValueError) as e:
            logger.warning("Invalid config value ignored", path=str(path), key=key, value=value, error=str(e))
    return settings


def get_config(use_global: bool = False) -> Config:
    return Config(use_global=use_global)
