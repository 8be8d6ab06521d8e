"""Configuration loading, defaults and change notification for Waypoint."""

import json
import logging
import tomllib
from dataclasses import dataclass, fields
from enum import Enum
from pathlib import Path
from typing import Any, Callable

logger = logging.getLogger(__name__)


def get_config_dir() -> Path:
    """Get the waypoint config directory (XDG-style)."""
    return Path.home() / ".config" / "waypoint"


def get_config_path() -> Path:
    """Get the config file path."""
    return get_config_dir() / "config.toml"


class Setting(str, Enum):
    """Identifiers of the settings read through `Preferences`."""

    INITIAL_DIRECTORY = "initial_directory"
    SUPERUSER_MODE = "superuser_mode"
    ALLOW_CONSOLE_SELECTION = "allow_console_selection"
    DISK_USAGE_WARNING_LEVEL = "disk_usage_warning_level"
    CASE_SENSITIVE_SORT = "case_sensitive_sort"
    SHOW_HIDDEN = "show_hidden"


@dataclass
class Config:
    """Application configuration."""

    initial_directory: str = "~"
    superuser_mode: bool = False
    allow_console_selection: bool = True
    disk_usage_warning_level: int = 95  # percent of used space
    case_sensitive_sort: bool = False
    show_hidden: bool = False

    @classmethod
    def load(cls) -> "Config":
        """Load configuration from file or create defaults."""
        config_path = get_config_path()

        # Ensure config directory exists
        config_dir = get_config_dir()
        config_dir.mkdir(parents=True, exist_ok=True)

        if not config_path.exists():
            default_config = cls()
            default_config.save()
            return default_config

        with open(config_path, "rb") as f:
            data = tomllib.load(f)

        navigation = data.get("navigation", {})
        console = data.get("console", {})
        display = data.get("display", {})

        return cls(
            initial_directory=navigation.get("initial_directory", "~"),
            superuser_mode=console.get("superuser_mode", False),
            allow_console_selection=console.get("allow_console_selection", True),
            disk_usage_warning_level=int(display.get("disk_usage_warning_level", 95)),
            case_sensitive_sort=display.get("case_sensitive_sort", False),
            show_hidden=display.get("show_hidden", False),
        )

    def save(self) -> None:
        """Save configuration to file."""
        config_path = get_config_path()
        config_path.parent.mkdir(parents=True, exist_ok=True)

        # Build TOML content manually (tomllib is read-only)
        lines = [
            '# Waypoint Configuration',
            '',
            '[navigation]',
            '# Directory opened at startup',
            # JSON string quoting is valid TOML basic-string quoting
            f'initial_directory = {json.dumps(self.initial_directory, ensure_ascii=False)}',
            '',
            '[console]',
            '# Run commands through a privileged (sudo) console',
            f'superuser_mode = {str(self.superuser_mode).lower()}',
            '# Allow choosing the console and falling back to a non-privileged one',
            f'allow_console_selection = {str(self.allow_console_selection).lower()}',
            '',
            '[display]',
            '# Warn when the used space of the current mount exceeds this percent',
            f'disk_usage_warning_level = {self.disk_usage_warning_level}',
            f'case_sensitive_sort = {str(self.case_sensitive_sort).lower()}',
            f'show_hidden = {str(self.show_hidden).lower()}',
        ]

        config_path.write_text("\n".join(lines) + "\n")


SettingListener = Callable[[Setting], None]


class Preferences:
    """Key/value access to a `Config` with change notification.

    Every `set` publishes the changed key to the subscribed listeners.
    Changes are written to disk immediately when requested, otherwise on
    the next call to `save`.
    """

    def __init__(self, config: Config) -> None:
        self.config = config
        self._listeners: list[SettingListener] = []
        self._dirty = False
        self._known = {f.name for f in fields(Config)}

    def _field_name(self, key: Setting | str) -> str:
        name = Setting(key).value
        if name not in self._known:
            raise KeyError(key)
        return name

    def get(self, key: Setting | str, default: Any = None) -> Any:
        """Get the value of a setting, or `default` if it is unset."""
        try:
            name = self._field_name(key)
        except ValueError:
            raise KeyError(key) from None
        value = getattr(self.config, name)
        return default if value is None else value

    def set(self, key: Setting | str, value: Any, persist_immediately: bool = False) -> None:
        """Change a setting and notify listeners.

        Args:
            key: The setting to change.
            value: Its new value.
            persist_immediately: Write the configuration file now.
        """
        try:
            name = self._field_name(key)
        except ValueError:
            raise KeyError(key) from None
        setattr(self.config, name, value)
        self._dirty = True
        self._notify(Setting(name))
        if persist_immediately:
            self.save()

    def save(self) -> None:
        """Write pending changes to the configuration file."""
        if not self._dirty:
            return
        self.config.save()
        self._dirty = False

    def subscribe(self, listener: SettingListener) -> None:
        """Register a listener for `SettingChanged` notifications."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: SettingListener) -> None:
        """Remove a previously registered listener."""
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, key: Setting) -> None:
        logger.debug("Setting changed: %s", key.value)
        for listener in list(self._listeners):
            listener(key)
