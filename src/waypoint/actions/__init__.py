"""Action handler mixins for WaypointApp."""

from .navigation_actions import NavigationActionsMixin
from .settings_actions import SettingsActionsMixin

__all__ = [
    "NavigationActionsMixin",
    "SettingsActionsMixin",
]
