"""Waypoint widgets."""

from .configuration_bar import ConfigurationBar
from .dialogs import ChooseConsoleModal, ConsoleFallbackModal, HistoryModal
from .navigation_view import NavigationView
from .search import SearchModal

__all__ = [
    "ConfigurationBar",
    "ChooseConsoleModal",
    "ConsoleFallbackModal",
    "HistoryModal",
    "NavigationView",
    "SearchModal",
]
