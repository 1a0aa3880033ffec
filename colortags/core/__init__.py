"""
ColorTags Core - Application Infrastructure.

- ServiceLocator: system registry and lifecycle
- BaseSystem: abstract base for all systems
- ConfigManager: configuration with persistence
- Signal: synchronous observer
"""
from .base_system import BaseSystem
from .locator import ServiceLocator, sl
from .config import (
    ConfigManager,
    AppConfig,
    GeneralSettings,
    DisplaySettings,
    TaggingSettings,
    StorageSettings,
)
from .events import Signal
from .logging import setup_logging

__all__ = [
    "BaseSystem",
    "ServiceLocator",
    "sl",
    "ConfigManager",
    "AppConfig",
    "GeneralSettings",
    "DisplaySettings",
    "TaggingSettings",
    "StorageSettings",
    "Signal",
    "setup_logging",
]
