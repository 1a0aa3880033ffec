"""
ColorTags - color labels for file listings.

Attach a color to files, recall every file sharing a color, and see the
colors rendered live over a scrollable directory listing.
"""

from colortags.core.config import ConfigManager, AppConfig
from colortags.core.locator import ServiceLocator, sl
from colortags.tags.errors import (
    ColorTagsError,
    StorageIOError,
    TagDecodeError,
    SnapshotMissingError,
    UnsupportedContextError,
)
from colortags.tags.store import TagStore
from colortags.tags.codec import TagStoreCodec
from colortags.tags.service import TagService
from colortags.ui.listing import DirectoryListing, ListingView, Overlay
from colortags.ui.renderer import ViewportRenderer
from colortags.ui.scheduler import RenderScheduler
from colortags.ui.controller import ColorTagsController

__version__ = "0.1.0"

__all__ = [
    "ConfigManager",
    "AppConfig",
    "ServiceLocator",
    "sl",
    "ColorTagsError",
    "StorageIOError",
    "TagDecodeError",
    "SnapshotMissingError",
    "UnsupportedContextError",
    "TagStore",
    "TagStoreCodec",
    "TagService",
    "DirectoryListing",
    "ListingView",
    "Overlay",
    "ViewportRenderer",
    "RenderScheduler",
    "ColorTagsController",
]
