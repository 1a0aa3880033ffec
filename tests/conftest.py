import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from unittest.mock import MagicMock

from colortags.core.config import ConfigManager
from colortags.core.locator import ServiceLocator
from colortags.tags.service import TagService
from colortags.ui.listing import DirectoryListing


@pytest.fixture
def config(tmp_path):
    """ConfigManager writing to a temp dir, with tag storage in the same dir."""
    manager = ConfigManager(str(tmp_path / "config.json"))
    manager.update("storage", "path", str(tmp_path / "tags.json"))
    manager.update("general", "log_dir", str(tmp_path / "logs"))
    return manager


@pytest.fixture
def mock_locator():
    return MagicMock(spec=ServiceLocator)


@pytest.fixture
def tag_service(mock_locator, config):
    return TagService(mock_locator, config)


@pytest.fixture
def listing():
    """Listing of /data with five files; every line visible."""
    view = DirectoryListing.from_names(
        "/data", ["a.txt", "b.txt", "c.txt", "d.txt", "e.txt"], page_lines=100
    )
    return view


@pytest.fixture
def big_listing():
    """Listing of /big with 200 files and a 10-line viewport at the top."""
    names = [f"file{i:03d}.txt" for i in range(200)]
    return DirectoryListing.from_names("/big", names, page_lines=10)
