"""
Bootstrap helpers for ColorTags applications.

Simplifies application setup and initialization.
"""
import sys
import asyncio
from typing import Type, Optional, List

from loguru import logger

from .locator import ServiceLocator, sl
from .base_system import BaseSystem


class ApplicationBuilder:
    """
    Fluent builder for ColorTags applications.

    Example:
        locator = await (ApplicationBuilder("ColorTags", "config.json")
                         .with_logging()
                         .add_system(TagService)
                         .build())
    """

    def __init__(self, name: str = "ColorTags", config_path: str = "config.json"):
        """
        Initialize application builder.

        Args:
            name: Application name
            config_path: Path to config.json file
        """
        self.name = name
        self.config_path = config_path
        self._systems: List[Type[BaseSystem]] = []
        self._logging_configured = False

    def add_system(self, system_cls: Type[BaseSystem]):
        """
        Register additional system.

        Args:
            system_cls: System class to register

        Returns:
            Self for chaining
        """
        self._systems.append(system_cls)
        return self

    def with_logging(self, enable: bool = True):
        """
        Configure logging setup.

        Args:
            enable: Whether to setup logging

        Returns:
            Self for chaining
        """
        self._logging_configured = enable
        return self

    async def build(self, locator: Optional[ServiceLocator] = None) -> ServiceLocator:
        """
        Initialize and start all systems.

        Returns:
            ServiceLocator instance with all systems started
        """
        locator = locator or sl

        # 1. Configuration
        locator.init(self.config_path)

        # 2. Logging (debug level and log dir come from config)
        if self._logging_configured:
            from .logging import setup_logging
            general = locator.config.data.general
            setup_logging(general.debug_mode, general.log_dir)
            logger.info(f"Starting {self.name}")

        # 3. Register systems
        for sys_cls in self._systems:
            locator.register_system(sys_cls)

        # 4. Start all systems
        await locator.start_all()

        return locator


def run_app(directory: str, builder: Optional[ApplicationBuilder] = None) -> int:
    """
    Run the ColorTags desktop browser on ``directory``.

    Handles:
    - Qt application setup
    - Event loop configuration
    - Async initialization
    - Main window creation
    - Graceful shutdown (tags are flushed by TagService.shutdown)
    """
    from PySide6.QtWidgets import QApplication
    from qasync import QEventLoop

    from colortags.tags.service import TagService
    from colortags.ui.controller import ColorTagsController
    from colortags.ui.listing import DirectoryListing
    from colortags.ui.qt.main_window import MainWindow

    if builder is None:
        builder = ApplicationBuilder().with_logging().add_system(TagService)

    app = QApplication.instance() or QApplication(sys.argv)
    loop = QEventLoop(app)
    asyncio.set_event_loop(loop)

    service_locator = None
    try:
        with loop:
            service_locator = loop.run_until_complete(builder.build())

            service = service_locator.get_system(TagService)
            controller = ColorTagsController(service, service_locator.config, loop=loop)
            listing = DirectoryListing.from_directory(
                directory, root=service_locator.config.data.tagging.root
            )
            window = MainWindow(controller, listing)
            window.show()
            logger.info(f"{builder.name} started on {listing.directory}")

            loop.run_forever()

            loop.run_until_complete(service_locator.stop_all())
    except KeyboardInterrupt:
        logger.info("Application interrupted by user")
        if service_locator is not None:
            # Loop is closed here; flush tags synchronously
            service_locator.get_system(TagService).save()
    except RuntimeError as e:
        if "Event loop stopped" not in str(e):
            raise
    return 0
