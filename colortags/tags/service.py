"""
ColorTags - Tag Service

Owns the process-wide TagStore: lazy load on first activation, optional
idle autosave, flush on shutdown.
"""
import asyncio
from typing import Iterable, Optional, Set

from loguru import logger

from colortags.core.base_system import BaseSystem
from colortags.core.events import Signal
from colortags.tags.codec import TagStoreCodec
from colortags.tags.errors import SnapshotMissingError, StorageIOError, TagDecodeError
from colortags.tags.store import TagStore


class TagService(BaseSystem):
    """
    Tag storage service.

    Features:
    - Single TagStore shared by every listing view
    - Lazy load from the saved index on first activation
    - Save on shutdown (never raises), and on idle when configured

    Signals:
    - ``tags_changed(ids, color)`` after every effective retag
    - ``warning(message)`` for user-visible degraded states
    """

    def __init__(self, locator, config):
        super().__init__(locator, config)
        self.store = TagStore()
        self.codec = TagStoreCodec()
        self.tags_changed = Signal("TagsChanged")
        self.warning = Signal("TagWarning")
        self._loaded = False
        self._dirty = False
        self._autosave_task: Optional[asyncio.Task] = None

    @property
    def storage_path(self) -> str:
        return self.config.data.storage.path

    async def initialize(self) -> None:
        """Initialize tag service."""
        logger.info("TagService initializing")
        interval = self.config.data.storage.autosave_interval_s
        if interval > 0:
            self._autosave_task = asyncio.create_task(self._autosave_loop(interval))
            logger.info(f"Tag autosave every {interval}s")
        await super().initialize()
        logger.info("TagService ready")

    async def shutdown(self) -> None:
        """Stop autosave and flush the store."""
        logger.info("TagService shutting down")
        if self._autosave_task is not None:
            self._autosave_task.cancel()
            try:
                await self._autosave_task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.error(f"Tag autosave task failed: {e}")
            self._autosave_task = None
        self.save()
        await super().shutdown()

    # --- Lifecycle hooks ---

    def ensure_loaded(self) -> bool:
        """
        Populate the store from disk on first activation.

        Only loads while the in-memory store is still empty; failures leave
        it empty and emit ``warning``.

        Returns:
            True if tags were loaded by this call
        """
        if self._loaded or not self.store.is_empty():
            self._loaded = True
            return False
        self._loaded = True

        path = self.storage_path
        try:
            loaded = self.codec.load(path)
        except SnapshotMissingError:
            logger.debug(f"No saved tag index at {path}")
            return False
        except (TagDecodeError, StorageIOError) as e:
            logger.warning(f"Ignoring saved tags: {e}")
            self.warning.emit(f"Could not load saved color tags: {e}")
            return False

        problems = loaded.inconsistencies()
        if problems:
            logger.warning(f"Saved tag index at {path} has {len(problems)} inconsistent entries")

        self.store = loaded
        return True

    def save(self) -> bool:
        """
        Write the store to disk. Never raises.

        Returns:
            True if the file was written
        """
        try:
            written = self.codec.save(self.store, self.storage_path)
        except StorageIOError as e:
            logger.error(f"Failed to save tags: {e}")
            return False
        except Exception as e:
            logger.exception(f"Unexpected error saving tags to {self.storage_path}: {e}")
            return False
        if written:
            self._dirty = False
        return written

    async def _autosave_loop(self, interval: float):
        while True:
            await asyncio.sleep(interval)
            if not self._dirty:
                continue
            try:
                self.save()
            except Exception as e:
                logger.error(f"Tag autosave failed: {e}")

    # --- Tag operations ---

    def set_color(self, ids: Iterable[str], color: str) -> Set[str]:
        """
        Retag files; an empty color untags.

        Returns:
            The ids whose color changed
        """
        self.ensure_loaded()
        changed = self.store.set_color(list(ids), color)
        if changed:
            self._dirty = True
            logger.info(f"Tagged {len(changed)} file(s) as {color or '<none>'}")
            self.tags_changed.emit(changed, color)
        return changed

    def color_of(self, file_id: str) -> Optional[str]:
        return self.store.color_of(file_id)

    def ids_with_color(self, color: str) -> Set[str]:
        return self.store.ids_with_color(color)

    @property
    def is_dirty(self) -> bool:
        return self._dirty
