"""
ColorTags - Controller

Connects listing views to the TagService: lazy load on attach, debounced
rendering on scroll/content changes, and the user-facing tag operations.
"""
from contextlib import ExitStack, contextmanager
from typing import Dict, Iterable, List, Optional, Set

from loguru import logger

from colortags.core.config import ConfigManager
from colortags.tags.errors import UnsupportedContextError
from colortags.tags.service import TagService
from colortags.ui.listing import DirectoryListing, ListingView
from colortags.ui.renderer import ViewportRenderer
from colortags.ui.scheduler import RenderScheduler


class ColorTagsController:
    """
    Per-session coordinator for every attached listing view.

    A direct retag re-renders synchronously, ahead of any pending debounced
    render.
    """

    def __init__(self, service: TagService, config: ConfigManager, loop=None):
        self.service = service
        self.config = config
        self._loop = loop
        display = config.data.display
        tagging = config.data.tagging
        self.renderer = ViewportRenderer(
            service,
            style=display.style,
            glyph=display.glyph,
            relative=tagging.use_relative_names,
            root=tagging.root,
        )
        self._schedulers: Dict[int, RenderScheduler] = {}
        self._views: Dict[int, ListingView] = {}
        config.on_changed.connect(self._on_config_changed)

    # --- Attachment ---

    def attach(self, view: ListingView) -> RenderScheduler:
        """Start rendering tags on ``view``; loads saved tags on first use."""
        key = id(view)
        if key in self._schedulers:
            return self._schedulers[key]

        self.service.ensure_loaded()

        scheduler = RenderScheduler(
            self.renderer,
            view,
            delay_ms=self.config.data.display.debounce_delay_ms,
            loop=self._loop,
        )
        self._schedulers[key] = scheduler
        self._views[key] = view
        view.visible_range_changed.connect(scheduler.request)
        view.content_changed.connect(scheduler.request)

        self.renderer.apply(view)
        logger.info(f"ColorTags attached to {view}")
        return scheduler

    def detach(self, view: ListingView) -> None:
        """Stop rendering on ``view`` and remove its decorations."""
        scheduler = self._schedulers.pop(id(view), None)
        self._views.pop(id(view), None)
        if scheduler is None:
            return
        scheduler.cancel_pending()
        view.visible_range_changed.disconnect(scheduler.request)
        view.content_changed.disconnect(scheduler.request)
        self.renderer.clear(view)
        logger.info(f"ColorTags detached from {view}")

    def is_attached(self, view) -> bool:
        return id(view) in self._schedulers

    def scheduler_for(self, view: ListingView) -> Optional[RenderScheduler]:
        return self._schedulers.get(id(view))

    @property
    def views(self) -> List[ListingView]:
        return list(self._views.values())

    def _require_view(self, view) -> ListingView:
        if not isinstance(view, ListingView) or not self.is_attached(view):
            raise UnsupportedContextError("Color tags can only be used in a file listing")
        return view

    # --- User operations ---

    def tag_entries(self, view: ListingView, positions: Iterable[int], color: str) -> Set[str]:
        """
        Tag the entries at ``positions`` with ``color`` ("" untags).

        Raises:
            UnsupportedContextError: If ``view`` is not an attached listing

        Returns:
            FileIds whose color changed
        """
        view = self._require_view(view)
        ids: List[str] = []
        for pos in positions:
            file_id = view.file_id_at(pos, self.renderer.relative, self.renderer.root)
            if file_id is not None:
                ids.append(file_id)

        changed = self.service.set_color(ids, color)
        if changed:
            self.rerender_changed(changed)
        return changed

    def tag_marked(self, view: DirectoryListing, color: str) -> Set[str]:
        """Tag every marked entry, or nothing when no entry is marked."""
        view = self._require_view(view)
        positions = [entry.line_start for entry in view.marked_entries()]
        return self.tag_entries(view, positions, color)

    def mark_entries_with_color(self, view: DirectoryListing, color: str) -> int:
        """
        Mark every entry of ``view`` currently tagged ``color``.

        Returns:
            Number of newly marked entries
        """
        view = self._require_view(view)
        wanted = self.service.ids_with_color(color)
        if not wanted:
            return 0

        count = 0
        with view.bulk_update():
            for entry in view.entries():
                file_id = view.file_id_at(entry.line_start, self.renderer.relative, self.renderer.root)
                if file_id in wanted and view.mark(entry.line_start):
                    count += 1
        logger.info(f"Marked {count} file(s) tagged {color}")
        return count

    def set_display_style(self, style: str) -> None:
        """Switch between ``block`` and ``background`` decorations."""
        self.config.update("display", "style", style)

    # --- Rendering ---

    def rerender_changed(self, file_ids: Set[str]) -> None:
        """Drop stale decorations of ``file_ids`` and re-render each visible range."""
        for view in self.views:
            self.renderer.forget(view, file_ids)
            self.renderer.apply(view)

    def rerender_all(self) -> None:
        for view in self.views:
            self.renderer.refresh(view)

    @contextmanager
    def quiet(self):
        """Suspend debounced rendering on every attached view."""
        with ExitStack() as stack:
            for scheduler in list(self._schedulers.values()):
                stack.enter_context(scheduler.quiet())
            yield self

    def _on_config_changed(self, section: str, key: str, value):
        if section == "display":
            if key == "debounce_delay_ms":
                for scheduler in self._schedulers.values():
                    scheduler.delay_ms = value
                return
            if key in ("style", "glyph"):
                setattr(self.renderer, key, value)
                self.rerender_all()
        elif section == "tagging":
            if key == "use_relative_names":
                self.renderer.relative = value
                self.rerender_all()
            elif key == "root":
                self.renderer.root = value
                self.rerender_all()
