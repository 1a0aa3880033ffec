"""
ColorTags - Viewport Renderer

Attaches color decorations to the listing entries inside the visible window.
"""
from enum import Enum
from typing import Iterable, Optional, Protocol

from loguru import logger

from colortags.ui.listing import ListingEntry, ListingView, Overlay

STYLE_BLOCK = "block"
STYLE_BACKGROUND = "background"


class ColorLookup(Protocol):
    def color_of(self, file_id: str) -> Optional[str]: ...


class RenderState(Enum):
    CLEARED = "cleared"
    APPLYING = "applying"


class ViewportRenderer:
    """
    Renders tags as overlays owned by :attr:`OVERLAY_OWNER`.

    ``block`` puts ``glyph`` right after the name in the tag color;
    ``background`` colors the whole name span.
    """

    OVERLAY_OWNER = "colortags"

    def __init__(
        self,
        tags: ColorLookup,
        style: str = STYLE_BLOCK,
        glyph: str = "■",
        relative: bool = False,
        root: Optional[str] = None
    ):
        self.tags = tags
        self.style = style
        self.glyph = glyph
        self.relative = relative
        self.root = root
        self.state = RenderState.CLEARED

    def decoration_for(self, entry: ListingEntry, color: str) -> Overlay:
        if self.style == STYLE_BACKGROUND:
            return Overlay(entry.name_start, entry.name_end, self.OVERLAY_OWNER, STYLE_BACKGROUND, color)
        return Overlay(entry.name_end, entry.name_end, self.OVERLAY_OWNER, STYLE_BLOCK, color, self.glyph)

    def apply(self, view: ListingView, start: Optional[int] = None, end: Optional[int] = None) -> int:
        """
        Decorate tagged entries in ``[start, end)`` widened to the visible
        range. Untagged entries are left untouched and unchanged decorations
        are skipped.

        Returns:
            Number of decorations attached
        """
        visible_start, visible_end = view.visible_range()
        if start is None or end is None:
            start, end = visible_start, visible_end
        else:
            start, end = min(start, visible_start), max(end, visible_end)

        self.state = RenderState.APPLYING
        attached = 0
        try:
            for entry in view.entries_in(start, end):
                if entry.is_pseudo:
                    continue
                file_id = view.file_id_at(entry.line_start, self.relative, self.root)
                if file_id is None:
                    continue
                color = self.tags.color_of(file_id)
                if not color:
                    continue

                wanted = self.decoration_for(entry, color)
                ours = [o for o in view.overlays_in(entry.line_start, entry.line_end)
                        if o.owner == self.OVERLAY_OWNER]
                if ours == [wanted]:
                    continue
                for overlay in ours:
                    view.remove_overlay(overlay)
                view.add_overlay(wanted)
                attached += 1
        finally:
            self.state = RenderState.CLEARED

        if attached:
            logger.debug(f"Rendered {attached} tag decoration(s) in [{start}, {end})")
        return attached

    def clear(self, view: ListingView, start: Optional[int] = None, end: Optional[int] = None) -> int:
        """
        Remove our decorations in ``[start, end)`` (default: whole listing).

        Returns:
            Number of decorations removed
        """
        if start is None or end is None:
            start, end = 0, view.text_length()

        removed = 0
        for overlay in view.overlays_in(start, end):
            if overlay.owner == self.OVERLAY_OWNER:
                view.remove_overlay(overlay)
                removed += 1
        return removed

    def forget(self, view: ListingView, file_ids: Iterable[str]) -> int:
        """
        Remove our decorations from the entries of ``file_ids``, wherever
        they are in the listing.

        Returns:
            Number of decorations removed
        """
        file_ids = set(file_ids)
        removed = 0
        for overlay in view.overlays_in(0, view.text_length()):
            if overlay.owner != self.OVERLAY_OWNER:
                continue
            if view.file_id_at(overlay.start, self.relative, self.root) in file_ids:
                view.remove_overlay(overlay)
                removed += 1
        return removed

    def refresh(self, view: ListingView) -> int:
        """Drop every decoration and render the visible range from scratch."""
        self.clear(view)
        return self.apply(view)
