"""
ListingWidget - Qt host for a DirectoryListing.

Shows the listing text, reports the visible window back to the listing on
scroll/resize, and paints the listing's overlays: background overlays as
extra selections, block overlays as a glyph drawn after the file name.
"""
from typing import List, Optional

from PySide6.QtCore import Qt, QTimer, QRect
from PySide6.QtGui import QFontDatabase, QPainter, QResizeEvent, QTextCharFormat, QTextCursor, QPaintEvent
from PySide6.QtWidgets import QPlainTextEdit, QTextEdit, QWidget
from loguru import logger

from colortags.ui.listing import DirectoryListing, ListingEntry, Overlay
from colortags.ui.renderer import STYLE_BACKGROUND, STYLE_BLOCK
from colortags.ui.qt.colors import is_dark_color, to_qcolor


class ListingWidget(QPlainTextEdit):
    """Read-only, monospaced view over a DirectoryListing."""

    GLYPH_SPACING = 4

    def __init__(self, listing: Optional[DirectoryListing] = None, parent: QWidget | None = None):
        super().__init__(parent)
        self.setReadOnly(True)
        self.setLineWrapMode(QPlainTextEdit.LineWrapMode.NoWrap)
        self.setFont(QFontDatabase.systemFont(QFontDatabase.SystemFont.FixedFont))

        self._listing: Optional[DirectoryListing] = None
        self._text_dirty = False

        # Deferred update
        self._update_timer = QTimer(self)
        self._update_timer.setSingleShot(True)
        self._update_timer.timeout.connect(self._apply_pending_updates)

        self.verticalScrollBar().valueChanged.connect(self._on_scroll_changed)

        if listing is not None:
            self.set_listing(listing)

    @property
    def listing(self) -> Optional[DirectoryListing]:
        return self._listing

    def set_listing(self, listing: DirectoryListing):
        if self._listing is not None:
            self._listing.overlays_changed.disconnect(self._on_overlays_changed)
            self._listing.marks_changed.disconnect(self._on_text_changed)
            self._listing.content_changed.disconnect(self._on_text_changed)

        self._listing = listing
        listing.overlays_changed.connect(self._on_overlays_changed)
        listing.marks_changed.connect(self._on_text_changed)
        listing.content_changed.connect(self._on_text_changed)

        self._reload_text()
        self.verticalScrollBar().setValue(0)
        self.sync_visible_range()
        self._rebuild_selections()

    # --- Selection helpers ---

    def current_entry(self) -> Optional[ListingEntry]:
        if self._listing is None:
            return None
        return self._listing.entry_at(self.textCursor().position())

    def selected_positions(self) -> List[int]:
        """Line starts of every entry touched by the text selection."""
        if self._listing is None:
            return []
        cursor = self.textCursor()
        start, end = cursor.selectionStart(), cursor.selectionEnd()
        return [entry.line_start for entry in self._listing.entries_in(start, max(end, start + 1))]

    # --- Visible range ---

    def sync_visible_range(self):
        """Report the lines currently on screen to the listing."""
        if self._listing is None:
            return
        block = self.firstVisibleBlock()
        if not block.isValid():
            return

        start = block.position()
        end = start
        height = self.viewport().height()
        offset = self.contentOffset()
        while block.isValid():
            geometry = self.blockBoundingGeometry(block).translated(offset)
            if geometry.top() > height:
                break
            end = block.position() + block.length()
            block = block.next()

        self._listing.set_visible_range(start, min(end, self._listing.text_length()))

    def _on_scroll_changed(self, value: int):
        self.sync_visible_range()

    def resizeEvent(self, event: QResizeEvent):
        super().resizeEvent(event)
        self.sync_visible_range()

    # --- Listing notifications ---

    def _on_text_changed(self, start: int, end: int):
        self._text_dirty = True
        self._update_timer.start(0)

    def _on_overlays_changed(self, start: int, end: int):
        self._update_timer.start(0)

    def _apply_pending_updates(self):
        if self._text_dirty:
            self._reload_text()
            self.sync_visible_range()
        self._rebuild_selections()

    def _reload_text(self):
        scroll = self.verticalScrollBar().value()
        cursor_pos = self.textCursor().position()
        self.setPlainText(self._listing.text)
        cursor = self.textCursor()
        cursor.setPosition(min(cursor_pos, len(self._listing.text)))
        self.setTextCursor(cursor)
        self.verticalScrollBar().setValue(scroll)
        self._text_dirty = False

    # --- Painting ---

    def _rebuild_selections(self):
        if self._listing is None:
            return
        selections = []
        for overlay in self._listing.all_overlays():
            if overlay.style != STYLE_BACKGROUND:
                continue
            background = to_qcolor(overlay.color)
            if background is None:
                continue
            selection = QTextEdit.ExtraSelection()
            cursor = QTextCursor(self.document())
            cursor.setPosition(overlay.start)
            cursor.setPosition(overlay.end, QTextCursor.MoveMode.KeepAnchor)
            fmt = QTextCharFormat()
            fmt.setBackground(background)
            fmt.setForeground(Qt.GlobalColor.white if is_dark_color(background) else Qt.GlobalColor.black)
            selection.cursor = cursor
            selection.format = fmt
            selections.append(selection)
        self.setExtraSelections(selections)
        self.viewport().update()

    def _glyph_rect(self, overlay: Overlay) -> QRect:
        cursor = QTextCursor(self.document())
        cursor.setPosition(overlay.end)
        rect = self.cursorRect(cursor)
        width = self.fontMetrics().horizontalAdvance(overlay.glyph or " ")
        return QRect(rect.right() + self.GLYPH_SPACING, rect.top(), width, rect.height())

    def paintEvent(self, event: QPaintEvent):
        super().paintEvent(event)
        if self._listing is None:
            return

        overlays = [o for o in self._listing.overlays_in(*self._listing.visible_range())
                    if o.style == STYLE_BLOCK]
        if not overlays:
            return

        painter = QPainter(self.viewport())
        try:
            painter.setFont(self.font())
            for overlay in overlays:
                color = to_qcolor(overlay.color)
                if color is None:
                    logger.debug(f"Unpaintable tag color: {overlay.color}")
                    continue
                painter.setPen(color)
                painter.drawText(
                    self._glyph_rect(overlay),
                    Qt.AlignmentFlag.AlignLeft | Qt.AlignmentFlag.AlignVCenter,
                    overlay.glyph,
                )
        finally:
            painter.end()
