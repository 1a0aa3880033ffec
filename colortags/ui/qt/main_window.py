from typing import List, Optional

from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import QInputDialog, QMainWindow, QMessageBox, QToolBar
from loguru import logger

from colortags.tags.errors import UnsupportedContextError
from colortags.ui.controller import ColorTagsController
from colortags.ui.listing import DirectoryListing
from colortags.ui.renderer import STYLE_BACKGROUND, STYLE_BLOCK
from colortags.ui.qt.colors import palette_names
from colortags.ui.qt.listing_widget import ListingWidget


class MainWindow(QMainWindow):
    def __init__(self, controller: ColorTagsController, listing: DirectoryListing):
        super().__init__()
        self.controller = controller
        self.listing = listing
        self.setWindowTitle(f"ColorTags - {listing.directory}")
        self.resize(900, 700)

        self.listing_widget = ListingWidget(listing, self)
        self.setCentralWidget(self.listing_widget)

        self._setup_actions()
        controller.service.warning.connect(self._show_warning)
        controller.attach(listing)
        self.statusBar().showMessage(f"{len(controller.service.store)} tagged file(s) known")

    def _setup_actions(self):
        toolbar = QToolBar("Tags", self)
        toolbar.setObjectName("TagsToolbar")
        self.addToolBar(toolbar)

        def add(text: str, shortcut: Optional[str], slot):
            action = QAction(text, self)
            if shortcut:
                action.setShortcut(QKeySequence(shortcut))
            action.triggered.connect(slot)
            toolbar.addAction(action)
            return action

        self.action_mark = add("Mark", "Space", self.toggle_mark)
        self.action_tag = add("Tag...", "T", self.tag_selection)
        self.action_untag = add("Untag", "U", self.untag_selection)
        self.action_mark_color = add("Mark by Color...", "M", self.mark_by_color)
        self.action_style = add("Toggle Style", "S", self.toggle_style)
        self.action_refresh = add("Refresh", "F5", lambda: self.listing.refresh())

    # --- Actions ---

    def _target_positions(self) -> List[int]:
        marked = [entry.line_start for entry in self.listing.marked_entries()]
        return marked or self.listing_widget.selected_positions()

    def toggle_mark(self):
        entry = self.listing_widget.current_entry()
        if entry is not None:
            self.listing.mark(entry.line_start, not self.listing.is_marked(entry.line_start))

    def tag_selection(self):
        color, ok = QInputDialog.getItem(
            self, "Tag Files", "Color (empty to untag):",
            [""] + palette_names(), 0, True
        )
        if ok:
            self._apply_color(color.strip())

    def untag_selection(self):
        self._apply_color("")

    def _apply_color(self, color: str):
        try:
            changed = self.controller.tag_entries(self.listing, self._target_positions(), color)
        except UnsupportedContextError as e:
            QMessageBox.warning(self, "ColorTags", str(e))
            return
        self.statusBar().showMessage(f"{len(changed)} file(s) tagged {color or '<none>'}")

    def mark_by_color(self):
        colors = self.controller.service.store.colors()
        if not colors:
            self.statusBar().showMessage("No tagged files")
            return
        color, ok = QInputDialog.getItem(self, "Mark Files", "Color:", colors, 0, False)
        if not ok:
            return
        try:
            count = self.controller.mark_entries_with_color(self.listing, color)
        except UnsupportedContextError as e:
            QMessageBox.warning(self, "ColorTags", str(e))
            return
        self.statusBar().showMessage(f"Marked {count} file(s) tagged {color}")

    def toggle_style(self):
        current = self.controller.renderer.style
        self.controller.set_display_style(STYLE_BACKGROUND if current == STYLE_BLOCK else STYLE_BLOCK)

    def _show_warning(self, message: str):
        logger.warning(message)
        self.statusBar().showMessage(message)

    def closeEvent(self, event):
        self.controller.detach(self.listing)
        super().closeEvent(event)
