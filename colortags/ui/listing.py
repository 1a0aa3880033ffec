"""
ColorTags - Listing Views

The contract the renderer consumes from a host listing, plus
DirectoryListing, a dired-style in-memory listing that implements it.
Positions are character offsets into the listing text.
"""
import os
import time
from abc import ABC, abstractmethod
from bisect import bisect_right
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from loguru import logger

from colortags.core.events import Signal
from colortags.tags.file_ids import to_file_id

PSEUDO_ENTRIES = (".", "..")
MARK_CHAR = "*"


@dataclass(frozen=True)
class Overlay:
    """A decoration attached to a span of the listing text."""
    start: int
    end: int
    owner: str
    style: str
    color: str
    glyph: str = ""


@dataclass(frozen=True)
class ListingEntry:
    """One file line of a listing."""
    line: int
    line_start: int
    line_end: int
    name_start: int
    name_end: int
    name: str
    path: str
    is_dir: bool = False

    @property
    def is_pseudo(self) -> bool:
        return self.name in PSEUDO_ENTRIES


@dataclass
class ListingRow:
    """Input row used to build a DirectoryListing."""
    name: str
    is_dir: bool = False
    size: int = 0
    mtime: float = 0.0


class ListingView(ABC):
    """
    Host listing contract.

    Signals:
    - ``visible_range_changed(start, end)`` when the viewport scrolls
    - ``content_changed(start, end)`` when listing text is rebuilt
    - ``overlays_changed(start, end)`` when decorations are added or removed
    """

    def __init__(self):
        self.visible_range_changed = Signal("VisibleRangeChanged")
        self.content_changed = Signal("ContentChanged")
        self.overlays_changed = Signal("OverlaysChanged")

    @abstractmethod
    def visible_range(self) -> Tuple[int, int]:
        """Currently displayed ``[start, end)``."""

    @abstractmethod
    def text_length(self) -> int:
        pass

    @abstractmethod
    def line_bounds(self, pos: int) -> Tuple[int, int]:
        """``(start, end)`` of the line containing ``pos``, newline excluded."""

    @abstractmethod
    def entry_at(self, pos: int) -> Optional[ListingEntry]:
        """The file entry on the line containing ``pos``, if any."""

    @abstractmethod
    def entries_in(self, start: int, end: int) -> Iterator[ListingEntry]:
        """Entries on every line touching ``[start, end)``."""

    @abstractmethod
    def file_id_at(self, pos: int, relative: bool = False, root: Optional[str] = None) -> Optional[str]:
        """FileId of the entry at ``pos``; None for non-entry lines."""

    @abstractmethod
    def add_overlay(self, overlay: Overlay) -> None:
        pass

    @abstractmethod
    def overlays_in(self, start: int, end: int) -> List[Overlay]:
        """Overlays on every line touching ``[start, end)``."""

    @abstractmethod
    def remove_overlay(self, overlay: Overlay) -> None:
        pass

    @property
    def is_quiet(self) -> bool:
        """True while the host runs a bulk operation."""
        return False


class DirectoryListing(ListingView):
    """
    Dired-style listing of one directory.

    Layout::

          /path/to/dir:
          total 3
          d        4096 2026-10-19 06:33 .
          d        4096 2026-10-19 06:33 ..
          -         120 2026-10-19 06:33 notes.txt

    Column 0 holds the mark character. Overlays are kept per line so range
    queries only touch the lines in the range.
    """

    def __init__(
        self,
        directory: str,
        rows: Iterable[ListingRow] = (),
        root: Optional[str] = None,
        show_dots: bool = True,
        page_lines: int = 50
    ):
        super().__init__()
        self.directory = os.path.abspath(directory)
        self.root = root
        self.show_dots = show_dots
        self.page_lines = page_lines
        self.marks_changed = Signal("MarksChanged")

        self._quiet = 0
        self._lines: List[str] = []
        self._line_starts: List[int] = []
        self._entries: Dict[int, ListingEntry] = {}
        self._overlays: Dict[int, List[Overlay]] = {}
        self._text_cache: Optional[str] = None
        self._visible: Tuple[int, int] = (0, 0)

        self._build(list(rows))
        self._visible = self._page_range(0)

    # --- Construction ---

    @classmethod
    def from_names(cls, directory: str, names: Iterable[str], **kwargs) -> "DirectoryListing":
        return cls(directory, [ListingRow(name) for name in names], **kwargs)

    @classmethod
    def from_directory(cls, directory: str, **kwargs) -> "DirectoryListing":
        return cls(directory, scan_directory(directory), **kwargs)

    def _build(self, rows: List[ListingRow]):
        rows = sorted(rows, key=lambda r: r.name)
        if self.show_dots:
            now = time.time()
            dots = [ListingRow(name, is_dir=True, mtime=now) for name in PSEUDO_ENTRIES]
            rows = dots + [r for r in rows if r.name not in PSEUDO_ENTRIES]
        else:
            rows = [r for r in rows if r.name not in PSEUDO_ENTRIES]

        self._lines = [f"  {self.directory}:", f"  total {len(rows)}"]
        self._entries = {}
        self._line_starts = []

        for row in rows:
            self._lines.append(self._format_row(row))

        pos = 0
        for line in self._lines:
            self._line_starts.append(pos)
            pos += len(line) + 1

        for index, row in enumerate(rows, start=2):
            line_start = self._line_starts[index]
            line_end = line_start + len(self._lines[index])
            self._entries[index] = ListingEntry(
                line=index,
                line_start=line_start,
                line_end=line_end,
                name_start=line_end - len(row.name),
                name_end=line_end,
                name=row.name,
                path=os.path.join(self.directory, row.name),
                is_dir=row.is_dir,
            )

        self._overlays = {}
        self._text_cache = None

    @staticmethod
    def _format_row(row: ListingRow) -> str:
        kind = "d" if row.is_dir else "-"
        stamp = time.strftime("%Y-%m-%d %H:%M", time.localtime(row.mtime))
        return f"  {kind} {row.size:>11} {stamp} {row.name}"

    def refresh(self, rows: Optional[Iterable[ListingRow]] = None):
        """
        Rebuild the listing (rescanning the directory when ``rows`` is
        omitted). Decorations are dropped; ``content_changed`` fires once
        the rebuild is complete.
        """
        if rows is None:
            rows = scan_directory(self.directory)
        first_line = self.line_index(self._visible[0])
        with self.bulk_update():
            self._build(list(rows))
            self._visible = self._page_range(min(first_line, len(self._lines) - 1))
        logger.debug(f"Listing refreshed: {self.directory} ({len(self._entries)} entries)")
        self.content_changed.emit(0, self.text_length())

    # --- Text geometry ---

    @property
    def text(self) -> str:
        if self._text_cache is None:
            self._text_cache = "".join(line + "\n" for line in self._lines)
        return self._text_cache

    @property
    def line_count(self) -> int:
        return len(self._lines)

    def text_length(self) -> int:
        if not self._lines:
            return 0
        return self._line_starts[-1] + len(self._lines[-1]) + 1

    def line_index(self, pos: int) -> int:
        if not self._line_starts:
            return 0
        index = bisect_right(self._line_starts, max(pos, 0)) - 1
        return min(max(index, 0), len(self._lines) - 1)

    def line_start(self, index: int) -> int:
        return self._line_starts[index]

    def line_bounds(self, pos: int) -> Tuple[int, int]:
        index = self.line_index(pos)
        start = self._line_starts[index]
        return start, start + len(self._lines[index])

    def _line_span(self, start: int, end: int) -> range:
        """Indices of all lines touching ``[start, end)``, rounded outward."""
        if not self._lines:
            return range(0)
        first = self.line_index(start)
        last = self.line_index(max(start, end - 1))
        return range(first, last + 1)

    # --- Entries ---

    def entry_at(self, pos: int) -> Optional[ListingEntry]:
        return self._entries.get(self.line_index(pos))

    def entries_in(self, start: int, end: int) -> Iterator[ListingEntry]:
        for index in self._line_span(start, end):
            entry = self._entries.get(index)
            if entry is not None:
                yield entry

    def entries(self) -> Iterator[ListingEntry]:
        for index in sorted(self._entries):
            yield self._entries[index]

    def find_entry(self, name: str) -> Optional[ListingEntry]:
        for entry in self._entries.values():
            if entry.name == name:
                return entry
        return None

    def file_id_at(self, pos: int, relative: bool = False, root: Optional[str] = None) -> Optional[str]:
        entry = self.entry_at(pos)
        if entry is None or entry.is_pseudo:
            return None
        return to_file_id(entry.path, relative, root or self.root or self.directory)

    # --- Viewport ---

    def visible_range(self) -> Tuple[int, int]:
        return self._visible

    def _page_range(self, first_line: int, count: Optional[int] = None) -> Tuple[int, int]:
        if not self._lines:
            return (0, 0)
        count = count or self.page_lines
        first = min(max(first_line, 0), len(self._lines) - 1)
        last = min(first + count, len(self._lines)) - 1
        return (self._line_starts[first], self._line_starts[last] + len(self._lines[last]) + 1)

    def set_visible_range(self, start: int, end: int):
        """Update the displayed window (called by the host on scroll/resize)."""
        start = max(0, min(start, self.text_length()))
        end = max(start, min(end, self.text_length()))
        if (start, end) == self._visible:
            return
        self._visible = (start, end)
        self.visible_range_changed.emit(start, end)

    def scroll_to_line(self, first_line: int, count: Optional[int] = None):
        start, end = self._page_range(first_line, count)
        self.set_visible_range(start, end)

    # --- Overlays ---

    def add_overlay(self, overlay: Overlay) -> None:
        index = self.line_index(overlay.start)
        self._overlays.setdefault(index, []).append(overlay)
        self.overlays_changed.emit(*self._bounds_of_line(index))

    def overlays_in(self, start: int, end: int) -> List[Overlay]:
        span = self._line_span(start, end)
        if len(span) > len(self._overlays):
            # wide span: walk the decorated lines only
            indices = sorted(index for index in self._overlays if index in span)
        else:
            indices = span
        found: List[Overlay] = []
        for index in indices:
            found.extend(self._overlays.get(index, ()))
        return found

    def remove_overlay(self, overlay: Overlay) -> None:
        index = self.line_index(overlay.start)
        line_overlays = self._overlays.get(index)
        if not line_overlays or overlay not in line_overlays:
            return
        line_overlays.remove(overlay)
        if not line_overlays:
            del self._overlays[index]
        self.overlays_changed.emit(*self._bounds_of_line(index))

    def all_overlays(self) -> List[Overlay]:
        return [o for index in sorted(self._overlays) for o in self._overlays[index]]

    def _bounds_of_line(self, index: int) -> Tuple[int, int]:
        start = self._line_starts[index]
        return start, start + len(self._lines[index])

    # --- Marks ---

    def mark(self, pos: int, marked: bool = True) -> bool:
        """
        Set or clear the mark on the entry at ``pos``.

        Returns:
            True if the mark state changed
        """
        entry = self.entry_at(pos)
        if entry is None or entry.is_pseudo:
            return False
        line = self._lines[entry.line]
        char = MARK_CHAR if marked else " "
        if line[0] == char:
            return False
        self._lines[entry.line] = char + line[1:]
        self._text_cache = None
        self.marks_changed.emit(entry.line_start, entry.line_end)
        return True

    def is_marked(self, pos: int) -> bool:
        entry = self.entry_at(pos)
        return entry is not None and self._lines[entry.line][0] == MARK_CHAR

    def marked_entries(self) -> List[ListingEntry]:
        return [e for e in self.entries() if self._lines[e.line][0] == MARK_CHAR]

    # --- Bulk operations ---

    @property
    def is_quiet(self) -> bool:
        return self._quiet > 0

    @contextmanager
    def bulk_update(self):
        """Quiet period: scheduled renders are skipped while active."""
        self._quiet += 1
        try:
            yield self
        finally:
            self._quiet -= 1

    def __repr__(self) -> str:
        return f"DirectoryListing({self.directory!r}, entries={len(self._entries)})"


def scan_directory(directory: str) -> List[ListingRow]:
    """Collect listing rows for the files in ``directory``."""
    rows: List[ListingRow] = []
    with os.scandir(directory) as it:
        for item in it:
            try:
                st = item.stat(follow_symlinks=False)
                is_dir = item.is_dir(follow_symlinks=False)
            except OSError as e:
                logger.warning(f"Cannot stat {item.path}: {e}")
                rows.append(ListingRow(item.name))
                continue
            rows.append(ListingRow(item.name, is_dir=is_dir, size=st.st_size, mtime=st.st_mtime))
    return rows
