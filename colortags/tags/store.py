"""
ColorTags - Tag Store

Bidirectional relation between file identifiers and color labels.
"""
import threading
from typing import Dict, Iterable, List, Optional, Set, Tuple

from loguru import logger


class TagStore:
    """
    Two indexes forming one logical relation:

    - ``color_of``: FileId -> Color (at most one color per file)
    - ``ids_of``: Color -> set of FileIds (derived index)

    All mutation goes through :meth:`set_color`, which holds the lock for
    the whole batch so a reader never sees a half-applied retag.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self._color_of: Dict[str, str] = {}
        self._ids_of: Dict[str, Set[str]] = {}

    @classmethod
    def from_snapshot(
        cls,
        color_of: Dict[str, str],
        ids_of: Dict[str, Iterable[str]]
    ) -> "TagStore":
        """
        Build a store from persisted indexes, trusting both as given.

        ``ids_of`` is not re-derived from ``color_of``; use
        :meth:`inconsistencies` to inspect a loaded snapshot.
        """
        store = cls()
        store._color_of = dict(color_of)
        store._ids_of = {color: set(ids) for color, ids in ids_of.items()}
        return store

    def set_color(self, ids: Iterable[str], color: str) -> Set[str]:
        """
        Tag every id in ``ids`` with ``color``; an empty color untags.

        Args:
            ids: File identifiers to retag
            color: New color label, or "" to remove the tag

        Returns:
            The ids whose color actually changed
        """
        changed: Set[str] = set()
        with self._lock:
            for file_id in ids:
                old_color = self._color_of.get(file_id)
                if old_color == color or (old_color is None and not color):
                    continue

                if old_color is not None:
                    members = self._ids_of.get(old_color)
                    if members is not None:
                        members.discard(file_id)
                        if not members:
                            del self._ids_of[old_color]

                if color:
                    self._color_of[file_id] = color
                    self._ids_of.setdefault(color, set()).add(file_id)
                else:
                    del self._color_of[file_id]

                changed.add(file_id)

        if changed:
            logger.debug(f"Retagged {len(changed)} file(s) as {color or '<none>'}")
        return changed

    def color_of(self, file_id: str) -> Optional[str]:
        with self._lock:
            return self._color_of.get(file_id)

    def ids_with_color(self, color: str) -> Set[str]:
        with self._lock:
            return set(self._ids_of.get(color, ()))

    def colors(self) -> List[str]:
        """Colors currently in use, sorted."""
        with self._lock:
            return sorted(color for color, ids in self._ids_of.items() if ids)

    def is_empty(self) -> bool:
        with self._lock:
            return not self._color_of and not self._ids_of

    def snapshot(self) -> Tuple[Dict[str, str], Dict[str, Set[str]]]:
        """Copies of both indexes, taken atomically."""
        with self._lock:
            return (
                dict(self._color_of),
                {color: set(ids) for color, ids in self._ids_of.items()},
            )

    def inconsistencies(self) -> List[Tuple[str, Optional[str], str]]:
        """
        Report entries where the two indexes disagree.

        Returns:
            List of ``(file_id, color_of_value, color_set)`` tuples; empty
            when the store is consistent.
        """
        problems: List[Tuple[str, Optional[str], str]] = []
        with self._lock:
            for color, ids in self._ids_of.items():
                for file_id in ids:
                    if self._color_of.get(file_id) != color:
                        problems.append((file_id, self._color_of.get(file_id), color))
            for file_id, color in self._color_of.items():
                if file_id not in self._ids_of.get(color, ()):
                    problems.append((file_id, color, ""))
        return problems

    def __len__(self) -> int:
        with self._lock:
            return len(self._color_of)

    def __eq__(self, other) -> bool:
        if not isinstance(other, TagStore):
            return NotImplemented
        mine = self.snapshot()
        theirs = other.snapshot()
        # Empty color sets carry no information
        return (
            mine[0] == theirs[0]
            and {c: s for c, s in mine[1].items() if s} == {c: s for c, s in theirs[1].items() if s}
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"TagStore(files={len(self)}, colors={self.colors()})"
