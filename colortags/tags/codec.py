"""
ColorTags - Persistence Codec

Storage format: a marker line followed by one JSON literal holding the
pair ``[color_of, ids_of]``. Anything after the literal is ignored.

File names that are not valid UTF-8 (surrogate-escaped by ``os``) are
written back as their original bytes.
"""
import json
import os
import tempfile
from typing import Dict, List, Tuple

from loguru import logger
from pydantic import TypeAdapter, ValidationError

from colortags.tags.errors import SnapshotMissingError, StorageIOError, TagDecodeError
from colortags.tags.store import TagStore

MARKER = "# colortags tag index v1 -- do not edit"

_SNAPSHOT = TypeAdapter(Tuple[Dict[str, str], Dict[str, List[str]]])


class TagStoreCodec:
    """Reads and writes TagStore snapshots."""

    def __init__(self, marker: str = MARKER):
        self.marker = marker

    def dumps(self, store: TagStore) -> str:
        """Serialize ``store`` to the storage text format."""
        color_of, ids_of = store.snapshot()
        literal = [
            color_of,
            {color: sorted(ids) for color, ids in ids_of.items()},
        ]
        body = json.dumps(literal, ensure_ascii=False, sort_keys=True, indent=1)
        return f"{self.marker}\n{body}\n"

    def loads(self, text: str, path: str = "<string>") -> TagStore:
        """
        Parse the storage text format.

        Raises:
            TagDecodeError: If the text does not hold a valid snapshot
        """
        body = text
        first_line, sep, rest = text.partition("\n")
        if first_line.startswith("#"):
            if first_line.strip() != self.marker:
                logger.debug(f"Unrecognized tag index marker in {path}: {first_line!r}")
            body = rest if sep else ""

        body = body.lstrip()
        if not body:
            raise TagDecodeError(path, "missing tag index literal")

        try:
            raw, _end = json.JSONDecoder().raw_decode(body)
        except json.JSONDecodeError as e:
            raise TagDecodeError(path, f"malformed tag index: {e}") from e

        try:
            color_of, ids_of = _SNAPSHOT.validate_python(raw)
        except ValidationError as e:
            raise TagDecodeError(path, f"unexpected tag index shape: {e.error_count()} error(s)") from e

        return TagStore.from_snapshot(color_of, ids_of)

    def save(self, store: TagStore, path: str) -> bool:
        """
        Write ``store`` to ``path`` atomically.

        An empty store is never written, so a not-yet-loaded session cannot
        clobber a saved index.

        Returns:
            True if the file was written

        Raises:
            StorageIOError: If the file could not be written
        """
        if store.is_empty():
            logger.debug(f"Tag store empty; not writing {path}")
            return False

        text = self.dumps(store)
        directory = os.path.dirname(os.path.abspath(path))
        tmp_path = None
        try:
            os.makedirs(directory, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".colortags-", suffix=".tmp", dir=directory)
            with os.fdopen(fd, "w", encoding="utf-8", errors="surrogateescape", newline="\n") as f:
                f.write(text)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_path, path)
            tmp_path = None
        except OSError as e:
            raise StorageIOError(path, f"cannot write tag index: {e}") from e
        except UnicodeError as e:
            raise StorageIOError(path, f"cannot encode tag index: {e}") from e
        finally:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.unlink(tmp_path)

        logger.info(f"Saved {len(store)} tag(s) to {path}")
        return True

    def load(self, path: str) -> TagStore:
        """
        Read a store from ``path``.

        Raises:
            SnapshotMissingError: If nothing has been saved at ``path``
            StorageIOError: If the file exists but cannot be read
            TagDecodeError: If the content is malformed
        """
        try:
            with open(path, "r", encoding="utf-8", errors="surrogateescape") as f:
                text = f.read()
        except FileNotFoundError:
            raise SnapshotMissingError(path) from None
        except OSError as e:
            raise StorageIOError(path, f"cannot read tag index: {e}") from e

        store = self.loads(text, path)
        logger.info(f"Loaded {len(store)} tag(s) from {path}")
        return store
