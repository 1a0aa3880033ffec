"""File identifier resolution (absolute or root-relative)."""
import os
from typing import Optional


def to_file_id(path: str, relative: bool = False, root: Optional[str] = None) -> str:
    """
    Build the FileId for an absolute path.

    Args:
        path: Absolute path of the file
        relative: Whether identifiers are relative to ``root``
        root: Root directory for relative identifiers

    Returns:
        ``path`` unchanged in absolute mode, otherwise ``path`` relative to
        ``root``. No case folding or symlink resolution is done.
    """
    if not relative or not root:
        return path
    try:
        return os.path.relpath(path, root)
    except ValueError:
        # Different drives on Windows
        return path
