"""
ColorTags - Error taxonomy.

None of these are fatal to the host: storage and decode failures degrade to
"no tags known", and an unsupported context refuses the whole operation.
"""


class ColorTagsError(Exception):
    """Base class for all colortags errors."""
    pass


class StorageIOError(ColorTagsError):
    """Tag index storage could not be read or written."""

    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path


class TagDecodeError(ColorTagsError):
    """Persisted tag index is malformed or absent."""

    def __init__(self, path: str, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path


class SnapshotMissingError(TagDecodeError):
    """No tag index has been saved at the given path yet."""

    def __init__(self, path: str):
        super().__init__(path, "no saved tag index")


class UnsupportedContextError(ColorTagsError):
    """Tagging was invoked outside of an attached listing view."""
    pass
