"""Exception types raised by the tag index generator."""

from typing import Any, Dict, List


class TagIndexError(Exception):
    """Base error carrying a JSON-serializable payload for the CLI."""

    error_code = "tagindex_error"

    def __init__(self, hint: str, **extra: Any):
        super().__init__(hint)
        self.payload: Dict[str, Any] = {"error": self.error_code, "hint": hint}
        self.payload.update(extra)


class ConfigError(TagIndexError):
    error_code = "config_invalid"


class ContentDirectoryError(TagIndexError):
    error_code = "content_dir_unavailable"


class OutputDirectoryError(TagIndexError):
    error_code = "output_dir_unavailable"


class OutputWriteError(TagIndexError):
    error_code = "write_failed"


class SlugCollisionError(TagIndexError):
    """Two or more distinct tag labels would be written to the same file."""

    error_code = "slug_collision"

    def __init__(self, collisions: Dict[str, List[str]]):
        details = "; ".join(
            f"{slug}: {', '.join(labels)}" for slug, labels in sorted(collisions.items())
        )
        super().__init__(
            f"Tag labels collide on output filename ({details}). "
            "Rename the tags so each one has a unique slug.",
            collisions=collisions,
        )
        self.collisions = collisions


class UnsafeTagError(TagIndexError):
    """A tag label would produce a file outside the output directory."""

    error_code = "unsafe_tag"

    def __init__(self, labels: List[str]):
        super().__init__(
            f"Tag labels cannot be used as file names: {', '.join(labels)}. "
            "Remove path separators and '.'/'..' from these tags.",
            labels=labels,
        )
        self.labels = labels
