"""Front-matter scanning for the `tags:` declaration of a post."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

LOGGER = logging.getLogger(__name__)

DELIMITER = "---"
TAGS_PREFIX = "tags:"


class ScanState(enum.Enum):
    OUTSIDE = "outside"
    INSIDE = "inside"
    DONE = "done"


@dataclass
class FileTags:
    """Tags declared by a single content file."""
    path: Path
    labels: List[str] = field(default_factory=list)
    found: bool = False


def parse_tags_line(line: str) -> List[str]:
    """Split a `tags: [A, B]` line into trimmed labels.

    Brackets are removed wherever they appear and no other validation is done,
    so `tags:foo` gives `["foo"]` and `tags: []` gives `[""]`.
    """
    value = line.strip()[len(TAGS_PREFIX):]
    value = value.replace("[", "").replace("]", "")
    return [piece.strip() for piece in value.split(",")]


def extract_tags(lines: Iterable[str]) -> Optional[List[str]]:
    """Return the labels from the first `tags:` line inside the front matter.

    Args:
        lines: Raw lines of a content file, consumed lazily.

    Returns:
        The trimmed labels, or None when the file has no front matter or the
        block closes without a `tags:` line.
    """
    state = ScanState.OUTSIDE
    labels = None
    for raw in lines:
        line = raw.strip()
        if line == DELIMITER:
            # a second delimiter closes the block without a tags line
            state = ScanState.DONE if state is ScanState.INSIDE else ScanState.INSIDE
        elif state is ScanState.INSIDE and line.startswith(TAGS_PREFIX):
            labels = parse_tags_line(line)
            state = ScanState.DONE
        if state is ScanState.DONE:
            break
    return labels


def scan_file(path: Path) -> FileTags:
    """Read `path` as UTF-8 (BOM tolerated) and extract its tag labels.

    Raises:
        OSError: If the file cannot be opened or read.
        UnicodeDecodeError: If the file is not valid UTF-8.
    """
    with open(path, "r", encoding="utf-8-sig") as handle:
        labels = extract_tags(handle)
    LOGGER.debug("Scanned %s: %s", path, labels)
    if labels is None:
        return FileTags(path=path)
    return FileTags(path=path, labels=labels, found=True)
