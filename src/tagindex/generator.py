"""Build one tag index page per distinct tag declared across the posts."""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from tagindex.config import GeneratorConfig
from tagindex.errors import (
    ContentDirectoryError,
    OutputDirectoryError,
    OutputWriteError,
    SlugCollisionError,
    UnsafeTagError,
)
from tagindex.frontmatter import FileTags, scan_file

LOGGER = logging.getLogger(__name__)

TAG_LAYOUT_LINE = "layout: tag"


def slugify(label: str) -> str:
    """Lower-case the label and replace each space with a hyphen."""
    return label.lower().replace(" ", "-")


def render_tag_page(label: str) -> str:
    """Return the front-matter stub for a tag page (no trailing newline)."""
    return "\n".join([
        "---",
        TAG_LAYOUT_LINE,
        f'title: "Posts For Tag: {label}"',
        f"tag: {label}",
        "robots: noindex",
        "sitemap: false",
        "---",
    ])


def find_collisions(labels: List[str]) -> Dict[str, List[str]]:
    """Group labels by slug and return only slugs claimed by more than one label."""
    by_slug: Dict[str, List[str]] = {}
    for label in sorted(set(labels)):
        by_slug.setdefault(slugify(label), []).append(label)
    return {slug: group for slug, group in by_slug.items() if len(group) > 1}


def aggregate(scanned: List[FileTags]) -> Dict[str, List[Path]]:
    """Reduce scanned labels to the distinct set, sorted, with declaring files.

    Labels are compared by exact string equality; empty labels are dropped.
    """
    tags: Dict[str, List[Path]] = {}
    for file_tags in scanned:
        for label in file_tags.labels:
            if not label:
                continue
            files = tags.setdefault(label, [])
            if file_tags.path not in files:
                files.append(file_tags.path)
    return dict(sorted(tags.items()))


def is_safe_slug(slug: str) -> bool:
    """True when the slug names a plain file directly inside the output dir."""
    if slug in ("", ".", ".."):
        return False
    separators = {"/", os.sep} | ({os.altsep} if os.altsep else set())
    return not any(sep in slug for sep in separators) and "\0" not in slug


def find_unsafe_labels(labels: List[str]) -> List[str]:
    return [label for label in labels if not is_safe_slug(slugify(label))]


def is_generated_tag_page(path: Path) -> bool:
    """True when the file begins with the header written by render_tag_page."""
    try:
        with open(path, "r", encoding="utf-8") as handle:
            head = [handle.readline().strip() for _ in range(2)]
    except (OSError, UnicodeDecodeError):
        return False
    return head == ["---", TAG_LAYOUT_LINE]


@dataclass
class GenerationResult:
    """Outcome of a generator run."""
    tags: List[str] = field(default_factory=list)
    written: List[Path] = field(default_factory=list)
    pruned: List[Path] = field(default_factory=list)
    skipped: List[Dict[str, Any]] = field(default_factory=list)
    files_scanned: int = 0
    dry_run: bool = False

    @property
    def total(self) -> int:
        return len(self.tags)

    def to_payload(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["written"] = [str(p) for p in self.written]
        payload["pruned"] = [str(p) for p in self.pruned]
        payload["total"] = self.total
        payload["ok"] = True
        return payload


class TagIndexGenerator:
    """Scans a content directory and writes tag index files into an output directory."""

    def __init__(self, config: GeneratorConfig):
        self.config = config

    def _check_content_dir(self) -> None:
        content_dir = self.config.content_dir
        if not content_dir.is_dir():
            raise ContentDirectoryError(
                f"Content directory not found: {content_dir}",
                path=str(content_dir),
            )

    def _check_output_dir(self) -> None:
        output_dir = self.config.output_dir
        if not output_dir.is_dir():
            raise OutputDirectoryError(
                f"Output directory not found: {output_dir}. Create it before running.",
                path=str(output_dir),
            )

    def content_files(self) -> List[Path]:
        """List content files directly inside the content dir, sorted by name.

        Raises:
            ContentDirectoryError: If the directory cannot be enumerated.
        """
        content_dir = self.config.content_dir
        try:
            with os.scandir(content_dir) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as exc:
            raise ContentDirectoryError(
                f"Cannot read content directory {content_dir}: {exc}",
                path=str(content_dir),
            ) from exc
        files = []
        for entry in entries:
            if entry.is_dir():
                continue
            if os.path.splitext(entry.name)[1] != self.config.file_extension:
                continue
            files.append(Path(entry.path))
        return files

    def scan(self, skipped: Optional[List[Dict[str, Any]]] = None) -> List[FileTags]:
        """Scan every content file, isolating per-file read failures."""
        results: List[FileTags] = []
        for path in self.content_files():
            try:
                results.append(scan_file(path))
            except (OSError, UnicodeDecodeError) as exc:
                LOGGER.info("Skipping %s: %s", path, exc)
                if skipped is not None:
                    skipped.append({"path": str(path), "error": "read_failed", "hint": str(exc)})
        return results

    def collect(self, skipped: Optional[List[Dict[str, Any]]] = None) -> Dict[str, List[Path]]:
        """Map each distinct tag label to the content files declaring it."""
        self._check_content_dir()
        return aggregate(self.scan(skipped))

    def output_path(self, label: str) -> Path:
        return self.config.output_dir / (slugify(label) + self.config.file_extension)

    def stale_files(self, keep: List[Path]) -> List[Path]:
        """Generated tag pages in the output dir that are not in `keep`."""
        keep_names = {p.name for p in keep}
        stale = []
        with os.scandir(self.config.output_dir) as it:
            entries = sorted(it, key=lambda e: e.name)
        for entry in entries:
            if not entry.is_file() or entry.name in keep_names:
                continue
            if os.path.splitext(entry.name)[1] != self.config.file_extension:
                continue
            if is_generated_tag_page(Path(entry.path)):
                stale.append(Path(entry.path))
        return stale

    def run(self, dry_run: bool = False) -> GenerationResult:
        """Generate the tag index.

        Args:
            dry_run: Compute what would be written and pruned without touching disk.

        Returns:
            GenerationResult describing the run.

        Raises:
            ContentDirectoryError: Content dir missing or unreadable.
            OutputDirectoryError: Output dir missing.
            SlugCollisionError: Distinct labels share an output filename.
            UnsafeTagError: A label would write outside the output directory.
            OutputWriteError: A tag page could not be written or pruned.
        """
        result = GenerationResult(dry_run=dry_run)
        self._check_content_dir()
        self._check_output_dir()
        scanned = self.scan(result.skipped)
        result.files_scanned = len(scanned) + len(result.skipped)
        result.tags = list(aggregate(scanned))

        unsafe = find_unsafe_labels(result.tags)
        if unsafe:
            raise UnsafeTagError(unsafe)

        collisions = find_collisions(result.tags)
        if collisions:
            raise SlugCollisionError(collisions)

        for label in result.tags:
            target = self.output_path(label)
            result.written.append(target)
            if dry_run:
                continue
            try:
                with open(target, "w", encoding="utf-8", newline="") as handle:
                    handle.write(render_tag_page(label))
            except OSError as exc:
                raise OutputWriteError(f"Cannot write {target}: {exc}", path=str(target)) from exc
            LOGGER.info("Wrote tag page %s for %r", target, label)

        if self.config.prune_stale:
            for stale in self.stale_files(result.written):
                result.pruned.append(stale)
                if dry_run:
                    continue
                try:
                    stale.unlink()
                except OSError as exc:
                    raise OutputWriteError(f"Cannot remove stale {stale}: {exc}", path=str(stale)) from exc
                LOGGER.info("Removed stale tag page %s", stale)

        return result
