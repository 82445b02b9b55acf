import json
import logging
import sys
from typing import Any, Dict, List

import click

from tagindex.config import (
    DEFAULT_CONTENT_DIR,
    DEFAULT_EXTENSION,
    DEFAULT_OUTPUT_DIR,
    GeneratorConfig,
    build_config,
)
from tagindex.errors import TagIndexError
from tagindex.generator import TagIndexGenerator, slugify


def _fail(exc: TagIndexError) -> None:
    click.echo(json.dumps(exc.payload))
    sys.exit(2)


def _directory_options(func):
    """Attach the options shared by every command that reads the posts."""
    func = click.option(
        "--extension",
        help=f"Content and tag page file extension [default: {DEFAULT_EXTENSION}]",
    )(func)
    func = click.option(
        "--output-dir",
        type=click.Path(file_okay=False),
        help=f"Directory receiving tag pages [default: {DEFAULT_OUTPUT_DIR}]",
    )(func)
    func = click.option(
        "--content-dir",
        type=click.Path(file_okay=False),
        help=f"Directory of posts to scan [default: {DEFAULT_CONTENT_DIR}]",
    )(func)
    func = click.option(
        "--config",
        "config_file",
        type=click.Path(dir_okay=False),
        help="JSON config file; command-line options take precedence",
    )(func)
    return func


def _load_config(config_file, content_dir, output_dir, extension, **extra) -> GeneratorConfig:
    try:
        return build_config(
            config_file,
            content_dir=content_dir,
            output_dir=output_dir,
            file_extension=extension,
            **extra,
        )
    except TagIndexError as exc:
        _fail(exc)


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@_directory_options
@click.option("--keep-stale", is_flag=True, help="Do not remove tag pages for tags no longer in use")
@click.option("--dry-run", is_flag=True, help="Show what would be written without touching disk")
@click.option("--json", "as_json", is_flag=True, help="Emit the run result as JSON")
def generate(config_file, content_dir, output_dir, extension, keep_stale, dry_run, as_json):
    """Write one tag page per distinct tag found in the posts' front matter.

    Emits a JSON error payload and exits with code 2 on failure.
    """
    config = _load_config(
        config_file,
        content_dir,
        output_dir,
        extension,
        prune_stale=False if keep_stale else None,
    )
    try:
        result = TagIndexGenerator(config).run(dry_run=dry_run)
    except TagIndexError as exc:
        _fail(exc)

    for skip in result.skipped:
        click.echo(f"Warning: skipped {skip['path']}: {skip['hint']}", err=True)

    if as_json:
        click.echo(json.dumps(result.to_payload()))
        return
    if dry_run:
        for path in result.written:
            click.echo(f"would write {path}")
        for path in result.pruned:
            click.echo(f"would remove {path}")
    elif result.pruned:
        click.echo(f"Removed stale tag pages: {len(result.pruned)}")
    click.echo(f"Tags generated, total: {result.total}")


@cli.command()
@_directory_options
@click.option("--summary", is_flag=True, help="Include aggregate summary in output")
def tags(config_file, content_dir, output_dir, extension, summary):
    """List each distinct tag with its slug and the posts declaring it."""
    config = _load_config(config_file, content_dir, output_dir, extension)
    generator = TagIndexGenerator(config)
    skipped: List[Dict[str, Any]] = []
    try:
        tag_files = generator.collect(skipped)
    except TagIndexError as exc:
        _fail(exc)

    for skip in skipped:
        click.echo(f"Warning: skipped {skip['path']}: {skip['hint']}", err=True)
    for label, files in tag_files.items():
        click.echo(json.dumps({
            "tag": label,
            "slug": slugify(label),
            "files": [str(p) for p in files],
        }))
    if summary:
        click.echo(json.dumps({
            "summary": {
                "total_tags": len(tag_files),
                "files_scanned": len(generator.content_files()),
            }
        }))


def cli_entry():
    cli(prog_name="tagindex")

if __name__ == "__main__":
    cli_entry()
