"""Generator configuration and JSON config file loading."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

from jsonschema import validate as jsonschema_validate, ValidationError

from tagindex.errors import ConfigError

DEFAULT_CONTENT_DIR = "_posts"
DEFAULT_OUTPUT_DIR = "tag"
DEFAULT_EXTENSION = ".md"

CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {
        "content_dir": {"type": "string", "minLength": 1},
        "output_dir": {"type": "string", "minLength": 1},
        "file_extension": {"type": "string", "pattern": r"^\.?[A-Za-z0-9_-]+$"},
        "prune_stale": {"type": "boolean"},
    },
    "additionalProperties": False,
}


def normalize_extension(extension: str) -> str:
    """Return the extension with exactly one leading dot."""
    return "." + extension.lstrip(".")


@dataclass
class GeneratorConfig:
    """Where posts are read from, where tag pages go, and how they are named."""
    content_dir: Path = Path(DEFAULT_CONTENT_DIR)
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    file_extension: str = DEFAULT_EXTENSION
    prune_stale: bool = True

    def __post_init__(self):
        self.content_dir = Path(self.content_dir)
        self.output_dir = Path(self.output_dir)
        self.file_extension = normalize_extension(self.file_extension)


def load_config(path: Union[str, Path]) -> Dict[str, Any]:
    """Load and validate a JSON config file.

    Relative directories are resolved against the config file's directory.

    Args:
        path: Location of the JSON config file.

    Returns:
        Dict of GeneratorConfig keyword arguments present in the file.

    Raises:
        ConfigError: If the file is unreadable, not JSON, or fails the schema.
    """
    config_path = Path(path)
    try:
        data = json.loads(config_path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {config_path}: {exc}", path=str(config_path)) from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Config file {config_path} is not valid JSON: {exc}", path=str(config_path)) from exc

    try:
        jsonschema_validate(instance=data, schema=CONFIG_SCHEMA)
    except ValidationError as exc:
        raise ConfigError(f"Config file {config_path}: {exc.message}", path=str(config_path)) from exc

    base = config_path.parent
    for key in ("content_dir", "output_dir"):
        if key in data:
            data[key] = base / data[key]
    return data


def build_config(
    config_file: Optional[Union[str, Path]] = None,
    **overrides: Any,
) -> GeneratorConfig:
    """Merge defaults, an optional config file, and explicit overrides.

    Overrides whose value is None are treated as "not given". The file
    extension override is checked against the same schema as the config file.

    Raises:
        ConfigError: If the config file or the extension override is invalid.
    """
    values: Dict[str, Any] = {}
    if config_file:
        values.update(load_config(config_file))
    given = {k: v for k, v in overrides.items() if v is not None}
    if "file_extension" in given:
        try:
            jsonschema_validate(
                instance={"file_extension": given["file_extension"]},
                schema=CONFIG_SCHEMA,
            )
        except ValidationError as exc:
            raise ConfigError(f"Invalid file extension: {exc.message}") from exc
    values.update(given)
    return GeneratorConfig(**values)
