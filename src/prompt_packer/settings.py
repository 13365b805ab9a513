from __future__ import annotations

import os
from enum import StrEnum, auto
from pathlib import Path
from typing import Any

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from prompt_packer.exceptions import ConfigError
from prompt_packer.logging import logger

CONFIG_FILE_NAME = ".promptpacker.yaml"
ENV_PREFIX = "PROMPT_PACKER_"


class OutputFormat(StrEnum):
    """Shape of the generated prompt document."""

    MARKDOWN = auto()
    XML = auto()


class PackerSettings(BaseModel):
    """Configuration settings for discovery and document generation."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    ignore_patterns: list[str] = Field(
        default_factory=list,
        description="Extra ignore globs, added to the default ignore set.",
    )
    max_file_size: int = Field(
        default=1_048_576,
        ge=0,
        description="Files larger than this many bytes are never discovered.",
    )
    include_file_stats: bool = Field(
        default=True,
        description="Write a size/line annotation above each file.",
    )
    estimate_tokens: bool = Field(
        default=True,
        description="Write the estimated token count in the overview.",
    )
    output_format: OutputFormat = Field(
        default=OutputFormat.MARKDOWN,
        description="markdown, or markdown wrapped in an xml envelope.",
    )
    batch_size: int = Field(default=50, ge=1, description="Concurrent reads per batch.")
    debounce_seconds: float = Field(
        default=0.05,
        ge=0,
        description="Delay used to coalesce selection change notifications.",
    )


_BOOL_TRUE = {"1", "true", "yes", "on"}
_BOOL_FALSE = {"0", "false", "no", "off"}


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _BOOL_TRUE:
        return True
    if value in _BOOL_FALSE:
        return False
    msg = f"Environment variable {name} must be a boolean, got {raw!r}."
    raise ConfigError(msg)


def read_config_file(path: Path) -> dict[str, Any]:
    """Read settings values from a YAML file.

    Keys that `PackerSettings` does not know are logged and dropped.

    Args:
        path (Path): the YAML file to read

    Raises:
        ConfigError: if the file cannot be read, parsed, or is not a mapping

    Returns:
        dict[str, Any]: the recognised settings values found in the file
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except OSError as e:
        msg = f"Cannot read configuration file '{path}': {e}"
        raise ConfigError(msg) from e
    except yaml.YAMLError as e:
        msg = f"Error parsing YAML in '{path}': {e}"
        raise ConfigError(msg) from e
    if not isinstance(data, dict):
        msg = f"Configuration file '{path}' must contain a mapping."
        raise ConfigError(msg)

    known = set(PackerSettings.model_fields)
    values: dict[str, Any] = {}
    for key, value in data.items():
        normalized = str(key).replace("-", "_")
        if normalized in known:
            values[normalized] = value
        else:
            logger.warning("Unknown configuration key %r in %s ignored", key, str(path))
    return values


def read_environment() -> dict[str, Any]:
    """Collect settings overrides from `PROMPT_PACKER_*` environment variables.

    A `.env` file found from the current working directory is loaded first,
    without overriding variables that are already set.

    Returns:
        dict[str, Any]: the overrides found in the environment
    """
    env_file = find_dotenv(usecwd=True)
    if env_file:
        load_dotenv(env_file, override=False)

    values: dict[str, Any] = {}
    if (raw := os.environ.get(f"{ENV_PREFIX}IGNORE_PATTERNS")) is not None:
        values["ignore_patterns"] = [p.strip() for p in raw.split(",") if p.strip()]
    if (raw := os.environ.get(f"{ENV_PREFIX}MAX_FILE_SIZE")) is not None:
        values["max_file_size"] = raw
    if (raw := os.environ.get(f"{ENV_PREFIX}OUTPUT_FORMAT")) is not None:
        values["output_format"] = raw.strip().lower()
    for field in ("include_file_stats", "estimate_tokens"):
        name = f"{ENV_PREFIX}{field.upper()}"
        if (raw := os.environ.get(name)) is not None:
            values[field] = _parse_bool(name, raw)
    return values


def load_settings(
    root: Path,
    config_file: Path | None = None,
    **overrides: Any,  # noqa: ANN401
) -> PackerSettings:
    """Build the effective settings for a project root.

    Precedence, lowest first: defaults, the YAML configuration file
    (`config_file`, or `.promptpacker.yaml` in `root` when present),
    `PROMPT_PACKER_*` environment variables, then `overrides`.
    Overrides whose value is None are ignored.

    Args:
        root (Path): the project root
        config_file (Path | None): explicit configuration file; must exist when given
        **overrides: explicit values, typically command line flags

    Raises:
        ConfigError: if a source is malformed or a value fails validation

    Returns:
        PackerSettings: the validated settings
    """
    values: dict[str, Any] = {}
    if config_file is not None:
        values.update(read_config_file(config_file))
    elif (root / CONFIG_FILE_NAME).is_file():
        values.update(read_config_file(root / CONFIG_FILE_NAME))
    values.update(read_environment())

    extra_patterns = overrides.pop("ignore_patterns", None)
    values.update({k: v for k, v in overrides.items() if v is not None})
    if extra_patterns:
        values["ignore_patterns"] = [*values.get("ignore_patterns", []), *extra_patterns]

    try:
        return PackerSettings(**values)
    except ValidationError as e:
        msg = f"Invalid configuration: {e}"
        raise ConfigError(msg) from e


class CommandOptions(BaseModel):
    """Options parsed from the command line."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    command: str = Field(..., description="files, tree, pack or preview.")
    root: Path = Field(default_factory=Path.cwd, description="Project root.")
    config: Path | None = Field(default=None, description="YAML configuration file.")
    log_file: str = Field(default="", description="Log file path.")

    ignore: list[str] = Field(default_factory=list, description="Extra ignore globs.")
    max_file_size: int | None = Field(default=None, description="Size cap in bytes.")
    format: OutputFormat | None = Field(default=None, description="Output format.")
    no_file_stats: bool = Field(default=False, description="Omit per-file size/lines.")
    no_token_estimate: bool = Field(default=False, description="Omit the token estimate.")

    full_tree: bool = Field(default=False, description="Render the full project structure.")
    only: list[str] = Field(default_factory=list, description="Paths to select exclusively.")
    exclude: list[str] = Field(default_factory=list, description="Paths to deselect.")

    output: Path | None = Field(default=None, description="Write the document to this file.")
    clipboard: bool = Field(default=False, description="Copy the tree to the clipboard.")

    def settings_overrides(self) -> dict[str, Any]:
        """Settings values set explicitly on the command line, for `load_settings`."""
        return {
            "ignore_patterns": self.ignore,
            "max_file_size": self.max_file_size,
            "output_format": self.format,
            "include_file_stats": False if self.no_file_stats else None,
            "estimate_tokens": False if self.no_token_estimate else None,
        }
