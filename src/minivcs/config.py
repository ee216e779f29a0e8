"""Configuration loading for minivcs.

Settings are merged from, in increasing precedence:

1. the user's global ``config.yaml`` (platform config dir, e.g.
   ``~/.config/minivcs/config.yaml`` on Linux)
2. the project's ``.minivcs/config.yaml``
3. ``MINIVCS_AUTHOR`` / ``MINIVCS_MAX_FILE_SIZE`` environment variables
"""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import platformdirs
import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .constants import CONFIG_FILE, MAX_FILE_SIZE
from .context import ProjectContext
from .errors import AuthorUnavailableError, ConfigError, StorageError
from .fileio import read_bytes, write_text_atomic

logger = logging.getLogger(__name__)

ENV_AUTHOR = "MINIVCS_AUTHOR"
ENV_MAX_FILE_SIZE = "MINIVCS_MAX_FILE_SIZE"


class VcsConfig(BaseModel):
    """Effective configuration for one command invocation."""

    author: Optional[str] = None
    max_file_size: int = Field(default=MAX_FILE_SIZE, gt=0)

    @field_validator("author")
    @classmethod
    def _strip_author(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None

    def require_author(self) -> str:
        """Return the author, or raise if none is configured."""
        if not self.author:
            raise AuthorUnavailableError()
        return self.author


def global_config_path() -> Path:
    """Get the platform-appropriate user config file."""
    return Path(platformdirs.user_config_dir("minivcs")) / CONFIG_FILE


def _read_yaml(path: Path) -> Dict[str, Any]:
    """Load a YAML mapping, treating a missing or empty file as empty."""
    try:
        raw = read_bytes(path, MAX_FILE_SIZE)
    except FileNotFoundError:
        return {}
    except OSError as e:
        raise StorageError(f"Cannot read config {path}: {e}") from e

    try:
        data = yaml.safe_load(raw.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise ConfigError(f"{path} is not valid UTF-8: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping, got {type(data).__name__}")
    return data


def load_config(
    ctx: ProjectContext,
    global_path: Optional[Path] = None,
    author: Optional[str] = None,
) -> VcsConfig:
    """Build the effective configuration for a project.

    Args:
        ctx: Project context
        global_path: Override for the global config file (tests)
        author: Explicit author, highest precedence (e.g. ``--author``)

    Raises:
        ConfigError: If a config file or environment value is invalid
    """
    data: Dict[str, Any] = {}
    data.update(_read_yaml(global_path or global_config_path()))
    data.update(_read_yaml(ctx.config_path))

    if os.environ.get(ENV_AUTHOR):
        data["author"] = os.environ[ENV_AUTHOR]
    if os.environ.get(ENV_MAX_FILE_SIZE):
        data["max_file_size"] = os.environ[ENV_MAX_FILE_SIZE]
    if author:
        data["author"] = author

    try:
        config = VcsConfig(**data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    logger.debug("Loaded config: author=%r max_file_size=%d", config.author, config.max_file_size)
    return config


def load_project_config(ctx: ProjectContext) -> VcsConfig:
    """Read only the project's config file (no global file, no environment)."""
    try:
        return VcsConfig(**_read_yaml(ctx.config_path))
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {ctx.config_path}: {e}") from e


def save_config(config: VcsConfig, ctx: ProjectContext) -> None:
    """Write project configuration (only explicitly set fields)."""
    text = yaml.safe_dump(config.model_dump(exclude_defaults=True), default_flow_style=False)
    try:
        write_text_atomic(ctx.config_path, text)
    except OSError as e:
        raise StorageError(f"Cannot write config {ctx.config_path}: {e}") from e
