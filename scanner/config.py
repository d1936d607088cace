"""Loading of scan settings from YAML or TOML configuration files."""

import logging
import tomllib
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import yaml

from .discovery import DEFAULT_EXCLUDE_DIRS, DEFAULT_EXTENSIONS

logger = logging.getLogger(__name__)


DEFAULT_CONFIG_FILES = (".depcycle.yaml", ".depcycle.yml", "pyproject.toml")
TOOL_TABLE = "depcycle"


class ConfigError(ValueError):
    """A configuration file is unreadable or holds invalid settings."""


@dataclass
class ScanConfig:
    """Settings for a scan: which roots, which files, and how to treat cycles."""

    roots: List[str] = field(default_factory=list)
    include_ext: Set[str] = field(default_factory=lambda: set(DEFAULT_EXTENSIONS))
    exclude_dirs: Set[str] = field(default_factory=lambda: set(DEFAULT_EXCLUDE_DIRS))
    max_depth: Optional[int] = None
    allow_cycles: bool = True
    max_workers: Optional[int] = None

    @classmethod
    def from_mapping(cls, data: Dict[str, Any]) -> "ScanConfig":
        """
        Build a config from a parsed mapping, validating keys and types.

        Raises:
            ConfigError: On unknown keys or values of the wrong type.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigError(f"unknown setting(s): {', '.join(unknown)}")

        config = cls()

        if "roots" in data:
            config.roots = _str_list(data["roots"], "roots")
        if "include_ext" in data:
            config.include_ext = normalize_extensions(_str_list(data["include_ext"], "include_ext"))
        if "exclude_dirs" in data:
            config.exclude_dirs = set(_str_list(data["exclude_dirs"], "exclude_dirs"))
        if "max_depth" in data:
            config.max_depth = _optional_int(data["max_depth"], "max_depth", minimum=0)
        if "max_workers" in data:
            config.max_workers = _optional_int(data["max_workers"], "max_workers")
        if "allow_cycles" in data:
            if not isinstance(data["allow_cycles"], bool):
                raise ConfigError("allow_cycles must be a boolean")
            config.allow_cycles = data["allow_cycles"]

        return config


def load_config(file_path: Path) -> ScanConfig:
    """
    Load scan settings from a YAML or TOML file.

    For TOML files the ``[tool.depcycle]`` table is used when present,
    otherwise the whole document.

    Raises:
        ConfigError: If the file cannot be read, parsed or validated.
    """
    suffix = file_path.suffix.lower()

    try:
        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"cannot read {file_path}: {e}") from e

    try:
        if suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(content)
        elif suffix == ".toml":
            data = tomllib.loads(content)
            if "tool" in data:
                data = data["tool"].get(TOOL_TABLE, {})
        else:
            raise ConfigError(f"unsupported config format: {file_path}")
    except (yaml.YAMLError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"cannot parse {file_path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{file_path}: expected a mapping at top level")

    logger.debug("Loaded settings from %s: %s", file_path, sorted(data))
    return ScanConfig.from_mapping(data)


def find_config(directory: Path) -> Optional[Path]:
    """
    Return the first default config file present in ``directory``.

    A ``pyproject.toml`` only counts if it has a ``[tool.depcycle]`` table.
    """
    for name in DEFAULT_CONFIG_FILES:
        candidate = directory / name
        if not candidate.is_file():
            continue
        if name == "pyproject.toml" and not _has_tool_table(candidate):
            continue
        return candidate
    return None


def read_source_list(file_path: Path) -> List[str]:
    """
    Read a newline-separated list of source roots.

    Blank lines and lines starting with '#' are ignored.

    Raises:
        ConfigError: If the file cannot be read.
    """
    try:
        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"cannot read source list {file_path}: {e}") from e

    sources = []
    for line in content.splitlines():
        line = line.strip()
        if line and not line.startswith("#"):
            sources.append(line)
    return sources


def normalize_extensions(extensions: List[str]) -> Set[str]:
    """Lower-case extensions and make sure each starts with a dot."""
    normalized = set()
    for ext in extensions:
        if not ext.startswith("."):
            ext = "." + ext
        normalized.add(ext.lower())
    return normalized


def _has_tool_table(file_path: Path) -> bool:
    try:
        data = tomllib.loads(file_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError):
        return False
    return TOOL_TABLE in data.get("tool", {})


def _str_list(value: Any, name: str) -> List[str]:
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{name} must be a string or a list of strings")
    return list(value)


def _optional_int(value: Any, name: str, minimum: int = 1) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value < minimum:
        raise ConfigError(f"{name} must be an integer of at least {minimum}")
    return value
