"""Configuration for analysis runs (.refcheck.yml and programmatic defaults)."""

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

import yaml

from scanner.discovery import DEFAULT_EXCLUDE_DIRS
from scanner.resolver import DEFAULT_EXTENSIONS, DEFAULT_INDEX_FILES
from .errors import ConfigError
from .rules import RuleSet

CONFIG_FILENAME = ".refcheck.yml"

# Files treated as always used; they seed reachability.
DEFAULT_ENTRY_POINTS = (
    "package.json",
    "tsconfig*.json",
    "jsconfig.json",
    "*.config.*",
    "index.*",
    "main.*",
    "app.*",
    "server.*",
    "__main__.py",
    "__init__.py",
    "setup.py",
    "manage.py",
    "wsgi.py",
    "asgi.py",
    "conftest.py",
    "pyproject.toml",
    "Cargo.toml",
    "composer.json",
    "*.html",
)

# Files that are never reported as unused.
DEFAULT_EXCLUDES = (
    "test/",
    "tests/",
    "__tests__/",
    "spec/",
    "fixtures/",
    "__fixtures__/",
    "__mocks__/",
    "docs/",
    "doc/",
    "examples/",
    "*.test.*",
    "*.spec.*",
    "test_*.py",
    "*_test.py",
    "*.d.ts",
    "LICENSE*",
    "README*",
    "CHANGELOG*",
    ".*",
)

DEFAULT_MAX_FILE_SIZE = 1024 * 1024
DEFAULT_READ_TIMEOUT = 10.0


@dataclass
class AnalysisConfig:
    """
    Rules and budgets for one analysis run.

    The value is passed explicitly to ``analyze`` so concurrent runs with
    different rules never share state.
    """

    entry_points: List[str] = field(default_factory=lambda: list(DEFAULT_ENTRY_POINTS))
    exclude: List[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDES))
    exclude_dirs: Set[str] = field(default_factory=lambda: set(DEFAULT_EXCLUDE_DIRS))
    extensions: List[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    index_files: List[str] = field(default_factory=lambda: list(DEFAULT_INDEX_FILES))
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    read_timeout: float = DEFAULT_READ_TIMEOUT
    workers: Optional[int] = None

    def __post_init__(self) -> None:
        self.extensions = [_normalize_extension(ext) for ext in self.extensions]
        self.validate()

    def validate(self) -> None:
        """Raise ConfigError if a value is out of range."""
        if self.max_file_size <= 0:
            raise ConfigError("max_file_size must be a positive number of bytes")
        if self.read_timeout <= 0:
            raise ConfigError("read_timeout must be a positive number of seconds")
        if self.workers is not None and self.workers < 1:
            raise ConfigError("workers must be at least 1")

    def worker_count(self) -> int:
        """Return the thread pool size for extraction and resolution."""
        if self.workers is not None:
            return self.workers
        return min(32, (os.cpu_count() or 1) + 4)

    def entry_rules(self) -> RuleSet:
        return RuleSet(self.entry_points)

    def exclude_rules(self) -> RuleSet:
        return RuleSet(self.exclude)

    def merged(self, **overrides: Any) -> "AnalysisConfig":
        """Return a copy with every non-None override applied."""
        known = {f.name for f in fields(self)}
        unknown = set(overrides) - known
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)


def load_config(config_path: Path) -> AnalysisConfig:
    """
    Load configuration from a .refcheck.yml file.

    Args:
        config_path: The config file, or a directory containing one.

    Returns:
        AnalysisConfig with file values applied over the defaults. A missing
        file yields the defaults.

    Raises:
        ConfigError: If the file cannot be read or contains invalid values.
    """
    config_file = _resolve_config_path(config_path)
    if not config_file.is_file():
        return AnalysisConfig()

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{config_file.name} must contain a mapping at the root")

    values: Dict[str, Any] = {}

    entry_points = _as_str_list(data, "entry_points")
    if entry_points is not None:
        values["entry_points"] = entry_points
    exclude = _as_str_list(data, "exclude")
    if exclude is not None:
        values["exclude"] = exclude

    extra_entry = _as_str_list(data, "extra_entry_points") or []
    extra_exclude = _as_str_list(data, "extra_exclude") or []
    if extra_entry:
        values["entry_points"] = list(values.get("entry_points", DEFAULT_ENTRY_POINTS)) + extra_entry
    if extra_exclude:
        values["exclude"] = list(values.get("exclude", DEFAULT_EXCLUDES)) + extra_exclude

    exclude_dirs = _as_str_list(data, "exclude_dirs")
    if exclude_dirs is not None:
        values["exclude_dirs"] = set(exclude_dirs)
    extensions = _as_str_list(data, "extensions")
    if extensions is not None:
        values["extensions"] = extensions
    index_files = _as_str_list(data, "index_files")
    if index_files is not None:
        values["index_files"] = index_files

    values["max_file_size"] = _as_int(data, "max_file_size")
    values["read_timeout"] = _as_float(data, "read_timeout")
    values["workers"] = _as_int(data, "workers")

    return AnalysisConfig().merged(**values)


def _resolve_config_path(config_path: Path) -> Path:
    config_path = Path(config_path).expanduser()
    if config_path.is_dir():
        return config_path / CONFIG_FILENAME
    return config_path


def _read_config(path: Path) -> Any:
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"Cannot read {path}: {exc}") from exc

    if not text.strip():
        return {}

    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _normalize_extension(ext: str) -> str:
    ext = ext.strip()
    if ext and not ext.startswith("."):
        ext = "." + ext
    return ext


def _as_str_list(data: Dict[str, Any], key: str) -> Optional[List[str]]:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"'{key}' must be a string or a list of strings")
    return list(value)


def _as_int(data: Dict[str, Any], key: str) -> Optional[int]:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"'{key}' must be an integer")
    return value


def _as_float(data: Dict[str, Any], key: str) -> Optional[float]:
    value = data.get(key)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigError(f"'{key}' must be a number")
    return float(value)


__all__ = [
    "AnalysisConfig",
    "CONFIG_FILENAME",
    "DEFAULT_ENTRY_POINTS",
    "DEFAULT_EXCLUDES",
    "DEFAULT_EXCLUDE_DIRS",
    "DEFAULT_EXTENSIONS",
    "DEFAULT_INDEX_FILES",
    "load_config",
]
