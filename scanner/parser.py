"""Path-literal heuristics for configuration files (YAML, JSON, TOML)."""

import re
from typing import List, NamedTuple, Optional, Set

import yaml


# Keys that often contain file paths
PATH_KEY_HINTS = {
    "path", "file", "filepath", "filename",
    "import", "include", "source", "src",
    "config", "schema", "template",
    "input", "main", "module", "entry",
    "extends", "inherits",
    "ref", "reference", "$ref",
}

# Common shell commands that take file/path arguments
# These should be filtered out when they appear with path targets
PATH_COMMANDS = {
    # File permission/ownership commands
    "chmod", "chown", "chgrp",
    # File operations
    "mv", "cp", "rm", "rmdir", "mkdir", "touch", "ln",
    # File viewing
    "cat", "head", "tail", "less", "more", "stat",
    # File listing
    "ls", "dir", "find",
    # Archive commands
    "tar", "gzip", "gunzip", "zip", "unzip",
    # Other common commands
    "source", "exec", "bash", "sh", "zsh",
    "python", "python3", "node", "ruby", "perl",
    "sudo", "su",
}

CONFIG_SUFFIXES = (".json", ".yaml", ".yml", ".toml")

_URL_RE = re.compile(r"^[a-z][a-z0-9+.\-]*://", re.IGNORECASE)
_EXTENSION_RE = re.compile(r"\.\w{1,10}$")
_FILE_NAME_EXTENSION_RE = re.compile(r"\.[A-Za-z]\w{0,9}$")
_CONFIG_FILE_RE = re.compile(
    r"^[\w./\-_]+\.(ya?ml|json|toml|xml|ini|cfg|conf|config)$",
    re.IGNORECASE,
)
_KEY_VALUE_RE = re.compile(r"""^\s*["']?([\w$.\-]+)["']?\s*[:=]""")
_QUOTED_RE = re.compile(r"""(["'])([^"'\n]+)\1""")


class PathLiteral(NamedTuple):
    """A path-like string found in a config file."""

    line: int
    column: int
    value: str


def extract_config_paths(content: str, suffix: str) -> List[PathLiteral]:
    """
    Find path-like string values in a configuration file.

    YAML and JSON are composed with PyYAML so every scalar keeps its
    position; documents PyYAML cannot parse, and TOML files, are scanned
    line by line for quoted literals instead.

    Args:
        content: File text.
        suffix: Lower-case file suffix, e.g. '.yaml'.

    Returns:
        Path literals in file order.
    """
    suffix = suffix.lower()
    literals: List[PathLiteral] = []

    if suffix in {".yaml", ".yml", ".json"}:
        try:
            for document in yaml.compose_all(content, Loader=yaml.SafeLoader):
                if document is not None:
                    _walk_node(document, False, literals, set())
        except yaml.YAMLError:
            literals = _scan_lines(content)
    else:
        literals = _scan_lines(content)

    return sorted(set(literals))


def _walk_node(node: yaml.Node, aggressive: bool, out: List[PathLiteral], seen: Set[int]) -> None:
    # Anchors and aliases share node objects; visit each once.
    if id(node) in seen:
        return
    seen.add(id(node))

    if isinstance(node, yaml.MappingNode):
        for key_node, value_node in node.value:
            key_lower = str(key_node.value).lower() if isinstance(key_node, yaml.ScalarNode) else ""
            is_path_key = any(hint in key_lower for hint in PATH_KEY_HINTS)
            _walk_node(value_node, aggressive or is_path_key, out, seen)

    elif isinstance(node, yaml.SequenceNode):
        for item in node.value:
            _walk_node(item, aggressive, out, seen)

    elif isinstance(node, yaml.ScalarNode):
        if node.tag != "tag:yaml.org,2002:str":
            return
        if _is_likely_path(node.value, aggressive):
            cleaned = _clean_path(node.value)
            if cleaned:
                mark = node.start_mark
                out.append(PathLiteral(mark.line + 1, mark.column, cleaned))


def _scan_lines(content: str) -> List[PathLiteral]:
    literals: List[PathLiteral] = []
    for index, line in enumerate(content.splitlines(), start=1):
        key_match = _KEY_VALUE_RE.match(line)
        aggressive = False
        if key_match:
            key_lower = key_match.group(1).lower()
            aggressive = any(hint in key_lower for hint in PATH_KEY_HINTS)
        for match in _QUOTED_RE.finditer(line):
            value = match.group(2)
            if key_match and match.end() <= key_match.end():
                # The quoted key itself.
                continue
            if _is_likely_path(value, aggressive):
                cleaned = _clean_path(value)
                if cleaned:
                    literals.append(PathLiteral(index, match.start(2), cleaned))
    return literals


def _is_command_with_path_target(value: str) -> bool:
    """
    Check if a string looks like a shell command with a path as the target.

    Detects patterns like:
    - "chmod 600 /path/to/file"
    - "sudo rm -rf /some/path"
    - "cat /etc/config.yaml"

    Args:
        value: String value to check.

    Returns:
        True if the value appears to be a command with a path target.
    """
    tokens = value.split()
    if not tokens:
        return False

    first_token = tokens[0].lower()

    # Handle sudo/su prefix - check second token as the actual command
    if first_token in {"sudo", "su"} and len(tokens) > 1:
        first_token = tokens[1].lower()

    if first_token in PATH_COMMANDS:
        # Must have additional arguments (flags or path) to be considered a command
        return len(tokens) > 1

    # Also check for commands with full paths like /usr/bin/chmod
    if "/" in first_token:
        cmd_name = first_token.rstrip("/").split("/")[-1]
        if cmd_name in PATH_COMMANDS and len(tokens) > 1:
            return True

    return False


def _is_likely_path(value: str, aggressive: bool = False) -> bool:
    """
    Determine if a string value looks like a file path.

    Args:
        value: String value to check.
        aggressive: If True (value sits under a path-like key), be more
                    permissive in what's considered a path.

    Returns:
        True if the value looks like a file path.
    """
    if not value or len(value) > 500:
        return False

    value = value.strip()
    if not value:
        return False

    # URLs are not local files
    if _URL_RE.match(value):
        return False

    # Skip values that are clearly not paths
    if value.startswith(("$", "{", "[", "(", "#", "@", "<")):
        return False

    # Skip values with newlines or tabs
    if "\n" in value or "\t" in value:
        return False

    # Globs and templates name sets of files, not one file
    if any(marker in value for marker in ("*", "?", "{{", "${", "%(")):
        return False

    # Skip commands that have a path as the target
    # e.g., "chmod 600 /test/file.yaml" or "sudo rm -rf /some/path"
    if _is_command_with_path_target(value):
        return False

    has_separator = "/" in value or "\\" in value

    if aggressive and (
        has_separator or
        value.endswith((".yaml", ".yml", ".json", ".toml", ".xml", ".ini", ".cfg"))
    ):
        return True

    # A command line is never a single path
    if " " in value:
        return False

    # Under a path-like key a bare file name ("lib.js") is enough;
    # the extension must start with a letter so "1.0.0" is skipped
    if aggressive:
        return bool(_FILE_NAME_EXTENSION_RE.search(value))

    # Must have a file extension and a directory separator or config name
    has_extension = bool(_EXTENSION_RE.search(value))
    config_pattern = _CONFIG_FILE_RE.match(value)

    return has_extension and (has_separator or config_pattern is not None)


def _clean_path(value: str) -> Optional[str]:
    """
    Clean a candidate path string, or reject it.

    Args:
        value: Raw path string.

    Returns:
        Cleaned path string (whitespace and quotes stripped, forward
        slashes), or None if the value cannot be a tree file.
    """
    if not value:
        return None

    cleaned = value.strip().strip("'\"").strip()

    # JSON pointer into the same document ($ref: "#/...")
    if cleaned.startswith("#"):
        return None

    cleaned = cleaned.replace("\\", "/")

    # Absolute system paths never point into the tree
    if cleaned.startswith(("/etc/", "/usr/", "/var/", "/tmp/", "/dev/", "/proc/", "~")):
        return None

    # Bare directories are not file references
    if cleaned.endswith("/"):
        return None

    if not cleaned or cleaned in {".", ".."}:
        return None

    return cleaned
