"""Glob rules used for entry points and never-unused exclusions."""

from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import Iterable, List, Optional, Tuple


@dataclass(frozen=True)
class PathRule:
    """
    A single gitignore-like pattern.

    Patterns containing a slash match the whole tree-relative path; bare
    patterns match any single path segment. A trailing slash restricts the
    rule to directory segments, so ``tests/`` matches ``a/tests/b.py`` but
    not a file named ``tests``.
    """

    pattern: str
    directory_only: bool
    has_slash: bool

    def matches(self, rel_path: str) -> bool:
        if not self.pattern:
            return False

        if self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            if self.pattern.startswith("**/") and fnmatchcase(rel_path, self.pattern[3:]):
                return True
            if self.directory_only:
                return rel_path.startswith(f"{self.pattern}/") or fnmatchcase(
                    rel_path, f"{self.pattern}/*"
                )
            return False

        parts = rel_path.split("/")
        if self.directory_only:
            parts = parts[:-1]
        return any(fnmatchcase(part, self.pattern) for part in parts)


def build_rule(pattern: str) -> Optional[PathRule]:
    """Parse one pattern; blank lines and comments yield None."""
    pattern = pattern.strip().replace("\\", "/")
    if not pattern or pattern.startswith("#"):
        return None

    # "./src/cli.ts" names the same file as "/src/cli.ts"
    anchored = pattern.startswith("./")
    while pattern.startswith("./"):
        pattern = pattern[2:]
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern.rstrip("/")

    anchored = anchored or pattern.startswith("/")
    if anchored:
        pattern = pattern.lstrip("/")

    if not pattern:
        return None

    return PathRule(
        pattern=pattern,
        directory_only=directory_only,
        has_slash=anchored or "/" in pattern,
    )


class RuleSet:
    """An ordered collection of PathRules; a path matches if any rule does."""

    def __init__(self, patterns: Iterable[str] = ()):
        rules: List[PathRule] = []
        for pattern in patterns:
            rule = build_rule(pattern)
            if rule is not None:
                rules.append(rule)
        self._rules: Tuple[PathRule, ...] = tuple(rules)

    @property
    def rules(self) -> Tuple[PathRule, ...]:
        return self._rules

    def matches(self, rel_path: str) -> bool:
        return any(rule.matches(rel_path) for rule in self._rules)

    def __call__(self, rel_path: str) -> bool:
        return self.matches(rel_path)

    def __bool__(self) -> bool:
        return bool(self._rules)

    def __repr__(self) -> str:
        return f"RuleSet({[rule.pattern for rule in self._rules]!r})"


__all__ = ["PathRule", "RuleSet", "build_rule"]
