"""Reference extractors: one strategy per syntax family, selected by suffix."""

import re
from abc import ABC, abstractmethod
from bisect import bisect_right
from importlib import metadata
from pathlib import PurePosixPath
from typing import Dict, Iterable, List, Optional, Pattern, Sequence, Tuple

from graph.model import RawReference, ReferenceType
from .parser import CONFIG_SUFFIXES, extract_config_paths

ENTRY_POINT_GROUP = "refcheck.extractors"

# Markers of references assembled at runtime; these are never extracted.
_DYNAMIC_MARKERS = ("${", "{{", "<%", "<?", "`")


class ExtractionError(ValueError):
    """Raised when a file's content cannot be handed to an extractor."""


def file_suffix(path: str) -> str:
    """Return the lower-case suffix of a tree-relative path."""
    return PurePosixPath(path).suffix.lower()


def is_dynamic_token(token: str) -> bool:
    """Check if a token is empty, fragment-only, or built from placeholders."""
    stripped = token.strip()
    if not stripped or stripped.startswith("#"):
        return True
    return any(marker in stripped for marker in _DYNAMIC_MARKERS)


class LineIndex:
    """Maps character offsets in a text to 1-based line and 0-based column."""

    def __init__(self, content: str):
        self._starts = [0]
        for match in re.finditer("\n", content):
            self._starts.append(match.end())

    def position(self, offset: int) -> Tuple[int, int]:
        line_index = bisect_right(self._starts, offset) - 1
        return line_index + 1, offset - self._starts[line_index]


class ReferenceExtractor(ABC):
    """Contract for strategies that extract references from file content."""

    name: str = ""
    suffixes: Tuple[str, ...] = ()

    def supports(self, path: str) -> bool:
        return file_suffix(path) in self.suffixes

    @abstractmethod
    def extract(self, path: str, content: str) -> List[RawReference]:
        """Return references in file order (line, then column)."""


class PatternExtractor(ReferenceExtractor):
    """
    Regex-driven extractor.

    Each pattern must define a named group ``ref``. When two patterns match
    the same token offset, the first pattern listed wins.
    """

    patterns: Sequence[Tuple[ReferenceType, Pattern[str]]] = ()

    def extract(self, path: str, content: str) -> List[RawReference]:
        found: Dict[int, Tuple[ReferenceType, str]] = {}
        for ref_type, pattern in self.patterns:
            for match in pattern.finditer(content):
                offset = match.start("ref")
                if offset in found:
                    continue
                token = match.group("ref").strip()
                if is_dynamic_token(token):
                    continue
                found[offset] = (ref_type, token)

        index = LineIndex(content)
        references = []
        for offset in sorted(found):
            ref_type, token = found[offset]
            line, column = index.position(offset)
            references.append(
                RawReference(source=path, line=line, ref_type=ref_type, token=token, column=column)
            )
        return references


class EcmaScriptExtractor(PatternExtractor):
    name = "ecmascript"
    suffixes = (".js", ".jsx", ".mjs", ".cjs", ".ts", ".tsx", ".mts", ".cts", ".vue", ".svelte")
    patterns = (
        (
            ReferenceType.IMPORT,
            re.compile(r"""\bimport\s+(?:type\s+)?[\w*{}\s,$]*?\s*\bfrom\s*(['"])(?P<ref>[^'"\n]+)\1"""),
        ),
        (
            ReferenceType.IMPORT,
            re.compile(r"""\bexport\s+(?:type\s+)?(?:\*|\{)[\w*{}\s,$]*?\s*\bfrom\s*(['"])(?P<ref>[^'"\n]+)\1"""),
        ),
        (ReferenceType.IMPORT, re.compile(r"""\bimport\s*(['"])(?P<ref>[^'"\n]+)\1""")),
        (ReferenceType.IMPORT, re.compile(r"""\bimport\s*\(\s*(['"])(?P<ref>[^'"\n]+)\1\s*\)""")),
        (ReferenceType.REQUIRE, re.compile(r"""\brequire\s*\(\s*(['"])(?P<ref>[^'"\n]+)\1\s*\)""")),
    )


class PythonExtractor(ReferenceExtractor):
    """
    Relative imports only; absolute imports name installed packages.

    ``from .pkg import a, b`` yields the module ``.pkg`` plus an optional
    reference per imported name (``.pkg.a``, ``.pkg.b``). A name that is a
    submodule resolves to its file; a name that is an attribute of the
    module resolves to nothing and is dropped.
    """

    name = "python"
    suffixes = (".py", ".pyi")

    _FROM_IMPORT_RE = re.compile(
        r"^[ \t]*from[ \t]+(?P<ref>\.+[\w.]*)[ \t]+import[ \t]*(?P<names>\([^)]*\)|[^\n#;]*)",
        re.MULTILINE,
    )
    _NAME_RE = re.compile(r"\b(?P<name>[A-Za-z_]\w*)(?:\s+as\s+\w+)?")
    _COMMENT_RE = re.compile(r"#[^\n]*")

    def extract(self, path: str, content: str) -> List[RawReference]:
        index = LineIndex(content)
        references = []
        for match in self._FROM_IMPORT_RE.finditer(content):
            module = match.group("ref")
            line, column = index.position(match.start("ref"))
            references.append(
                RawReference(source=path, line=line, ref_type=ReferenceType.IMPORT, token=module, column=column)
            )

            # Blank out comments inside parenthesized lists, keeping offsets.
            names = self._COMMENT_RE.sub(lambda m: " " * len(m.group()), match.group("names"))
            separator = "" if not module.strip(".") else "."
            for name_match in self._NAME_RE.finditer(names):
                offset = match.start("names") + name_match.start("name")
                line, column = index.position(offset)
                references.append(
                    RawReference(
                        source=path,
                        line=line,
                        ref_type=ReferenceType.IMPORT,
                        token=f"{module}{separator}{name_match.group('name')}",
                        column=column,
                        optional=True,
                    )
                )
        return references


class CIncludeExtractor(PatternExtractor):
    """Quoted includes; angle-bracket includes use the system search path."""

    name = "c"
    suffixes = (".c", ".h", ".cc", ".cpp", ".cxx", ".hpp", ".hh", ".hxx", ".m", ".mm")
    patterns = (
        (
            ReferenceType.INCLUDE,
            re.compile(r"""^[ \t]*#[ \t]*(?:include|import)[ \t]*"(?P<ref>[^"\n]+)\"""", re.MULTILINE),
        ),
    )


class PhpExtractor(PatternExtractor):
    name = "php"
    suffixes = (".php",)
    patterns = (
        (
            ReferenceType.INCLUDE,
            re.compile(r"""\b(?:include|require)(?:_once)?\s*\(?\s*(['"])(?P<ref>[^'"\n]+)\1"""),
        ),
    )


class MarkupExtractor(PatternExtractor):
    name = "markup"
    suffixes = (".html", ".htm", ".xhtml")
    patterns = (
        (
            ReferenceType.PATH,
            re.compile(r"""\b(?:href|src)\s*=\s*(['"])(?P<ref>[^'"\n]+)\1""", re.IGNORECASE),
        ),
    )


class XmlExtractor(PatternExtractor):
    name = "xml"
    suffixes = (".xml", ".xsl", ".xslt", ".xsd", ".svg")
    patterns = (
        (
            ReferenceType.INCLUDE,
            re.compile(
                r"""\b(?:href|src|schemaLocation)\s*=\s*(['"])(?P<ref>[^'"\n]+)\1""",
                re.IGNORECASE,
            ),
        ),
    )


class StylesheetExtractor(PatternExtractor):
    name = "stylesheet"
    suffixes = (".css", ".less")
    patterns = (
        (
            ReferenceType.PATH,
            re.compile(r"""@import\s+(?:url\(\s*)?(['"]?)(?P<ref>[^'")\s;]+)\1"""),
        ),
        (
            ReferenceType.PATH,
            re.compile(r"""\burl\(\s*(['"]?)(?P<ref>[^'")\s]+)\1\s*\)"""),
        ),
    )


class ConfigFileExtractor(ReferenceExtractor):
    """Path-like values in YAML, JSON and TOML files."""

    name = "config"
    suffixes = CONFIG_SUFFIXES

    def extract(self, path: str, content: str) -> List[RawReference]:
        return [
            RawReference(
                source=path,
                line=literal.line,
                ref_type=ReferenceType.PATH,
                token=literal.value,
                column=literal.column,
            )
            for literal in extract_config_paths(content, file_suffix(path))
            if not is_dynamic_token(literal.value)
        ]


BUILTIN_EXTRACTORS: Tuple[type, ...] = (
    EcmaScriptExtractor,
    PythonExtractor,
    CIncludeExtractor,
    PhpExtractor,
    MarkupExtractor,
    XmlExtractor,
    StylesheetExtractor,
    ConfigFileExtractor,
)


class ExtractorRegistry:
    """Suffix-keyed registry of extractor strategies; first registration wins."""

    def __init__(self, extractors: Iterable[ReferenceExtractor] = ()):
        self._by_suffix: Dict[str, ReferenceExtractor] = {}
        self._extractors: List[ReferenceExtractor] = []
        for extractor in extractors:
            self.register(extractor)

    @classmethod
    def default(cls, load_plugins: bool = True) -> "ExtractorRegistry":
        """Return a registry of the built-in strategies plus installed plugins."""
        registry = cls(factory() for factory in BUILTIN_EXTRACTORS)
        if load_plugins:
            for entry in metadata.entry_points(group=ENTRY_POINT_GROUP):
                try:
                    loaded = entry.load()
                except Exception as exc:
                    raise RuntimeError(f"Failed to load extractor entry point '{entry.name}': {exc}") from exc
                registry.register(_coerce_extractor(loaded))
        return registry

    def register(self, extractor: ReferenceExtractor) -> None:
        if not isinstance(extractor, ReferenceExtractor):
            raise TypeError(f"Expected a ReferenceExtractor, got {type(extractor).__name__}")
        self._extractors.append(extractor)
        for suffix in extractor.suffixes:
            self._by_suffix.setdefault(suffix.lower(), extractor)

    def for_path(self, path: str) -> Optional[ReferenceExtractor]:
        return self._by_suffix.get(file_suffix(path))

    def is_source(self, path: str) -> bool:
        return file_suffix(path) in self._by_suffix

    @property
    def extractors(self) -> List[ReferenceExtractor]:
        return list(self._extractors)

    @property
    def suffixes(self) -> List[str]:
        return sorted(self._by_suffix)


def _coerce_extractor(obj: object) -> ReferenceExtractor:
    if isinstance(obj, ReferenceExtractor):
        return obj
    if isinstance(obj, type) and issubclass(obj, ReferenceExtractor):
        return obj()
    if callable(obj):
        instance = obj()
        if isinstance(instance, ReferenceExtractor):
            return instance
    raise TypeError("Extractor entry point must be a ReferenceExtractor subclass or factory")
