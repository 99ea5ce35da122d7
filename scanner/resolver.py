"""Path resolution utilities for mapping reference tokens to tree files."""

import posixpath
import re
from typing import Collection, Iterator, Optional, Sequence, Union

from graph.model import BrokenReference, RawReference, ReferenceType, ResolvedEdge

DEFAULT_EXTENSIONS = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".json", ".py")
DEFAULT_INDEX_FILES = (
    "index.ts",
    "index.tsx",
    "index.js",
    "index.jsx",
    "index.mjs",
    "index.cjs",
    "__init__.py",
)
DIRECTORY_INDEX_PAGES = ("index.html", "index.htm")

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]+:")
_PY_RELATIVE_RE = re.compile(r"^(\.+)([\w.]*)$")
_FILE_NAME_RE = re.compile(r"^[\w\-]+(?:\.[\w\-]+)*\.[A-Za-z]\w{0,9}$")
_MODULE_TYPES = (ReferenceType.IMPORT, ReferenceType.REQUIRE)

Resolution = Union[ResolvedEdge, BrokenReference]


def strip_query(token: str) -> str:
    """Drop a trailing ?query or #fragment from a token."""
    return re.split(r"[?#]", token, maxsplit=1)[0]


def python_module_to_path(token: str) -> str:
    """
    Convert a relative Python module token to a relative path.

    '.' -> './', '.mod' -> './mod', '..pkg.mod' -> '../pkg/mod'. Tokens
    that are not dotted relative modules are returned unchanged.
    """
    match = _PY_RELATIVE_RE.match(token)
    if not match:
        return token
    dots, module = match.groups()
    prefix = "./" if len(dots) == 1 else "../" * (len(dots) - 1)
    return prefix + module.replace(".", "/")


def is_external(token: str, ref_type: ReferenceType) -> bool:
    """
    Check if a token points outside the tree.

    Tokens with a URL scheme or a protocol-relative '//' prefix are always
    external. For import/require, a specifier without a relative or rooted
    prefix names a package ('react', '@scope/pkg', 'react-dom/client')
    unless it is shaped like a file name ('lib.js'), which is looked up
    next to the referencing file.
    """
    if token.startswith("//") or _SCHEME_RE.match(token):
        return True
    if ref_type in _MODULE_TYPES:
        if token.startswith((".", "/")):
            return False
        return not _FILE_NAME_RE.match(token)
    return False


def _is_within_repo(candidate: str) -> bool:
    """Check if a normalized relative candidate stays inside the tree root."""
    return candidate not in ("", ".", "..") and not candidate.startswith("../")


def _join(base_dir: str, token: str) -> str:
    return posixpath.normpath(posixpath.join(base_dir, token))


def _is_directory_link(token: str) -> bool:
    """Check if a path token names a directory, e.g. '/', './' or 'docs/'."""
    return token.endswith("/") or posixpath.normpath(token) in (".", "..")


class Resolver:
    """
    Maps RawReferences onto the FileNode index.

    Lookups use the in-memory node set only; the filesystem is never
    consulted, so resolution is safe to run from many threads.
    """

    def __init__(
        self,
        nodes: Collection[str],
        extensions: Sequence[str] = DEFAULT_EXTENSIONS,
        index_files: Sequence[str] = DEFAULT_INDEX_FILES,
    ):
        self._nodes = frozenset(nodes)
        self._extensions = tuple(extensions)
        self._index_files = tuple(index_files)

    def resolve(self, ref: RawReference) -> Optional[Resolution]:
        """
        Resolve one reference.

        Returns:
            ResolvedEdge if a tree file matches, BrokenReference if none
            does, or None if the token is external. None is also returned
            when an optional reference or a directory link matches nothing.
        """
        token = strip_query(ref.token.strip()).replace("\\", "/")
        if not token:
            return None

        if ref.ref_type in _MODULE_TYPES:
            token = python_module_to_path(token)

        if is_external(token, ref.ref_type):
            return None

        directory_link = ref.ref_type is ReferenceType.PATH and _is_directory_link(token)
        if directory_link:
            candidates = self._directory_candidates(ref.source, token)
        else:
            candidates = self._candidates(ref.source, token, ref.ref_type)

        for candidate in candidates:
            if candidate in self._nodes:
                return ResolvedEdge(source=ref.source, target=candidate, ref_type=ref.ref_type)

        # A directory link without an index page names no file to report.
        if ref.optional or directory_link:
            return None
        return BrokenReference.from_raw(ref)

    def _directory_candidates(self, source: str, token: str) -> Iterator[str]:
        if token.startswith("/"):
            bases = [""]
            token = token.lstrip("/")
        else:
            bases = [posixpath.dirname(source), ""]

        for base in bases:
            directory = _join(base, token)
            if directory != "." and not _is_within_repo(directory):
                continue
            for index_name in DIRECTORY_INDEX_PAGES:
                yield index_name if directory == "." else f"{directory}/{index_name}"

    def _candidates(self, source: str, token: str, ref_type: ReferenceType) -> Iterator[str]:
        source_dir = posixpath.dirname(source)

        if token.startswith("/"):
            # Rooted tokens are relative to the tree root for every type.
            bases = [""]
            token = token.lstrip("/")
        elif ref_type is ReferenceType.PATH:
            bases = [source_dir, ""]
        else:
            bases = [source_dir]

        for base in bases:
            candidate = _join(base, token)
            if candidate == "." and ref_type in _MODULE_TYPES:
                # The tree root itself, e.g. "from . import x" at top level
                yield from self._index_files
                continue
            if not _is_within_repo(candidate):
                continue

            # Strategy 1: token as given
            yield candidate

            if ref_type not in _MODULE_TYPES:
                continue

            # Strategy 2: extension inference
            suffix = posixpath.splitext(candidate)[1]
            if suffix not in self._extensions:
                for ext in self._extensions:
                    yield candidate + ext

            # Strategy 3: directory index file
            for index_name in self._index_files:
                yield f"{candidate}/{index_name}"
