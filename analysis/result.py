"""Aggregate result of one analysis run."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from graph.model import (
    REASON_NO_REFERENCES,
    REASON_UNREACHABLE,
    BrokenReference,
    ReferenceGraph,
    UnusedFile,
)


@dataclass
class AnalysisResult:
    """
    Unused files, broken references and file counts for one tree.

    Lists are kept sorted so two runs over the same tree compare equal.
    ``entry_points`` and ``graph`` are informational and excluded from
    equality.
    """

    unused_files: List[UnusedFile]
    broken_references: List[BrokenReference]
    total_files: int
    analyzed_files: int
    entry_points: List[str] = field(default_factory=list, compare=False)
    graph: Optional[ReferenceGraph] = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        self.unused_files = sorted(self.unused_files, key=lambda item: item.path)
        self.broken_references = sorted(
            self.broken_references,
            key=lambda ref: (ref.source, ref.line, ref.token, ref.ref_type.value),
        )
        self.entry_points = sorted(self.entry_points)

    @property
    def has_findings(self) -> bool:
        return bool(self.unused_files or self.broken_references)

    def to_dict(self) -> Dict[str, Any]:
        """Return the result keyed the way callers consume it."""
        return {
            "totalFiles": self.total_files,
            "analyzedFiles": self.analyzed_files,
            "unusedFiles": [
                {"filePath": item.path, "reason": item.reason, "fileSize": item.size}
                for item in self.unused_files
            ],
            "brokenReferences": [
                {
                    "sourceFile": ref.source,
                    "referencedPath": ref.token,
                    "lineNumber": ref.line,
                    "referenceType": ref.ref_type.value,
                }
                for ref in self.broken_references
            ],
        }


__all__ = [
    "AnalysisResult",
    "REASON_NO_REFERENCES",
    "REASON_UNREACHABLE",
]
