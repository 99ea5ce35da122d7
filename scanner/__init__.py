"""Scanner module for file discovery, reference extraction and resolution."""

from .discovery import enumerate_tree, iter_files
from .extractors import ExtractionError, ExtractorRegistry, ReferenceExtractor
from .resolver import Resolver
from .builder import build_graph, extract_file

__all__ = [
    "ExtractionError",
    "ExtractorRegistry",
    "ReferenceExtractor",
    "Resolver",
    "build_graph",
    "enumerate_tree",
    "extract_file",
    "iter_files",
]
