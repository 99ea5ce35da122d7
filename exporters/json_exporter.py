"""JSON exporter for analysis results (machine-friendly format)."""

import json

from analysis.result import AnalysisResult


def to_json(result: AnalysisResult, indent: int = 2) -> str:
    """
    Convert an analysis result to JSON.

    Args:
        result: The analysis result to export.
        indent: JSON indentation level.

    Returns:
        JSON object with totalFiles, analyzedFiles, unusedFiles and
        brokenReferences keys.
    """
    return json.dumps(result.to_dict(), indent=indent)
