"""End-to-end tests for the analysis orchestrator."""

import threading
import time

import pytest

from analysis import (
    REASON_NO_REFERENCES,
    REASON_UNREACHABLE,
    AnalysisCancelled,
    AnalysisConfig,
    AnalysisInputError,
    AnalysisResult,
    analyze,
)
from graph.model import BrokenReference, ReferenceType, UnusedFile
from scanner.extractors import EcmaScriptExtractor, ExtractorRegistry, ReferenceExtractor


class SlowExtractor(ReferenceExtractor):
    """Blocks until released, to exercise the per-file time budget."""

    name = "slow"
    suffixes = (".slow",)

    def __init__(self):
        self.release = threading.Event()

    def extract(self, path, content):
        self.release.wait(5)
        return []


class CancellingExtractor(ReferenceExtractor):
    name = "cancelling"
    suffixes = (".js",)

    def __init__(self, cancel_event):
        self.cancel_event = cancel_event

    def extract(self, path, content):
        self.cancel_event.set()
        return []


class ExplodingExtractor(ReferenceExtractor):
    name = "exploding"
    suffixes = (".boom",)

    def extract(self, path, content):
        raise RuntimeError("kaboom")


def _paths(result):
    return [item.path for item in result.unused_files]


class TestScenarios:
    """The four reference scenarios for unused and broken detection."""

    def test_resolved_import_is_used(self, repo_builder):
        repo_builder.write({
            "main.js": "import lib from './lib';\n",
            "lib.js": "export default 1;\n",
        })

        result = analyze(repo_builder.path(), AnalysisConfig(entry_points=["main.js"]))

        assert result.unused_files == []
        assert result.broken_references == []
        assert result.total_files == 2
        assert result.analyzed_files == 2

    def test_missing_import_is_broken(self, repo_builder):
        repo_builder.write({"main.js": "const a = 1;\nimport missing from 'missing.js';\n"})

        result = analyze(repo_builder.path(), AnalysisConfig(entry_points=["main.js"]))

        assert result.broken_references == [
            BrokenReference(source="main.js", token="missing.js", line=2, ref_type=ReferenceType.IMPORT)
        ]
        assert result.to_dict()["brokenReferences"] == [
            {
                "sourceFile": "main.js",
                "referencedPath": "missing.js",
                "lineNumber": 2,
                "referenceType": "import",
            }
        ]

    def test_isolated_file_has_no_references(self, repo_builder):
        repo_builder.write({
            "main.js": "console.log('main');\n",
            "orphan.js": "const x = 1;\n",
        })

        result = analyze(repo_builder.path(), AnalysisConfig(entry_points=["main.js"]))

        assert result.unused_files == [UnusedFile(path="orphan.js", reason=REASON_NO_REFERENCES, size=13)]

    def test_unreachable_file_with_outgoing_edge(self, repo_builder):
        repo_builder.write({
            "a.js": "import b from './b';\n",
            "b.js": "export default 2;\n",
            "c.js": "import a from './a';\n",
        })

        result = analyze(repo_builder.path(), AnalysisConfig(entry_points=["a.js"]))

        assert [(item.path, item.reason) for item in result.unused_files] == [("c.js", REASON_UNREACHABLE)]


class TestAnalyze:
    """Tests for orchestration details."""

    def test_default_entry_points_and_exclusions(self, repo_builder):
        repo_builder.write({
            "src/index.js": "import used from './used';\n",
            "src/used.js": "export default 1;\n",
            "src/unused.js": "export default 2;\n",
            "tests/helpers.js": "export const h = 1;\n",
            "README.md": "# Demo\n",
            "logo.png": b"\x89PNG\x00\x00",
        })

        result = analyze(repo_builder.path())

        assert _paths(result) == ["src/unused.js"]
        assert result.total_files == 6
        assert result.analyzed_files == 4
        assert result.entry_points == ["src/index.js"]

    def test_cycle_without_entry_point(self, repo_builder):
        repo_builder.write({
            "main.js": "",
            "a.js": "import b from './b';\n",
            "b.js": "import a from './a';\n",
        })

        result = analyze(repo_builder.path(), AnalysisConfig(entry_points=["main.js"]))

        assert [(item.path, item.reason) for item in result.unused_files] == [
            ("a.js", REASON_UNREACHABLE),
            ("b.js", REASON_UNREACHABLE),
        ]

    def test_mixed_languages(self, repo_builder):
        """Test references across HTML, config, Python and stylesheets."""
        repo_builder.write({
            "package.json": '{"name": "demo", "bin": "cli/run.js"}\n',
            "cli/run.js": "require('../lib/tool');\n",
            "cli/old.js": "",
            "lib/tool.js": "",
            "web/page.html": '<link href="site.css"><script src="missing.js"></script>\n',
            "web/site.css": "body { background: url(bg.png); }\n",
            "web/bg.png": b"\x89PNG",
            "pkg/__init__.py": "from .core import run\n",
            "pkg/core.py": "from .helpers import tidy\n",
            "pkg/helpers.py": "",
            "pkg/legacy.py": "",
        })

        result = analyze(repo_builder.path())

        assert _paths(result) == ["cli/old.js", "pkg/legacy.py"]
        assert result.broken_references == [
            BrokenReference(source="web/page.html", token="missing.js", line=1, ref_type=ReferenceType.PATH)
        ]
        graph = result.graph
        assert graph.neighbors("package.json") == ["cli/run.js"]
        assert graph.neighbors("cli/run.js") == ["lib/tool.js"]
        assert graph.neighbors("web/site.css") == ["web/bg.png"]
        assert graph.neighbors("pkg/core.py") == ["pkg/helpers.py"]

    def test_submodule_imported_from_package(self, repo_builder):
        """Test that 'from . import name' reaches the submodule and drops attribute names."""
        repo_builder.write({
            "pkg/__init__.py": "from . import helpers\nfrom .core import run, VERSION\n",
            "pkg/helpers.py": "",
            "pkg/core.py": "",
        })

        result = analyze(repo_builder.path(), AnalysisConfig(entry_points=["pkg/__init__.py"]))

        assert result.unused_files == []
        assert result.broken_references == []
        neighbors = result.graph.neighbors("pkg/__init__.py")
        assert "pkg/helpers.py" in neighbors
        assert "pkg/core.py" in neighbors

    def test_no_entry_points_reports_every_source(self, repo_builder):
        repo_builder.write({"a.js": "import b from './b';\n", "b.js": ""})

        result = analyze(repo_builder.path(), AnalysisConfig(entry_points=[], exclude=[]))

        assert _paths(result) == ["a.js", "b.js"]

    def test_external_references_ignored(self, repo_builder):
        repo_builder.write({
            "index.js": "import React from 'react';\nimport x from '@scope/pkg';\nimport 'https://cdn.example.com/a.js';\n",
        })

        result = analyze(repo_builder.path())

        assert result.broken_references == []
        assert result.unused_files == []

    def test_binary_source_is_not_analyzed(self, repo_builder):
        repo_builder.write({
            "main.js": "",
            "bundle.js": b"\x00\x01\x02binary",
        })

        result = analyze(repo_builder.path(), AnalysisConfig(entry_points=["main.js"]))

        assert result.total_files == 2
        assert result.analyzed_files == 1
        assert result.unused_files == []

    def test_oversized_source_is_not_analyzed(self, repo_builder):
        repo_builder.write({
            "main.js": "",
            "big.js": "import x from './nowhere';\n" * 10,
        })

        result = analyze(repo_builder.path(), AnalysisConfig(entry_points=["main.js"], max_file_size=64))

        assert result.analyzed_files == 1
        assert result.broken_references == []
        assert result.unused_files == []

    def test_extractor_failure_is_not_fatal(self, repo_builder, caplog):
        repo_builder.write({"main.js": "", "x.boom": "data"})
        registry = ExtractorRegistry([EcmaScriptExtractor(), ExplodingExtractor()])

        with caplog.at_level("WARNING", logger="refcheck"):
            result = analyze(repo_builder.path(), AnalysisConfig(entry_points=["main.js"]), registry=registry)

        assert result.analyzed_files == 1
        assert result.unused_files == []
        assert "x.boom" in caplog.text

    def test_read_timeout_marks_file_failed(self, repo_builder):
        repo_builder.write({"main.js": "", "a.slow": "data"})
        slow = SlowExtractor()
        registry = ExtractorRegistry([EcmaScriptExtractor(), slow])

        try:
            result = analyze(
                repo_builder.path(),
                AnalysisConfig(entry_points=["main.js"], read_timeout=0.2),
                registry=registry,
            )
        finally:
            slow.release.set()

        assert result.total_files == 2
        assert result.analyzed_files == 1
        assert result.unused_files == []

    def test_hung_file_does_not_block_queued_files(self, repo_builder):
        """Test that files queued behind a hung read still run within the budget."""
        repo_builder.write({
            "a.slow": "data",
            "b.js": "",
            "main.js": "import b from './b';\n",
        })
        slow = SlowExtractor()
        registry = ExtractorRegistry([EcmaScriptExtractor(), slow])

        started = time.monotonic()
        try:
            result = analyze(
                repo_builder.path(),
                AnalysisConfig(entry_points=["main.js"], read_timeout=0.2, workers=1),
                registry=registry,
            )
            elapsed = time.monotonic() - started
        finally:
            slow.release.set()

        assert elapsed < 3
        assert result.analyzed_files == 2
        assert result.unused_files == []
        assert result.graph.neighbors("main.js") == ["b.js"]

    def test_deterministic(self, repo_builder):
        repo_builder.write({
            "index.js": "import a from './a';\nimport m from './missing';\n",
            "a.js": "",
            "b.js": "import c from './c';\n",
            "c.js": "",
        })
        config = AnalysisConfig(workers=4)

        first = analyze(repo_builder.path(), config)
        second = analyze(repo_builder.path(), config)

        assert first == second
        assert _paths(first) == ["b.js", "c.js"]

    def test_conservation(self, repo_builder):
        repo_builder.write({
            "index.js": "import x from './x';\n",
            "orphan.js": "",
            "notes.txt": "text",
        })

        result = analyze(repo_builder.path())

        assert result.analyzed_files <= result.total_files
        nodes = result.graph.nodes
        assert all(item.path in nodes for item in result.unused_files)
        assert all(ref.source in nodes for ref in result.broken_references)

    def test_result_equality_ignores_graph(self):
        first = AnalysisResult([], [], total_files=1, analyzed_files=1, entry_points=["a"])
        second = AnalysisResult([], [], total_files=1, analyzed_files=1)

        assert first == second
        assert not first.has_findings


class TestAnalyzeErrors:
    """Tests for fatal errors and cancellation."""

    def test_missing_root(self, tmp_path):
        with pytest.raises(AnalysisInputError):
            analyze(tmp_path / "does-not-exist")

    def test_root_is_file(self, tmp_path):
        path = tmp_path / "file.js"
        path.write_text("", encoding="utf-8")

        with pytest.raises(AnalysisInputError):
            analyze(path)

    def test_cancelled_before_start(self, repo_builder):
        repo_builder.write({"main.js": ""})
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(AnalysisCancelled):
            analyze(repo_builder.path(), cancel_event=cancel)

    def test_cancelled_during_extraction(self, repo_builder):
        repo_builder.write({"main.js": "", "other.js": ""})
        cancel = threading.Event()
        registry = ExtractorRegistry([CancellingExtractor(cancel)])

        with pytest.raises(AnalysisCancelled):
            analyze(repo_builder.path(), cancel_event=cancel, registry=registry)
