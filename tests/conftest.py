"""Shared fixtures for refcheck tests."""

import logging
import textwrap
from pathlib import Path
from typing import Mapping, Union

import pytest


class RepoBuilder:
    """Utility for writing files into a throwaway source tree."""

    def __init__(self, tmp_path: Path):
        self.root = tmp_path / "repo"
        self.root.mkdir()

    def write(self, files: Mapping[str, Union[str, bytes]]) -> None:
        """Write `path -> contents` entries into the tree."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, bytes):
                path.write_bytes(content)
            else:
                path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")

    def path(self) -> Path:
        """Return the tree root path."""
        return self.root


@pytest.fixture
def repo_builder(tmp_path: Path) -> RepoBuilder:
    """Provide a reusable tree builder rooted at the pytest tmp_path."""
    return RepoBuilder(tmp_path)


@pytest.fixture(autouse=True)
def reset_refcheck_logger():
    """Undo CLI logging configuration so caplog keeps working between tests."""
    yield
    logger = logging.getLogger("refcheck")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
