"""Shared fixtures: throwaway warren projects on disk."""

import textwrap
from pathlib import Path

import pytest


class Project:
    """A project root under ``tmp_path`` with a helper to lay out files."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def write(self, relative: str, source: str = "") -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(source).lstrip("\n"), encoding="utf-8")
        return path

    def page(self, route_dir: str, source: str) -> Path:
        """Write ``src/app/<route_dir>/page.py``."""
        prefix = f"src/app/{route_dir.strip('/')}/" if route_dir.strip("/") else "src/app/"
        return self.write(f"{prefix}page.py", source)


@pytest.fixture
def project(tmp_path: Path) -> Project:
    return Project(tmp_path)
