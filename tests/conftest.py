"""Shared fixtures for building source trees on disk."""

import os
import textwrap

import pytest


class SourceTree:
    """A temporary directory populated with source files."""

    def __init__(self, root):
        self.root = os.path.realpath(str(root))

    def path(self, *parts):
        return os.path.join(self.root, *parts)

    def write(self, relative, content=""):
        """Create a file (and its parent directories) with dedented content."""
        path = self.path(*relative.split("/"))
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            f.write(textwrap.dedent(content))
        return path


@pytest.fixture
def source_tree(tmp_path):
    return SourceTree(tmp_path / "src")


@pytest.fixture
def make_tree(tmp_path):
    """Build a SourceTree from a mapping of relative path to content."""

    def _make(files, name="src"):
        tree = SourceTree(tmp_path / name)
        os.makedirs(tree.root, exist_ok=True)
        for relative, content in files.items():
            tree.write(relative, content)
        return tree

    return _make
