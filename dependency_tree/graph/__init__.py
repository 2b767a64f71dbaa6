"""Graph model and transitive queries over resolved dependencies."""

from .model import DirectedGraph
from .query import find_related_files, get_dependencies, get_references

__all__ = [
    "DirectedGraph",
    "find_related_files",
    "get_dependencies",
    "get_references",
]
