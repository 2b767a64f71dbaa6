"""Calculate a file-level dependency tree for a set of source files."""

__version__ = "1.0.0"

from .graph import DirectedGraph, get_dependencies, get_references
from .scanner.builder import DependencyTree, GatherResult

__all__ = [
    "DependencyTree",
    "DirectedGraph",
    "GatherResult",
    "__version__",
    "get_dependencies",
    "get_references",
]
