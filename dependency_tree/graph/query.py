"""Transitive dependency and reference queries."""

from typing import Dict, Iterable, Set

from .model import DirectedGraph


def get_dependencies(file_to_deps: Dict[str, Set[str]], files: Iterable[str]) -> Set[str]:
    """
    Return the dependencies (and transitive dependencies) of the given files.

    Args:
        file_to_deps: Mapping from a file to the files it depends on.
        files: The entrypoint files.

    Returns:
        Every file the entrypoints (indirectly) depend on, excluding the
        entrypoints themselves.
    """
    return find_related_files(DirectedGraph(file_to_deps), files)


def get_references(file_to_deps: Dict[str, Set[str]], files: Iterable[str]) -> Set[str]:
    """
    Return the files that (indirectly) reference the given files.

    The graph is transposed because we are interested in the files that
    depend on the entrypoints rather than the files the entrypoints depend on.
    """
    return find_related_files(DirectedGraph(file_to_deps).transpose(), files)


def find_related_files(graph: DirectedGraph, files: Iterable[str]) -> Set[str]:
    """
    Walk a graph and collect every node reachable from the entrypoints.

    A file is never related to itself, so the entrypoints are removed from
    the result.
    """
    entrypoints = list(files)
    related = set(graph.many_walk_dfs(entrypoints))
    related.difference_update(entrypoints)
    return related
