"""Graph data model for file dependency relationships."""

from typing import Dict, Iterable, Iterator, Optional, Set, Tuple


class DirectedGraph:
    """
    A directed graph stored as its edges.

    Nodes are absolute file paths and an edge ``a -> b`` means ``a`` depends
    on ``b``. The graph

        +-> b --> c
    a --|
        +-> d

    is represented by the mapping ``{a: {b, d}, b: {c}}``. A node without an
    entry in the mapping simply has no outgoing edges.

    The edge mapping is wrapped, not copied.
    """

    def __init__(self, edges: Dict[str, Set[str]]):
        self._edges = edges

    @property
    def edges(self) -> Dict[str, Set[str]]:
        """Return the wrapped adjacency mapping."""
        return self._edges

    @property
    def nodes(self) -> Set[str]:
        """Return every node that appears as a source or a target."""
        nodes = set(self._edges)
        for targets in self._edges.values():
            nodes.update(targets)
        return nodes

    def get_targets(self, source: str) -> Set[str]:
        """Get the direct successors of a node."""
        return self._edges.get(source, set()).copy()

    def iter_edges(self) -> Iterator[Tuple[str, str]]:
        """Iterate over all edges as (source, target) tuples."""
        for source, targets in self._edges.items():
            for target in sorted(targets):
                yield source, target

    def transpose(self) -> "DirectedGraph":
        """
        Return a new graph with the direction of every edge reversed.

        From this

            +-> b --> c
        a --|
            +-> d

        to this

        c --> b --+
                  |-> a
              d --+

        Every target of the original graph becomes a key of the result.
        """
        inverted: Dict[str, Set[str]] = {}
        for node, targets in self._edges.items():
            for target in targets:
                if target not in inverted:
                    inverted[target] = set()
                inverted[target].add(node)
        return DirectedGraph(inverted)

    def many_walk_dfs(self, entrypoints: Iterable[str]) -> Iterator[str]:
        """
        Perform one depth-first walk per entrypoint, in order.

        The walks share a single visited set, so a node reachable from
        several entrypoints is yielded once, when it is first discovered.
        """
        visited: Set[str] = set()
        for entrypoint in entrypoints:
            yield from self.walk_dfs(entrypoint, visited)

    def walk_dfs(self, entrypoint: str, visited: Optional[Set[str]] = None) -> Iterator[str]:
        """
        Walk the graph depth-first from a single node, yielding in pre-order.

        Args:
            entrypoint: The node to start from.
            visited: Nodes already seen. Pass the same set to several walks
                to visit each node only once across all of them.

        Yields:
            Each reachable node (including the entrypoint) exactly once.
        """
        if visited is None:
            visited = set()

        to_visit = [entrypoint]
        while to_visit:
            node = to_visit.pop()
            if node in visited:
                continue

            yield node
            visited.add(node)

            to_visit.extend(self._edges.get(node, ()))

    def __len__(self) -> int:
        """Return the number of nodes in the graph."""
        return len(self.nodes)

    def __contains__(self, node: str) -> bool:
        """Check if a node is in the graph."""
        return node in self._edges or any(node in t for t in self._edges.values())

    def __repr__(self) -> str:
        edge_count = sum(len(t) for t in self._edges.values())
        return f"DirectedGraph(nodes={len(self)}, edges={edge_count})"
