"""Tests for the directed graph model."""

import pytest

from dependency_tree.graph.model import DirectedGraph


def edge_pairs(graph):
    return set(graph.iter_edges())


class TestDirectedGraph:
    """Tests for DirectedGraph."""

    def test_empty_graph(self):
        """Test empty graph initialization."""
        graph = DirectedGraph({})
        assert len(graph) == 0
        assert graph.nodes == set()
        assert list(graph.many_walk_dfs([])) == []

    def test_edges_are_wrapped_not_copied(self):
        """The graph reads through to the mapping it was given."""
        edges = {"a": {"b"}}
        graph = DirectedGraph(edges)
        edges["b"] = {"c"}
        assert graph.get_targets("b") == {"c"}

    def test_get_targets_returns_a_copy(self):
        """Changing the returned set leaves the edges untouched."""
        edges = {"a": {"b"}}
        graph = DirectedGraph(edges)
        graph.get_targets("a").add("z")
        graph.get_targets("missing").add("z")
        assert edges == {"a": {"b"}}

    def test_nodes_include_targets(self):
        """Test that targets without outgoing edges are nodes too."""
        graph = DirectedGraph({"a": {"b", "d"}, "b": {"c"}})
        assert graph.nodes == {"a", "b", "c", "d"}
        assert "c" in graph
        assert "x" not in graph

    def test_repr(self):
        """Test string representation."""
        graph = DirectedGraph({"a": {"b"}})
        assert "nodes=2" in repr(graph)
        assert "edges=1" in repr(graph)


class TestTranspose:
    """Tests for reversing a graph."""

    def test_reverses_every_edge(self):
        """Every edge (a, b) becomes (b, a)."""
        graph = DirectedGraph({"a": {"b", "d"}, "b": {"c"}})
        transposed = graph.transpose()
        assert edge_pairs(transposed) == {("b", "a"), ("d", "a"), ("c", "b")}

    def test_targets_become_keys(self):
        """Targets of the original appear as keys with a non-empty set."""
        transposed = DirectedGraph({"a": {"b", "d"}, "b": {"c"}}).transpose()
        assert transposed.edges == {"b": {"a"}, "d": {"a"}, "c": {"b"}}
        assert "a" not in transposed.edges

    def test_nodes_without_edges_are_dropped(self):
        """A node with an empty edge set has nothing to reverse."""
        transposed = DirectedGraph({"a": set(), "b": {"c"}}).transpose()
        assert transposed.edges == {"c": {"b"}}

    def test_returns_new_graph(self):
        """The original graph is not modified."""
        edges = {"a": {"b"}}
        graph = DirectedGraph(edges)
        graph.transpose()
        assert edges == {"a": {"b"}}

    @pytest.mark.parametrize("edges", [
        {},
        {"a": {"b"}},
        {"a": {"b", "d"}, "b": {"c"}},
        {"a": {"b"}, "b": {"a"}},
        {"a": {"a"}},
        {"a": {"b", "c"}, "b": {"c"}, "c": set(), "x": {"a"}},
    ])
    def test_double_transpose_round_trips(self, edges):
        """Transposing twice gives back the same set of edges."""
        graph = DirectedGraph(edges)
        assert edge_pairs(graph.transpose().transpose()) == edge_pairs(graph)


class TestWalk:
    """Tests for depth-first traversal."""

    def test_many_walk_dfs_yields_reachable_nodes_once(self):
        """a -> b -> c and a -> d yields exactly a, b, c, d."""
        graph = DirectedGraph({"a": {"b", "d"}, "b": {"c"}})
        visited = list(graph.many_walk_dfs(["a"]))
        assert sorted(visited) == ["a", "b", "c", "d"]

    def test_pre_order(self):
        """The entrypoint is yielded first and a parent before its child."""
        graph = DirectedGraph({"a": {"b", "d"}, "b": {"c"}})
        visited = list(graph.many_walk_dfs(["a"]))
        assert visited[0] == "a"
        assert visited.index("b") < visited.index("c")

    def test_shared_visited_set_across_entrypoints(self):
        """A node reachable from two entrypoints is yielded once."""
        graph = DirectedGraph({"a": {"c"}, "b": {"c"}, "c": {"d"}})
        visited = list(graph.many_walk_dfs(["a", "b"]))
        assert sorted(visited) == ["a", "b", "c", "d"]
        assert len(visited) == len(set(visited))

    def test_entrypoint_order(self):
        """Walks start from the entrypoints in the order given."""
        graph = DirectedGraph({"a": {"c"}, "b": {"c"}})
        visited = list(graph.many_walk_dfs(["b", "a"]))
        assert visited == ["b", "c", "a"]

    def test_cycles_are_safe(self):
        """Nodes on a cycle are yielded once and the walk terminates."""
        graph = DirectedGraph({"a": {"b"}, "b": {"c"}, "c": {"a"}})
        assert sorted(graph.many_walk_dfs(["a"])) == ["a", "b", "c"]

    def test_self_loop(self):
        """A node depending on itself is yielded once."""
        graph = DirectedGraph({"a": {"a"}})
        assert list(graph.many_walk_dfs(["a"])) == ["a"]

    def test_unknown_entrypoint_has_no_edges(self):
        """An entrypoint absent from the mapping is yielded alone."""
        graph = DirectedGraph({"a": {"b"}})
        assert list(graph.many_walk_dfs(["z"])) == ["z"]

    def test_walk_is_lazy(self):
        """The walk is a generator consumed on demand."""
        graph = DirectedGraph({"a": {"b"}})
        walk = graph.many_walk_dfs(["a"])
        assert next(walk) == "a"
        assert next(walk) == "b"
        with pytest.raises(StopIteration):
            next(walk)

    def test_walk_dfs_with_threaded_visited_set(self):
        """Passing a visited set skips nodes already seen."""
        graph = DirectedGraph({"a": {"b"}, "b": {"c"}})
        visited = {"b"}
        assert list(graph.walk_dfs("a", visited)) == ["a"]
        assert visited == {"a", "b"}

    def test_each_call_starts_fresh(self):
        """Separate calls do not share visited state."""
        graph = DirectedGraph({"a": {"b"}})
        assert sorted(graph.many_walk_dfs(["a"])) == ["a", "b"]
        assert sorted(graph.many_walk_dfs(["a"])) == ["a", "b"]
