"""
Tests for the modularity gain functions and partition modularity.
"""

import pytest

from bcLeiden.network.graph import Graph
from bcLeiden.network.communities import Community
from bcLeiden.network.modularity import (
    community_degree,
    vertex_move_gain,
    merge_gain,
    partition_modularity
)
from bcLeiden.common.exceptions import ComputationError, ValidationError


class TestGains:
    """Test vertex move and merge gains against hand-computed values."""

    def setup_method(self):
        """Set up the sample graph and its hop-count vertex betweenness."""
        self.graph = Graph.from_edges([
            (1, 2, 0.1), (1, 3, 0.4), (2, 4, 0.5), (3, 4, 0.7), (4, 5, 0.8), (5, 6, 0.2)
        ])
        self.betweenness = {1: 1.0, 2: 3.0, 3: 3.0, 4: 13.0, 5: 8.0, 6: 0.0}

    def test_community_degree(self):
        """Test that community degree sums member degrees."""
        assert community_degree({4, 5}, self.graph) == 5
        assert community_degree(Community(1, {1, 2, 3}), self.graph) == 6
        assert community_degree(set(), self.graph) == 0

    def test_vertex_move_gain(self):
        """Test k_v/2m - sum(k_u k_v)/4m^2 + b(v)."""
        gain = vertex_move_gain(4, Community(2, {2, 3}), self.graph, self.betweenness)
        assert gain == pytest.approx(3 / 12 - 12 / 144 + 13.0)

    def test_vertex_move_gain_single_edge(self):
        """Test the gain on a lone edge with and without betweenness."""
        graph = Graph.from_edges([(1, 2)])

        assert vertex_move_gain(1, {1}, graph, {}) == pytest.approx(0.25)
        assert vertex_move_gain(1, {2}, graph, {1: 0.5}) == pytest.approx(0.75)

    def test_merge_gain(self):
        """Test (dA+dB)/2m - (dA/2m)(dB/2m) + sum b(A) + sum b(B)."""
        gain = merge_gain(
            Community(1, {1, 2}), Community(3, {3, 4}), self.graph, self.betweenness
        )
        assert gain == pytest.approx(9 / 12 - (4 / 12) * (5 / 12) + 4.0 + 16.0)

    def test_merge_gain_is_symmetric(self):
        """Test that the merge gain does not depend on argument order."""
        a, b = Community(5, {5, 6}), Community(1, {1})
        assert merge_gain(a, b, self.graph, self.betweenness) == pytest.approx(
            merge_gain(b, a, self.graph, self.betweenness)
        )

    def test_missing_betweenness_counts_as_zero(self):
        """Test the zero fallback for vertices absent from the map."""
        gain = merge_gain({1}, {2}, Graph.from_edges([(1, 2)]), {})
        assert gain == pytest.approx(0.75)

    def test_zero_edges_raise(self):
        """Test that the gains are undefined without edges."""
        graph = Graph.from_edges([], vertices=[1, 2])

        with pytest.raises(ComputationError, match="without edges"):
            vertex_move_gain(1, {2}, graph, {})
        with pytest.raises(ComputationError, match="without edges"):
            merge_gain({1}, {2}, graph, {})

    def test_zero_edge_error_wraps_division(self):
        """Test that the zero-edge error is chained to the division failure."""
        graph = Graph.from_edges([], vertices=[1, 2])

        with pytest.raises(ComputationError) as excinfo:
            merge_gain({1}, {2}, graph, {})

        error = excinfo.value
        assert isinstance(error.__cause__, ZeroDivisionError)
        assert error.error_type == "numerical"
        assert error.operation == "merge_gain"
        assert error.details == {"vertices": 2, "edges": 0}

    def test_gains_do_not_mutate(self):
        """Test that the betweenness map is left untouched."""
        before = dict(self.betweenness)
        vertex_move_gain(6, {5}, self.graph, self.betweenness)
        merge_gain({1}, {6}, self.graph, self.betweenness)

        assert self.betweenness == before


class TestPartitionModularity:
    """Test Newman modularity computed through NetworkIt."""

    def test_single_community(self):
        """Test that one community spanning a lone edge scores zero."""
        graph = Graph.from_edges([(1, 2)])
        assert partition_modularity(graph, [Community(1, {1, 2})]) == pytest.approx(0.0)

    def test_singletons(self):
        """Test that splitting a lone edge scores -0.5."""
        graph = Graph.from_edges([(1, 2)])
        assert partition_modularity(graph, [{1}, {2}]) == pytest.approx(-0.5)

    def test_two_components(self):
        """Test the natural split of two disjoint edges."""
        graph = Graph.from_edges([(1, 2), (3, 4)])
        assert partition_modularity(graph, [{1, 2}, {3, 4}]) == pytest.approx(0.5)

    def test_weights_are_used(self):
        """Test that weighted degrees enter the score."""
        graph = Graph.from_edges([(1, 2, 3.0), (2, 3, 1.0), (3, 4, 3.0)])
        split = partition_modularity(graph, [{1, 2}, {3, 4}])
        # intra weight 6 of 7, each side has volume 7 of 14
        assert split == pytest.approx(6 / 7 - 2 * 0.25)

    def test_edgeless_graph(self):
        """Test that a graph without edges scores zero."""
        graph = Graph.from_edges([], vertices=[1, 2])
        assert partition_modularity(graph, [{1}, {2}]) == 0.0

    def test_incomplete_partition(self):
        """Test that every vertex must be assigned."""
        graph = Graph.from_edges([(1, 2), (2, 3)])
        with pytest.raises(ValidationError, match="cover every vertex"):
            partition_modularity(graph, [{1, 2}])

    def test_overlapping_partition(self):
        """Test that communities must be disjoint."""
        graph = Graph.from_edges([(1, 2), (2, 3)])
        with pytest.raises(ValidationError, match="more than one community"):
            partition_modularity(graph, [{1, 2}, {2, 3}])
