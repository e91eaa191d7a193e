"""
Shared fixtures: the six sample graphs used throughout the network tests.
"""

import pytest

from bcLeiden.network.graph import Graph


SAMPLE_EDGES = {
    "six": [(1, 2, 0.1), (1, 3, 0.4), (2, 4, 0.5), (3, 4, 0.7), (4, 5, 0.8), (5, 6, 0.2)],
    "seven": [
        (1, 2, 0.2), (1, 3, 0.3), (2, 4, 0.6), (3, 4, 0.5),
        (4, 5, 0.4), (5, 6, 0.7), (6, 7, 0.8), (5, 7, 0.9)
    ],
    "eight": [
        (1, 2, 0.1), (1, 3, 0.3), (2, 4, 0.4), (3, 4, 0.6), (4, 5, 0.5),
        (5, 6, 0.7), (6, 7, 0.2), (7, 8, 0.8), (3, 6, 0.9), (2, 8, 0.4)
    ],
    "ten": [
        (1, 2, 0.2), (1, 3, 0.5), (2, 4, 0.3), (3, 4, 0.4), (4, 5, 0.5), (5, 6, 0.6),
        (6, 7, 0.2), (7, 8, 0.1), (8, 9, 0.8), (9, 10, 0.3), (3, 9, 0.7), (2, 10, 0.4)
    ],
    "complete": [
        (1, 2, 0.2), (1, 3, 0.5), (1, 4, 0.3), (1, 5, 0.4), (2, 3, 0.5),
        (2, 4, 0.6), (2, 5, 0.2), (3, 4, 0.1), (3, 5, 0.8), (4, 5, 0.3)
    ],
}


@pytest.fixture
def six_vertex_graph():
    """Two routes 1-2-4 and 1-3-4 joined to a tail 4-5-6."""
    return Graph.from_edges(SAMPLE_EDGES["six"])


@pytest.fixture
def path_graph():
    """Path 1-2-3-4 with unit weights."""
    return Graph.from_edges([(1, 2), (2, 3), (3, 4)])


@pytest.fixture(params=sorted(SAMPLE_EDGES))
def sample_graph(request):
    """Each of the sample graphs in turn."""
    return Graph.from_edges(SAMPLE_EDGES[request.param])
