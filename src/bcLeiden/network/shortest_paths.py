"""
Single-source shortest-path engine for the bcLeiden library.

Two search variants are provided, both recording *every* predecessor that
lies on some shortest path (required for betweenness accounting):

- Unweighted hop-count mode: breadth-first search with a FIFO frontier.
- Weighted mode: Dijkstra search with a binary heap and a pluggable edge
  cost function (literal weight, reciprocal weight, ...).

Edges are undirected: any edge whose ``src`` or ``dst`` equals the expanded
vertex yields the opposite endpoint as a neighbour.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Union
import heapq
import math

from bcLeiden.network.graph import Edge, Graph
from bcLeiden.common.exceptions import ValidationError, validate_parameter
from bcLeiden.common.logging_config import get_logger

logger = get_logger(__name__)

DistanceFunction = Callable[[Edge], float]
DistanceSpec = Union[str, DistanceFunction]

UNREACHABLE = math.inf

# Named edge cost functions
DISTANCE_FUNCTIONS: Dict[str, DistanceFunction] = {
    "hop": lambda edge: 1.0,
    "weight": lambda edge: edge.weight,
    "inverse_weight": lambda edge: 1.0 / edge.weight,
    "hop_inverse_weight": lambda edge: 1.0 + 1.0 / edge.weight,
}
AVAILABLE_DISTANCES = list(DISTANCE_FUNCTIONS)
DEFAULT_DISTANCE = "hop"


@dataclass
class ShortestPathResult:
    """
    Shortest-path tables for one source vertex.

    Attributes
    ----------
    source : int
        The source vertex
    distances : Dict[int, float]
        Distance from the source; ``inf`` for unreachable vertices
    predecessors : Dict[int, List[int]]
        Immediate predecessors on any shortest path. Empty for the source
        and for unreachable vertices.
    sigma : Dict[int, float]
        Number of shortest paths from the source (``sigma[source] == 1``)
    order : List[int]
        Reachable vertices in the order they were settled, which is
        non-decreasing distance from the source
    """

    source: int
    distances: Dict[int, float] = field(default_factory=dict)
    predecessors: Dict[int, List[int]] = field(default_factory=dict)
    sigma: Dict[int, float] = field(default_factory=dict)
    order: List[int] = field(default_factory=list)

    def is_reachable(self, vertex: int) -> bool:
        return self.distances.get(vertex, UNREACHABLE) != UNREACHABLE


def resolve_distance(distance: DistanceSpec) -> DistanceFunction:
    """
    Turn a distance name or callable into an edge cost function.

    Parameters
    ----------
    distance : str or Callable[[Edge], float]
        One of ``AVAILABLE_DISTANCES`` or a function returning a positive
        traversal cost for an edge

    Raises
    ------
    ConfigurationError
        If the name is unknown
    """
    if callable(distance):
        return distance
    validate_parameter(distance, AVAILABLE_DISTANCES, "distance", "resolve_distance")
    return DISTANCE_FUNCTIONS[distance]


def _initial_tables(graph: Graph, source: int) -> ShortestPathResult:
    if not graph.has_vertex(source):
        raise ValidationError("Source vertex is not part of the graph", field="source", value=source)

    result = ShortestPathResult(source=source)
    for vertex in graph.ordered_vertices:
        result.distances[vertex] = UNREACHABLE
        result.predecessors[vertex] = []
        result.sigma[vertex] = 0.0

    result.distances[source] = 0.0
    result.sigma[source] = 1.0
    return result


def bfs_shortest_paths(graph: Graph, source: int) -> ShortestPathResult:
    """
    Hop-count shortest paths from ``source``.

    Every edge costs 1 regardless of its weight. A vertex's distance is fixed
    when it is first discovered; reaching it again at the same distance from
    another vertex appends that vertex as a predecessor.
    """
    result = _initial_tables(graph, source)
    distances, predecessors, sigma = result.distances, result.predecessors, result.sigma

    queue = deque([source])
    while queue:
        vertex = queue.popleft()
        result.order.append(vertex)
        next_distance = distances[vertex] + 1

        for neighbor in graph.neighbors(vertex):
            if distances[neighbor] == UNREACHABLE:
                distances[neighbor] = next_distance
                queue.append(neighbor)

            if distances[neighbor] == next_distance:
                sigma[neighbor] += sigma[vertex]
                predecessors[neighbor].append(vertex)

    return result


def dijkstra_shortest_paths(
    graph: Graph,
    source: int,
    distance: DistanceSpec = "weight"
) -> ShortestPathResult:
    """
    Weighted shortest paths from ``source``.

    Pending vertices sit in a heap ordered by tentative distance. A popped
    entry whose distance is no longer the best known is stale and skipped.
    A strictly shorter path replaces the predecessor list; an exactly equal
    one appends to it.

    Notes
    -----
    Ties are detected with exact floating-point equality. Two paths whose
    lengths differ only by rounding (e.g. ``0.1 + 0.2`` versus ``0.3``) are
    treated as different lengths, so one of them is dropped from the
    predecessor sets.
    """
    cost = resolve_distance(distance)
    result = _initial_tables(graph, source)
    distances, predecessors, sigma = result.distances, result.predecessors, result.sigma

    settled = set()
    # (distance, insertion counter, vertex); the counter keeps heap order stable
    heap = [(0.0, 0, source)]
    pushes = 1

    while heap:
        current_distance, _, vertex = heapq.heappop(heap)
        if current_distance > distances[vertex] or vertex in settled:
            continue
        settled.add(vertex)
        result.order.append(vertex)

        for edge in graph.incident_edges(vertex):
            neighbor = edge.other(vertex)
            if neighbor in settled:
                continue
            candidate = current_distance + cost(edge)

            if candidate < distances[neighbor]:
                distances[neighbor] = candidate
                predecessors[neighbor] = [vertex]
                sigma[neighbor] = sigma[vertex]
                heapq.heappush(heap, (candidate, pushes, neighbor))
                pushes += 1
            elif candidate == distances[neighbor]:
                predecessors[neighbor].append(vertex)
                sigma[neighbor] += sigma[vertex]

    return result


def single_source_shortest_paths(
    graph: Graph,
    source: int,
    distance: DistanceSpec = DEFAULT_DISTANCE
) -> ShortestPathResult:
    """
    Shortest-path tables for ``source`` under the given distance function.

    ``"hop"`` runs the breadth-first variant; any other name or callable
    runs Dijkstra with that edge cost.

    Parameters
    ----------
    graph : Graph
        The graph to search
    source : int
        Source vertex
    distance : str or Callable[[Edge], float], default "hop"
        Edge cost: "hop" (1), "weight" (w), "inverse_weight" (1/w),
        "hop_inverse_weight" (1 + 1/w) or a custom callable

    Returns
    -------
    ShortestPathResult
        Distances, predecessor lists, path counts and settle order

    Raises
    ------
    ValidationError
        If ``source`` is not a vertex of ``graph``
    ConfigurationError
        If ``distance`` is an unknown name

    Examples
    --------
    >>> g = Graph.from_edges([(1, 2), (2, 3), (1, 3)])
    >>> single_source_shortest_paths(g, 1).distances[3]
    1.0
    """
    if distance == "hop":
        return bfs_shortest_paths(graph, source)
    return dijkstra_shortest_paths(graph, source, distance)
