"""
Modularity gain evaluation for the bcLeiden community optimizer.

The gains used to decide vertex moves and community merges combine the usual
degree-based modularity terms with the betweenness of the vertices involved.
All functions here are pure: they read the graph and a betweenness map and
never modify either.

The total edge count ``m`` is the number of undirected edges (unweighted) and
is read from the graph on every call. The formulas divide by ``m``, so a
graph without edges raises ``ComputationError`` chained to the
``ZeroDivisionError``.
"""

from typing import Iterable, Mapping

import networkit as nk

from bcLeiden.network.graph import Graph, to_networkit
from bcLeiden.common.exceptions import ComputationError, ValidationError
from bcLeiden.common.logging_config import get_logger

logger = get_logger(__name__)

# Community values iterate over their member vertices
CommunityLike = Iterable[int]


def _undefined_gain(graph: Graph, operation: str, cause: ZeroDivisionError) -> ComputationError:
    return ComputationError(
        "Modularity gain is undefined for a graph without edges",
        operation=operation,
        error_type="numerical",
        resource_info={"vertices": graph.number_of_vertices(), "edges": graph.number_of_edges()},
        cause=cause
    )


def community_degree(community: CommunityLike, graph: Graph) -> int:
    """Sum of the degrees of the community's members."""
    return sum(graph.degree(vertex) for vertex in community)


def vertex_move_gain(
    vertex: int,
    community: CommunityLike,
    graph: Graph,
    betweenness: Mapping[int, float]
) -> float:
    """
    Gain of placing ``vertex`` in ``community``.

    ``k_v / 2m - (sum_{u in C} k_u * k_v) / 4m^2 + b(v)``

    Parameters
    ----------
    vertex : int
        Candidate vertex
    community : Community or Iterable[int]
        Target community (its current members)
    graph : Graph
        Graph supplying degrees and ``m``
    betweenness : Mapping[int, float]
        Vertex betweenness; missing vertices count as 0

    Raises
    ------
    ComputationError
        If the graph has no edges
    """
    m = graph.number_of_edges()
    k_v = graph.degree(vertex)
    pair_sum = sum(graph.degree(u) * k_v for u in community)

    try:
        return k_v / (2.0 * m) - pair_sum / (4.0 * m * m) + betweenness.get(vertex, 0.0)
    except ZeroDivisionError as e:
        raise _undefined_gain(graph, "vertex_move_gain", e)


def merge_gain(
    community_a: CommunityLike,
    community_b: CommunityLike,
    graph: Graph,
    betweenness: Mapping[int, float]
) -> float:
    """
    Gain of merging two communities.

    ``(d_A + d_B) / 2m - (d_A / 2m) * (d_B / 2m) + sum_A b + sum_B b``
    where ``d_X`` is the community degree of ``X``.

    Raises
    ------
    ComputationError
        If the graph has no edges
    """
    m = graph.number_of_edges()
    d_a = community_degree(community_a, graph)
    d_b = community_degree(community_b, graph)
    b_a = sum(betweenness.get(u, 0.0) for u in community_a)
    b_b = sum(betweenness.get(u, 0.0) for u in community_b)

    try:
        return (d_a + d_b) / (2.0 * m) - (d_a / (2.0 * m)) * (d_b / (2.0 * m)) + b_a + b_b
    except ZeroDivisionError as e:
        raise _undefined_gain(graph, "merge_gain", e)


def partition_modularity(graph: Graph, communities: Iterable[CommunityLike]) -> float:
    """
    Weighted Newman modularity of a partition, computed with NetworkIt.

    Parameters
    ----------
    graph : Graph
        The partitioned graph
    communities : Iterable[Community or Iterable[int]]
        Disjoint communities covering every vertex of ``graph``

    Returns
    -------
    float
        Modularity in [-0.5, 1]; 0.0 for a graph without edges

    Raises
    ------
    ValidationError
        If the communities are not a partition of the vertex set
    ComputationError
        If NetworkIt fails to evaluate the partition
    """
    if graph.number_of_edges() == 0:
        return 0.0

    nk_graph, id_mapper = to_networkit(graph)
    partition = nk.structures.Partition(graph.number_of_vertices())
    partition.allToSingletons()

    assigned = set()
    for community in communities:
        members = sorted(community)
        if not members:
            continue
        subset = id_mapper.get_internal(members[0])
        for vertex in members:
            if vertex in assigned:
                raise ValidationError(
                    "Vertex appears in more than one community",
                    field="communities",
                    value=vertex
                )
            assigned.add(vertex)
            partition.moveToSubset(subset, id_mapper.get_internal(vertex))

    if assigned != graph.vertices:
        raise ValidationError(
            "Communities do not cover every vertex of the graph",
            field="communities",
            details={"unassigned": sorted(graph.vertices - assigned)}
        )

    try:
        modularity = nk.community.Modularity().getQuality(partition, nk_graph)
    except Exception as e:
        raise ComputationError(
            f"Failed to compute modularity: {e}",
            operation="partition_modularity",
            error_type="networkit",
            cause=e
        )

    logger.debug("Partition modularity: %.6f", modularity)
    return float(modularity)
