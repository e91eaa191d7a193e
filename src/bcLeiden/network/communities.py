"""
Betweenness-weighted community detection for the bcLeiden library.

This module implements a two-phase greedy optimizer in the spirit of Leiden:

1. Local moving: every vertex is offered the communities found at the ends
   of its incident edges and moves to the one with the highest
   ``vertex_move_gain``.
2. Refinement: every community is offered the communities found at the ends
   of its attributed edges and merges into the one with the highest
   ``merge_gain``.

Both phases sweep in ascending ID order and break ties in favour of the first
candidate seen, so results are deterministic. Each phase stops when a full
sweep changes nothing or when ``max_iterations`` sweeps have run; in the
latter case the result is flagged as not converged and a
``ConvergenceWarning`` is emitted.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple
import warnings

import numpy as np
import polars as pl

from bcLeiden.network.graph import Edge, Graph
from bcLeiden.network.betweenness import vertex_betweenness
from bcLeiden.network.modularity import merge_gain, partition_modularity, vertex_move_gain
from bcLeiden.network.shortest_paths import DEFAULT_DISTANCE, DistanceSpec, resolve_distance
from bcLeiden.common.exceptions import (
    ConfigurationError,
    ConvergenceWarning,
    ValidationError,
    require_positive
)
from bcLeiden.common.logging_config import get_logger, log_function_entry, LoggingTimer

logger = get_logger(__name__)

DEFAULT_MAX_ITERATIONS = 100


def _unique_edges(edges: Iterable[Edge]) -> Tuple[Edge, ...]:
    return tuple(dict.fromkeys(edges))


@dataclass(frozen=True)
class Community:
    """
    A community: stable ID, member vertices and attributed edges.

    Community values are immutable; the ``with_*``/``merged_with`` methods
    return new values. Iterating a community yields its members in ascending
    order.

    Parameters
    ----------
    id : int
        Stable identifier (the ID of the vertex the community started from)
    vertices : frozenset
        Member vertices
    edges : tuple
        Edges attributed to the community, without duplicates, in the order
        they were attributed
    """

    id: int
    vertices: frozenset = frozenset()
    edges: tuple = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "vertices", frozenset(self.vertices))
        object.__setattr__(self, "edges", _unique_edges(self.edges))

    def with_vertex(self, vertex: int, edges: Iterable[Edge] = ()) -> "Community":
        return Community(self.id, self.vertices | {vertex}, self.edges + tuple(edges))

    def without_vertex(self, vertex: int) -> "Community":
        """Drop ``vertex`` and every attributed edge touching it."""
        return Community(
            self.id,
            self.vertices - {vertex},
            tuple(edge for edge in self.edges if not edge.touches(vertex))
        )

    def merged_with(self, other: "Community") -> "Community":
        """Union of both communities under this community's ID."""
        return Community(self.id, self.vertices | other.vertices, self.edges + other.edges)

    def is_empty(self) -> bool:
        return not self.vertices

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self.vertices))

    def __len__(self) -> int:
        return len(self.vertices)

    def __contains__(self, vertex: object) -> bool:
        return vertex in self.vertices


class Partition:
    """
    Communities addressed by stable integer ID.

    Keeps a vertex to community-ID index in step with every move and merge,
    so looking up a vertex's community does not scan the communities.

    Examples
    --------
    >>> partition = Partition.singletons([1, 2, 3])
    >>> partition.merge(2, 1)
    >>> partition.membership()
    {1: 1, 2: 1, 3: 3}
    """

    def __init__(self, communities: Iterable[Community] = ()) -> None:
        self._communities: Dict[int, Community] = {}
        self._index: Dict[int, int] = {}
        for community in communities:
            self.add(community)

    @classmethod
    def singletons(cls, vertices: Iterable[int]) -> "Partition":
        return cls(Community(vertex, frozenset([vertex])) for vertex in sorted(vertices))

    def add(self, community: Community) -> None:
        if community.id in self._communities:
            raise ValidationError("Duplicate community ID", field="id", value=community.id)
        for vertex in community.vertices:
            if vertex in self._index:
                raise ValidationError(
                    f"Vertex already belongs to community {self._index[vertex]}",
                    field="vertices",
                    value=vertex
                )
        self._communities[community.id] = community
        for vertex in community.vertices:
            self._index[vertex] = community.id

    def ids(self) -> List[int]:
        return sorted(self._communities)

    def community_id_of(self, vertex: int) -> int:
        try:
            return self._index[vertex]
        except KeyError:
            raise ValidationError("Vertex is not assigned to a community", field="vertex", value=vertex)

    def community_of(self, vertex: int) -> Community:
        return self._communities[self.community_id_of(vertex)]

    def move(self, vertex: int, target_id: int, edges: Iterable[Edge] = ()) -> None:
        """
        Move ``vertex`` into community ``target_id``.

        ``edges`` are attributed to the target. The source community loses
        the vertex and every edge touching it; it is kept even when it
        becomes empty (see ``drop_empty``).
        """
        source_id = self.community_id_of(vertex)
        if source_id == target_id:
            return
        target = self[target_id]

        self._communities[source_id] = self._communities[source_id].without_vertex(vertex)
        self._communities[target_id] = target.with_vertex(vertex, edges)
        self._index[vertex] = target_id

    def merge(self, source_id: int, target_id: int) -> None:
        """Fold ``source_id`` into ``target_id`` and retire ``source_id``."""
        if source_id == target_id:
            raise ValueError(f"Cannot merge community {source_id} into itself")
        source = self[source_id]
        target = self[target_id]

        self._communities[target_id] = target.merged_with(source)
        del self._communities[source_id]
        for vertex in source.vertices:
            self._index[vertex] = target_id

    def drop_empty(self) -> List[int]:
        """Retire communities without members; returns the retired IDs."""
        retired = [cid for cid in self.ids() if self._communities[cid].is_empty()]
        for cid in retired:
            del self._communities[cid]
        return retired

    def as_dict(self) -> Dict[int, Community]:
        return {cid: self._communities[cid] for cid in self.ids()}

    def membership(self) -> Dict[int, int]:
        return {vertex: self._index[vertex] for vertex in sorted(self._index)}

    def __getitem__(self, community_id: int) -> Community:
        try:
            return self._communities[community_id]
        except KeyError:
            raise ValidationError("Unknown community ID", field="community_id", value=community_id)

    def __contains__(self, community_id: object) -> bool:
        return community_id in self._communities

    def __len__(self) -> int:
        return len(self._communities)

    def __repr__(self) -> str:
        return f"Partition(communities={len(self)}, vertices={len(self._index)})"


class OptimizerState(Enum):
    """Optimizer phases. Transitions only move forward."""

    INITIALIZED = "initialized"
    LOCAL_MOVING = "local_moving"
    REFINING = "refining"
    DONE = "done"


@dataclass
class CommunityDetectionResult:
    """
    Outcome of a community optimizer run.

    Attributes
    ----------
    communities : Dict[int, Community]
        Final communities keyed by ID
    converged : bool
        False when either phase stopped at ``max_iterations``
    local_moving_sweeps : int
        Sweeps performed by the local moving phase
    refinement_sweeps : int
        Sweeps performed by the refinement phase
    moves : int
        Vertex moves performed
    merges : int
        Community merges performed
    modularity : float
        Weighted Newman modularity of the final partition
    state : OptimizerState
        Optimizer state when the result was produced
    """

    communities: Dict[int, Community] = field(default_factory=dict)
    converged: bool = True
    local_moving_sweeps: int = 0
    refinement_sweeps: int = 0
    moves: int = 0
    merges: int = 0
    modularity: float = 0.0
    state: OptimizerState = OptimizerState.DONE

    @property
    def num_communities(self) -> int:
        return len(self.communities)

    def membership(self) -> Dict[int, int]:
        """Map every vertex to the ID of its community."""
        return {
            vertex: community.id
            for community in self.communities.values()
            for vertex in community.vertices
        }

    def to_dataframe(self) -> pl.DataFrame:
        """Membership as a DataFrame with ``vertex_id`` and ``community_id``, sorted by vertex."""
        membership = self.membership()
        vertex_ids = sorted(membership)
        return pl.DataFrame(
            {
                "vertex_id": vertex_ids,
                "community_id": [membership[v] for v in vertex_ids],
            },
            schema={"vertex_id": pl.Int64, "community_id": pl.Int64}
        )


class CommunityOptimizer:
    """
    Greedy local-moving and refinement optimizer over a fixed graph.

    Parameters
    ----------
    graph : Graph
        Graph to partition
    betweenness : Mapping[int, float], optional
        Precomputed vertex betweenness. When omitted it is computed once,
        on first use, with ``vertex_betweenness(graph, distance)``.
    distance : str or Callable, default "hop"
        Distance used when betweenness has to be computed
    max_iterations : int, default 100
        Maximum number of sweeps per phase

    Examples
    --------
    >>> optimizer = CommunityOptimizer(Graph.from_edges([(1, 2)]))
    >>> optimizer.run().membership()
    {1: 1, 2: 1}

    Notes
    -----
    The phases can also be driven one at a time with ``initialize()``,
    ``local_moving()`` and ``refine()``. Calling a phase out of order raises
    ``ConfigurationError``.
    """

    def __init__(
        self,
        graph: Graph,
        betweenness: Optional[Mapping[int, float]] = None,
        distance: DistanceSpec = DEFAULT_DISTANCE,
        max_iterations: int = DEFAULT_MAX_ITERATIONS
    ) -> None:
        require_positive(max_iterations, "max_iterations")
        resolve_distance(distance)

        self.graph = graph
        self.distance = distance
        self.max_iterations = max_iterations
        self._betweenness = dict(betweenness) if betweenness is not None else None

        self.state: Optional[OptimizerState] = None
        self.partition = Partition()
        self.converged = True
        self.local_moving_sweeps = 0
        self.refinement_sweeps = 0
        self.moves = 0
        self.merges = 0

    @property
    def betweenness(self) -> Dict[int, float]:
        if self._betweenness is None:
            self._betweenness = vertex_betweenness(self.graph, distance=self.distance)
        return self._betweenness

    def _require_state(self, expected: Optional[OptimizerState], phase: str) -> None:
        if self.state != expected:
            current = self.state.value if self.state else "not initialized"
            raise ConfigurationError(
                f"Cannot run {phase} in state '{current}'",
                parameter="state",
                value=current,
                function=phase
            )

    def initialize(self) -> Partition:
        """Place every vertex in its own community (ID = vertex ID, no edges)."""
        self._require_state(None, "initialize")
        self.partition = Partition.singletons(self.graph.vertices)
        self.state = OptimizerState.INITIALIZED
        logger.debug("Initialized %d singleton communities", len(self.partition))
        return self.partition

    def _candidate_ids(self, edges: Iterable[Edge]) -> List[int]:
        candidates = []
        for edge in edges:
            candidates.append(self.partition.community_id_of(edge.src))
            candidates.append(self.partition.community_id_of(edge.dst))
        return list(dict.fromkeys(candidates))

    @staticmethod
    def _best_candidate(candidates: List[int], gain: Callable[[int], float]) -> int:
        best_id = candidates[0]
        best_gain = gain(best_id)
        for candidate in candidates[1:]:
            candidate_gain = gain(candidate)
            if candidate_gain > best_gain:
                best_id, best_gain = candidate, candidate_gain
        return best_id

    def local_moving(self) -> bool:
        """
        Move vertices between neighbouring communities until a sweep moves none.

        Returns
        -------
        bool
            True if the phase reached a fixed point within ``max_iterations``
        """
        self._require_state(OptimizerState.INITIALIZED, "local_moving")
        self.state = OptimizerState.LOCAL_MOVING
        graph, partition = self.graph, self.partition

        converged = False
        while self.local_moving_sweeps < self.max_iterations:
            self.local_moving_sweeps += 1
            moved = 0

            for vertex in graph.ordered_vertices:
                incident = graph.incident_edges(vertex)
                if not incident:
                    continue

                current_id = partition.community_id_of(vertex)
                best_id = self._best_candidate(
                    self._candidate_ids(incident),
                    lambda cid: vertex_move_gain(vertex, partition[cid], graph, self.betweenness)
                )
                if best_id != current_id:
                    partition.move(vertex, best_id, incident)
                    moved += 1

            self.moves += moved
            logger.debug("Local moving sweep %d: %d moves", self.local_moving_sweeps, moved)
            if moved == 0:
                converged = True
                break

        retired = partition.drop_empty()
        logger.debug("Retired %d empty communities", len(retired))

        if not converged:
            self._flag_not_converged("Local moving")
        return converged

    def refine(self) -> bool:
        """
        Merge neighbouring communities until a sweep merges none.

        Returns
        -------
        bool
            True if the phase reached a fixed point within ``max_iterations``
        """
        self._require_state(OptimizerState.LOCAL_MOVING, "refine")
        self.state = OptimizerState.REFINING
        graph, partition = self.graph, self.partition

        converged = False
        while self.refinement_sweeps < self.max_iterations:
            self.refinement_sweeps += 1
            merged = 0

            for community_id in partition.ids():
                # Retired earlier in this sweep
                if community_id not in partition:
                    continue
                community = partition[community_id]
                if not community.edges:
                    continue

                best_id = self._best_candidate(
                    self._candidate_ids(community.edges),
                    lambda cid: merge_gain(community, partition[cid], graph, self.betweenness)
                )
                if best_id != community_id:
                    partition.merge(community_id, best_id)
                    merged += 1

            self.merges += merged
            logger.debug("Refinement sweep %d: %d merges", self.refinement_sweeps, merged)
            if merged == 0:
                converged = True
                break

        if not converged:
            self._flag_not_converged("Refinement")
        self.state = OptimizerState.DONE
        return converged

    def _flag_not_converged(self, phase: str) -> None:
        self.converged = False
        message = f"{phase} did not converge within {self.max_iterations} sweeps"
        logger.warning(message)
        warnings.warn(message, ConvergenceWarning, stacklevel=3)

    def result(self) -> CommunityDetectionResult:
        """Snapshot of the current partition; available once ``initialize`` has run."""
        if self.state is None:
            self._require_state(OptimizerState.INITIALIZED, "result")
        communities = self.partition.as_dict()
        return CommunityDetectionResult(
            communities=communities,
            converged=self.converged,
            local_moving_sweeps=self.local_moving_sweeps,
            refinement_sweeps=self.refinement_sweeps,
            moves=self.moves,
            merges=self.merges,
            modularity=partition_modularity(self.graph, communities.values()),
            state=self.state
        )

    def run(self) -> CommunityDetectionResult:
        """Run every phase in order and return the final partition."""
        self.initialize()
        self.local_moving()
        self.refine()
        return self.result()


def detect_communities(
    graph: Graph,
    betweenness: Optional[Mapping[int, float]] = None,
    distance: DistanceSpec = DEFAULT_DISTANCE,
    max_iterations: int = DEFAULT_MAX_ITERATIONS
) -> CommunityDetectionResult:
    """
    Partition a graph with the betweenness-weighted optimizer.

    Parameters
    ----------
    graph : Graph
        Graph to partition
    betweenness : Mapping[int, float], optional
        Precomputed vertex betweenness. Computed with ``distance`` if omitted.
    distance : str or Callable, default "hop"
        Distance function for the betweenness computation
    max_iterations : int, default 100
        Maximum sweeps per phase. Hitting the cap yields ``converged=False``
        and a ``ConvergenceWarning``.

    Returns
    -------
    CommunityDetectionResult
        Final communities and run statistics

    Raises
    ------
    ConfigurationError
        If ``distance`` or ``max_iterations`` is invalid

    Examples
    --------
    >>> graph = Graph.from_edges([(1, 2), (3, 4)])
    >>> result = detect_communities(graph)
    >>> result.num_communities
    2

    Notes
    -----
    A graph without vertices yields an empty partition. In a graph without
    edges every vertex stays a singleton and no gain is ever evaluated.
    """
    log_function_entry(
        "detect_communities",
        vertices=graph.number_of_vertices(),
        edges=graph.number_of_edges(),
        distance=distance,
        max_iterations=max_iterations
    )

    if graph.number_of_vertices() == 0:
        warnings.warn("Empty graph provided. Returning empty partition.")
    elif graph.number_of_edges() == 0:
        logger.info("Graph has no edges; every vertex stays a singleton")

    with LoggingTimer("detect_communities", {"vertices": graph.number_of_vertices()}):
        optimizer = CommunityOptimizer(graph, betweenness, distance, max_iterations)
        result = optimizer.run()

    logger.info(
        "Found %d communities (%d moves, %d merges, converged=%s)",
        result.num_communities, result.moves, result.merges, result.converged
    )
    return result


def get_community_summary(result: CommunityDetectionResult) -> Dict[str, Any]:
    """
    Get summary statistics for a community detection result.

    Returns
    -------
    Dict[str, Any]
        Summary statistics including:
        - num_communities: Number of communities
        - modularity: Newman modularity of the partition
        - converged: Whether both phases reached a fixed point
        - community_sizes: Community sizes, largest first
        - size_distribution: min/max/mean/median/std of the sizes
        - total_vertices: Number of partitioned vertices
    """
    community_sizes = [len(community) for community in result.communities.values()]

    size_stats = {
        "min": min(community_sizes) if community_sizes else 0,
        "max": max(community_sizes) if community_sizes else 0,
        "mean": float(np.mean(community_sizes)) if community_sizes else 0.0,
        "median": float(np.median(community_sizes)) if community_sizes else 0.0,
        "std": float(np.std(community_sizes)) if community_sizes else 0.0
    }

    return {
        "num_communities": len(community_sizes),
        "modularity": result.modularity,
        "converged": result.converged,
        "community_sizes": sorted(community_sizes, reverse=True),
        "size_distribution": size_stats,
        "total_vertices": sum(community_sizes)
    }
