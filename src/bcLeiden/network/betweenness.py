"""
Betweenness centrality for the bcLeiden library.

This module turns per-source shortest-path trees into aggregate betweenness
scores for vertices and for undirected edges, using Brandes-style backward
dependency accumulation. It also contains the tabular helpers callers use to
report the scores (DataFrames, summary statistics, rank correlations).

Vertex betweenness follows Brandes exactly. Edge betweenness splits each
vertex's dependency evenly over its predecessors and can process vertices
either by distance (Brandes order) or by predecessor-set size (a legacy
approximation).
"""

from concurrent.futures import Future, ProcessPoolExecutor
from typing import Any, Dict, Hashable, Iterable, List, Mapping, Optional, Tuple, Union
import multiprocessing

import numpy as np
import polars as pl
from scipy.stats import spearmanr

from bcLeiden.network.graph import EdgeKey, Graph
from bcLeiden.network.shortest_paths import (
    DEFAULT_DISTANCE,
    DistanceSpec,
    resolve_distance,
    single_source_shortest_paths
)
from bcLeiden.common.exceptions import (
    ComputationError,
    ConfigurationError,
    NetworkAnalysisError,
    ValidationError,
    require_positive,
    validate_parameter
)
from bcLeiden.common.logging_config import get_logger, log_function_entry, LoggingTimer

logger = get_logger(__name__)

# Vertex processing orders for the edge variant
AVAILABLE_ORDERS = ["distance", "predecessor_count"]
DEFAULT_EDGE_ORDER = "distance"


class BetweennessAccumulator:
    """
    Running betweenness totals over a fixed key set.

    Every key is initialised to 0.0 up front. ``add`` only accepts known
    keys; ``get`` returns 0.0 for unknown keys without inserting them.

    Parameters
    ----------
    keys : Iterable[Hashable]
        Vertices or canonical edge pairs to track

    Examples
    --------
    >>> acc = BetweennessAccumulator([1, 2])
    >>> acc.add(1, 0.5)
    >>> acc.get(1), acc.get(99)
    (0.5, 0.0)
    """

    def __init__(self, keys: Iterable[Hashable] = ()) -> None:
        self._scores: Dict[Hashable, float] = {key: 0.0 for key in keys}

    def add(self, key: Hashable, value: float) -> None:
        if key not in self._scores:
            raise KeyError(f"Unknown betweenness key: {key!r}")
        self._scores[key] += value

    def get(self, key: Hashable) -> float:
        return self._scores.get(key, 0.0)

    def merge(self, other: Union["BetweennessAccumulator", Mapping[Hashable, float]]) -> None:
        """Add another accumulator's (or mapping's) totals into this one."""
        items = other.as_dict() if isinstance(other, BetweennessAccumulator) else other
        for key, value in items.items():
            self.add(key, value)

    def scale(self, factor: float) -> None:
        for key in self._scores:
            self._scores[key] *= factor

    def total(self) -> float:
        return float(sum(self._scores.values()))

    def as_dict(self) -> Dict[Hashable, float]:
        return dict(self._scores)

    def __contains__(self, key: object) -> bool:
        return key in self._scores

    def __len__(self) -> int:
        return len(self._scores)


def vertex_dependencies(
    graph: Graph,
    source: int,
    distance: DistanceSpec = DEFAULT_DISTANCE
) -> Dict[int, float]:
    """
    Dependency of ``source`` on every other reachable vertex.

    Runs one shortest-path search from ``source`` and walks the settle order
    backwards (farthest vertices first), adding
    ``sigma(v) / sigma(w) * (1 + delta(w))`` to ``delta(v)`` for each
    predecessor ``v`` of ``w``.

    Returns
    -------
    Dict[int, float]
        ``delta(v)`` for every reachable ``v != source``
    """
    paths = single_source_shortest_paths(graph, source, distance)
    dependency = {vertex: 0.0 for vertex in paths.order}

    for w in reversed(paths.order):
        coefficient = 1.0 + dependency[w]
        for v in paths.predecessors[w]:
            dependency[v] += (paths.sigma[v] / paths.sigma[w]) * coefficient

    del dependency[source]
    return dependency


def _edge_contributions(
    graph: Graph,
    source: int,
    distance: DistanceSpec,
    order: str
) -> Dict[EdgeKey, float]:
    paths = single_source_shortest_paths(graph, source, distance)

    if order == "distance":
        processing = list(reversed(paths.order))
    else:
        # Stable sort: equal-size predecessor sets keep ascending vertex order
        ranked = sorted(graph.ordered_vertices, key=lambda v: len(paths.predecessors[v]))
        processing = list(reversed(ranked))

    dependency = {vertex: 0.0 for vertex in graph.ordered_vertices}
    contributions: Dict[EdgeKey, float] = {}

    for w in processing:
        predecessors = paths.predecessors[w]
        if not predecessors:
            continue
        ratio = (1.0 + dependency[w]) / len(predecessors)
        for v in predecessors:
            dependency[v] += ratio
            key = (v, w) if v < w else (w, v)
            contributions[key] = contributions.get(key, 0.0) + ratio

    return contributions


def _vertex_chunk_worker(graph: Graph, sources: List[int], distance: DistanceSpec) -> Dict[int, float]:
    accumulator = BetweennessAccumulator(graph.ordered_vertices)
    for source in sources:
        accumulator.merge(vertex_dependencies(graph, source, distance))
    return accumulator.as_dict()


def _edge_chunk_worker(
    graph: Graph,
    sources: List[int],
    distance: DistanceSpec,
    order: str
) -> Dict[EdgeKey, float]:
    accumulator = BetweennessAccumulator(graph.edge_keys)
    for source in sources:
        accumulator.merge(_edge_contributions(graph, source, distance, order))
    return accumulator.as_dict()


def vertex_betweenness(
    graph: Graph,
    distance: DistanceSpec = DEFAULT_DISTANCE,
    halved: bool = False,
    n_jobs: int = 1
) -> Dict[int, float]:
    """
    Betweenness centrality of every vertex.

    For each source vertex ``s`` the dependencies ``delta_s(v)`` are computed
    (see ``vertex_dependencies``) and added to the running total of ``v``.
    Each unordered pair is therefore counted once from each endpoint; the
    totals are not halved unless ``halved=True``.

    Parameters
    ----------
    graph : Graph
        Input graph
    distance : str or Callable, default "hop"
        Edge cost used by the shortest-path engine
    halved : bool, default False
        Divide the totals by 2 so every unordered pair counts once
    n_jobs : int, default 1
        Number of worker processes for the source loop. -1 uses all cores.

    Returns
    -------
    Dict[int, float]
        Betweenness for every vertex (0.0 for vertices on no shortest path)

    Raises
    ------
    ConfigurationError
        If ``distance`` or ``n_jobs`` is invalid
    ComputationError
        If a worker process fails

    Examples
    --------
    >>> g = Graph.from_edges([(1, 2), (2, 3)])
    >>> vertex_betweenness(g)
    {1: 0.0, 2: 2.0, 3: 0.0}

    Notes
    -----
    Time Complexity: O(V * E) for hop distance, O(V * E log V) weighted.
    """
    log_function_entry("vertex_betweenness", vertices=graph.number_of_vertices(),
                       distance=distance, halved=halved, n_jobs=n_jobs)
    resolve_distance(distance)
    workers = _resolve_workers(n_jobs, distance, graph)

    with LoggingTimer("vertex_betweenness", {"vertices": graph.number_of_vertices(), "workers": workers}):
        accumulator = BetweennessAccumulator(graph.ordered_vertices)

        if workers == 1:
            for source in graph.ordered_vertices:
                accumulator.merge(vertex_dependencies(graph, source, distance))
        else:
            for partial in _run_parallel(_vertex_chunk_worker, graph, workers, distance):
                accumulator.merge(partial)

        if halved:
            accumulator.scale(0.5)

    logger.info("Vertex betweenness computed for %d vertices", len(accumulator))
    return accumulator.as_dict()


def edge_betweenness(
    graph: Graph,
    distance: DistanceSpec = DEFAULT_DISTANCE,
    order: str = DEFAULT_EDGE_ORDER,
    halved: bool = False,
    n_jobs: int = 1
) -> Dict[EdgeKey, float]:
    """
    Betweenness centrality of every undirected edge.

    For each source the predecessor sets are computed, then vertices are
    processed and every predecessor ``v`` of ``w`` receives
    ``ratio = (1 + delta(w)) / |pred(w)|``; the same ratio is added to the
    canonical edge ``(min(v, w), max(v, w))``.

    Parameters
    ----------
    graph : Graph
        Input graph
    distance : str or Callable, default "hop"
        Edge cost used by the shortest-path engine. The choice changes the
        rankings materially; compare runs with ``compare_betweenness_rankings``.
    order : {"distance", "predecessor_count"}, default "distance"
        Vertex processing order. "distance" processes the farthest vertices
        first, so every ``delta(w)`` is complete when it is used.
        "predecessor_count" is the legacy approximation: vertices in
        ascending ID order, stably sorted by predecessor-set size and
        processed from the largest set down. That order is not a distance
        order, so some dependencies are used before they are complete.
    halved : bool, default False
        Divide the totals by 2 so every unordered pair counts once
    n_jobs : int, default 1
        Number of worker processes for the source loop. -1 uses all cores.

    Returns
    -------
    Dict[Tuple[int, int], float]
        Betweenness for every canonical edge pair ``(min, max)``; edges on
        no shortest path map to 0.0

    Raises
    ------
    ConfigurationError
        If ``distance``, ``order`` or ``n_jobs`` is invalid
    ComputationError
        If a worker process fails

    Examples
    --------
    >>> g = Graph.from_edges([(1, 2, 0.5)])
    >>> edge_betweenness(g)
    {(1, 2): 2.0}
    """
    log_function_entry("edge_betweenness", edges=graph.number_of_edges(),
                       distance=distance, order=order, halved=halved, n_jobs=n_jobs)
    resolve_distance(distance)
    validate_parameter(order, AVAILABLE_ORDERS, "order", "edge_betweenness")
    workers = _resolve_workers(n_jobs, distance, graph)

    with LoggingTimer("edge_betweenness", {"edges": graph.number_of_edges(), "workers": workers}):
        accumulator = BetweennessAccumulator(graph.edge_keys)

        if workers == 1:
            for source in graph.ordered_vertices:
                accumulator.merge(_edge_contributions(graph, source, distance, order))
        else:
            for partial in _run_parallel(_edge_chunk_worker, graph, workers, distance, order):
                accumulator.merge(partial)

        if halved:
            accumulator.scale(0.5)

    logger.info("Edge betweenness computed for %d edges", len(accumulator))
    return accumulator.as_dict()


def _resolve_workers(n_jobs: int, distance: DistanceSpec, graph: Graph) -> int:
    if n_jobs == 0 or n_jobs < -1:
        raise ConfigurationError(
            f"n_jobs must be -1 or a positive integer, got {n_jobs}",
            parameter="n_jobs",
            value=n_jobs
        )

    if n_jobs == 1:
        return 1

    if not isinstance(distance, str):
        raise ConfigurationError(
            "Custom distance callables cannot be sent to worker processes; "
            "use a named distance or n_jobs=1",
            parameter="distance",
            function="betweenness"
        )

    max_cores = multiprocessing.cpu_count()
    requested = max_cores if n_jobs == -1 else min(n_jobs, max_cores)
    return max(1, min(requested, graph.number_of_vertices()))


def _chunk(sources: Tuple[int, ...], parts: int) -> List[List[int]]:
    size, remainder = divmod(len(sources), parts)
    chunks = []
    start = 0
    for index in range(parts):
        end = start + size + (1 if index < remainder else 0)
        chunks.append(list(sources[start:end]))
        start = end
    return [chunk for chunk in chunks if chunk]


def _run_parallel(worker, graph: Graph, workers: int, *args: Any) -> List[Dict[Hashable, float]]:
    """Run ``worker`` over contiguous source chunks; results come back in chunk order."""
    chunks = _chunk(graph.ordered_vertices, workers)
    logger.debug("Splitting %d sources into %d chunks", graph.number_of_vertices(), len(chunks))

    with ProcessPoolExecutor(max_workers=len(chunks)) as executor:
        futures = [executor.submit(worker, graph, chunk, *args) for chunk in chunks]
        return _collect_results(futures, worker.__name__, graph)


def _collect_results(futures: List[Future], worker_name: str, graph: Graph) -> List[Dict[Hashable, float]]:
    """Wait for every chunk in submission order and surface the first failure."""
    results = []
    for index, future in enumerate(futures):
        try:
            results.append(future.result())
        except NetworkAnalysisError as e:
            # Library errors keep their type; only the failing chunk is recorded
            raise e.add_context(chunk=index, chunks=len(futures))
        except Exception as e:
            error = ComputationError(
                f"Betweenness worker {index} failed: {e}",
                operation=worker_name,
                error_type="worker",
                resource_info={"vertices": graph.number_of_vertices(), "chunks": len(futures)},
                cause=e
            )
            logger.debug("Worker failure: %s", error.get_debug_info())
            raise error
    return results


def betweenness_to_dataframe(betweenness: Mapping[int, float]) -> pl.DataFrame:
    """
    Vertex betweenness as a DataFrame with ``vertex_id`` and ``betweenness``
    columns, sorted by vertex ID.
    """
    vertex_ids = sorted(betweenness)
    return pl.DataFrame(
        {
            "vertex_id": vertex_ids,
            "betweenness": [float(betweenness[v]) for v in vertex_ids],
        },
        schema={"vertex_id": pl.Int64, "betweenness": pl.Float64}
    )


def edge_betweenness_to_dataframe(
    graph: Graph,
    edge_scores: Mapping[EdgeKey, float]
) -> pl.DataFrame:
    """
    Edge betweenness joined with edge weights.

    Parameters
    ----------
    graph : Graph
        Graph the scores were computed on; edges keep their stored orientation
    edge_scores : Mapping[Tuple[int, int], float]
        Output of ``edge_betweenness``. Missing pairs count as 0.0.

    Returns
    -------
    pl.DataFrame
        Columns ``src``, ``dst``, ``weight``, ``betweenness`` and
        ``weighted_score`` (betweenness divided by weight), sorted by
        descending ``weighted_score``
    """
    rows = {"src": [], "dst": [], "weight": [], "betweenness": [], "weighted_score": []}
    for edge in graph.edges:
        score = float(edge_scores.get(edge.key, 0.0))
        rows["src"].append(edge.src)
        rows["dst"].append(edge.dst)
        rows["weight"].append(edge.weight)
        rows["betweenness"].append(score)
        rows["weighted_score"].append(score / edge.weight)

    df = pl.DataFrame(
        rows,
        schema={
            "src": pl.Int64,
            "dst": pl.Int64,
            "weight": pl.Float64,
            "betweenness": pl.Float64,
            "weighted_score": pl.Float64,
        }
    )
    return df.sort(["weighted_score", "src", "dst"], descending=[True, False, False])


def get_betweenness_summary(values: Union[Mapping[Any, float], Iterable[float]]) -> Dict[str, float]:
    """
    Descriptive statistics of a betweenness distribution.

    Parameters
    ----------
    values : Mapping or Iterable[float]
        Betweenness scores; for a mapping its values are used

    Returns
    -------
    Dict[str, float]
        ``count``, ``mean``, ``median``, ``std`` (population), ``min``, ``max``

    Examples
    --------
    >>> get_betweenness_summary({1: 0.0, 2: 2.0, 3: 0.0})["mean"]
    0.6666666666666666
    """
    if isinstance(values, Mapping):
        values = values.values()
    array = np.asarray(list(values), dtype=float)

    if array.size == 0:
        return {"count": 0, "mean": 0.0, "median": 0.0, "std": 0.0, "min": 0.0, "max": 0.0}

    return {
        "count": int(array.size),
        "mean": float(np.mean(array)),
        "median": float(np.median(array)),
        "std": float(np.std(array)),
        "min": float(np.min(array)),
        "max": float(np.max(array)),
    }


def identify_central_vertices(
    betweenness_df: pl.DataFrame,
    top_k: int = 10,
    threshold: Optional[float] = None
) -> List[int]:
    """
    Vertex IDs with the highest betweenness, descending.

    Parameters
    ----------
    betweenness_df : pl.DataFrame
        DataFrame returned by ``betweenness_to_dataframe()``
    top_k : int, default 10
        Number of vertices to return
    threshold : float, optional
        Only vertices with betweenness >= threshold are returned
    """
    if "betweenness" not in betweenness_df.columns:
        raise ValidationError("Column 'betweenness' not found", field="betweenness_df")
    require_positive(top_k, "top_k")

    result = betweenness_df.sort(["betweenness", "vertex_id"], descending=[True, False])
    if threshold is not None:
        result = result.filter(pl.col("betweenness") >= threshold)

    return result.head(top_k)["vertex_id"].to_list()


def identify_central_edges(
    edge_df: pl.DataFrame,
    top_k: int = 10,
    by: str = "weighted_score"
) -> List[EdgeKey]:
    """
    Edges ranked by ``betweenness`` or ``weighted_score``, as ``(src, dst)``.

    Parameters
    ----------
    edge_df : pl.DataFrame
        DataFrame returned by ``edge_betweenness_to_dataframe()``
    top_k : int, default 10
        Number of edges to return
    by : {"weighted_score", "betweenness"}, default "weighted_score"
        Ranking column
    """
    validate_parameter(by, ["weighted_score", "betweenness"], "by", "identify_central_edges")
    require_positive(top_k, "top_k")

    result = edge_df.sort([by, "src", "dst"], descending=[True, False, False]).head(top_k)
    return list(zip(result["src"].to_list(), result["dst"].to_list()))


def compare_betweenness_rankings(
    first: Mapping[Hashable, float],
    second: Mapping[Hashable, float]
) -> Dict[str, float]:
    """
    Correlation between two betweenness maps over their shared keys.

    Useful for measuring how much the distance function or processing order
    changes the ranking of vertices or edges.

    Returns
    -------
    Dict[str, float]
        ``pearson``, ``spearman`` and ``n`` (number of shared keys).
        Correlations are 0.0 when fewer than two keys are shared or either
        side is constant.

    Examples
    --------
    >>> hop = edge_betweenness(graph)
    >>> inv = edge_betweenness(graph, distance="inverse_weight")
    >>> compare_betweenness_rankings(hop, inv)["spearman"]  # doctest: +SKIP
    """
    keys = sorted(set(first) & set(second))
    values1 = np.array([first[key] for key in keys], dtype=float)
    values2 = np.array([second[key] for key in keys], dtype=float)

    if len(keys) < 2 or np.ptp(values1) == 0 or np.ptp(values2) == 0:
        return {"pearson": 0.0, "spearman": 0.0, "n": len(keys)}

    pearson_corr = np.corrcoef(values1, values2)[0, 1]
    spearman_corr, _ = spearmanr(values1, values2)

    return {
        "pearson": float(pearson_corr) if not np.isnan(pearson_corr) else 0.0,
        "spearman": float(spearman_corr) if not np.isnan(spearman_corr) else 0.0,
        "n": len(keys)
    }
