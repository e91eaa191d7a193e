"""
Graph model for the bcLeiden library.

This module defines the immutable ``Graph`` value shared by every algorithm
in the package: a set of integer vertex IDs plus a sequence of weighted,
undirected edges. Edges are stored once, in the orientation they were given,
but traversal treats ``(src, dst)`` and ``(dst, src)`` as the same connection.

It also provides constructors from tabular edge lists (Polars DataFrames or
CSV files) and a conversion to NetworkIt for quality measures that are
delegated to NetworkIt.
"""

from dataclasses import dataclass
from functools import cached_property
from pathlib import Path
from typing import Any, Dict, Iterable, List, NamedTuple, Optional, Tuple, Union
import math
import warnings

import networkit as nk
import polars as pl

from bcLeiden.common.id_mapper import IDMapper
from bcLeiden.common.exceptions import (
    DataFormatError,
    GraphConstructionError,
    ValidationError
)
from bcLeiden.common.validators import validate_edgelist_dataframe
from bcLeiden.common.logging_config import get_logger, log_function_entry

logger = get_logger(__name__)

EdgeKey = Tuple[int, int]


class Edge(NamedTuple):
    """An undirected, weighted edge stored in its given orientation."""

    src: int
    dst: int
    weight: float

    @property
    def key(self) -> EdgeKey:
        """Canonical undirected pair ``(min, max)``."""
        return (self.src, self.dst) if self.src <= self.dst else (self.dst, self.src)

    def touches(self, vertex: int) -> bool:
        return self.src == vertex or self.dst == vertex

    def other(self, vertex: int) -> int:
        """Return the endpoint opposite to ``vertex``."""
        if self.src == vertex:
            return self.dst
        if self.dst == vertex:
            return self.src
        raise ValueError(f"Vertex {vertex} is not an endpoint of {self}")


@dataclass(frozen=True)
class Graph:
    """
    Immutable weighted, undirected graph.

    Parameters
    ----------
    vertices : Iterable[int]
        Vertex identifiers. Stored as a frozenset.
    edges : Iterable[Edge or (src, dst, weight)]
        Edge sequence. Insertion order is preserved.

    Raises
    ------
    ValidationError
        If a vertex ID is not an integer, an edge endpoint is not in the
        vertex set, a weight is not a finite positive number, or two edges
        denote the same undirected pair.

    Examples
    --------
    >>> g = Graph({1, 2, 3}, [(1, 2, 0.5), (2, 3, 1.0)])
    >>> g.neighbors(2)
    [1, 3]
    >>> g.degree(2)
    2

    Notes
    -----
    Vertices are iterated in ascending ID order (``ordered_vertices``) by all
    algorithms so results are reproducible. The adjacency index is built
    lazily on first use and cached on the instance; it gives the same
    neighbour order as scanning the edge list.
    """

    vertices: frozenset
    edges: tuple

    def __post_init__(self) -> None:
        vertices = frozenset(self.vertices)
        for vertex in vertices:
            if not isinstance(vertex, int) or isinstance(vertex, bool):
                raise ValidationError(
                    "Vertex IDs must be integers",
                    field="vertices",
                    value=vertex,
                    expected="int"
                )

        edges = tuple(_coerce_edge(edge) for edge in self.edges)
        _validate_edges(vertices, edges)

        object.__setattr__(self, "vertices", vertices)
        object.__setattr__(self, "edges", edges)

    @classmethod
    def from_edges(
        cls,
        edges: Iterable[Union[Edge, Tuple[int, int], Tuple[int, int, float]]],
        vertices: Optional[Iterable[int]] = None
    ) -> "Graph":
        """
        Build a graph from an edge sequence.

        Two-element tuples get weight 1.0. The vertex set is the union of
        the edge endpoints and ``vertices`` (useful for isolated vertices).
        """
        coerced = []
        for edge in edges:
            if len(edge) == 2:
                edge = (edge[0], edge[1], 1.0)
            coerced.append(_coerce_edge(edge))

        vertex_set = set(vertices or ())
        for edge in coerced:
            vertex_set.add(edge.src)
            vertex_set.add(edge.dst)

        return cls(frozenset(vertex_set), tuple(coerced))

    @cached_property
    def ordered_vertices(self) -> Tuple[int, ...]:
        return tuple(sorted(self.vertices))

    @cached_property
    def edge_keys(self) -> Tuple[EdgeKey, ...]:
        return tuple(edge.key for edge in self.edges)

    @cached_property
    def _adjacency(self) -> Dict[int, Tuple[Edge, ...]]:
        incident: Dict[int, List[Edge]] = {vertex: [] for vertex in self.vertices}
        for edge in self.edges:
            incident[edge.src].append(edge)
            if edge.dst != edge.src:
                incident[edge.dst].append(edge)
        return {vertex: tuple(edge_list) for vertex, edge_list in incident.items()}

    def has_vertex(self, vertex: int) -> bool:
        return vertex in self.vertices

    def incident_edges(self, vertex: int) -> Tuple[Edge, ...]:
        """Edges whose ``src`` or ``dst`` equals ``vertex``, in edge order."""
        try:
            return self._adjacency[vertex]
        except KeyError:
            raise ValidationError(
                "Vertex is not part of the graph",
                field="vertex",
                value=vertex
            )

    def neighbors(self, vertex: int) -> List[int]:
        return [edge.other(vertex) for edge in self.incident_edges(vertex)]

    def degree(self, vertex: int) -> int:
        """Number of incident edges (a self-loop counts once)."""
        return len(self.incident_edges(vertex))

    def number_of_vertices(self) -> int:
        return len(self.vertices)

    def number_of_edges(self) -> int:
        return len(self.edges)

    def __repr__(self) -> str:
        return f"Graph(vertices={self.number_of_vertices()}, edges={self.number_of_edges()})"


def _coerce_edge(edge: Any) -> Edge:
    if isinstance(edge, Edge):
        return edge
    try:
        src, dst, weight = edge
    except (TypeError, ValueError) as e:
        raise ValidationError(
            "Edges must be (src, dst, weight) triples",
            field="edges",
            value=edge,
            cause=e
        )
    try:
        weight = float(weight)
    except (TypeError, ValueError) as e:
        raise ValidationError(
            "Edge weight must be numeric",
            field="weight",
            value=weight,
            cause=e
        )
    return Edge(src, dst, weight)


def _validate_edges(vertices: frozenset, edges: Tuple[Edge, ...]) -> None:
    seen: Dict[EdgeKey, Edge] = {}

    for edge in edges:
        for endpoint_name, endpoint in (("src", edge.src), ("dst", edge.dst)):
            if endpoint not in vertices:
                raise ValidationError(
                    f"Edge {edge.src}-{edge.dst} references a vertex outside the vertex set",
                    field=endpoint_name,
                    value=endpoint
                )

        if not math.isfinite(edge.weight) or edge.weight <= 0:
            raise ValidationError(
                f"Edge {edge.src}-{edge.dst} has a non-positive or non-finite weight",
                field="weight",
                value=edge.weight,
                expected="finite weight > 0"
            )

        previous = seen.get(edge.key)
        if previous is not None:
            raise ValidationError(
                f"Duplicate undirected edge {edge.key}; multi-edges are not supported",
                field="edges",
                details={"first": tuple(previous), "duplicate": tuple(edge)}
            )
        seen[edge.key] = edge


def build_graph_from_edgelist(
    edgelist: Union[str, Path, pl.DataFrame],
    source_col: str = "source",
    target_col: str = "target",
    weight_col: Optional[str] = None,
    default_weight: float = 1.0,
    vertices: Optional[Iterable[int]] = None
) -> Graph:
    """
    Construct a ``Graph`` from a tabular edge list.

    Parameters
    ----------
    edgelist : str, Path or pl.DataFrame
        Path to a CSV file or a Polars DataFrame with one row per edge
    source_col : str, default "source"
        Name of the source vertex column
    target_col : str, default "target"
        Name of the target vertex column
    weight_col : str, optional
        Name of the weight column. When omitted every edge gets
        ``default_weight``.
    default_weight : float, default 1.0
        Weight used when ``weight_col`` is None
    vertices : Iterable[int], optional
        Additional vertices (e.g. isolated ones) to include

    Returns
    -------
    Graph
        Validated immutable graph; rows keep their order as edges

    Raises
    ------
    DataFormatError
        If the CSV file cannot be read
    ValidationError
        If the table or the resulting graph is invalid

    Examples
    --------
    >>> edges = pl.DataFrame({"source": [1, 2], "target": [2, 3], "weight": [0.4, 0.7]})
    >>> graph = build_graph_from_edgelist(edges, weight_col="weight")
    >>> graph.number_of_edges()
    2
    """
    log_function_entry(
        "build_graph_from_edgelist",
        edgelist=type(edgelist).__name__,
        weight_col=weight_col
    )

    df = _load_edge_list(edgelist)
    validate_edgelist_dataframe(
        df, source_col=source_col, target_col=target_col,
        weight_col=weight_col, allow_empty=True
    )

    if df.is_empty():
        warnings.warn("Empty edge list provided. Creating graph without edges.")

    sources = df[source_col].to_list()
    targets = df[target_col].to_list()
    if weight_col is not None:
        weights = [float(w) for w in df[weight_col].to_list()]
    else:
        weights = [float(default_weight)] * len(sources)

    graph = Graph.from_edges(zip(sources, targets, weights), vertices=vertices)
    logger.info(
        "Built graph with %d vertices and %d edges",
        graph.number_of_vertices(), graph.number_of_edges()
    )
    return graph


def _load_edge_list(edgelist: Union[str, Path, pl.DataFrame]) -> pl.DataFrame:
    if isinstance(edgelist, pl.DataFrame):
        return edgelist

    if isinstance(edgelist, (str, Path)):
        path = Path(edgelist)
        if not path.exists():
            raise DataFormatError(
                f"Edge list file not found: {path}",
                format_type="CSV",
                file_path=str(path)
            )
        try:
            return pl.read_csv(path)
        except Exception as e:
            raise DataFormatError(
                f"Failed to read edge list: {e}",
                format_type="CSV",
                file_path=str(path),
                cause=e
            )

    raise ValidationError(
        f"Unsupported edge list type: {type(edgelist).__name__}",
        field="edgelist",
        expected="path or polars.DataFrame"
    )


def to_networkit(graph: Graph) -> Tuple[nk.Graph, IDMapper]:
    """
    Convert a ``Graph`` to a weighted, undirected NetworkIt graph.

    Returns
    -------
    nk_graph : nk.Graph
        NetworkIt graph over internal indices 0..n-1
    id_mapper : IDMapper
        Mapping between vertex IDs and NetworkIt node indices
        (ascending vertex ID order)

    Raises
    ------
    GraphConstructionError
        If NetworkIt rejects the graph
    """
    id_mapper = IDMapper.from_vertices(graph.vertices)

    try:
        nk_graph = nk.Graph(graph.number_of_vertices(), weighted=True, directed=False)
        for edge in graph.edges:
            nk_graph.addEdge(
                id_mapper.get_internal(edge.src),
                id_mapper.get_internal(edge.dst),
                edge.weight
            )
    except Exception as e:
        raise GraphConstructionError(
            f"Failed to convert graph to NetworkIt: {e}",
            vertex_count=graph.number_of_vertices(),
            edge_count=graph.number_of_edges(),
            operation="to_networkit",
            cause=e
        )

    return nk_graph, id_mapper


def get_graph_info(graph: Graph) -> Dict[str, Any]:
    """
    Get basic structural information about a graph.

    Returns
    -------
    Dict[str, Any]
        ``vertices``, ``edges``, ``isolated_vertices``, ``self_loops``,
        ``min_weight``, ``max_weight`` and ``density``
    """
    n = graph.number_of_vertices()
    m = graph.number_of_edges()
    weights = [edge.weight for edge in graph.edges]

    return {
        "vertices": n,
        "edges": m,
        "isolated_vertices": sorted(v for v in graph.vertices if graph.degree(v) == 0),
        "self_loops": sum(1 for edge in graph.edges if edge.src == edge.dst),
        "min_weight": min(weights) if weights else None,
        "max_weight": max(weights) if weights else None,
        "density": (2.0 * m / (n * (n - 1))) if n > 1 else 0.0,
    }
