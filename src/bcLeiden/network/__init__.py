"""
Graph model and analysis module.

This module provides the core analysis capabilities:
- Immutable weighted, undirected graph model and edge-list construction
- Single-source shortest paths (hop-count BFS and weighted Dijkstra)
- Vertex and edge betweenness centrality with pluggable distance functions
- Betweenness-weighted modularity gains
- Two-phase community detection (local moving and refinement)
"""

# Graph model and construction
from .graph import (
    Edge,
    Graph,
    build_graph_from_edgelist,
    to_networkit,
    get_graph_info
)

# Shortest paths
from .shortest_paths import (
    ShortestPathResult,
    AVAILABLE_DISTANCES,
    DEFAULT_DISTANCE,
    resolve_distance,
    bfs_shortest_paths,
    dijkstra_shortest_paths,
    single_source_shortest_paths
)

# Betweenness centrality
from .betweenness import (
    BetweennessAccumulator,
    AVAILABLE_ORDERS,
    DEFAULT_EDGE_ORDER,
    vertex_dependencies,
    vertex_betweenness,
    edge_betweenness,
    betweenness_to_dataframe,
    edge_betweenness_to_dataframe,
    get_betweenness_summary,
    identify_central_vertices,
    identify_central_edges,
    compare_betweenness_rankings
)

# Modularity gains
from .modularity import (
    vertex_move_gain,
    merge_gain,
    community_degree,
    partition_modularity
)

# Community detection
from .communities import (
    Community,
    Partition,
    OptimizerState,
    CommunityOptimizer,
    CommunityDetectionResult,
    DEFAULT_MAX_ITERATIONS,
    detect_communities,
    get_community_summary
)
