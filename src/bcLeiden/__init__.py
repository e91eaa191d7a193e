"""
bcLeiden - Betweenness centrality and betweenness-weighted community detection.

This package computes vertex and edge betweenness centrality on weighted,
undirected graphs and uses vertex betweenness to steer a Leiden-style
two-phase community optimizer.

Modules:
    common: Shared utilities for exceptions, logging, ID mapping and validation
    network: Graph model, shortest paths, betweenness and community detection
"""

__version__ = "0.1.0"

from bcLeiden.common.exceptions import (
    NetworkAnalysisError,
    ValidationError,
    GraphConstructionError,
    ConfigurationError,
    ComputationError,
    DataFormatError,
    ConvergenceWarning
)
from bcLeiden.network.graph import Edge, Graph, build_graph_from_edgelist
from bcLeiden.network.betweenness import vertex_betweenness, edge_betweenness
from bcLeiden.network.communities import detect_communities, CommunityOptimizer

__all__ = [
    "NetworkAnalysisError",
    "ValidationError",
    "GraphConstructionError",
    "ConfigurationError",
    "ComputationError",
    "DataFormatError",
    "ConvergenceWarning",
    "Edge",
    "Graph",
    "build_graph_from_edgelist",
    "vertex_betweenness",
    "edge_betweenness",
    "detect_communities",
    "CommunityOptimizer",
]
