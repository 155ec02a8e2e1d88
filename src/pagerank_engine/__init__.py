"""PageRank on static directed graphs.

This package provides a minimal implementation of:
- damped power iteration with uniform dangling-mass redistribution,
- a read-only inbound index built once per graph,
- an exact sparse solve for checking converged vectors,
- small loaders and a CLI around the engine.
"""

from .errors import PageRankError, InvalidGraphError, InvalidParameterError
from .graph import LinkGraph, build_link_graph
from .pagerank import (
    DEFAULT_DAMPING,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_TOLERANCE,
    IterationRecord,
    PageRankResult,
    compute,
    pagerank,
    pagerank_power,
)
from .analysis import exact_pagerank, l1_distance, top_k, rank_correlation, damping_sweep
from .io import load_edge_list, load_adjacency_json
from .datasets import lecture_example

__all__ = [
    "PageRankError",
    "InvalidGraphError",
    "InvalidParameterError",
    "LinkGraph",
    "build_link_graph",
    "DEFAULT_DAMPING",
    "DEFAULT_MAX_ITERATIONS",
    "DEFAULT_TOLERANCE",
    "IterationRecord",
    "PageRankResult",
    "compute",
    "pagerank",
    "pagerank_power",
    "exact_pagerank",
    "l1_distance",
    "top_k",
    "rank_correlation",
    "damping_sweep",
    "load_edge_list",
    "load_adjacency_json",
    "lecture_example",
]
