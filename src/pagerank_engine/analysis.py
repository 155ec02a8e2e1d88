from __future__ import annotations

import logging
import math
import numbers
from collections.abc import Hashable, Iterable, Mapping
from typing import Dict, List, Tuple

import numpy as np
import pandas as pd
from scipy import sparse
from scipy.sparse.linalg import spsolve
from scipy.stats import spearmanr
from tqdm.auto import tqdm

from .errors import InvalidParameterError
from .graph import build_link_graph
from .pagerank import (
    DEFAULT_DAMPING,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_TOLERANCE,
    pagerank,
    validate_parameters,
)

logger = logging.getLogger(__name__)

SWEEP_COLUMNS = ["damping", "iterations", "l1_delta", "converged", "rho", "top_node"]


def exact_pagerank(graph: Mapping, damping: float = DEFAULT_DAMPING) -> Dict[Hashable, float]:
    """Exact stationary distribution via one sparse linear solve.

    With dangling mass and teleportation both spread uniformly, the fixed
    point is proportional to the solution y of

        (I - d * P^T) y = 1/N

    where P is the row-stochastic link matrix with zero rows for dangling
    nodes. The result is y normalized to sum 1.
    """
    validate_parameters(damping, DEFAULT_TOLERANCE, DEFAULT_MAX_ITERATIONS)
    lg = build_link_graph(graph)
    n = lg.n

    A = sparse.identity(n, dtype=np.float64, format="csc") - float(damping) * lg.inbound.tocsc()
    y = np.asarray(spsolve(A, np.full(n, 1.0 / n, dtype=np.float64)), dtype=np.float64).reshape(-1)
    p = y / y.sum()
    return {node: float(p[i]) for i, node in enumerate(lg.node_ids)}


def l1_distance(a: Mapping[Hashable, float], b: Mapping[Hashable, float]) -> float:
    """sum_v |a(v) - b(v)| over the union of keys; a missing key counts as 0."""
    keys = list(a) + [k for k in b if k not in a]
    return float(sum(abs(float(a.get(k, 0.0)) - float(b.get(k, 0.0))) for k in keys))


def top_k(scores: Mapping[Hashable, float], k: int) -> List[Tuple[Hashable, float]]:
    """
    Deterministic top-k by sorting on (-score, position in ``scores``).
    """
    if isinstance(k, bool) or not isinstance(k, numbers.Integral) or k <= 0:
        raise InvalidParameterError(f"k must be a positive integer, got {k!r}")
    items = list(scores.items())
    values = np.fromiter((float(v) for _, v in items), dtype=np.float64, count=len(items))
    order = np.lexsort((np.arange(len(items)), -values))
    return [(items[i][0], float(values[i])) for i in order[:k]]


def rank_correlation(a: Mapping[Hashable, float], b: Mapping[Hashable, float]) -> float:
    """Spearman rho between two score mappings over the same nodes.

    Returns NaN when either mapping is constant (e.g. the uniform vector of
    damping 0), since no ranking exists to correlate.
    """
    if set(a) != set(b):
        raise InvalidParameterError("score mappings cover different node sets")
    keys = list(a)
    x = np.fromiter((a[k] for k in keys), dtype=np.float64, count=len(keys))
    y = np.fromiter((b[k] for k in keys), dtype=np.float64, count=len(keys))
    if len(keys) < 2 or np.ptp(x) == 0 or np.ptp(y) == 0:
        logger.debug("rank correlation undefined for constant scores")
        return math.nan
    rho, _ = spearmanr(x, y)
    return float(rho)


def damping_sweep(
    graph: Mapping,
    dampings: Iterable[float],
    tolerance: float = DEFAULT_TOLERANCE,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    reference_damping: float = DEFAULT_DAMPING,
    progress: bool = False,
) -> pd.DataFrame:
    """Run the engine once per damping factor and tabulate the outcome.

    ``rho`` is the Spearman correlation of each run's scores with the run
    at ``reference_damping``; it is NaN for damping 0, whose scores are
    uniform.
    """
    reference = pagerank(graph, reference_damping, tolerance, max_iterations)

    rows = []
    for d in tqdm(list(dampings), desc="Damping sweep", disable=not progress):
        res = pagerank(graph, d, tolerance, max_iterations)
        rows.append({
            "damping": float(d),
            "iterations": res.iterations,
            "l1_delta": res.l1_delta,
            "converged": res.converged,
            "rho": rank_correlation(res.scores, reference.scores),
            "top_node": res.top(1)[0][0],
        })
    logger.info("Damping sweep finished: %d runs", len(rows))
    return pd.DataFrame(rows, columns=SWEEP_COLUMNS).sort_values("damping").reset_index(drop=True)
