from __future__ import annotations

import logging
import math
import numbers
from collections.abc import Hashable, Mapping
from dataclasses import asdict, dataclass
from typing import Dict, List, Tuple

import numpy as np
import pandas as pd
from tqdm.auto import tqdm

from .errors import InvalidParameterError
from .graph import LinkGraph, build_link_graph

logger = logging.getLogger(__name__)

DEFAULT_DAMPING = 0.85
DEFAULT_TOLERANCE = 1e-6
DEFAULT_MAX_ITERATIONS = 100


@dataclass(frozen=True)
class IterationRecord:
    iteration: int
    l1_delta: float          # sum_v |new(v) - old(v)|
    max_delta: float         # largest single-node change
    max_delta_node: Hashable
    dangling_mass: float     # rank held by dangling nodes before the update


@dataclass(frozen=True)
class PageRankResult:
    scores: Dict[Hashable, float]
    iterations: int
    l1_delta: float
    converged: bool
    damping: float
    tolerance: float
    history: Tuple[IterationRecord, ...] = ()

    def top(self, k: int = 10) -> List[Tuple[Hashable, float]]:
        from .analysis import top_k

        return top_k(self.scores, k)

    def to_frame(self) -> pd.DataFrame:
        """Scores as a DataFrame (node, score, rank), best first."""
        ranked = self.top(len(self.scores))
        df = pd.DataFrame(ranked, columns=["node", "score"])
        df["rank"] = np.arange(1, len(df) + 1)
        return df

    def history_frame(self) -> pd.DataFrame:
        cols = ["iteration", "l1_delta", "max_delta", "max_delta_node", "dangling_mass"]
        return pd.DataFrame([asdict(r) for r in self.history], columns=cols)


def validate_parameters(damping, tolerance, max_iterations) -> None:
    """Reject out-of-range parameters before any work is done."""
    if (
        isinstance(damping, bool)
        or not isinstance(damping, numbers.Real)
        or not 0.0 <= float(damping) < 1.0
    ):
        raise InvalidParameterError(f"damping must be in [0, 1), got {damping!r}")
    if (
        isinstance(tolerance, bool)
        or not isinstance(tolerance, numbers.Real)
        or not 0.0 < float(tolerance) < math.inf
    ):
        raise InvalidParameterError(f"tolerance must be a positive finite number, got {tolerance!r}")
    if (
        isinstance(max_iterations, bool)
        or not isinstance(max_iterations, numbers.Integral)
        or max_iterations < 1
    ):
        raise InvalidParameterError(f"max_iterations must be an integer >= 1, got {max_iterations!r}")


def pagerank_power(
    link_graph: LinkGraph,
    *,
    damping: float = DEFAULT_DAMPING,
    tolerance: float = DEFAULT_TOLERANCE,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    progress: bool = False,
) -> Tuple[np.ndarray, Tuple[IterationRecord, ...]]:
    """Damped power iteration with uniform dangling-mass redistribution.

    Each step computes

        new(v) = (1-d)/N + d * ( sum_{u -> v} old(u)/outdeg(u) + dangling/N )

    into a second buffer; the buffers are swapped afterwards, so every read
    of a step sees only the previous vector. The new vector is kept even on
    the step that meets the tolerance.

    Parameters
    ----------
    link_graph:
        Index built by :func:`build_link_graph`.
    damping:
        Probability of following a link, in [0, 1).
    tolerance:
        Stop once the L1 change of a step is below this value.
    max_iterations:
        Hard cap on the number of steps.
    progress:
        Show a tqdm bar over the steps.

    Returns
    -------
    p: np.ndarray
        Rank vector aligned with ``link_graph.node_ids``.
    history:
        One :class:`IterationRecord` per step.
    """
    n = link_graph.n
    d = float(damping)
    base = (1.0 - d) / n

    prev = np.full(n, 1.0 / n, dtype=np.float64)
    nxt = np.empty(n, dtype=np.float64)
    diff = np.empty(n, dtype=np.float64)
    dangling = link_graph.dangling

    history: List[IterationRecord] = []
    steps = tqdm(range(1, int(max_iterations) + 1), desc="Power iteration", disable=not progress)
    for it in steps:
        dm = float(prev[dangling].sum())

        nxt[:] = link_graph.inbound @ prev
        nxt += dm / n
        nxt *= d
        nxt += base

        np.subtract(nxt, prev, out=diff)
        np.abs(diff, out=diff)
        delta = float(diff.sum())
        k = int(diff.argmax())

        history.append(IterationRecord(
            iteration=it,
            l1_delta=delta,
            max_delta=float(diff[k]),
            max_delta_node=link_graph.node_ids[k],
            dangling_mass=dm,
        ))
        logger.debug("iter=%d l1=%.3e dangling=%.6f", it, delta, dm)

        prev, nxt = nxt, prev
        if delta < tolerance:
            break

    return prev.copy(), tuple(history)


def pagerank(
    graph: Mapping,
    damping: float = DEFAULT_DAMPING,
    tolerance: float = DEFAULT_TOLERANCE,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    *,
    progress: bool = False,
) -> PageRankResult:
    """PageRank of ``graph`` together with convergence diagnostics.

    Running out of iterations is not an error: the last vector is returned
    with ``converged=False``.
    """
    validate_parameters(damping, tolerance, max_iterations)
    link_graph = build_link_graph(graph)

    p, history = pagerank_power(
        link_graph,
        damping=damping,
        tolerance=tolerance,
        max_iterations=max_iterations,
        progress=progress,
    )
    last = history[-1]
    converged = last.l1_delta < tolerance

    if converged:
        logger.info("PageRank converged after %d iterations (l1=%.3e)", last.iteration, last.l1_delta)
    else:
        logger.warning(
            "PageRank stopped at max_iterations=%d without converging (l1=%.3e, tol=%.1e)",
            last.iteration, last.l1_delta, tolerance,
        )

    scores = {node: float(p[i]) for i, node in enumerate(link_graph.node_ids)}
    return PageRankResult(
        scores=scores,
        iterations=last.iteration,
        l1_delta=last.l1_delta,
        converged=converged,
        damping=float(damping),
        tolerance=float(tolerance),
        history=history,
    )


def compute(
    graph: Mapping,
    damping: float = DEFAULT_DAMPING,
    tolerance: float = DEFAULT_TOLERANCE,
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
) -> Dict[Hashable, float]:
    """Stationary PageRank distribution of ``graph`` as a node -> score dict."""
    return pagerank(graph, damping, tolerance, max_iterations).scores
