from __future__ import annotations

import logging
from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, List, Tuple

import numpy as np
from scipy import sparse

from .errors import InvalidGraphError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinkGraph:
    node_ids: Tuple[Hashable, ...]      # node ids in input order
    id_to_idx: Mapping[Hashable, int]   # node id -> [0..n-1]
    n: int
    m: int                              # number of links, parallel links counted

    out_degree: np.ndarray              # int64 length n, read-only
    dangling: np.ndarray                # bool length n, read-only

    # inbound[v, u] = count(u -> v) / outdeg(u); row v lists the predecessors of v
    inbound: sparse.csr_matrix

    def inbound_map(self) -> Dict[Hashable, Tuple[Hashable, ...]]:
        """Inbound index as a plain mapping node -> predecessors.

        Each predecessor appears once, in input order, even when it links to
        the node more than once.
        """
        ids = self.node_ids
        indptr = self.inbound.indptr
        indices = self.inbound.indices
        out: Dict[Hashable, Tuple[Hashable, ...]] = {}
        for v in range(self.n):
            row = indices[indptr[v]:indptr[v + 1]]
            out[ids[v]] = tuple(ids[int(u)] for u in row)
        return out

    def dangling_nodes(self) -> List[Hashable]:
        return [self.node_ids[i] for i in np.flatnonzero(self.dangling)]


def _successors(graph: Mapping, node: Hashable) -> Iterable:
    succ = graph[node]
    if isinstance(succ, (str, bytes)) or not isinstance(succ, Iterable):
        raise InvalidGraphError(
            f"successors of node {node!r} must be a sequence of node ids, got {type(succ).__name__}"
        )
    return succ


def build_link_graph(graph: Mapping) -> LinkGraph:
    """Validate a node -> successors mapping and build its read-only index.

    Parameters
    ----------
    graph:
        Mapping from node id to the ids it links to. The keys are the full
        node set; a node with no successors is a dangling node.

    Returns
    -------
    LinkGraph
        Node order, out-degrees, dangling mask and the inbound index as a
        CSR matrix whose rows are the link targets.

    Raises
    ------
    InvalidGraphError
        If the graph is not a mapping, is empty, or links to a node that is
        not one of its keys.
    """
    if not isinstance(graph, Mapping):
        raise InvalidGraphError(
            f"graph must be a mapping of node -> successors, got {type(graph).__name__}"
        )
    if len(graph) == 0:
        raise InvalidGraphError("graph is empty")

    node_ids = tuple(graph.keys())
    id_to_idx = {v: i for i, v in enumerate(node_ids)}
    n = len(node_ids)

    src: List[int] = []
    dst: List[int] = []
    out_degree = np.zeros(n, dtype=np.int64)

    for i, node in enumerate(node_ids):
        for target in _successors(graph, node):
            try:
                j = id_to_idx.get(target)
            except TypeError as exc:
                raise InvalidGraphError(
                    f"node {node!r} links to unhashable id {target!r}"
                ) from exc
            if j is None:
                raise InvalidGraphError(
                    f"node {node!r} links to {target!r}, which is not a node of the graph"
                )
            src.append(i)
            dst.append(j)
            out_degree[i] += 1

    src_arr = np.asarray(src, dtype=np.int64)
    dst_arr = np.asarray(dst, dtype=np.int64)
    vals = 1.0 / out_degree[src_arr].astype(np.float64)

    inbound = sparse.csr_matrix((vals, (dst_arr, src_arr)), shape=(n, n), dtype=np.float64)
    # parallel links collapse into one entry; indices end up sorted by source
    inbound.sum_duplicates()

    dangling = out_degree == 0
    out_degree.flags.writeable = False
    dangling.flags.writeable = False

    logger.debug(
        "Built link graph: n=%d, m=%d, dangling=%d", n, len(src), int(dangling.sum())
    )
    return LinkGraph(
        node_ids=node_ids,
        id_to_idx=MappingProxyType(id_to_idx),
        n=n,
        m=len(src),
        out_degree=out_degree,
        dangling=dangling,
        inbound=inbound,
    )
