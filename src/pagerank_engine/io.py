from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

import pandas as pd

from .errors import InvalidGraphError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def load_edge_list(path: PathLike, sep: Optional[str] = None, comment: str = "#") -> Dict[str, List[str]]:
    """Read a ``src dst`` edge list into a node -> successors mapping.

    Columns are whitespace separated unless ``sep`` is given. A line with a
    single id declares a node without links. Nodes that only ever appear as
    a destination are added with no successors, so the returned node set is
    closed. Ids are kept as strings.
    """
    path = Path(path)
    try:
        df = pd.read_csv(
            path,
            sep=r"\s+" if sep is None else sep,
            header=None,
            names=["src", "dst"],
            dtype=str,
            comment=comment,
            skip_blank_lines=True,
            keep_default_na=False,
            na_values=[],
        )
    except pd.errors.EmptyDataError as exc:
        raise InvalidGraphError(f"{path}: no nodes found") from exc
    if df.empty:
        raise InvalidGraphError(f"{path}: no nodes found")

    graph: Dict[str, List[str]] = {}
    added = 0
    for src, dst in df.itertuples(index=False, name=None):
        src = str(src).strip()
        graph.setdefault(src, [])
        if pd.isna(dst) or str(dst).strip() == "":
            continue
        dst = str(dst).strip()
        graph[src].append(dst)
        if dst not in graph:
            graph[dst] = []
            added += 1

    logger.info("Loaded %s: %d nodes, %d links", path, len(graph), sum(len(v) for v in graph.values()))
    if added:
        logger.debug("%d destination-only nodes added as dangling nodes", added)
    return graph


def load_adjacency_json(path: PathLike) -> Dict[str, List[str]]:
    """Read a JSON object ``{node: [successor, ...]}``.

    The mapping is returned as-is; the engine validates it.
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise InvalidGraphError(f"{path}: expected a JSON object of node -> successors")
    logger.info("Loaded %s: %d nodes", path, len(data))
    return data
