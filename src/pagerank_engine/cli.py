from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

import pandas as pd

from .analysis import damping_sweep
from .datasets import lecture_example
from .errors import PageRankError
from .io import load_adjacency_json, load_edge_list
from .pagerank import (
    DEFAULT_DAMPING,
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_TOLERANCE,
    pagerank,
)


def _parse_dampings(s: str) -> list[float]:
    """Parse "0.5,0.7,0.85" -> [0.5, 0.7, 0.85]."""
    try:
        return [float(x) for x in s.split(",") if x.strip()]
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid damping list: {s!r}") from exc


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="PageRank of a static directed graph by damped power iteration.")

    ap.add_argument("--graph", default=None,
                    help="Graph file. Omit to run the five-node lecture example.")
    ap.add_argument("--format", default="edges", choices=["edges", "json"],
                    help="edges: 'src dst' lines; json: object of node -> successors.")

    ap.add_argument("--damping", type=float, default=DEFAULT_DAMPING, help="Damping factor in [0, 1).")
    ap.add_argument("--tol", type=float, default=DEFAULT_TOLERANCE, help="L1 convergence tolerance.")
    ap.add_argument("--max-iter", type=int, default=DEFAULT_MAX_ITERATIONS, help="Max power iterations.")
    ap.add_argument("--topk", type=int, default=10, help="How many nodes to print.")

    ap.add_argument("--outputs-dir", default=None, help="If set, write scores/convergence CSVs here.")
    ap.add_argument("--sweep", type=_parse_dampings, default=None,
                    help="Comma-separated damping factors to compare, e.g. 0.5,0.7,0.85,0.95.")
    ap.add_argument("--progress", action="store_true", help="Show progress bars.")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log every iteration.")
    return ap


def _load_graph(args: argparse.Namespace) -> dict:
    if args.graph is None:
        return lecture_example()
    if args.format == "json":
        return load_adjacency_json(args.graph)
    return load_edge_list(args.graph)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        graph = _load_graph(args)
        result = pagerank(graph, args.damping, args.tol, args.max_iter, progress=args.progress)
        top = pd.DataFrame(result.top(args.topk), columns=["node", "score"])
        sweep = None
        if args.sweep:
            sweep = damping_sweep(
                graph,
                args.sweep,
                tolerance=args.tol,
                max_iterations=args.max_iter,
                reference_damping=args.damping,
                progress=args.progress,
            )
    except (PageRankError, OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    print(f"NODES: {len(graph)}")
    print(f"LINKS: {sum(len(v) for v in graph.values())}")
    print(f"DAMPING: {result.damping}")
    print(f"ITERATIONS: {result.iterations}")
    print(f"L1_DELTA: {result.l1_delta:.3e}")
    print(f"CONVERGED: {result.converged}")

    print("\nTOP_NODES_BY_PAGERANK:")
    print(top.to_string(index=False, float_format=lambda x: f"{x:.10f}"))

    if sweep is not None:
        print("\nDAMPING_SWEEP:")
        print(sweep.to_string(index=False))

    if args.outputs_dir is not None:
        outputs_dir = Path(args.outputs_dir)
        outputs_dir.mkdir(parents=True, exist_ok=True)
        saved = [outputs_dir / "pagerank_scores.csv", outputs_dir / "convergence.csv"]
        result.to_frame().to_csv(saved[0], index=False)
        result.history_frame().to_csv(saved[1], index=False)
        if sweep is not None:
            saved.append(outputs_dir / "damping_sweep.csv")
            sweep.to_csv(saved[-1], index=False)

        print("\nSaved:")
        for p in saved:
            print(" -", p)

    return 0


if __name__ == "__main__":
    sys.exit(main())
