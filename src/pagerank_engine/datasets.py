from __future__ import annotations

from typing import Dict, List


def lecture_example() -> Dict[str, List[str]]:
    """Five-page web used in the PageRank lecture walkthrough.

    D and E have no in-links, so with d=0.85 they settle at (1-d)/5 = 0.03
    after the first iteration.
    """
    return {
        "A": ["B", "C"],
        "B": ["C"],
        "C": ["A"],
        "D": ["B"],
        "E": ["C"],
    }
