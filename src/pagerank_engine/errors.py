from __future__ import annotations


class PageRankError(ValueError):
    """Base class for errors raised by pagerank_engine."""


class InvalidGraphError(PageRankError):
    """The graph is empty, malformed, or references a node it does not define."""


class InvalidParameterError(PageRankError):
    """A numeric parameter (damping, tolerance, iteration cap, k) is out of range."""
