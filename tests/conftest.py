import pytest

from pagerank_engine import lecture_example


@pytest.fixture
def lecture_graph():
    return lecture_example()


@pytest.fixture
def dangling_graph():
    # b and d have no out-links
    return {
        "a": ["b", "c"],
        "b": [],
        "c": ["a", "d"],
        "d": [],
        "e": ["a"],
    }
