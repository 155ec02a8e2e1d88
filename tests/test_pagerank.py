import copy
import logging
import math

import pytest

from pagerank_engine import (
    InvalidGraphError,
    InvalidParameterError,
    build_link_graph,
    compute,
    exact_pagerank,
    l1_distance,
    pagerank,
    pagerank_power,
    top_k,
)


def test_one_iteration_matches_lecture_walkthrough(lecture_graph):
    res = pagerank(lecture_graph, damping=0.85, tolerance=1e-6, max_iterations=1)
    pr = res.scores

    assert pr["A"] == pytest.approx(0.20)
    assert pr["B"] == pytest.approx(0.285)
    assert pr["C"] == pytest.approx(0.455)
    assert pr["D"] == pytest.approx(0.03)
    assert pr["E"] == pytest.approx(0.03)

    assert res.iterations == 1
    assert not res.converged
    assert res.l1_delta == pytest.approx(0.68)

    step = res.history[0]
    assert step.max_delta == pytest.approx(0.255)
    assert step.max_delta_node == "C"
    assert step.dangling_mass == 0.0


def test_converges_on_lecture_graph(lecture_graph):
    d, tol = 0.85, 1e-6
    res = pagerank(lecture_graph, damping=d, tolerance=tol, max_iterations=100)

    assert res.converged
    assert 1 < res.iterations < 100
    assert res.l1_delta < tol

    exact = exact_pagerank(lecture_graph, damping=d)
    assert l1_distance(res.scores, exact) < tol

    order = [node for node, _ in top_k(res.scores, 5)]
    assert order == ["C", "A", "B", "D", "E"]


def test_nodes_without_inlinks_sit_at_teleport_floor(lecture_graph):
    floor = (1 - 0.85) / 5
    for k in range(1, 6):
        pr = compute(lecture_graph, damping=0.85, tolerance=1e-12, max_iterations=k)
        assert pr["D"] == pytest.approx(floor, abs=1e-15)
        assert pr["E"] == pytest.approx(floor, abs=1e-15)


@pytest.mark.parametrize("k", range(1, 16))
def test_sum_and_non_negativity_hold_at_every_iteration(dangling_graph, k):
    pr = compute(dangling_graph, damping=0.85, tolerance=1e-15, max_iterations=k)

    assert abs(sum(pr.values()) - 1.0) < 1e-9
    assert all(v >= 0 for v in pr.values())


def test_dangling_mass_is_redistributed(dangling_graph):
    res = pagerank(dangling_graph, max_iterations=1, tolerance=1e-15)
    # b and d start at 1/5 each
    assert res.history[0].dangling_mass == pytest.approx(0.4)
    assert sum(res.scores.values()) == pytest.approx(1.0, abs=1e-12)


def test_integer_ids_order():
    outlinks = {
        0: [1, 2],
        1: [2],
        2: [0],
        3: [2],
    }

    pr = compute(outlinks, damping=0.85, tolerance=1e-10, max_iterations=1000)

    assert len(pr) == 4
    assert all(v > 0 for v in pr.values())
    assert abs(sum(pr.values()) - 1.0) < 1e-9

    order = sorted(pr, key=lambda i: pr[i], reverse=True)
    assert order[0] == 2
    assert order[-1] == 3


def test_result_follows_input_order_and_is_a_dict(lecture_graph):
    pr = compute(lecture_graph)
    assert isinstance(pr, dict)
    assert list(pr) == list(lecture_graph)


def test_deterministic_and_independent_of_key_order(dangling_graph):
    first = compute(dangling_graph)
    second = compute(dangling_graph)
    assert first == second

    reordered = dict(reversed(list(dangling_graph.items())))
    third = compute(reordered)
    for node, score in first.items():
        assert third[node] == pytest.approx(score, abs=1e-12)


def test_last_computed_vector_is_returned_on_convergence(lecture_graph):
    res = pagerank(lecture_graph, tolerance=1e-6)
    assert res.converged

    capped = pagerank(lecture_graph, tolerance=1e-300, max_iterations=res.iterations)
    assert capped.scores == res.scores


def test_non_convergence_returns_best_effort(lecture_graph, caplog):
    with caplog.at_level(logging.WARNING, logger="pagerank_engine.pagerank"):
        res = pagerank(lecture_graph, tolerance=1e-12, max_iterations=3)

    assert res.iterations == 3
    assert not res.converged
    assert len(res.history) == 3
    assert res.l1_delta == res.history[-1].l1_delta
    assert sum(res.scores.values()) == pytest.approx(1.0, abs=1e-9)
    assert "without converging" in caplog.text


def test_zero_damping_is_uniform(lecture_graph):
    res = pagerank(lecture_graph, damping=0.0)
    assert res.iterations == 1
    assert res.converged
    assert all(v == pytest.approx(0.2) for v in res.scores.values())


def test_all_dangling_graph_is_uniform():
    pr = compute({"x": [], "y": []})
    assert pr == {"x": pytest.approx(0.5), "y": pytest.approx(0.5)}


def test_single_node_self_loop():
    assert compute({"a": ["a"]}) == {"a": pytest.approx(1.0)}


def test_parallel_links_carry_more_rank():
    g = {"a": ["b", "b", "c"], "b": ["a"], "c": ["a"]}
    pr = compute(g, max_iterations=1)

    assert pr["a"] == pytest.approx(0.05 + 0.85 * (2 / 3))
    assert pr["b"] == pytest.approx(0.05 + 0.85 * (1 / 3) * (2 / 3))
    assert pr["c"] == pytest.approx(0.05 + 0.85 * (1 / 3) * (1 / 3))


def test_input_graph_is_not_modified(dangling_graph):
    before = copy.deepcopy(dangling_graph)
    compute(dangling_graph)
    assert dangling_graph == before


def test_history_frame(lecture_graph):
    res = pagerank(lecture_graph, max_iterations=4, tolerance=1e-12)
    df = res.history_frame()

    assert list(df.columns) == ["iteration", "l1_delta", "max_delta", "max_delta_node", "dangling_mass"]
    assert df["iteration"].tolist() == [1, 2, 3, 4]
    assert df["l1_delta"].iloc[0] == pytest.approx(0.68)


def test_to_frame_ranks_best_first(lecture_graph):
    df = pagerank(lecture_graph).to_frame()

    assert list(df.columns) == ["node", "score", "rank"]
    assert df["node"].iloc[0] == "C"
    assert df["rank"].tolist() == [1, 2, 3, 4, 5]


@pytest.mark.parametrize(
    "graph",
    [
        {},
        {"A": ["Z"]},
        {"A": ["B"], "B": ["A", "C"]},
        [("A", "B")],
        {"A": "B", "B": []},
        {"A": None},
        {"A": [["B"]]},
    ],
)
def test_invalid_graph_rejected(graph):
    with pytest.raises(InvalidGraphError):
        compute(graph)


@pytest.mark.parametrize("damping", [1.0, 1.5, -0.1, math.nan, True, "0.85"])
def test_invalid_damping_rejected(lecture_graph, damping):
    with pytest.raises(InvalidParameterError):
        compute(lecture_graph, damping=damping)


@pytest.mark.parametrize("tolerance", [0, 0.0, -1e-6, math.inf, math.nan])
def test_invalid_tolerance_rejected(lecture_graph, tolerance):
    with pytest.raises(InvalidParameterError):
        compute(lecture_graph, tolerance=tolerance)


@pytest.mark.parametrize("max_iterations", [0, -1, 2.5, True])
def test_invalid_max_iterations_rejected(lecture_graph, max_iterations):
    with pytest.raises(InvalidParameterError):
        compute(lecture_graph, max_iterations=max_iterations)


def test_errors_are_value_errors():
    with pytest.raises(ValueError):
        compute({})


def test_pagerank_power_on_prebuilt_index(lecture_graph):
    lg = build_link_graph(lecture_graph)
    p, history = pagerank_power(lg, damping=0.85, tolerance=1e-6, max_iterations=100)

    assert p.shape == (5,)
    assert p.sum() == pytest.approx(1.0, abs=1e-9)
    assert history[-1].l1_delta < 1e-6
    assert dict(zip(lg.node_ids, p.tolist())) == compute(lecture_graph)
