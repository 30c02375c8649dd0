"""
Shared fixtures for modscope analytics tests.

Graphs are built in memory — no fixture DBs or running server required.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from analytics.callgraph import CallGraph  # noqa: E402


def make_graph(classes: dict[str, tuple[list[str], list[str]]]) -> CallGraph:
    """classes — {class: (declared methods, called method names)}, registered in dict order."""
    g = CallGraph()
    for name, (methods, calls) in classes.items():
        g.add_class(name)
        for m in methods:
            g.add_method(name, m)
        for c in calls:
            g.add_method_call(name, c)
    return g


@pytest.fixture
def chain_graph() -> CallGraph:
    """A calls x (declared by B), B calls y (declared by C)."""
    return make_graph({
        "A": ([],    ["x"]),
        "B": (["x"], ["y"]),
        "C": (["y"], []),
    })


@pytest.fixture
def two_pair_graph() -> CallGraph:
    """
    Two tight pairs joined by one weak link.

    A→B: 2 relations, B→A: 1, B→C: 1, C→D: 1, D→C: 1  (total 6)
    """
    return make_graph({
        "A": (["a1"],       ["b1", "b2"]),
        "B": (["b1", "b2"], ["a1", "c1"]),
        "C": (["c1"],       ["d1"]),
        "D": (["d1"],       ["c1"]),
    })


@pytest.fixture
def disjoint_graph() -> CallGraph:
    return make_graph({
        "Alpha": (["run"],  ["log"]),
        "Beta":  (["stop"], ["flush"]),
    })
