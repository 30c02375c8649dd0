"""
Class coupling analysis — pure functions only.

A relation from class A to class B is a method name that A calls and B
declares. Relation counts are normalized by the system-wide total so that
every ordered pair gets a comparable score in [0, 1].
"""
from __future__ import annotations

import networkx as nx

from analytics.callgraph import CallGraph

CouplingMap = dict[tuple[str, str], float]


def count_relations(graph: CallGraph, caller: str, callee: str) -> int:
    """Number of method names called by `caller` and declared by `callee`."""
    return len(graph.called_methods(caller) & graph.class_methods(callee))


def compute_relation_matrix(graph: CallGraph) -> dict[str, dict[str, int]]:
    """
    Raw relation counts between distinct classes.

    Returns — {caller: {callee: count}}, non-zero entries only
    """
    matrix: dict[str, dict[str, int]] = {}
    classes = graph.classes()
    for a in classes:
        for b in classes:
            if a == b:
                continue
            cnt = count_relations(graph, a, b)
            if cnt:
                matrix.setdefault(a, {})[b] = cnt
    return matrix


def total_relations(graph: CallGraph) -> int:
    classes = graph.classes()
    return sum(
        count_relations(graph, a, b)
        for a in classes
        for b in classes
        if a != b
    )


def compute_normalized_coupling(graph: CallGraph) -> CouplingMap:
    """
    Normalized coupling for every ordered pair of distinct classes.

    The map is dense: pairs without any shared name are stored as 0.0.
    When the graph has no relations at all every value is 0.0.
    """
    total = total_relations(graph)
    classes = graph.classes()
    coupling: CouplingMap = {}
    for a in classes:
        for b in classes:
            if a == b:
                continue
            cnt = count_relations(graph, a, b)
            coupling[(a, b)] = cnt / total if total > 0 else 0.0
    return coupling


def compute_class_coupling(relation_matrix: dict[str, dict[str, int]]) -> dict[str, dict]:
    """
    Per-class afferent/efferent relation counts and instability.

    relation_matrix — output of compute_relation_matrix
    Returns         — {class: {afferent, efferent, instability}}
    """
    afferent: dict[str, int] = {}
    efferent: dict[str, int] = {}

    for src, row in relation_matrix.items():
        for dst, cnt in row.items():
            efferent[src] = efferent.get(src, 0) + cnt
            afferent[dst] = afferent.get(dst, 0) + cnt

    result = {}
    for c in sorted(set(afferent) | set(efferent)):
        ca = afferent.get(c, 0)
        ce = efferent.get(c, 0)
        total = ca + ce
        result[c] = {
            "afferent":    ca,
            "efferent":    ce,
            "instability": round(ce / total, 3) if total else 0,
        }
    return result


def coupling_graph(coupling: CouplingMap) -> nx.DiGraph:
    """
    Weighted directed graph of the coupling map.

    Every class becomes a node; only non-zero pairs become edges, with the
    normalized value stored as `weight`.
    """
    G = nx.DiGraph()
    for a, b in coupling:
        G.add_node(a)
        G.add_node(b)
    for (a, b), value in coupling.items():
        if value > 0:
            G.add_edge(a, b, weight=value)
    return G
