"""
Decomposition reporting — pure functions only.

Turns a CallGraph + ClusteringResult into a JSON-ready report and into the
plain-text dendrogram / merge history shown by the CLI.
"""
from __future__ import annotations

from scipy.cluster.hierarchy import dendrogram

from analytics.callgraph import CallGraph
from analytics.clustering import ClusteringResult, perform_clustering
from analytics.coupling import (
    compute_class_coupling,
    compute_normalized_coupling,
    compute_relation_matrix,
    total_relations,
)
from analytics.modules import identify_modules


def _cluster_dict(result: ClusteringResult, cluster) -> dict:
    kids = result.children(cluster)
    return {
        "id":             cluster.id,
        "classes":        sorted(cluster.members),
        "size":           len(cluster.members),
        "merge_coupling": round(cluster.merge_coupling, 4),
        "cohesion":       round(result.cohesion(cluster), 4),
        "children":       [sorted(k.members) for k in kids] if kids else [],
    }


def analyze_clusters(result: ClusteringResult) -> list[dict]:
    """Per top-level cluster: members, cohesion and the two sub-clusters it was built from."""
    return [_cluster_dict(result, c) for c in result.clusters]


def history_records(result: ClusteringResult) -> list[dict]:
    return [
        {
            "step":     i + 1,
            "merged":   [sorted(s.cluster1.members), sorted(s.cluster2.members)],
            "coupling": round(s.coupling, 4),
            "result":   sorted(s.result.members),
        }
        for i, s in enumerate(result.history)
    ]


def build_report(
    graph: CallGraph,
    result: ClusteringResult,
    threshold: float,
    max_selected: int | None = None,
) -> dict:
    """
    Full decomposition report.

    threshold    — cohesion threshold for both module selectors
    max_selected — cap for the greedy selector (defaults to every cluster)
    """
    matrix = compute_relation_matrix(graph)
    nonzero = sorted(
        ((a, b, v) for (a, b), v in result.coupling.items() if v > 0),
        key=lambda x: (-x[2], x[0], x[1]),
    )
    cap = len(result.active) if max_selected is None else max_selected
    greedy = identify_modules(result.clusters, result.coupling, cap, threshold)

    return {
        "class_count":      len(graph),
        "total_relations":  total_relations(graph),
        "coupling": [
            {"from": a, "to": b, "value": round(v, 4)} for a, b, v in nonzero
        ],
        "class_coupling":   compute_class_coupling(matrix),
        "clusters":         analyze_clusters(result),
        "history":          history_records(result),
        "modules":          [sorted(m) for m in result.modules_at_threshold(threshold)],
        "selected_modules": [sorted(c.members) for c in greedy],
        "leaf_order":       dendrogram_leaf_order(result),
    }


def dendrogram_leaf_order(result: ClusteringResult) -> list[str]:
    """
    Left-to-right leaf order of the SciPy dendrogram for a fully merged run.

    Returns [] when the run stopped before reaching a single tree.
    """
    try:
        Z = result.linkage_matrix()
    except ValueError:
        return []
    labels = [sorted(c.members)[0] for c in result.arena[: result.leaf_count]]
    layout = dendrogram(Z, labels=labels, no_plot=True)
    return list(layout["ivl"])


def format_dendrogram(result: ClusteringResult) -> str:
    """Indented text tree of every top-level cluster."""
    lines = ["Clustering dendrogram:"]
    stack = [
        (c, "", f"Cluster {i + 1}:")
        for i, c in reversed(list(enumerate(result.clusters)))
    ]
    while stack:
        cluster, prefix, heading = stack.pop()
        lines.append(prefix + heading)
        lines.append(f"{prefix}  Classes: {sorted(cluster.members)}")
        lines.append(f"{prefix}  Coupling: {cluster.merge_coupling:.3f}")
        kids = result.children(cluster)
        if kids:
            left, right = kids
            stack.append((right, prefix + "    ", "Right sub-cluster:"))
            stack.append((left, prefix + "    ", "Left sub-cluster:"))
    return "\n".join(lines)


def format_history(result: ClusteringResult) -> str:
    """One block per merge, in merge order."""
    lines = ["Clustering history:"]
    for step in result.history:
        lines.append(str(step))
        lines.append(f"  Result: {sorted(step.result.members)}")
        lines.append(f"  Coupling: {step.coupling:.3f}")
        lines.append("")
    return "\n".join(lines)


def run_decomposition(
    graph: CallGraph,
    min_coupling: float,
    max_modules: int,
    threshold: float,
    max_selected: int | None = None,
    verbose: bool = False,
) -> tuple[ClusteringResult, dict]:
    """Coupling -> clustering -> report in one pass."""
    coupling = compute_normalized_coupling(graph)
    result = perform_clustering(coupling, min_coupling, max_modules, verbose=verbose)
    return result, build_report(graph, result, threshold, max_selected)
