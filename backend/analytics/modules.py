"""
Greedy module selection over an already-built cluster list — pure functions only.

Independent of ClusteringResult.modules_at_threshold: this selector walks the
clusters in list order, never looks at children, and stops accepting once
max_modules slots are filled.
"""
from __future__ import annotations

from analytics.clustering import Cluster
from analytics.coupling import CouplingMap


def _average_coupling(coupling: CouplingMap, cluster: Cluster) -> float:
    total = 0.0
    count = 0
    for a in sorted(cluster.members):
        for b in sorted(cluster.members):
            if a != b and (a, b) in coupling:
                total += coupling[(a, b)]
                count += 1
    return total / count if count > 0 else 0.0


def identify_modules(
    clusters: list[Cluster],
    coupling: CouplingMap,
    max_modules: int,
    coupling_threshold: float,
) -> list[Cluster]:
    """
    Accept clusters whose internal average coupling is strictly above
    coupling_threshold, up to max_modules of them, in list order.

    Singletons have no internal pairs and score 0.0 here.
    """
    modules: list[Cluster] = []
    for cluster in clusters:
        if len(modules) < max_modules and _average_coupling(coupling, cluster) > coupling_threshold:
            modules.append(cluster)
    return modules
