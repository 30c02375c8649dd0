"""
Agglomerative clustering over a normalized coupling map — pure functions only.

Merging strategy:
  1. One singleton cluster per class found in the coupling map keys
  2. Scan every pair of active clusters, pick the first pair with the
     strictly greatest positive average coupling (pair-scan order i < j);
     stop when no pair couples above zero
  3. Merge it if the coupling reaches min_coupling, otherwise stop
  4. Repeat until max_modules clusters remain (or only one)

Clusters live in an arena (a list indexed by cluster id). Leaves take ids
0..n-1 in discovery order, merge k creates id n+k, so ids line up with the
SciPy linkage convention. The active list holds the ids still at top level.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import networkx as nx
import numpy as np

from analytics.coupling import CouplingMap


@dataclass(frozen=True)
class Cluster:
    id: int
    members: frozenset[str]
    left: Optional[int] = None
    right: Optional[int] = None
    merge_coupling: float = 0.0

    @property
    def is_leaf(self) -> bool:
        return self.left is None

    def __str__(self) -> str:
        return f"Cluster{{classes={sorted(self.members)}, merge_coupling={self.merge_coupling:.3f}}}"


@dataclass(frozen=True)
class ClusteringStep:
    cluster1: Cluster
    cluster2: Cluster
    coupling: float
    result: Cluster

    def __str__(self) -> str:
        return (
            f"Merged {sorted(self.cluster1.members)} and {sorted(self.cluster2.members)} "
            f"(coupling: {self.coupling:.3f})"
        )


def cluster_coupling(coupling: CouplingMap, c1: Cluster, c2: Cluster) -> float:
    """
    Mean coupling between two clusters, both directions pooled.

    Pairs missing from the map do not count towards the denominator.
    Returns 0.0 when no pair has a recorded value.
    """
    total = 0.0
    found = 0
    for a in sorted(c1.members):
        for b in sorted(c2.members):
            for key in ((a, b), (b, a)):
                value = coupling.get(key)
                if value is not None:
                    total += value
                    found += 1
    return total / found if found else 0.0


def internal_coupling(coupling: CouplingMap, members: frozenset[str] | set[str]) -> float:
    """Mean coupling over ordered pairs of distinct members present in the map."""
    total = 0.0
    found = 0
    ordered = sorted(members)
    for a in ordered:
        for b in ordered:
            if a == b:
                continue
            value = coupling.get((a, b))
            if value is not None:
                total += value
                found += 1
    return total / found if found else 0.0


def module_cohesion(coupling: CouplingMap, cluster: Cluster) -> float:
    """Internal coupling of a cluster; a singleton is perfectly cohesive (1.0)."""
    if len(cluster.members) <= 1:
        return 1.0
    return internal_coupling(coupling, cluster.members)


@dataclass
class ClusteringResult:
    """Outcome of one perform_clustering run: cluster arena, active ids, merge history."""
    coupling: CouplingMap
    arena: list[Cluster] = field(default_factory=list)
    active: list[int] = field(default_factory=list)
    history: list[ClusteringStep] = field(default_factory=list)

    @property
    def clusters(self) -> list[Cluster]:
        """Top-level clusters, in active-list order."""
        return [self.arena[i] for i in self.active]

    @property
    def leaf_count(self) -> int:
        return sum(1 for c in self.arena if c.is_leaf)

    def cluster(self, cluster_id: int) -> Cluster:
        if not 0 <= cluster_id < len(self.arena):
            raise KeyError(f"Unknown cluster id {cluster_id}")
        return self.arena[cluster_id]

    def children(self, cluster: Cluster) -> tuple[Cluster, Cluster] | None:
        if cluster.is_leaf:
            return None
        return self.arena[cluster.left], self.arena[cluster.right]

    def root(self) -> Cluster | None:
        """The single top-level cluster, or None if there are zero or several."""
        return self.arena[self.active[0]] if len(self.active) == 1 else None

    def cohesion(self, cluster: Cluster) -> float:
        return module_cohesion(self.coupling, cluster)

    def all_cohesions(self) -> dict[int, float]:
        return {c.id: self.cohesion(c) for c in self.clusters}

    def modules_at_threshold(self, threshold: float) -> list[set[str]]:
        """
        Member sets of top-level clusters with cohesion >= threshold.

        A top-level cluster that fails the threshold is replaced by whichever
        of its two immediate children pass it. Grandchildren are never
        examined.
        """
        modules: list[set[str]] = []
        for c in self.clusters:
            if self.cohesion(c) >= threshold:
                modules.append(set(c.members))
                continue
            kids = self.children(c)
            if kids is None:
                continue
            for child in kids:
                if self.cohesion(child) >= threshold:
                    modules.append(set(child.members))
        return modules

    def tree_graph(self, cluster: Cluster | None = None) -> nx.DiGraph:
        """
        Directed tree (parent -> child) of a cluster's subtree, or of every
        top-level cluster when none is given.

        Node attributes: members (sorted list), leaf, merge_coupling.
        Edge attribute:  side ("left" / "right").
        """
        G = nx.DiGraph()
        stack = [cluster] if cluster is not None else list(reversed(self.clusters))
        # Tree depth is bounded by the number of leaves; no recursion needed.
        while stack:
            c = stack.pop()
            G.add_node(
                c.id,
                members=sorted(c.members),
                leaf=c.is_leaf,
                merge_coupling=c.merge_coupling,
            )
            kids = self.children(c)
            if kids is None:
                continue
            left, right = kids
            G.add_edge(c.id, left.id, side="left")
            G.add_edge(c.id, right.id, side="right")
            stack.append(right)
            stack.append(left)
        return G

    def linkage_matrix(self) -> np.ndarray:
        """
        SciPy-style linkage matrix of a fully merged run.

        Row k describes merge k: [left_id, right_id, 1 - merge_coupling, size].
        Raises ValueError unless the run merged everything into one tree.
        """
        n = self.leaf_count
        if n < 2 or len(self.history) != n - 1:
            raise ValueError(
                f"Linkage needs a single tree over {n} classes; "
                f"run stopped after {len(self.history)} merges"
            )
        rows = [
            [step.result.left, step.result.right,
             1.0 - step.coupling, len(step.result.members)]
            for step in self.history
        ]
        return np.array(rows, dtype=float)


def _unique_classes(coupling: CouplingMap) -> list[str]:
    seen: dict[str, None] = {}
    for a, b in coupling:
        seen.setdefault(a)
        seen.setdefault(b)
    return list(seen)


def _most_coupled_pair(
    coupling: CouplingMap, clusters: list[Cluster]
) -> tuple[Cluster, Cluster] | None:
    best: tuple[Cluster, Cluster] | None = None
    best_value = 0.0
    for i in range(len(clusters)):
        for j in range(i + 1, len(clusters)):
            value = cluster_coupling(coupling, clusters[i], clusters[j])
            if value > best_value:
                best, best_value = (clusters[i], clusters[j]), value
    return best


def perform_clustering(
    coupling: CouplingMap,
    min_coupling: float,
    max_modules: int,
    verbose: bool = False,
) -> ClusteringResult:
    """
    Merge the most-coupled clusters until max_modules remain or the best
    remaining pair couples below min_coupling.

    coupling     — normalized coupling map (see analytics.coupling)
    min_coupling — a merge needs average coupling >= this value
    max_modules  — stop once the active count is <= this value; values < 1
                   behave like 1
    Returns a fresh ClusteringResult; the coupling map is not modified.
    """
    result = ClusteringResult(coupling=coupling)
    for name in _unique_classes(coupling):
        leaf = Cluster(id=len(result.arena), members=frozenset([name]))
        result.arena.append(leaf)
        result.active.append(leaf.id)

    while len(result.active) > max_modules and len(result.active) > 1:
        pair = _most_coupled_pair(coupling, result.clusters)
        if pair is None:
            break
        first, second = pair
        avg = cluster_coupling(coupling, first, second)
        if avg < min_coupling:
            if verbose:
                print(f"  Stop: best coupling {avg:.3f} < {min_coupling:.3f}", flush=True)
            break

        merged = Cluster(
            id=len(result.arena),
            members=first.members | second.members,
            left=first.id,
            right=second.id,
            merge_coupling=avg,
        )
        result.arena.append(merged)
        result.history.append(ClusteringStep(first, second, avg, merged))
        result.active.remove(first.id)
        result.active.remove(second.id)
        result.active.append(merged.id)

        if verbose:
            print(f"  {result.history[-1]}", flush=True)

    return result
