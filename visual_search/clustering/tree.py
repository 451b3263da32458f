"""Agglomerative cluster tree over document indices and cutting it into k groups."""

from __future__ import annotations

import heapq
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import numpy as np

from ..errors import CutError, ValidationError


@dataclass(frozen=True)
class ClusterNode:
    """View of one tree node. Leaves carry the document index in ``leaf``."""

    node_id: int
    height: float
    size: int
    leaf: Optional[int]
    children: Tuple[int, ...]

    @property
    def is_leaf(self) -> bool:
        return self.leaf is not None


class ClusterTree:
    """Binary merge hierarchy stored as an (n-1, 4) linkage matrix.

    Row i merges nodes ``left`` and ``right`` at ``height`` into node n+i of
    ``size`` leaves; ids below n are leaves (document indices). Built once
    per search and only read afterwards.
    """

    def __init__(self, merges: np.ndarray, n_leaves: int):
        merges = np.asarray(merges, dtype="float64").reshape(-1, 4)
        if n_leaves > 0 and merges.shape[0] != n_leaves - 1:
            raise ValueError(f"Expected {n_leaves - 1} merges for {n_leaves} leaves, got {merges.shape[0]}")
        self.merges = merges
        self.n_leaves = n_leaves

    @classmethod
    def build(cls, points: np.ndarray, *, method: str = "ward") -> "ClusterTree":
        """Agglomerative clustering of points (one row per document)."""
        from scipy.cluster.hierarchy import linkage

        points = np.asarray(points, dtype="float64")
        n = points.shape[0]
        if n < 2:
            return cls(np.zeros((0, 4)), n)
        return cls(linkage(points, method=method), n)

    @classmethod
    def from_list(cls, rows: Sequence[Sequence[float]], n_leaves: int) -> "ClusterTree":
        return cls(np.asarray(rows, dtype="float64"), n_leaves)

    def to_list(self) -> List[List[float]]:
        return self.merges.tolist()

    @property
    def root(self) -> int:
        return 2 * self.n_leaves - 2

    def node(self, node_id: int) -> ClusterNode:
        n = self.n_leaves
        if node_id < n:
            return ClusterNode(node_id, 0.0, 1, node_id, ())
        left, right, height, size = self.merges[node_id - n]
        return ClusterNode(node_id, float(height), int(size), None, (int(left), int(right)))

    def leaves(self, node_id: int) -> List[int]:
        """Document indices under a node, in ascending order."""
        n = self.n_leaves
        out: List[int] = []
        stack = [node_id]
        while stack:
            current = stack.pop()
            if current < n:
                out.append(current)
            else:
                left, right = self.merges[current - n, :2]
                stack.append(int(left))
                stack.append(int(right))
        return sorted(out)

    def _split_key(self, node_id: int) -> Tuple[float, int, int]:
        # Highest merge first; internal nodes before leaves of equal height
        node = self.node(node_id)
        return (-node.height, 1 if node.is_leaf else 0, -node_id)

    def cut(self, k: int) -> List[int]:
        """Assign every document to one of exactly k groups.

        Starting from the root, the group with the highest merge height is
        split until k groups exist. Groups are numbered by their smallest
        document index.

        Raises:
            ValidationError: if k is outside [2, n_leaves].
            CutError: if a document ends up without a group.
        """
        n = self.n_leaves
        if not 2 <= k <= n:
            raise ValidationError(f"Cluster count {k} out of range [2, {n}]")

        heap = [self._split_key(self.root)]
        while len(heap) < k:
            _, _, neg_id = heapq.heappop(heap)
            node = self.node(-neg_id)
            if node.is_leaf:
                heapq.heappush(heap, self._split_key(node.node_id))
                break
            for child in node.children:
                heapq.heappush(heap, self._split_key(child))

        groups = sorted((self.leaves(-neg_id) for _, _, neg_id in heap), key=lambda g: g[0])
        assignment = [-1] * n
        for cluster_id, members in enumerate(groups):
            for doc in members:
                assignment[doc] = cluster_id

        missing = [i for i, c in enumerate(assignment) if c == -1]
        if missing or len(groups) != k:
            raise CutError(f"Cut into {len(groups)}/{k} groups left documents {missing[:10]} unassigned")
        return assignment
