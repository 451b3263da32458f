"""Cluster data models and the worker boundary payloads."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class ClusterInfo(BaseModel):
    """Information about a single cluster."""

    cluster_id: int
    label: str = ""
    size: int = 0
    keywords: List[str] = Field(default_factory=list)
    sample_titles: List[str] = Field(default_factory=list)


class ClusterJobRequest(BaseModel):
    """Payload copied into the clustering worker.

    tree is the (n-1, 4) merge matrix of the cluster tree, projection the
    (n, 2) coordinates, tokens one token list per document.
    """

    tree: List[List[float]]
    k: int
    projection: List[List[float]]
    tokens: List[List[str]]


class ClusterJobResponse(BaseModel):
    """Payload copied back out of the clustering worker."""

    assignment: List[int]
    keywords: List[List[str]]
