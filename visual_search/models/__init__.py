"""Pydantic data models for Visual Search."""

from .document import Document, is_empty_document
from .cluster import ClusterInfo, ClusterJobRequest, ClusterJobResponse
from .request import ClusterizeRequest, SearchRequest

__all__ = [
    "Document",
    "is_empty_document",
    "ClusterInfo",
    "ClusterJobRequest",
    "ClusterJobResponse",
    "ClusterizeRequest",
    "SearchRequest",
]
