"""Error taxonomy for the analysis pipeline."""

from __future__ import annotations


class VisualSearchError(Exception):
    """Base class for all pipeline errors."""


class ProviderError(VisualSearchError):
    """Fetching documents or word vectors failed (network or parse)."""


class ValidationError(VisualSearchError, ValueError):
    """User parameters were rejected before any stage ran."""


class CutError(VisualSearchError, RuntimeError):
    """Cutting the cluster tree left a document without a cluster."""


class RefinementError(VisualSearchError):
    """A label-generation call failed for one cluster."""

    def __init__(self, cluster_id: int, message: str):
        super().__init__(f"cluster {cluster_id}: {message}")
        self.cluster_id = cluster_id
