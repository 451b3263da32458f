"""UMAP projection, cluster-tree cutting and keyword labeling."""

from .projector import ProjectionConfig, cosine_distance, pairwise_cosine_distances, project_umap
from .tree import ClusterNode, ClusterTree
from .labeler import extract_keywords_tfidf, keyword_labels, refine_labels, summarize_clusters
from .worker import InlineWorkerChannel, ProcessWorkerChannel, run_cluster_job, run_in_worker

__all__ = [
    "ProjectionConfig",
    "cosine_distance",
    "pairwise_cosine_distances",
    "project_umap",
    "ClusterNode",
    "ClusterTree",
    "extract_keywords_tfidf",
    "keyword_labels",
    "refine_labels",
    "summarize_clusters",
    "InlineWorkerChannel",
    "ProcessWorkerChannel",
    "run_cluster_job",
    "run_in_worker",
]
