"""UMAP 2D projection over cosine distances."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

# Spectral initialization needs a reasonably sized neighbor graph
MIN_SPECTRAL_POINTS = 16


@dataclass(frozen=True)
class ProjectionConfig:
    n_neighbors: int = 15
    min_dist: float = 0.1
    spread: float = 2.0
    n_components: int = 2
    random_state: int = 42


def cosine_distance(x: np.ndarray, y: np.ndarray) -> float:
    """1 - cosine similarity; 0 if both vectors are zero, 1 if exactly one is."""
    x = np.asarray(x, dtype="float64")
    y = np.asarray(y, dtype="float64")
    norm_x = float(np.dot(x, x))
    norm_y = float(np.dot(y, y))
    if norm_x == 0.0 and norm_y == 0.0:
        return 0.0
    if norm_x == 0.0 or norm_y == 0.0:
        return 1.0
    return 1.0 - float(np.dot(x, y)) / np.sqrt(norm_x * norm_y)


def pairwise_cosine_distances(vectors: np.ndarray) -> np.ndarray:
    """Square matrix of ``cosine_distance`` between all rows."""
    vectors = np.asarray(vectors, dtype="float64")
    norms = np.linalg.norm(vectors, axis=1)
    zero = norms == 0
    unit = vectors / np.where(zero, 1.0, norms)[:, None]

    dist = np.clip(1.0 - unit @ unit.T, 0.0, 2.0)
    dist[np.logical_xor.outer(zero, zero)] = 1.0
    dist[np.logical_and.outer(zero, zero)] = 0.0
    np.fill_diagonal(dist, 0.0)
    return dist


def project_umap(embeddings: np.ndarray, config: ProjectionConfig = ProjectionConfig()) -> np.ndarray:
    """Project document embeddings to 2D using UMAP.

    Deterministic for fixed inputs and config (seeded, single-threaded).

    Args:
        embeddings: Input array of shape (n_samples, n_features).
        config: Neighborhood and spread parameters.

    Returns:
        numpy array of shape (n_samples, n_components).
    """
    n = embeddings.shape[0]
    if n < 3:
        # Too few points for a neighbor graph: lay them out on a line
        coords = np.zeros((n, config.n_components))
        coords[:, 0] = np.arange(n, dtype="float64")
        return coords

    import umap

    reducer = umap.UMAP(
        n_neighbors=min(config.n_neighbors, n - 1),
        min_dist=config.min_dist,
        spread=config.spread,
        n_components=config.n_components,
        metric="precomputed",
        init="spectral" if n >= MIN_SPECTRAL_POINTS else "random",
        random_state=config.random_state,
    )
    return np.asarray(reducer.fit_transform(pairwise_cosine_distances(embeddings)), dtype="float64")
