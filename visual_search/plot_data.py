"""Row data for the scatter plot of a clustered search."""

from __future__ import annotations

import math
from typing import Any, Dict, List, Sequence

import numpy as np

from .models.document import Document


def prepare_points(
    documents: Sequence[Document],
    projection: np.ndarray,
    assignment: Sequence[int],
    labels: Sequence[str],
) -> List[Dict[str, Any]]:
    """One row per document: its coordinates, metadata and cluster label.

    ``opacity`` scales publication year between the oldest and newest
    article (1.0 when they coincide, 0.0 without a year). ``logCit`` is
    log10(citations + 1) so uncited articles stay finite. ``rank`` is the
    position in the source's result order.
    """
    projection = np.asarray(projection, dtype="float64").reshape(-1, 2)
    years = [doc.year for doc in documents if doc.year is not None]
    min_year = min(years) if years else 0
    max_year = max(years) if years else 0
    span = max_year - min_year

    points = []
    for i, doc in enumerate(documents):
        if doc.year is None:
            opacity = 0.0
        elif span == 0:
            opacity = 1.0
        else:
            opacity = (doc.year - min_year) / span
        points.append({
            **doc.model_dump(by_alias=True),
            "x": round(float(projection[i, 0]), 2),
            "y": round(float(projection[i, 1]), 2),
            "logCit": math.log10(doc.citation_count + 1),
            "opacity": opacity,
            "rank": i,
            "cluster": labels[assignment[i]],
        })
    return points


def prepare_cluster_centers(
    assignment: Sequence[int],
    labels: Sequence[str],
    points: Sequence[Dict[str, Any]],
) -> List[Dict[str, Any]]:
    """Mean position of each cluster's points, with the cluster's label."""
    centers = []
    for cluster_id, label in enumerate(labels):
        ids = [i for i, c in enumerate(assignment) if c == cluster_id]
        if not ids:
            continue
        centers.append({
            "x": float(np.mean([points[i]["x"] for i in ids])),
            "y": float(np.mean([points[i]["y"] for i in ids])),
            "cluster": label,
        })
    return centers
