"""Clustering endpoints: clusterize now, debounced parameter updates, plot rows."""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, HTTPException, Request

from ...models.request import ClusterizeRequest
from ...plot_data import prepare_cluster_centers, prepare_points
from ...state import clusters_of, search_of
from .search import describe_state

router = APIRouter(tags=["clusters"])


def _require_search(orchestrator):
    search = search_of(orchestrator.state)
    if search is None:
        raise HTTPException(status_code=409, detail="No search results yet; run /api/search first")
    return search


@router.post("/clusterize")
async def clusterize(request: Request, body: ClusterizeRequest) -> Dict[str, Any]:
    """Cut the current search into ``n_clusters`` clusters right away."""
    orchestrator = request.app.state.orchestrator
    _require_search(orchestrator)
    result = await orchestrator.reclusterize(body)
    response = describe_state(orchestrator)
    if result is not None:
        response.update({
            "k": result.k,
            "labels": result.labels,
            "refined": result.refined,
            "assignment": result.assignment,
        })
    return response


@router.put("/params", status_code=202)
async def update_params(request: Request, body: ClusterizeRequest) -> Dict[str, Any]:
    """Store new clustering parameters; reclustering follows after a short delay."""
    orchestrator = request.app.state.orchestrator
    orchestrator.update_params(body)
    return describe_state(orchestrator)


@router.get("/plot")
async def plot(request: Request) -> Dict[str, Any]:
    """Scatter rows and cluster centers for the current state."""
    orchestrator = request.app.state.orchestrator
    search = _require_search(orchestrator)
    clusters = clusters_of(orchestrator.state)
    if clusters is not None:
        assignment, labels = clusters.assignment, clusters.labels
    else:
        assignment, labels = [0] * len(search), [""]

    points = prepare_points(search.documents, search.projection, assignment, labels)
    centers = prepare_cluster_centers(assignment, labels, points) if clusters is not None else []
    return {"points": points, "centers": centers}
