"""Search endpoint plus state and progress polling."""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Request

from ...models.request import SearchRequest
from ...state import clusters_of, search_of

router = APIRouter(tags=["search"])


def describe_state(orchestrator) -> Dict[str, Any]:
    state = orchestrator.state
    search = search_of(state)
    clusters = clusters_of(state)
    params = orchestrator.params
    return {
        "state": state.tag,
        "params": params.model_dump(exclude={"api_token"}) if params is not None else None,
        "documents": len(search) if search is not None else 0,
        "clusters": [c.model_dump() for c in clusters.clusters] if clusters is not None else [],
    }


@router.post("/search")
async def search(request: Request, body: SearchRequest) -> Dict[str, Any]:
    """Run a search; returns once the documents are projected and ready."""
    orchestrator = request.app.state.orchestrator
    result = await orchestrator.search(body)
    return {
        "documents": [doc.model_dump(by_alias=True) for doc in result.documents],
        **describe_state(orchestrator),
    }


@router.get("/state")
async def get_state(request: Request) -> Dict[str, Any]:
    return describe_state(request.app.state.orchestrator)


@router.get("/progress")
async def get_progress(request: Request) -> List[Dict[str, Any]]:
    """Steps of the running (or last) search or clustering call."""
    return request.app.state.orchestrator.progress.to_list()
