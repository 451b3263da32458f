"""Pipeline results and the orchestrator's tagged states.

Each state is its own small frozen dataclass with a ``tag``; ``State`` is the
union of them. ``match_state`` dispatches on the tag and insists every tag
has a handler, so a new state cannot be silently ignored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, ClassVar, Dict, List, Optional, TypeVar, Union

import numpy as np

from .clustering.tree import ClusterTree
from .models.cluster import ClusterInfo
from .models.document import Document
from .models.request import ClusterizeRequest


@dataclass(frozen=True, eq=False)
class SearchResult:
    """Immutable output of one search; input to every reclusterize call.

    Compared by identity: two searches are never "the same" search.
    """

    documents: List[Document]
    tokens: List[List[str]]
    embeddings: Optional[np.ndarray]
    projection: np.ndarray
    tree: ClusterTree

    def __len__(self) -> int:
        return len(self.documents)

    @property
    def titles(self) -> List[str]:
        return [doc.title for doc in self.documents]


@dataclass(frozen=True)
class ClusterizeResult:
    """Output of one reclusterize call. Superseded, never mutated."""

    k: int
    assignment: List[int]
    keywords: List[List[str]]
    labels: List[str]
    refined: bool = False
    clusters: List[ClusterInfo] = field(default_factory=list)


@dataclass(frozen=True)
class Idle:
    tag: ClassVar[str] = "idle"
    params: Optional[ClusterizeRequest] = None


@dataclass(frozen=True)
class Searching:
    tag: ClassVar[str] = "searching"
    params: Optional[ClusterizeRequest] = None


@dataclass(frozen=True)
class Ready:
    """Search done; ``clusters`` is the last result still on display, if any."""

    tag: ClassVar[str] = "ready"
    search: SearchResult
    params: Optional[ClusterizeRequest] = None
    clusters: Optional[ClusterizeResult] = None


@dataclass(frozen=True)
class Clustering:
    tag: ClassVar[str] = "clustering"
    search: SearchResult
    params: ClusterizeRequest
    clusters: Optional[ClusterizeResult] = None


@dataclass(frozen=True)
class Clustered:
    tag: ClassVar[str] = "clustered"
    search: SearchResult
    params: ClusterizeRequest
    clusters: ClusterizeResult


State = Union[Idle, Searching, Ready, Clustering, Clustered]

STATE_TAGS = (Idle.tag, Searching.tag, Ready.tag, Clustering.tag, Clustered.tag)

T = TypeVar("T")


def match_state(state: State, handlers: Dict[str, Callable[..., T]]) -> T:
    """Call the handler registered for ``state.tag``.

    Raises:
        ValueError: if ``handlers`` does not cover every state tag.
    """
    missing = [tag for tag in STATE_TAGS if tag not in handlers]
    if missing:
        raise ValueError(f"Unhandled states: {missing}")
    return handlers[state.tag](state)


def search_of(state: State) -> Optional[SearchResult]:
    return getattr(state, "search", None)


def clusters_of(state: State) -> Optional[ClusterizeResult]:
    return getattr(state, "clusters", None)
