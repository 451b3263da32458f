"""User-facing request models for search and clustering."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..config import DEFAULT_ARTICLES, DEFAULT_CLUSTERS, DEFAULT_EXCLUDE_EMPTY, DEFAULT_SOURCE


class SearchRequest(BaseModel):
    """Parameters of one search: query text plus source options."""

    query: str = Field(min_length=1)
    amount: int = Field(default=DEFAULT_ARTICLES, ge=1)
    source: str = DEFAULT_SOURCE
    exclude_empty: bool = DEFAULT_EXCLUDE_EMPTY

    @field_validator("query", mode="before")
    @classmethod
    def _strip_query(cls, value):
        return value.strip() if isinstance(value, str) else value


class ClusterizeRequest(BaseModel):
    """Parameters of one reclusterize call.

    The upper bound of n_clusters depends on the document count and is
    checked by the orchestrator against the current search.
    """

    n_clusters: int = Field(default=DEFAULT_CLUSTERS, ge=2)
    prettify: bool = False
    api_token: Optional[str] = None
