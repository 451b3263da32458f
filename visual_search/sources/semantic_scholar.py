"""Semantic Scholar paper search (single-call JSON API)."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests
from pydantic import ValidationError as PydanticValidationError

from ..config import REQUEST_TIMEOUT, SEMANTIC_SCHOLAR_API_KEY
from ..errors import ProviderError
from ..models.document import Document

logger = logging.getLogger(__name__)

API_URL = "https://api.semanticscholar.org/graph/v1/paper/search"
FIELDS = ["title", "abstract", "year", "citationCount", "url"]
PAGE_SIZE = 100


class SemanticScholarProvider:
    """One page of results from the Semantic Scholar Graph API."""

    name = "semantic-scholar"
    page_size = PAGE_SIZE

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        *,
        api_key: Optional[str] = SEMANTIC_SCHOLAR_API_KEY,
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.session = session or requests.Session()
        self.api_key = api_key
        self.timeout = timeout

    def fetch(self, query: str, limit: int, offset: int) -> List[Document]:
        params = {
            "query": query,
            "limit": str(limit),
            "offset": str(offset),
            "fields": ",".join(FIELDS),
        }
        headers = {"x-api-key": self.api_key} if self.api_key else {}

        try:
            resp = self.session.get(API_URL, params=params, headers=headers, timeout=self.timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as e:
            logger.error("Semantic Scholar request failed (offset=%d): %s", offset, e)
            raise ProviderError(f"Semantic Scholar request failed: {e}") from e
        except ValueError as e:
            logger.error("Semantic Scholar returned invalid JSON: %s", e)
            raise ProviderError(f"Semantic Scholar returned invalid JSON: {e}") from e

        if not isinstance(data, dict):
            logger.error("Semantic Scholar returned a %s payload", type(data).__name__)
            raise ProviderError("Semantic Scholar returned an unexpected payload")
        return parse_papers(data.get("data") or [])


def parse_papers(records: List[Dict[str, Any]]) -> List[Document]:
    """Normalize raw paper records, skipping ones without a title."""
    documents: List[Document] = []
    for rec in records:
        if not isinstance(rec, dict) or not rec.get("title"):
            continue
        try:
            documents.append(Document.model_validate(rec))
        except PydanticValidationError as e:
            logger.debug("Skipping malformed paper record: %s", e)
    return documents
