"""Article sources: providers plus the shared pagination wrapper."""

from typing import Dict, Optional, Type

import requests

from ..config import REQUEST_DELAY
from ..errors import ValidationError
from .pagination import ArticleProvider, PaginatedSource
from .pubmed import PubMedProvider
from .semantic_scholar import SemanticScholarProvider

PROVIDERS: Dict[str, Type] = {
    SemanticScholarProvider.name: SemanticScholarProvider,
    PubMedProvider.name: PubMedProvider,
}


def get_source(
    name: str,
    *,
    session: Optional[requests.Session] = None,
    delay: float = REQUEST_DELAY,
) -> PaginatedSource:
    """Return a paginated source for a provider name."""
    try:
        provider_cls = PROVIDERS[name]
    except KeyError:
        raise ValidationError(f"Unknown source {name!r}; expected one of {sorted(PROVIDERS)}") from None
    return PaginatedSource(provider_cls(session=session), delay=delay)


__all__ = [
    "ArticleProvider",
    "PaginatedSource",
    "PubMedProvider",
    "SemanticScholarProvider",
    "PROVIDERS",
    "get_source",
]
