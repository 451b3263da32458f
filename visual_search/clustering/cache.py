"""Parquet-based session cache for the last search."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional

import numpy as np
import pandas as pd

from ..config import SESSION_DIR
from ..models.document import Document
from ..state import SearchResult
from .tree import ClusterTree

logger = logging.getLogger(__name__)

SESSION_FILES: Dict[str, str] = {
    "documents": "documents.parquet",
    "tokens": "tokens.parquet",
    "projection": "projection.parquet",
    "tree": "tree.parquet",
}


class SessionCache:
    """Persist the artifacts of the last search under fixed file names.

    Files: {cache_dir}/documents|tokens|projection|tree.parquet
    A new save replaces the whole set; there is no partial invalidation.
    Embeddings are not persisted.
    """

    def __init__(self, cache_dir: Optional[Path] = None):
        self.cache_dir = Path(cache_dir or SESSION_DIR)
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, name: str) -> Path:
        return self.cache_dir / SESSION_FILES[name]

    def has(self) -> bool:
        """Check if a complete session is cached."""
        return all(self._path(name).exists() for name in SESSION_FILES)

    def save(self, result: SearchResult) -> None:
        self.invalidate()
        docs = pd.DataFrame(
            [doc.model_dump(by_alias=True) for doc in result.documents],
            columns=["title", "abstract", "year", "citationCount", "url"],
        )
        docs.to_parquet(self._path("documents"), index=False)
        pd.DataFrame({"tokens": [list(t) for t in result.tokens]}).to_parquet(self._path("tokens"), index=False)

        projection = np.asarray(result.projection, dtype="float64").reshape(-1, 2)
        pd.DataFrame({"x": projection[:, 0], "y": projection[:, 1]}).to_parquet(
            self._path("projection"), index=False
        )
        merges = result.tree.merges
        pd.DataFrame(merges, columns=["left", "right", "height", "size"]).to_parquet(
            self._path("tree"), index=False
        )
        logger.debug("Saved session of %d documents to %s", len(result.documents), self.cache_dir)

    def load(self) -> Optional[SearchResult]:
        """Restore the cached search, or None if the set is incomplete."""
        if not self.has():
            return None

        docs = pd.read_parquet(self._path("documents"))
        documents = [
            Document(
                title=row["title"],
                abstract=None if pd.isna(row["abstract"]) else row["abstract"],
                year=None if pd.isna(row["year"]) else int(row["year"]),
                citation_count=0 if pd.isna(row["citationCount"]) else int(row["citationCount"]),
                url=row["url"] or "",
            )
            for row in docs.to_dict(orient="records")
        ]
        tokens = [[str(t) for t in toks] for toks in pd.read_parquet(self._path("tokens"))["tokens"]]
        projection = pd.read_parquet(self._path("projection"))[["x", "y"]].to_numpy(dtype="float64")
        merges = pd.read_parquet(self._path("tree"))[["left", "right", "height", "size"]].to_numpy(dtype="float64")

        if not (len(documents) == len(tokens) == projection.shape[0]):
            logger.warning("Session cache in %s is inconsistent; ignoring it", self.cache_dir)
            return None
        return SearchResult(
            documents=documents,
            tokens=tokens,
            embeddings=None,
            projection=projection,
            tree=ClusterTree(merges, len(documents)),
        )

    def invalidate(self) -> None:
        """Remove every cached session file."""
        for name in SESSION_FILES:
            path = self._path(name)
            if path.exists():
                path.unlink()
