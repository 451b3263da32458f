"""Word-vector lookup table and document embedding by token averaging."""

from __future__ import annotations

import asyncio
import json
import logging
from functools import partial
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np
import requests

from ..config import REQUEST_TIMEOUT, VECTOR_TABLE_PATH, VECTOR_TABLE_URL
from ..errors import ProviderError

logger = logging.getLogger(__name__)


class VectorTable:
    """Static {token: vector} lookup with a fixed dimensionality."""

    def __init__(self, vocab: Dict[str, int], matrix: np.ndarray):
        self.vocab = vocab
        self.matrix = matrix

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Sequence[float]]) -> "VectorTable":
        if not isinstance(mapping, Mapping) or not mapping:
            raise ProviderError("Word-vector table is empty or not an object")
        tokens = list(mapping.keys())
        try:
            matrix = np.asarray([mapping[t] for t in tokens], dtype="float32")
        except (TypeError, ValueError) as e:
            raise ProviderError(f"Word-vector table has inconsistent vectors: {e}") from e
        if matrix.ndim != 2:
            raise ProviderError("Word-vector table vectors must be flat and equally sized")
        return cls({t: i for i, t in enumerate(tokens)}, matrix)

    @property
    def dim(self) -> int:
        return int(self.matrix.shape[1])

    def __len__(self) -> int:
        return len(self.vocab)

    def __contains__(self, token: str) -> bool:
        return token in self.vocab

    def get(self, token: str) -> Optional[np.ndarray]:
        idx = self.vocab.get(token)
        return None if idx is None else self.matrix[idx]


def embed(tokens: Sequence[str], table: VectorTable) -> np.ndarray:
    """Mean of the vectors of known tokens; zero vector if none are known."""
    indices = [table.vocab[t] for t in tokens if t in table.vocab]
    if not indices:
        return np.zeros(table.dim, dtype="float32")
    return table.matrix[indices].mean(axis=0)


def embed_documents(tokens_per_doc: Sequence[Sequence[str]], table: VectorTable) -> np.ndarray:
    """Embed every document. Returns array of shape (n_docs, table.dim)."""
    if not tokens_per_doc:
        return np.zeros((0, table.dim), dtype="float32")
    return np.vstack([embed(tokens, table) for tokens in tokens_per_doc])


def load_vector_table(
    path: Optional[str] = None,
    url: Optional[str] = None,
    *,
    session: Optional[requests.Session] = None,
    timeout: float = REQUEST_TIMEOUT,
) -> VectorTable:
    """Load the table from a local JSON file, or download it as one resource."""
    if path and Path(path).exists():
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.error("Could not read word vectors from %s: %s", path, e)
            raise ProviderError(f"Could not read word vectors from {path}: {e}") from e
    elif url:
        try:
            resp = (session or requests).get(url, timeout=timeout)
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as e:
            logger.error("Could not download word vectors from %s: %s", url, e)
            raise ProviderError(f"Could not download word vectors: {e}") from e
        except ValueError as e:
            logger.error("Word-vector download from %s is not valid JSON: %s", url, e)
            raise ProviderError(f"Word-vector download is not valid JSON: {e}") from e
    else:
        logger.error("No word-vector table configured")
        raise ProviderError("No word-vector table configured (set VECTOR_TABLE_PATH or VECTOR_TABLE_URL)")

    table = VectorTable.from_mapping(data)
    logger.info("Loaded word vectors: %d tokens x %d dims", len(table), table.dim)
    return table


class VectorStore:
    """Loads the vector table once and hands out the same instance after."""

    def __init__(
        self,
        path: Optional[str] = VECTOR_TABLE_PATH,
        url: Optional[str] = VECTOR_TABLE_URL,
        *,
        session: Optional[requests.Session] = None,
        table: Optional[VectorTable] = None,
    ):
        self.path = path
        self.url = url
        self.session = session
        self._table = table
        self._lock: Optional[asyncio.Lock] = None

    @property
    def is_loaded(self) -> bool:
        return self._table is not None

    async def load(self) -> VectorTable:
        if self._table is not None:
            return self._table
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            if self._table is None:
                loop = asyncio.get_event_loop()
                self._table = await loop.run_in_executor(
                    None, partial(load_vector_table, self.path, self.url, session=self.session)
                )
        return self._table
