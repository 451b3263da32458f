"""Shared fakes for the pipeline tests: no network, no spaCy, no UMAP."""

from typing import List

import numpy as np
import pytest
import requests

from visual_search.clustering.tree import ClusterTree
from visual_search.clustering.worker import InlineWorkerChannel
from visual_search.models.document import Document
from visual_search.nlp.vectors import VectorStore, VectorTable
from visual_search.orchestrator import Orchestrator
from visual_search.sources.pagination import PaginatedSource

TOPICS = {
    "protein": ["protein", "folding", "structure", "amino", "residue"],
    "galaxy": ["galaxy", "star", "telescope", "orbit", "planet"],
    "neural": ["neural", "network", "training", "gradient", "layer"],
    "soil": ["soil", "crop", "harvest", "irrigation", "farm"],
}
STOP_WORDS = {"on", "and", "of", "the", "a", "in"}


def make_documents(per_topic: int = 5) -> List[Document]:
    docs = []
    for t, words in enumerate(TOPICS.values()):
        for i in range(per_topic):
            docs.append(Document(
                title=f"On {words[i % 5]} and {words[(i + 1) % 5]}",
                abstract=" ".join(words[(i + j) % 5] for j in range(4)),
                year=2000 + t * 5 + i,
                citationCount=t * 10 + i,
                url=f"https://example.org/{t}/{i}",
            ))
    return docs


def make_vector_table() -> VectorTable:
    mapping = {}
    for t, words in enumerate(TOPICS.values()):
        for j, word in enumerate(words):
            vec = [0.0] * 4
            vec[t] = 1.0
            vec[(t + 1) % 4] = 0.05 * j
            mapping[word] = vec
    return VectorTable.from_mapping(mapping)


class FakeResponse:
    def __init__(self, payload=None, text: str = "", status: int = 200):
        self.payload = payload
        self.text = text
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        if isinstance(self.payload, Exception):
            raise self.payload
        return self.payload


class FakeSession:
    """Replays queued responses and records every GET."""

    def __init__(self, responses):
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": params, "headers": headers})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class ListProvider:
    """Serves pages out of a fixed document list."""

    name = "fake"

    def __init__(self, documents, page_size: int = 10):
        self.documents = list(documents)
        self.page_size = page_size
        self.offsets = []

    def fetch(self, query, limit, offset):
        self.offsets.append(offset)
        return self.documents[offset:offset + limit]


class SplitTokenizer:
    def tokenize_many(self, texts, batch_size=64):
        return [
            [w.lower() for w in (t or "").split() if w.isalpha() and w.lower() not in STOP_WORDS]
            for t in texts
        ]


class Counter:
    """Wraps a callable and counts its calls."""

    def __init__(self, fn):
        self.fn = fn
        self.calls = 0

    def __call__(self, *args, **kwargs):
        self.calls += 1
        return self.fn(*args, **kwargs)


_MIXING = np.array([[0.0, 0.0], [10.0, 0.0], [0.0, 10.0], [10.0, 10.0]])


def fake_projector(embeddings, config=None):
    embeddings = np.asarray(embeddings, dtype="float64")
    jitter = np.arange(embeddings.shape[0], dtype="float64")[:, None] * 0.01
    return embeddings @ _MIXING + jitter


@pytest.fixture
def documents():
    return make_documents()


@pytest.fixture
def vector_table():
    return make_vector_table()


@pytest.fixture
def make_orchestrator(documents, vector_table):
    """Build an Orchestrator wired to in-memory fakes.

    Returns the orchestrator; its collaborators are reachable as attributes
    ``provider``, ``projector`` and ``tree_builder`` for call counting.
    """

    def factory(source_factory=None, **kwargs):
        provider = ListProvider(documents)
        projector = Counter(fake_projector)
        tree_builder = Counter(ClusterTree.build)
        options = dict(
            source_factory=source_factory or (lambda name: PaginatedSource(provider, delay=0)),
            vector_store=VectorStore(table=vector_table),
            tokenizer=SplitTokenizer(),
            projector=projector,
            tree_builder=tree_builder,
            worker_factory=InlineWorkerChannel,
            debounce=0.05,
        )
        options.update(kwargs)
        orchestrator = Orchestrator(**options)
        orchestrator.provider = provider
        orchestrator.projector = projector
        orchestrator.tree_builder = tree_builder
        return orchestrator

    return factory
