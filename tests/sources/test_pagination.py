import asyncio

import pytest

from conftest import ListProvider
from visual_search.errors import ValidationError
from visual_search.models.document import Document
from visual_search.sources import PaginatedSource, get_source


def _doc(i, abstract="some abstract"):
    return Document(title=f"Paper {i}", abstract=abstract, year=2020, citationCount=i)


class RecordingSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)


def test_pages_until_amount_with_empty_documents_excluded():
    docs = [_doc(i, abstract=None if i in (1, 4) else "text") for i in range(8)]
    provider = ListProvider(docs, page_size=3)
    sleep = RecordingSleep()
    source = PaginatedSource(provider, delay=0.25, sleep=sleep)
    progress = []

    result = asyncio.run(source.fetch("q", 5, exclude_empty=True, on_progress=lambda n, a: progress.append((n, a))))

    assert [d.title for d in result] == ["Paper 0", "Paper 2", "Paper 3", "Paper 5", "Paper 6"]
    assert provider.offsets == [0, 3, 6]
    assert sleep.delays == [0.25, 0.25]
    assert progress == [(2, 5), (4, 5), (5, 5)]


def test_stops_when_provider_runs_out():
    provider = ListProvider([_doc(i) for i in range(8)], page_size=3)
    source = PaginatedSource(provider, delay=0, sleep=RecordingSleep())

    result = asyncio.run(source.fetch("q", 100))

    assert len(result) == 8
    assert provider.offsets == [0, 3, 6, 8]


def test_stops_on_page_without_usable_documents():
    docs = [_doc(0), _doc(1, abstract="  "), _doc(2, abstract=None), _doc(3, abstract=None), _doc(4)]
    provider = ListProvider(docs, page_size=2)
    source = PaginatedSource(provider, delay=0, sleep=RecordingSleep())

    result = asyncio.run(source.fetch("q", 10, exclude_empty=True))

    assert [d.title for d in result] == ["Paper 0"]
    assert provider.offsets == [0, 2]


def test_keeps_empty_documents_unless_excluded():
    docs = [_doc(0, abstract=None), _doc(1)]
    source = PaginatedSource(ListProvider(docs, page_size=5), delay=0, sleep=RecordingSleep())
    assert len(asyncio.run(source.fetch("q", 2))) == 2


def test_truncates_surplus_of_last_page():
    provider = ListProvider([_doc(i) for i in range(10)], page_size=10)
    source = PaginatedSource(provider, delay=0, sleep=RecordingSleep())
    assert len(asyncio.run(source.fetch("q", 4))) == 4
    assert provider.offsets == [0]


def test_get_source_registry():
    assert get_source("semantic-scholar").name == "semantic-scholar"
    assert get_source("pub-med").name == "pub-med"
    with pytest.raises(ValidationError):
        get_source("arxiv")
