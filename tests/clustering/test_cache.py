import numpy as np

from visual_search.clustering.cache import SESSION_FILES, SessionCache
from visual_search.clustering.tree import ClusterTree
from visual_search.models.document import Document
from visual_search.state import SearchResult


def _result():
    documents = [
        Document(title="First", abstract="alpha beta", year=2001, citationCount=3, url="u1"),
        Document(title="Second", abstract=None, year=None, citationCount=0, url="u2"),
        Document(title="Third", abstract="gamma", year=2010, citationCount=7, url="u3"),
    ]
    projection = np.array([[0.0, 1.0], [2.0, 3.0], [4.5, 5.5]])
    return SearchResult(
        documents=documents,
        tokens=[["alpha", "beta"], ["second"], ["gamma"]],
        embeddings=np.ones((3, 4)),
        projection=projection,
        tree=ClusterTree.build(projection),
    )


def test_save_and_load(tmp_path):
    cache = SessionCache(tmp_path)
    original = _result()
    cache.save(original)

    assert cache.has()
    assert sorted(p.name for p in tmp_path.iterdir()) == sorted(SESSION_FILES.values())

    loaded = cache.load()
    assert loaded.documents == original.documents
    assert loaded.tokens == original.tokens
    assert np.allclose(loaded.projection, original.projection)
    assert np.allclose(loaded.tree.merges, original.tree.merges)
    assert loaded.embeddings is None
    assert loaded.tree.cut(2) == original.tree.cut(2)


def test_invalidate_and_incomplete_sets(tmp_path):
    cache = SessionCache(tmp_path)
    assert cache.load() is None

    cache.save(_result())
    (tmp_path / SESSION_FILES["tree"]).unlink()
    assert not cache.has()
    assert cache.load() is None

    cache.save(_result())
    cache.invalidate()
    assert list(tmp_path.iterdir()) == []
