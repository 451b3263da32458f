import asyncio
from types import SimpleNamespace

from visual_search.clustering.labeler import (
    build_label_prompt,
    extract_keywords_tfidf,
    keyword_labels,
    refine_labels,
    summarize_clusters,
)

TOKENS = [["apple", "banana"], ["apple", "cherry"], ["dog", "cat"], ["dog", "eel"]]


def test_keywords_ranked_by_mean_tfidf_with_vocabulary_tie_break():
    keywords = extract_keywords_tfidf(TOKENS, [0, 0, 1, 1], n_keywords=2)
    assert keywords == [["apple", "banana"], ["dog", "cat"]]


def test_zero_score_terms_are_never_selected():
    keywords = extract_keywords_tfidf(TOKENS, [0, 0, 1, 1], n_keywords=10)
    assert keywords == [["apple", "banana", "cherry"], ["dog", "cat", "eel"]]


def test_empty_vocabulary_gives_empty_keywords():
    assert extract_keywords_tfidf([[], []], [0, 1]) == [[], []]
    assert extract_keywords_tfidf([], []) == []


def test_keyword_labels_and_summaries():
    labels = keyword_labels([["a", "b"], []])
    assert labels == ["a, b", ""]

    infos = summarize_clusters([1, 0, 1], ["zero", "one"], [["z"], ["o"]], ["t0", "t1", "t2"])
    assert [(i.cluster_id, i.label, i.size) for i in infos] == [(0, "zero", 1), (1, "one", 2)]
    assert infos[1].sample_titles == ["t0", "t2"]


def test_prompt_lists_at_most_ten_titles():
    prompt = build_label_prompt([f"title {i}" for i in range(15)], ["x", "y"])
    assert "title 9" in prompt and "title 10" not in prompt
    assert "x, y" in prompt
    assert "7 words" in prompt


class FakeCompletions:
    def __init__(self):
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        prompt = kwargs["messages"][0]["content"]
        if "boom" in prompt:
            raise RuntimeError("rate limited")
        if "silent" in prompt:
            content = "   "
        else:
            content = '"Fruit studies"'
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _client():
    completions = FakeCompletions()
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def test_refinement_falls_back_per_cluster():
    client, completions = _client()
    keywords = [["apple", "banana"], ["boom"], ["silent"]]
    titles = [["Apples"], ["Explosions"], ["Quiet"]]

    labels = asyncio.run(refine_labels(keywords, titles, None, client=client, model="test-model"))

    assert labels == ["Fruit studies", "boom", "silent"]
    assert len(completions.calls) == 3
    assert completions.calls[0]["model"] == "test-model"


def test_refinement_without_token_keeps_keywords():
    labels = asyncio.run(refine_labels([["a", "b"]], [["t"]], None))
    assert labels == ["a, b"]
