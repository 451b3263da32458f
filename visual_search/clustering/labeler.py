"""Cluster labeling using averaged TF-IDF keywords and optional LLM refinement."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, List, Optional, Sequence

import numpy as np
from sklearn.feature_extraction.text import TfidfVectorizer

from ..config import DEFAULT_KEYWORDS, OPENAI_MODEL
from ..errors import RefinementError
from ..models.cluster import ClusterInfo

logger = logging.getLogger(__name__)

MAX_PROMPT_TITLES = 10
KEYWORD_SEPARATOR = ", "


def _pretokenized(tokens: List[str]) -> List[str]:
    return tokens


def extract_keywords_tfidf(
    tokens_per_doc: Sequence[Sequence[str]],
    assignment: Sequence[int],
    n_keywords: int = DEFAULT_KEYWORDS,
) -> List[List[str]]:
    """Top TF-IDF terms per cluster.

    The TF-IDF matrix is fit on the whole corpus (documents as rows); each
    cluster's score for a term is the mean over its documents. Terms are
    ranked by descending score, ties broken by vocabulary order, and terms
    absent from a cluster (score 0) are never selected.

    Args:
        tokens_per_doc: Token list per document.
        assignment: Cluster id per document, ids in [0, k).
        n_keywords: Number of keywords per cluster.

    Returns:
        One keyword list per cluster id, ordered by cluster id.
    """
    labels = np.asarray(assignment, dtype=int)
    n_clusters = int(labels.max()) + 1 if labels.size else 0
    if n_clusters == 0:
        return []

    vectorizer = TfidfVectorizer(analyzer=_pretokenized, lowercase=False)
    try:
        tfidf_matrix = vectorizer.fit_transform([list(t) for t in tokens_per_doc])
    except ValueError:
        # Empty vocabulary, return empty results
        return [[] for _ in range(n_clusters)]
    terms = vectorizer.get_feature_names_out()

    keywords: List[List[str]] = []
    for cluster_id in range(n_clusters):
        mask = labels == cluster_id
        if not np.any(mask):
            keywords.append([])
            continue
        mean_vector = np.asarray(tfidf_matrix[mask].mean(axis=0)).ravel()
        top_idx = np.argsort(-mean_vector, kind="stable")[:n_keywords]
        keywords.append([str(terms[i]) for i in top_idx if mean_vector[i] > 0])
    return keywords


def keyword_labels(keywords_per_cluster: Sequence[Sequence[str]]) -> List[str]:
    """Join each cluster's keywords into its display label."""
    return [KEYWORD_SEPARATOR.join(kws) for kws in keywords_per_cluster]


def titles_per_cluster(titles: Sequence[str], assignment: Sequence[int], n_clusters: int) -> List[List[str]]:
    grouped: List[List[str]] = [[] for _ in range(n_clusters)]
    for title, cluster_id in zip(titles, assignment):
        grouped[cluster_id].append(title)
    return grouped


def build_label_prompt(titles: Sequence[str], keywords: Sequence[str]) -> str:
    listed = "\n".join(f" - {t}" for t in list(titles)[:MAX_PROMPT_TITLES])
    return (
        "We have a set of articles with the following titles:\n"
        f"{listed}\n\n"
        f"This set can be distinguished by the following keywords: {KEYWORD_SEPARATOR.join(keywords)}.\n\n"
        "Write a short descriptive phrase of at most 7 words for these articles.\n"
        'Do not use generic words such as "group" or "article".\n'
        "Return only the phrase, without quotes."
    )


async def _complete_label(client: Any, prompt: str, model: str, cluster_id: int) -> str:
    try:
        resp = await client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            temperature=0,
            max_tokens=30,
        )
        content = resp.choices[0].message.content or ""
    except Exception as e:
        raise RefinementError(cluster_id, f"{type(e).__name__}: {e}") from e
    label = content.strip().strip('"').strip("'").strip()
    if not label:
        raise RefinementError(cluster_id, "empty completion")
    return label


async def refine_labels(
    keywords_per_cluster: Sequence[Sequence[str]],
    titles: Sequence[Sequence[str]],
    api_token: Optional[str],
    *,
    client: Any = None,
    model: str = OPENAI_MODEL,
) -> List[str]:
    """Ask an LLM for a short phrase per cluster, concurrently.

    Best effort: a cluster whose request fails keeps its keyword label.

    Args:
        keywords_per_cluster: TF-IDF keywords per cluster id.
        titles: Document titles per cluster id.
        api_token: OpenAI API key used when no client is given.
        client: Optional pre-built async OpenAI-compatible client.
        model: Chat model name.

    Returns:
        One label per cluster id.
    """
    original = keyword_labels(keywords_per_cluster)
    if client is None:
        if not api_token:
            logger.warning("No OpenAI token given; keeping keyword labels")
            return original
        from openai import AsyncOpenAI

        client = AsyncOpenAI(api_key=api_token)

    async def refine_one(cluster_id: int) -> str:
        prompt = build_label_prompt(titles[cluster_id], keywords_per_cluster[cluster_id])
        try:
            return await _complete_label(client, prompt, model, cluster_id)
        except RefinementError as e:
            logger.warning("Label refinement failed, keeping keywords: %s", e)
            return original[cluster_id]

    return list(await asyncio.gather(*(refine_one(cid) for cid in range(len(original)))))


def summarize_clusters(
    assignment: Sequence[int],
    labels: Sequence[str],
    keywords_per_cluster: Sequence[Sequence[str]],
    titles: Sequence[str],
    *,
    n_sample_titles: int = 5,
) -> List[ClusterInfo]:
    """Build ClusterInfo objects, one per cluster id."""
    grouped = titles_per_cluster(titles, assignment, len(labels))
    return [
        ClusterInfo(
            cluster_id=cid,
            label=labels[cid],
            size=len(grouped[cid]),
            keywords=list(keywords_per_cluster[cid]),
            sample_titles=grouped[cid][:n_sample_titles],
        )
        for cid in range(len(labels))
    ]
