"""PubMed E-utilities (two-call XML API: esearch for ids, efetch for records)."""

from __future__ import annotations

import logging
import re
from typing import List, Optional

import requests

from ..config import REQUEST_TIMEOUT
from ..errors import ProviderError
from ..models.document import Document
from ..nlp.cleaner import element_text, parse_markup

logger = logging.getLogger(__name__)

BASE_URL = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils"
ARTICLE_URL = "https://pubmed.ncbi.nlm.nih.gov/{pmid}"
PAGE_SIZE = 250

# PubMed does not report citations
CITATION_COUNT = 0

_YEAR_RE = re.compile(r"\b(\d{4})\b")


class PubMedProvider:
    """One page of results from PubMed."""

    name = "pub-med"
    page_size = PAGE_SIZE

    def __init__(self, session: Optional[requests.Session] = None, *, timeout: float = REQUEST_TIMEOUT):
        self.session = session or requests.Session()
        self.timeout = timeout

    def fetch(self, query: str, limit: int, offset: int) -> List[Document]:
        ids = self.search_ids(query, limit, offset)
        if not ids:
            return []
        return self.fetch_articles(ids)

    def search_ids(self, term: str, retmax: int, retstart: int) -> List[str]:
        params = {
            "db": "pubmed",
            "term": term,
            "retmax": str(retmax),
            "retstart": str(retstart),
        }
        soup = parse_markup(self._get("esearch.fcgi", params))
        id_list = soup.find("idlist")
        if id_list is None:
            return []
        return [element_text(node) for node in id_list.find_all("id")]

    def fetch_articles(self, ids: List[str]) -> List[Document]:
        params = {"db": "pubmed", "retmode": "xml", "id": ",".join(ids)}
        soup = parse_markup(self._get("efetch.fcgi", params))
        documents = []
        for citation in soup.find_all("medlinecitation"):
            doc = parse_citation(citation)
            if doc is not None:
                documents.append(doc)
        return documents

    def _get(self, endpoint: str, params: dict) -> str:
        try:
            resp = self.session.get(f"{BASE_URL}/{endpoint}", params=params, timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.error("PubMed %s request failed: %s", endpoint, e)
            raise ProviderError(f"PubMed {endpoint} request failed: {e}") from e
        return resp.text


def parse_citation(citation) -> Optional[Document]:
    """Build a Document from a MedlineCitation element.

    Records without a title or a publication year are skipped.
    """
    article = citation.find("article")
    if article is None:
        return None

    title = element_text(article.find("articletitle"))
    abstract_node = article.find("abstract")
    abstract = None
    if abstract_node is not None:
        sections = [element_text(s) for s in abstract_node.find_all("abstracttext")]
        abstract = " ".join(s for s in sections if s) or None

    year = _article_year(article)
    pmid = element_text(citation.find("pmid"))

    if not title or year is None or not pmid:
        return None
    return Document(
        title=title,
        abstract=abstract,
        year=year,
        citation_count=CITATION_COUNT,
        url=ARTICLE_URL.format(pmid=pmid),
    )


def _article_year(article) -> Optional[int]:
    date = article.find("articledate")
    if date is not None and date.find("year") is not None:
        text = element_text(date.find("year"))
    else:
        pub_date = article.find("pubdate")
        if pub_date is None:
            return None
        node = pub_date.find("year") or pub_date.find("medlinedate")
        text = element_text(node)
    match = _YEAR_RE.search(text)
    return int(match.group(1)) if match else None
