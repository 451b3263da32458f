import pytest

from conftest import FakeResponse, FakeSession
from visual_search.errors import ProviderError
from visual_search.sources.pubmed import BASE_URL, PubMedProvider

ESEARCH = """<?xml version="1.0" ?>
<eSearchResult>
  <Count>3</Count>
  <IdList><Id>111</Id><Id>222</Id><Id>333</Id></IdList>
</eSearchResult>
"""

EFETCH = """<?xml version="1.0" ?>
<PubmedArticleSet>
  <PubmedArticle>
    <MedlineCitation Status="MEDLINE">
      <PMID Version="1">111</PMID>
      <Article>
        <Journal><JournalIssue><PubDate><Year>2019</Year></PubDate></JournalIssue></Journal>
        <ArticleTitle>Sepsis biomarkers in adults.</ArticleTitle>
        <Abstract>
          <AbstractText Label="BACKGROUND">Sepsis is common.</AbstractText>
          <AbstractText Label="RESULTS">Lactate <i>predicts</i> outcome.</AbstractText>
        </Abstract>
        <ArticleDate DateType="Electronic"><Year>2020</Year><Month>01</Month></ArticleDate>
      </Article>
    </MedlineCitation>
  </PubmedArticle>
  <PubmedArticle>
    <MedlineCitation Status="MEDLINE">
      <PMID Version="1">222</PMID>
      <Article>
        <Journal><JournalIssue><PubDate><MedlineDate>1998 Dec-1999 Jan</MedlineDate></PubDate></JournalIssue></Journal>
        <ArticleTitle>Old review without abstract</ArticleTitle>
      </Article>
    </MedlineCitation>
  </PubmedArticle>
  <PubmedArticle>
    <MedlineCitation Status="MEDLINE">
      <PMID Version="1">333</PMID>
      <Article>
        <Journal><JournalIssue><PubDate><Year>2001</Year></PubDate></JournalIssue></Journal>
        <ArticleTitle></ArticleTitle>
      </Article>
    </MedlineCitation>
  </PubmedArticle>
</PubmedArticleSet>
"""


def test_fetch_searches_ids_then_fetches_records():
    session = FakeSession([FakeResponse(text=ESEARCH), FakeResponse(text=EFETCH)])
    provider = PubMedProvider(session=session)

    docs = provider.fetch("sepsis", 250, 500)

    assert [d.title for d in docs] == ["Sepsis biomarkers in adults.", "Old review without abstract"]
    first, second = docs
    assert first.abstract == "Sepsis is common. Lactate predicts outcome."
    assert first.year == 2020
    assert first.citation_count == 0
    assert first.url == "https://pubmed.ncbi.nlm.nih.gov/111"
    assert second.year == 1998
    assert second.abstract is None

    search_call, fetch_call = session.calls
    assert search_call["url"] == f"{BASE_URL}/esearch.fcgi"
    assert search_call["params"]["retmax"] == "250"
    assert search_call["params"]["retstart"] == "500"
    assert fetch_call["url"] == f"{BASE_URL}/efetch.fcgi"
    assert fetch_call["params"]["id"] == "111,222,333"


def test_no_ids_skips_efetch():
    session = FakeSession([FakeResponse(text="<eSearchResult><IdList></IdList></eSearchResult>")])
    assert PubMedProvider(session=session).fetch("nothing", 250, 0) == []
    assert len(session.calls) == 1


def test_http_error_becomes_provider_error():
    session = FakeSession([FakeResponse(text="", status=429)])
    with pytest.raises(ProviderError):
        PubMedProvider(session=session).fetch("q", 250, 0)
