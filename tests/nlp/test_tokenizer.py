import pytest

pytest.importorskip("spacy")

from visual_search.nlp.cleaner import clean_text
from visual_search.nlp.tokenizer import init_tokenizer


def test_tokenizer_keeps_lowercase_content_words():
    tokenizer = init_tokenizer()
    assert tokenizer.tokenize("The Proteins are folding, 42 times!") == ["proteins", "folding", "times"]
    assert tokenizer.tokenize("") == []


def test_tokenize_many_matches_tokenize():
    tokenizer = init_tokenizer()
    texts = ["Galaxy formation in the early universe", "", "Neural networks"]
    assert tokenizer.tokenize_many(texts) == [tokenizer.tokenize(t) for t in texts]


def test_tokenizer_is_created_once():
    assert init_tokenizer() is init_tokenizer("en")
    with pytest.raises(RuntimeError):
        init_tokenizer("de")


def test_clean_text_normalizes_whitespace():
    assert clean_text("a\t b\r\n c ") == "a b c"
    assert clean_text("") == ""
