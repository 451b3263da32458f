"""spaCy tokenization into normalized content words.

The spaCy pipeline is process-wide state created once by ``init_tokenizer``;
callers pass the returned handle around instead of reaching for a global.
"""

from __future__ import annotations

import logging
import threading
from typing import Iterable, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en"

_tokenizer: Optional["Tokenizer"] = None
_tokenizer_lock = threading.Lock()


class Tokenizer:
    """Keep word tokens, drop stop-words, emit lowercase normal forms."""

    def __init__(self, nlp):
        self.nlp = nlp

    @property
    def language(self) -> str:
        return self.nlp.lang

    def _keep(self, token) -> bool:
        return token.is_alpha and not token.is_stop

    def tokenize(self, text: str) -> List[str]:
        if not text:
            return []
        return [tok.norm_ for tok in self.nlp(text) if self._keep(tok)]

    def tokenize_many(self, texts: Iterable[str], *, batch_size: int = 64) -> List[List[str]]:
        return [
            [tok.norm_ for tok in doc if self._keep(tok)]
            for doc in self.nlp.pipe((t or "" for t in texts), batch_size=batch_size)
        ]


def init_tokenizer(language: str = DEFAULT_LANGUAGE) -> Tokenizer:
    """Return the process-wide Tokenizer, creating it on first call.

    Raises:
        RuntimeError: if already initialized for a different language.
    """
    global _tokenizer
    if _tokenizer is None:
        with _tokenizer_lock:
            # Double-check after acquiring lock
            if _tokenizer is None:
                import spacy

                _tokenizer = Tokenizer(spacy.blank(language))
                logger.info("Initialized spaCy tokenizer (%s)", language)
    if _tokenizer.language != language:
        raise RuntimeError(
            f"Tokenizer already initialized for {_tokenizer.language!r}, cannot switch to {language!r}"
        )
    return _tokenizer
