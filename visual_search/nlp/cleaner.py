"""Markup stripping and whitespace normalization for provider text."""

from __future__ import annotations

import re
import warnings

from bs4 import BeautifulSoup, MarkupResemblesLocatorWarning

warnings.filterwarnings("ignore", category=MarkupResemblesLocatorWarning)


def clean_text(text: str) -> str:
    """Normalize whitespace in already-cleaned text to single line."""
    if not text:
        return ""
    text = re.sub(r"\r|\t|\u00A0", " ", text)
    text = re.sub(r"\s+", " ", text).strip()
    return text


def element_text(element) -> str:
    """Flattened, whitespace-normalized text of a parsed markup element."""
    if element is None:
        return ""
    return clean_text(element.get_text())


def parse_markup(markup: str) -> BeautifulSoup:
    """Parse an XML/HTML payload. Tag names come back lowercased."""
    return BeautifulSoup(markup, "html.parser")
