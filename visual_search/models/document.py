"""Document data model."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Document(BaseModel):
    """A single article returned by a source. Immutable once fetched."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str
    abstract: Optional[str] = None
    year: Optional[int] = None
    citation_count: int = Field(default=0, alias="citationCount")
    url: str = ""

    @field_validator("abstract", mode="before")
    @classmethod
    def _non_string_abstract(cls, value: Any) -> Optional[str]:
        # Providers occasionally send structured or numeric abstracts
        return value if isinstance(value, str) else None

    @field_validator("citation_count", mode="before")
    @classmethod
    def _missing_citations(cls, value: Any) -> int:
        return 0 if value is None else value

    @property
    def is_empty(self) -> bool:
        """True when the abstract is missing, non-string, or blank."""
        return self.abstract is None or not self.abstract.strip()

    @property
    def text(self) -> str:
        """Text used for tokenization: title followed by abstract."""
        return f"{self.title} {self.abstract or ''}".strip()


def is_empty_document(document: Document) -> bool:
    return document.is_empty
