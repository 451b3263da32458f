"""Persisted user options (cluster count, article count, source)."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .config import (
    DEFAULT_ARTICLES,
    DEFAULT_CLUSTERS,
    DEFAULT_EXCLUDE_EMPTY,
    DEFAULT_SOURCE,
    OPTIONS_PATH,
)

logger = logging.getLogger(__name__)

ArticleSourceName = Literal["semantic-scholar", "pub-med"]


class Options(BaseModel):
    """Options stored between sessions, in camelCase on disk."""

    model_config = ConfigDict(populate_by_name=True, strict=True)

    amount_of_clusters: int = Field(default=DEFAULT_CLUSTERS, alias="amountOfClusters")
    amount_of_articles: int = Field(default=DEFAULT_ARTICLES, alias="amountOfArticles")
    exclude_empty_articles: bool = Field(default=DEFAULT_EXCLUDE_EMPTY, alias="excludeEmptyArticles")
    articles_source: ArticleSourceName = Field(default=DEFAULT_SOURCE, alias="articlesSource")


def save(options: Options, path: Optional[Path] = None) -> None:
    path = Path(path or OPTIONS_PATH)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(options.model_dump(by_alias=True), f, indent=2)


def load(path: Optional[Path] = None) -> Options:
    """Read stored options, falling back to the defaults on any problem."""
    path = Path(path or OPTIONS_PATH)
    if not path.exists():
        return Options()
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return Options.model_validate(data)
    except (OSError, json.JSONDecodeError, ValidationError) as e:
        logger.warning("Ignoring stored options in %s: %s", path, e)
        return Options()
