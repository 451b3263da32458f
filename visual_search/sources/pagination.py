"""Provider-agnostic pagination over article search APIs."""

from __future__ import annotations

import asyncio
import logging
from functools import partial
from typing import Awaitable, Callable, List, Optional, Protocol

from ..config import REQUEST_DELAY
from ..models.document import Document

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


class ArticleProvider(Protocol):
    """One page of search results from a document API."""

    name: str
    page_size: int

    def fetch(self, query: str, limit: int, offset: int) -> List[Document]:
        ...


class PaginatedSource:
    """Collect up to ``amount`` documents from a provider, page by page.

    Each request asks for the provider's full page size rather than the
    remaining amount, and surplus documents of the last page are dropped.
    Fetching stops once a page yields no usable documents.
    """

    def __init__(
        self,
        provider: ArticleProvider,
        *,
        delay: float = REQUEST_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.provider = provider
        self.delay = delay
        self._sleep = sleep

    @property
    def name(self) -> str:
        return self.provider.name

    async def fetch(
        self,
        query: str,
        amount: int,
        exclude_empty: bool = False,
        on_progress: Optional[ProgressCallback] = None,
    ) -> List[Document]:
        """Fetch documents for a query.

        Args:
            query: Free-text search query.
            amount: Maximum number of documents to return.
            exclude_empty: Drop documents without a usable abstract before
                counting them toward ``amount``.
            on_progress: Called with (fetched, amount) after every page.

        Returns:
            At most ``amount`` documents; fewer if the provider runs out.
        """
        loop = asyncio.get_event_loop()
        offset = 0
        result: List[Document] = []

        while len(result) < amount:
            page = await loop.run_in_executor(
                None, partial(self.provider.fetch, query, self.provider.page_size, offset)
            )
            offset += len(page)

            if exclude_empty:
                page = [doc for doc in page if not doc.is_empty]
            page = page[: amount - len(result)]
            result.extend(page)

            logger.debug(
                "%s: page at offset %d gave %d usable documents (%d/%d)",
                self.provider.name, offset, len(page), len(result), amount,
            )
            if on_progress:
                on_progress(len(result), amount)

            if not page or len(result) >= amount:
                break
            await self._sleep(self.delay)

        return result
