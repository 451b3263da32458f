"""Staged search and clustering pipeline.

search:       source fetch || vector table -> tokenize -> embed -> project -> tree
reclusterize: worker(cut + keywords) -> optional LLM label refinement

A search produces one SearchResult that every later reclusterize call reuses;
only a new search fetches, embeds or projects again. Results of a search or
clustering call that was superseded while in flight are dropped.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from functools import partial
from typing import Any, Callable, List, Optional, Set, Union

import numpy as np
from pydantic import ValidationError as PydanticValidationError

from .clustering.labeler import keyword_labels, refine_labels, summarize_clusters, titles_per_cluster
from .clustering.projector import ProjectionConfig, project_umap
from .clustering.tree import ClusterTree
from .clustering.worker import ProcessWorkerChannel, run_in_worker
from .config import CLUSTER_DEBOUNCE, OPENAI_API_KEY
from .errors import ValidationError, VisualSearchError
from .models.cluster import ClusterJobRequest
from .models.request import ClusterizeRequest, SearchRequest
from .nlp.tokenizer import Tokenizer, init_tokenizer
from .nlp.vectors import VectorStore, embed_documents
from .progress import Progress
from .sources import get_source
from .state import (
    Clustered,
    Clustering,
    ClusterizeResult,
    Idle,
    Ready,
    SearchResult,
    Searching,
    State,
    clusters_of,
    match_state,
    search_of,
)

logger = logging.getLogger(__name__)


class Orchestrator:
    """Owns the pipeline state machine and sequences every stage.

    Collaborators are injectable so tests can count calls or replace the
    network, projection and worker stages.
    """

    def __init__(
        self,
        *,
        source_factory: Callable[[str], Any] = get_source,
        vector_store: Optional[VectorStore] = None,
        tokenizer: Optional[Tokenizer] = None,
        projector: Callable[[np.ndarray, ProjectionConfig], np.ndarray] = project_umap,
        projection_config: ProjectionConfig = ProjectionConfig(),
        tree_builder: Callable[[np.ndarray], ClusterTree] = ClusterTree.build,
        worker_factory: Callable[[], Any] = ProcessWorkerChannel,
        refiner: Callable[..., Any] = refine_labels,
        cache: Any = None,
        progress: Optional[Progress] = None,
        debounce: float = CLUSTER_DEBOUNCE,
    ):
        self.progress = progress or Progress()
        self._source_factory = source_factory
        self._vectors = vector_store or VectorStore()
        self._tokenizer = tokenizer
        self._projector = projector
        self._projection_config = projection_config
        self._tree_builder = tree_builder
        self._worker_factory = worker_factory
        self._refiner = refiner
        self._cache = cache
        self._debounce = debounce

        self._state: State = Idle()
        self._params: Optional[ClusterizeRequest] = None
        self._search_generation = 0
        self._cluster_generation = 0
        self._observers: List[Callable[[], None]] = []
        self._timer: Optional[asyncio.TimerHandle] = None
        self._tasks: Set[asyncio.Task] = set()
        self.last_error: Optional[BaseException] = None

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> State:
        return self._state

    @property
    def params(self) -> Optional[ClusterizeRequest]:
        return self._params

    def subscribe(self, observer: Callable[[], None]) -> Callable[[], None]:
        """Get notified after every state change."""
        self._observers.append(observer)
        return lambda: self._observers.remove(observer) if observer in self._observers else None

    def _set_state(self, state: State) -> None:
        logger.debug("State %s -> %s", self._state.tag, state.tag)
        self._state = state
        for observer in list(self._observers):
            observer()

    def _settled(self, previous: State) -> State:
        """Stable state to return to after a failed call.

        A busy state captured before the call has been superseded by it and
        its own result will be dropped, so it settles to the nearest stable
        state instead.
        """
        return match_state(previous, {
            Idle.tag: lambda s: dataclasses.replace(s, params=self._params),
            Searching.tag: lambda s: Idle(params=self._params),
            Ready.tag: lambda s: dataclasses.replace(s, params=self._params),
            Clustering.tag: lambda s: Ready(search=s.search, params=self._params, clusters=s.clusters),
            Clustered.tag: lambda s: dataclasses.replace(s, params=self._params),
        })

    def restore_session(self) -> Optional[SearchResult]:
        """Load the cached search, if any, and make it ready for clustering."""
        if self._cache is None:
            return None
        result = self._cache.load()
        if result is not None:
            self._search_generation += 1
            self._set_state(Ready(search=result, params=self._params))
            logger.info("Restored session with %d documents", len(result))
        return result

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @staticmethod
    def _validate_search(request: Union[SearchRequest, dict]) -> SearchRequest:
        if isinstance(request, SearchRequest):
            return request
        try:
            return SearchRequest.model_validate(request)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid search request: {e}") from e

    @staticmethod
    def _validate_params(params: Union[ClusterizeRequest, dict]) -> ClusterizeRequest:
        if isinstance(params, ClusterizeRequest):
            return params
        try:
            return ClusterizeRequest.model_validate(params)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid clustering parameters: {e}") from e

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    async def search(self, request: Union[SearchRequest, dict]) -> SearchResult:
        """Fetch, embed, project and build the cluster tree for a query.

        On success the machine is ``ready`` (and clustered right away when
        clustering parameters are known; a clustering failure then leaves it
        ``ready`` and is kept in ``last_error``). On failure the previous state is
        restored, settled to ``ready`` or ``idle`` if it was busy, and the error
        propagates.
        """
        request = self._validate_search(request)
        source = self._source_factory(request.source)

        self._search_generation += 1
        generation = self._search_generation
        previous = self._state
        self.progress.reset()
        self._set_state(Searching(params=self._params))
        logger.info("Searching %s for %r (%d articles)", request.source, request.query, request.amount)

        try:
            result = await self._run_search(request, source)
        except Exception as e:
            logger.error("Search for %r failed: %s", request.query, e)
            if generation == self._search_generation:
                self._set_state(self._settled(previous))
            raise

        if generation != self._search_generation:
            logger.info("Dropping stale search results for %r", request.query)
            return result

        if self._cache is not None:
            self._cache.save(result)
        self._set_state(Ready(search=result, params=self._params))
        logger.info("Search ready: %d documents", len(result))

        if self._params is not None:
            try:
                await self.reclusterize()
            except ValidationError as e:
                logger.warning("Skipping clustering after search: %s", e)
            except Exception as e:
                # The search itself succeeded; the failure belongs to clustering
                self.last_error = e
                logger.error("Clustering after search failed: %s", e)
        return result

    async def _run_search(self, request: SearchRequest, source) -> SearchResult:
        loop = asyncio.get_event_loop()
        fetch_step = self.progress.step(f"Fetching articles: 0/{request.amount}")
        vectors_step = self.progress.step("Loading word vectors")

        def on_progress(fetched: int, amount: int) -> None:
            fetch_step.set_message(f"Fetching articles: {fetched}/{amount}")

        async def fetch_documents():
            documents = await source.fetch(request.query, request.amount, request.exclude_empty, on_progress)
            fetch_step.complete()
            return documents

        async def fetch_vectors():
            table = await self._vectors.load()
            vectors_step.complete()
            return table

        documents, table = await asyncio.gather(fetch_documents(), fetch_vectors())

        step = self.progress.step("Tokenizing articles")
        if self._tokenizer is None:
            self._tokenizer = init_tokenizer()
        tokens = self._tokenizer.tokenize_many([doc.text for doc in documents])
        step.complete()

        step = self.progress.step("Embedding articles")
        embeddings = embed_documents(tokens, table)
        step.complete()

        step = self.progress.step("Projecting to 2D")
        projection = await loop.run_in_executor(
            None, partial(self._projector, embeddings, self._projection_config)
        )
        step.complete()

        step = self.progress.step("Building cluster tree")
        tree = await loop.run_in_executor(None, self._tree_builder, projection)
        step.complete()

        return SearchResult(
            documents=list(documents),
            tokens=tokens,
            embeddings=embeddings,
            projection=np.asarray(projection, dtype="float64"),
            tree=tree,
        )

    # ------------------------------------------------------------------
    # Clustering
    # ------------------------------------------------------------------

    async def reclusterize(
        self, params: Union[ClusterizeRequest, dict, None] = None
    ) -> Optional[ClusterizeResult]:
        """Cut the current search into k clusters and label them.

        Uses ``params`` if given (and remembers them), otherwise the latest
        parameters. A no-op returning None when no search is available.
        Returns None as well when the result was superseded in flight.
        """
        if params is not None:
            self._params = self._validate_params(params)
        params = self._params
        search = search_of(self._state)
        if search is None or params is None:
            logger.debug("Nothing to cluster in state %s", self._state.tag)
            return None

        k = params.n_clusters
        if not 2 <= k <= len(search):
            raise ValidationError(f"Cluster count {k} out of range [2, {len(search)}]")

        generation = self._search_generation
        self._cluster_generation += 1
        call = self._cluster_generation
        previous = self._state
        self.progress.reset()
        self._set_state(Clustering(search=search, params=params, clusters=clusters_of(previous)))
        logger.info("Clustering %d documents into %d clusters", len(search), k)

        try:
            result = await self._run_clustering(search, params)
        except Exception as e:
            logger.error("Clustering into %d clusters failed: %s", k, e)
            if generation == self._search_generation and call == self._cluster_generation:
                self._set_state(self._settled(previous))
            raise

        if generation != self._search_generation or call != self._cluster_generation:
            logger.info("Dropping stale clustering result (k=%d)", k)
            return None

        if self._params != params:
            # Parameters changed in flight; wait for the follow-up call
            self._set_state(Ready(search=search, params=self._params, clusters=result))
        else:
            self._set_state(Clustered(search=search, params=params, clusters=result))
        return result

    async def _run_clustering(self, search: SearchResult, params: ClusterizeRequest) -> ClusterizeResult:
        k = params.n_clusters
        step = self.progress.step(f"Clustering into {k} groups")
        response = await run_in_worker(
            ClusterJobRequest(
                tree=search.tree.to_list(),
                k=k,
                projection=search.projection.tolist(),
                tokens=search.tokens,
            ),
            self._worker_factory,
        )
        step.complete()

        original = keyword_labels(response.keywords)
        labels = original
        if params.prettify:
            step = self.progress.step("Generating cluster labels")
            labels = await self._refiner(
                response.keywords,
                titles_per_cluster(search.titles, response.assignment, k),
                params.api_token or OPENAI_API_KEY,
            )
            step.complete()

        return ClusterizeResult(
            k=k,
            assignment=response.assignment,
            keywords=response.keywords,
            labels=list(labels),
            refined=list(labels) != original,
            clusters=summarize_clusters(response.assignment, labels, response.keywords, search.titles),
        )

    # ------------------------------------------------------------------
    # Debounced parameter changes
    # ------------------------------------------------------------------

    def update_params(self, params: Union[ClusterizeRequest, dict]) -> None:
        """Record new clustering parameters and schedule a reclusterize.

        Rapid successive calls are coalesced into one reclusterize after the
        debounce window. An in-flight clustering call is not cancelled; it
        lands in ``ready`` so the scheduled call runs with these parameters.
        Must be called from a running event loop.
        """
        params = self._validate_params(params)
        self._params = params
        self._set_state(match_state(self._state, {
            Idle.tag: lambda s: dataclasses.replace(s, params=params),
            Searching.tag: lambda s: dataclasses.replace(s, params=params),
            Ready.tag: lambda s: dataclasses.replace(s, params=params),
            Clustering.tag: lambda s: Ready(search=s.search, params=params, clusters=s.clusters),
            Clustered.tag: lambda s: Ready(search=s.search, params=params, clusters=s.clusters),
        }))

        loop = asyncio.get_event_loop()
        if self._timer is not None:
            self._timer.cancel()
        self._timer = loop.call_later(self._debounce, self._fire_reclusterize)

    def _fire_reclusterize(self) -> None:
        self._timer = None
        task = asyncio.ensure_future(self._background_reclusterize())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _background_reclusterize(self) -> None:
        try:
            await self.reclusterize()
        except VisualSearchError as e:
            self.last_error = e
            logger.error("Clustering failed: %s", e)

    async def wait_pending(self) -> None:
        """Wait until scheduled and running background clustering is done."""
        while self._timer is not None or self._tasks:
            if self._tasks:
                await asyncio.gather(*list(self._tasks), return_exceptions=True)
            else:
                await asyncio.sleep(min(self._debounce, 0.05) or 0)
