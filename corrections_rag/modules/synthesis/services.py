"""Answer synthesis: a state machine over the retrieval and generation cascades."""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

import httpx

from ...infrastructure.config.settings import Settings, get_settings
from ...infrastructure.embedding.factory import build_embedding_providers
from ...infrastructure.generation.base import GenerationBackend
from ...infrastructure.generation.factory import build_generation_backends
from ...infrastructure.logging import generate_query_id, get_logger, reset_query_id, set_query_id
from ...infrastructure.ranking import fuse_ranked_chunks
from ..analysis.services import NO_RELEVANT_ANSWER, FallbackContentAnalyzer
from ..chunk.schemas import RankedChunk
from ..chunk.store import ChunkStore, InMemoryChunkStore
from ..common.exceptions import BackendError, ValidationError
from ..common.utils.text import excerpt
from ..retrieval.services import MultiHopRetriever
from .schemas import AnswerResponse, SourceReference, SynthesisContext, SynthesisState

logger = get_logger(__name__)

NO_CHUNKS_ANSWER = "No documents have been indexed yet. Please upload and process some documents first."


def build_context_block(ranked: Sequence[RankedChunk]) -> str:
    """Render ranked chunks as numbered, attributed excerpts for a generation prompt."""
    return "\n\n".join(
        f"[{position}] Document: {item.chunk.document_name} ({item.chunk.category.value})\n{item.chunk.text}"
        for position, item in enumerate(ranked, start=1)
    )


def _failure_reason(exc: BaseException) -> str:
    if isinstance(exc, asyncio.TimeoutError):
        return "timed out"
    return str(exc)


class ResponseSynthesizer:
    """Answer queries through two independent fallback cascades.

    Retrieval tries each MultiHopRetriever in order until one succeeds; the fused
    ranking then feeds the generation backends, tried one at a time. Whatever
    fails ends in deterministic content analysis, so a well-formed query always
    gets an answer. Only malformed queries raise.

    The cascades are modelled as explicit states. `step` performs exactly one
    transition on a SynthesisContext; `process_query` drives a fresh context to
    a terminal state.
    """

    def __init__(
        self,
        store: ChunkStore,
        retrievers: Sequence[MultiHopRetriever],
        backends: Sequence[GenerationBackend],
        analyzer: Optional[FallbackContentAnalyzer] = None,
        *,
        transcript_top_k: int = 3,
        policy_top_k: int = 3,
        fusion_top_n: int = 8,
        excerpt_length: int = 300,
        query_max_length: int = 2000,
        retrieval_timeout: Optional[float] = 30.0,
        generation_timeout: Optional[float] = 30.0,
    ):
        self.store = store
        self.retrievers = list(retrievers)
        self.backends = list(backends)
        self.analyzer = analyzer or FallbackContentAnalyzer(excerpt_length=excerpt_length)
        self.transcript_top_k = transcript_top_k
        self.policy_top_k = policy_top_k
        self.fusion_top_n = fusion_top_n
        self.excerpt_length = excerpt_length
        self.query_max_length = query_max_length
        self.retrieval_timeout = retrieval_timeout
        self.generation_timeout = generation_timeout

        self._handlers: Dict[SynthesisState, Callable[[SynthesisContext], Awaitable[SynthesisState]]] = {
            SynthesisState.START: self._on_start,
            SynthesisState.NO_CHUNKS: self._on_no_chunks,
            SynthesisState.NO_EMBEDDINGS: self._on_no_embeddings,
            SynthesisState.VECTOR_SEARCH: self._on_vector_search,
            SynthesisState.RANKED: self._on_ranked,
            SynthesisState.NO_RELEVANT: self._on_no_relevant,
            SynthesisState.GENERATION: self._on_generation,
            SynthesisState.ANSWERED: self._on_answered,
            SynthesisState.CONTENT_ANALYSIS: self._on_content_analysis,
        }

    def validate_query(self, query: Any) -> str:
        """Return the stripped query or raise ValidationError."""
        if not isinstance(query, str):
            raise ValidationError("Query is required and must be a string")

        query = query.strip()
        if not query:
            raise ValidationError("Query is required and must be a non-empty string")
        if len(query) > self.query_max_length:
            raise ValidationError(f"Query exceeds maximum length of {self.query_max_length} characters")

        return query

    async def process_query(self, query: Any) -> AnswerResponse:
        """Answer a query against a snapshot of the stored chunks.

        Args:
            query: Natural-language question

        Returns:
            The answer with its sources and reasoning

        Raises:
            ValidationError: If the query is not a non-empty string within the length limit
        """
        query = self.validate_query(query)

        token = set_query_id(generate_query_id())
        try:
            chunks = tuple(await self.store.get_all_chunks())
            context = SynthesisContext(query=query, chunks=chunks)
            logger.info(f"Processing query over {len(chunks)} chunks")

            while context.response is None:
                await self.step(context)

            logger.info(f"Query finished in state {context.state.value} with {len(context.response.sources)} sources")
            return context.response
        finally:
            reset_query_id(token)

    async def step(self, context: SynthesisContext) -> SynthesisState:
        """Run the handler of the current state and move to the state it returns.

        Terminal state handlers set `context.response` and stay in place.
        """
        handler = self._handlers[context.state]
        next_state = await handler(context)
        if next_state != context.state:
            logger.debug(f"Synthesis transition {context.state.value} -> {next_state.value}")
        context.state = next_state
        return next_state

    async def _on_start(self, context: SynthesisContext) -> SynthesisState:
        if not context.chunks:
            return SynthesisState.NO_CHUNKS

        if not any(chunk.has_embedding for chunk in context.chunks):
            return SynthesisState.NO_EMBEDDINGS

        if not self.retrievers:
            context.note("no embedding provider configured")
            context.analysis_pool = context.chunks
            return SynthesisState.CONTENT_ANALYSIS

        context.retriever_index = 0
        return SynthesisState.VECTOR_SEARCH

    async def _on_no_chunks(self, context: SynthesisContext) -> SynthesisState:
        context.response = AnswerResponse(
            answer=NO_CHUNKS_ANSWER,
            sources=[],
            reasoning="No chunks are available for retrieval.",
        )
        return SynthesisState.NO_CHUNKS

    async def _on_no_embeddings(self, context: SynthesisContext) -> SynthesisState:
        context.note(f"none of {len(context.chunks)} chunks carries an embedding")
        context.analysis_pool = context.chunks
        return SynthesisState.CONTENT_ANALYSIS

    async def _on_vector_search(self, context: SynthesisContext) -> SynthesisState:
        retriever = self.retrievers[context.retriever_index]

        try:
            context.retrieval = await asyncio.wait_for(
                retriever.retrieve(
                    context.query,
                    context.chunks,
                    transcript_top_k=self.transcript_top_k,
                    policy_top_k=self.policy_top_k,
                ),
                timeout=self.retrieval_timeout,
            )
        except (BackendError, asyncio.TimeoutError) as exc:
            reason = _failure_reason(exc)
            logger.warning(f"Retrieval with {retriever.name} failed: {reason}")
            return self._next_retriever(context, retriever.name, reason)
        except Exception as exc:
            logger.exception(f"Retrieval with {retriever.name} raised an unexpected error")
            return self._next_retriever(context, retriever.name, f"unexpected {type(exc).__name__}: {exc}")

        context.retriever_used = retriever.name
        logger.info(f"Retrieval with {retriever.name} returned {context.retrieval.total_chunks} chunks")
        return SynthesisState.RANKED

    def _next_retriever(self, context: SynthesisContext, name: str, reason: str) -> SynthesisState:
        context.record_failure("retrieval", name, reason)

        context.retriever_index += 1
        if context.retriever_index < len(self.retrievers):
            return SynthesisState.VECTOR_SEARCH

        context.analysis_pool = context.chunks
        return SynthesisState.CONTENT_ANALYSIS

    async def _on_ranked(self, context: SynthesisContext) -> SynthesisState:
        retrieval = context.retrieval
        context.ranked = fuse_ranked_chunks(retrieval.transcript_chunks, retrieval.policy_chunks, top_n=self.fusion_top_n)

        if not context.ranked:
            return SynthesisState.NO_RELEVANT

        if not self.backends:
            context.note("no generation backend configured")
            context.analysis_pool = [item.chunk for item in context.ranked]
            return SynthesisState.CONTENT_ANALYSIS

        context.context_block = build_context_block(context.ranked)
        return SynthesisState.GENERATION

    async def _on_no_relevant(self, context: SynthesisContext) -> SynthesisState:
        context.response = AnswerResponse(
            answer=NO_RELEVANT_ANSWER,
            sources=[],
            reasoning=f"No chunks reached the similarity threshold of the {context.retriever_used} embeddings.",
        )
        return SynthesisState.NO_RELEVANT

    async def _on_generation(self, context: SynthesisContext) -> SynthesisState:
        for backend in self.backends:
            try:
                answer = await asyncio.wait_for(
                    backend.generate(context.query, context.context_block),
                    timeout=self.generation_timeout,
                )
            except (BackendError, asyncio.TimeoutError) as exc:
                reason = _failure_reason(exc)
                logger.warning(f"Generation with {backend.name} failed: {reason}")
                context.record_failure("generation", backend.name, reason)
                continue
            except Exception as exc:
                logger.exception(f"Generation with {backend.name} raised an unexpected error")
                context.record_failure("generation", backend.name, f"unexpected {type(exc).__name__}: {exc}")
                continue

            if not isinstance(answer, str) or not answer.strip():
                logger.warning(f"Generation with {backend.name} returned an empty answer")
                context.record_failure("generation", backend.name, "empty answer")
                continue

            context.answer = answer.strip()
            context.backend_used = backend.name
            return SynthesisState.ANSWERED

        context.analysis_pool = [item.chunk for item in context.ranked]
        return SynthesisState.CONTENT_ANALYSIS

    async def _on_answered(self, context: SynthesisContext) -> SynthesisState:
        retrieval = context.retrieval
        reasoning = (
            f"Retrieved {len(context.ranked)} relevant chunks from {len(retrieval.transcript_chunks)} transcript "
            f"chunks and {len(retrieval.policy_chunks)} policy chunks using {context.retriever_used} embeddings. "
            f"Answer generated by {context.backend_used} with retrieved context."
        )
        if context.trace:
            reasoning += " Skipped: " + "; ".join(context.trace) + "."

        context.response = AnswerResponse(
            answer=context.answer,
            sources=self._sources(context.ranked),
            reasoning=reasoning,
        )
        return SynthesisState.ANSWERED

    async def _on_content_analysis(self, context: SynthesisContext) -> SynthesisState:
        analysis = self.analyzer.analyze(context.query, context.analysis_pool)

        reasoning = analysis.reasoning
        if context.trace:
            reasoning += " Reached after: " + "; ".join(context.trace) + "."

        context.response = analysis.model_copy(update={"reasoning": reasoning})
        return SynthesisState.CONTENT_ANALYSIS

    def _sources(self, ranked: Sequence[RankedChunk]) -> List[SourceReference]:
        return [
            SourceReference(
                document_name=item.chunk.document_name,
                chunk_id=item.chunk.id,
                excerpt_text=excerpt(item.chunk.text, self.excerpt_length),
                category=item.chunk.category,
                similarity=item.similarity,
            )
            for item in ranked
        ]


def build_synthesizer(
    settings: Optional[Settings] = None,
    store: Optional[ChunkStore] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> ResponseSynthesizer:
    """Wire a ResponseSynthesizer from configuration.

    Providers and backends are built once here and injected; nothing is
    created lazily on first query.
    """
    settings = settings or get_settings()
    retrievers = [MultiHopRetriever(provider) for provider in build_embedding_providers(settings, client)]
    backends = build_generation_backends(settings, client)

    logger.info(
        f"Synthesizer configured with retrievers {[retriever.name for retriever in retrievers]} "
        f"and generation backends {[backend.name for backend in backends]}"
    )

    return ResponseSynthesizer(
        store=store if store is not None else InMemoryChunkStore(),
        retrievers=retrievers,
        backends=backends,
        analyzer=FallbackContentAnalyzer(excerpt_length=settings.EXCERPT_MAX_LENGTH),
        transcript_top_k=settings.TRANSCRIPT_TOP_K,
        policy_top_k=settings.POLICY_TOP_K,
        fusion_top_n=settings.FUSION_TOP_N,
        excerpt_length=settings.EXCERPT_MAX_LENGTH,
        query_max_length=settings.QUERY_MAX_LENGTH,
        retrieval_timeout=settings.EMBEDDING_TIMEOUT_SECONDS,
        generation_timeout=settings.GENERATION_TIMEOUT_SECONDS,
    )
