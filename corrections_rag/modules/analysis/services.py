"""Rule-based content analysis used when semantic search or generation is unavailable."""

import re
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Sequence, Set, Tuple

from ...infrastructure.logging import get_logger
from ..chunk.schemas import Category, Chunk
from ..common.utils.text import excerpt, split_sentences
from ..synthesis.schemas import AnswerResponse, SourceReference

logger = get_logger(__name__)

NO_RELEVANT_ANSWER = "I couldn't find any relevant information in the processed documents to answer your question."

STOP_WORDS = frozenset(
    {
        "about", "after", "all", "and", "any", "are", "been", "being", "but", "can", "could", "did", "does",
        "for", "from", "had", "has", "have", "her", "him", "his", "how", "into", "its", "may", "more", "not",
        "our", "out", "over", "say", "said", "says", "she", "should", "tell", "that", "the", "their", "them",
        "then", "there", "these", "they", "this", "those", "was", "were", "what", "when", "where", "which",
        "who", "whom", "why", "will", "with", "would", "you", "your",
    }
)

# Tokens that commonly appear in document names without identifying anyone.
GENERIC_NAME_TOKENS = frozenset(
    {
        "transcript", "transcripts", "session", "sessions", "supervision", "meeting", "interview", "notes",
        "policy", "policies", "procedure", "procedures", "document", "final", "draft", "copy", "part",
        "pdf", "txt", "doc", "docx", "rtf", "md",
    }
)

_WORD = re.compile(r"[a-z0-9]+")
_NAME_WORD = re.compile(r"[a-z]+")


@dataclass(frozen=True)
class Topic:
    """A recognizable question topic.

    A topic matches a query when a query word starts with one of its markers,
    and boosts chunks whose text contains one of its content words.
    """

    name: str
    label: str
    markers: Tuple[str, ...]
    content_words: Tuple[str, ...]


DEFAULT_TOPICS: Tuple[Topic, ...] = (
    Topic(
        name="stress",
        label="stress and coping",
        markers=("stress", "anxi", "financ", "worr", "cope", "coping"),
        content_words=("stress", "anxiety", "anxious", "financial", "taxes", "money", "coping", "worried", "pressure"),
    ),
    Topic(
        name="employment",
        label="employment",
        markers=("work", "job", "employ", "career"),
        content_words=("work", "job", "employ", "company", "hired", "shift", "boss"),
    ),
    Topic(
        name="grievance_policy",
        label="grievance and policy procedures",
        markers=("grievance", "appeal", "policy", "policies", "procedure", "rule", "requirement"),
        content_words=("grievance", "appeal", "policy", "procedure", "form", "review", "require", "within"),
    ),
    Topic(
        name="comparison",
        label="comparison",
        markers=("compar", "both", "differ", "versus", "contrast"),
        content_words=(),
    ),
)


def tokenize(text: str) -> List[str]:
    """Lowercase content words of a text, stop words and short words removed, first occurrence order."""
    seen: Set[str] = set()
    words = []
    for word in _WORD.findall(text.lower()):
        if len(word) < 3 or word in STOP_WORDS or word in seen:
            continue
        seen.add(word)
        words.append(word)
    return words


def name_tokens(document_name: str) -> FrozenSet[str]:
    """Identifying words of a document name (generic naming words, extensions and digits dropped)."""
    return frozenset(
        token
        for token in _NAME_WORD.findall(document_name.lower())
        if len(token) >= 3 and token not in GENERIC_NAME_TOKENS
    )


@dataclass(frozen=True)
class ScoredChunk:
    chunk: Chunk
    score: float
    entity_match: bool
    topics: Tuple[str, ...]


class FallbackContentAnalyzer:
    """Answer a query by keyword, topic and entity matching over raw chunk text.

    Deterministic and free of I/O; it never raises for well-formed chunks, so the
    synthesizer can always end here. Scoring per chunk:

    - +0.3 for every query word found in the chunk text
    - +0.4 for every query topic whose content words occur in the chunk text
    - +0.5 when the chunk's document name names an entity from the query

    Scores are clamped to 0.95 so a keyword match never claims near-certainty.
    Chunks scoring above 0.2 are kept, best first, ties in input order.
    """

    WORD_WEIGHT = 0.3
    TOPIC_WEIGHT = 0.4
    ENTITY_WEIGHT = 0.5

    def __init__(
        self,
        max_sources: int = 5,
        min_score: float = 0.2,
        max_score: float = 0.95,
        excerpt_length: int = 300,
        topics: Sequence[Topic] = DEFAULT_TOPICS,
        max_quoted_sentences: int = 3,
    ):
        self.max_sources = max_sources
        self.min_score = min_score
        self.max_score = max_score
        self.excerpt_length = excerpt_length
        self.topics = tuple(topics)
        self.max_quoted_sentences = max_quoted_sentences

    def analyze(self, query: str, chunks: Sequence[Chunk]) -> AnswerResponse:
        """Build an answer from the chunks that best match the query terms.

        Args:
            query: The user's question
            chunks: Candidate chunks; their order breaks score ties

        Returns:
            Answer with excerpted sources; reasoning starts with "Content analysis fallback"
        """
        query_words = tokenize(query)
        query_topics = self.match_topics(query_words)
        entities = self.find_entities(query_words, chunks)

        scored = self.score_chunks(query_words, query_topics, entities, chunks)
        if not scored:
            logger.info(f"Content analysis found no match among {len(chunks)} chunks")
            return AnswerResponse(
                answer=NO_RELEVANT_ANSWER,
                sources=[],
                reasoning=f"Content analysis fallback: no chunk among {len(chunks)} matched the query terms.",
            )

        highlight_words = list(query_words)
        for topic in query_topics:
            highlight_words.extend(word for word in topic.content_words if word not in highlight_words)

        entity_chunks = [item for item in scored if item.entity_match]
        topic_chunks = [item for item in scored if item.topics]

        if entity_chunks:
            answer, path = self._entity_answer(entities, entity_chunks, highlight_words)
        elif query_topics and (topic_chunks or self._is_comparison(query_topics)):
            answer, path = self._topic_answer(query_topics, topic_chunks or scored, highlight_words)
        else:
            answer, path = self._generic_answer(scored, highlight_words)

        sources = [
            SourceReference(
                document_name=item.chunk.document_name,
                chunk_id=item.chunk.id,
                excerpt_text=excerpt(item.chunk.text, self.excerpt_length),
                category=item.chunk.category,
                similarity=item.score,
            )
            for item in scored
        ]

        logger.info(f"Content analysis answered via {path} with {len(sources)} sources")
        return AnswerResponse(
            answer=answer,
            sources=sources,
            reasoning=f"Content analysis fallback ({path}): keyword matching over {len(chunks)} chunks kept {len(sources)}.",
        )

    def match_topics(self, query_words: Sequence[str]) -> List[Topic]:
        return [
            topic
            for topic in self.topics
            if any(word.startswith(marker) for word in query_words for marker in topic.markers)
        ]

    def find_entities(self, query_words: Sequence[str], chunks: Sequence[Chunk]) -> List[str]:
        """Query words that name a transcript document, in query order."""
        transcript_names: Set[str] = set()
        for chunk in chunks:
            if chunk.category == Category.TRANSCRIPT:
                transcript_names |= name_tokens(chunk.document_name)
        return [word for word in query_words if word in transcript_names]

    def score_chunks(
        self,
        query_words: Sequence[str],
        query_topics: Sequence[Topic],
        entities: Sequence[str],
        chunks: Sequence[Chunk],
    ) -> List[ScoredChunk]:
        """Score, filter and order chunks. Returns at most max_sources items."""
        scored = []
        for chunk in chunks:
            text = chunk.text.lower()
            word_hits = sum(1 for word in query_words if word in text)
            topic_hits = tuple(
                topic.name for topic in query_topics if any(word in text for word in topic.content_words)
            )
            entity_match = bool(set(entities) & name_tokens(chunk.document_name))

            score = word_hits * self.WORD_WEIGHT + len(topic_hits) * self.TOPIC_WEIGHT
            if entity_match:
                score += self.ENTITY_WEIGHT
            score = round(min(score, self.max_score), 4)

            if score > self.min_score:
                scored.append(ScoredChunk(chunk=chunk, score=score, entity_match=entity_match, topics=topic_hits))

        scored.sort(key=lambda item: item.score, reverse=True)
        return scored[: self.max_sources]

    def extract_sentences(self, items: Sequence[ScoredChunk], highlight_words: Sequence[str]) -> List[str]:
        """Quote the sentences mentioning the most highlight words, best first.

        Falls back to the opening sentence of the best chunk when no sentence
        mentions any highlight word.
        """
        candidates: List[Tuple[int, int, str]] = []
        seen: Set[str] = set()
        for item in items:
            for sentence in split_sentences(item.chunk.text):
                if sentence in seen:
                    continue
                seen.add(sentence)
                lowered = sentence.lower()
                hits = sum(1 for word in highlight_words if word in lowered)
                if hits:
                    candidates.append((hits, len(candidates), sentence))

        if not candidates:
            opening = split_sentences(items[0].chunk.text)
            return [excerpt(opening[0], self.excerpt_length)] if opening else []

        candidates.sort(key=lambda candidate: (-candidate[0], candidate[1]))
        return [excerpt(sentence, self.excerpt_length) for _, _, sentence in candidates[: self.max_quoted_sentences]]

    def _entity_answer(
        self, entities: Sequence[str], items: Sequence[ScoredChunk], highlight_words: Sequence[str]
    ) -> Tuple[str, str]:
        matched = [entity for entity in entities if any(entity in name_tokens(item.chunk.document_name) for item in items)]
        names = _join_names([entity.capitalize() for entity in matched])
        if len(matched) == 1:
            lead = f"Based on {names}'s supervision sessions:"
        else:
            lead = f"Based on the supervision sessions of {names}:"
        quoted = " ".join(self.extract_sentences(items, highlight_words))
        return f"{lead} {quoted}", f"entity match on {names}"

    def _topic_answer(
        self, topics: Sequence[Topic], items: Sequence[ScoredChunk], highlight_words: Sequence[str]
    ) -> Tuple[str, str]:
        labels = _join_names([topic.label for topic in topics])

        if self._is_comparison(topics):
            by_document: Dict[str, List[ScoredChunk]] = {}
            for item in items:
                by_document.setdefault(item.chunk.document_name, []).append(item)
            parts = [
                f"{document_name}: {' '.join(self.extract_sentences(document_items, highlight_words))}"
                for document_name, document_items in by_document.items()
            ]
            return f"Comparing {len(by_document)} documents: " + " | ".join(parts), f"topic match on {labels}"

        quoted = " ".join(self.extract_sentences(items, highlight_words))
        return f"Based on {_collection_label(items)} ({labels}): {quoted}", f"topic match on {labels}"

    def _generic_answer(self, items: Sequence[ScoredChunk], highlight_words: Sequence[str]) -> Tuple[str, str]:
        transcript_count = sum(1 for item in items if item.chunk.category == Category.TRANSCRIPT)
        policy_count = len(items) - transcript_count
        quoted = " ".join(self.extract_sentences(items, highlight_words))
        answer = (
            f"Based on the available Community Corrections documents "
            f"({transcript_count} transcript sections, {policy_count} policy sections): {quoted}"
        )
        return answer, "generic summary"

    @staticmethod
    def _is_comparison(topics: Sequence[Topic]) -> bool:
        return any(topic.name == "comparison" for topic in topics)


def _join_names(names: Sequence[str]) -> str:
    if len(names) <= 1:
        return "".join(names)
    return ", ".join(names[:-1]) + " and " + names[-1]


def _collection_label(items: Sequence[ScoredChunk]) -> str:
    categories = {item.chunk.category for item in items}
    if categories == {Category.TRANSCRIPT}:
        return "the supervision transcripts"
    if categories == {Category.POLICY}:
        return "the Community Corrections policy documents"
    return "the supervision transcripts and policy documents"
