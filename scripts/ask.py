"""Ask a question against a small sample corpus of transcripts and policies.

Usage:
    python scripts/ask.py "What did Nathan say about stress?"
    python scripts/ask.py --offline "How do I file a grievance?"
"""

import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from corrections_rag.infrastructure.config.settings import get_settings  # noqa: E402
from corrections_rag.infrastructure.embedding import DeterministicEmbeddingProvider  # noqa: E402
from corrections_rag.infrastructure.logging import get_logger  # noqa: E402
from corrections_rag.modules.chunk.schemas import Category  # noqa: E402
from corrections_rag.modules.chunk.store import InMemoryChunkStore  # noqa: E402
from corrections_rag.modules.common.exceptions import ValidationError  # noqa: E402
from corrections_rag.modules.ingestion.services import DocumentIndexingService  # noqa: E402
from corrections_rag.modules.retrieval.services import MultiHopRetriever  # noqa: E402
from corrections_rag.modules.synthesis.services import ResponseSynthesizer, build_synthesizer  # noqa: E402

logger = get_logger(__name__)

SAMPLE_DOCUMENTS = [
    (
        1,
        "Nathan_Transcript_1.pdf",
        Category.TRANSCRIPT,
        "Officer asked how the week went. Nathan said he has $2,000 in house taxes to pay and it has been stressful. "
        "He is trying to manage the different payments while still working full time. "
        "He said there's nothing wrong with being stressed, it's more of how you handle your stress.",
    ),
    (
        2,
        "Robert_Transcript_1.pdf",
        Category.TRANSCRIPT,
        "Robert reported he has been with the fencing company for about eight months. "
        "His employer gave him more responsibilities on the crew. "
        "He completed the impact panel and attends sobriety meetings twice a week.",
    ),
    (
        3,
        "Grievance_and_Appeal_Policy.pdf",
        Category.POLICY,
        "Grievances must be submitted within 24 hours of the incident using Form CC-101. "
        "The Assistant Director conducts a preliminary review within 72 hours. "
        "Appeals must be filed within 5 business days and final appeal decisions are issued within 15 business days.",
    ),
    (
        4,
        "Programming_Requirements_Policy.pdf",
        Category.POLICY,
        "Participants with a substance abuse history must attend group therapy three times weekly and individual counseling weekly. "
        "Programming also covers employment preparation, life skills and education. "
        "Residents complete a minimum of 6 hours of programming on weekdays and 4 hours on weekends.",
    ),
]


async def seed(indexer: DocumentIndexingService) -> None:
    for document_id, name, category, text in SAMPLE_DOCUMENTS:
        await indexer.index_document(document_id, name, category, text)


async def main() -> None:
    parser = argparse.ArgumentParser(description="Answer a question over sample supervision documents.")
    parser.add_argument("query", help="Question to ask")
    parser.add_argument(
        "--offline",
        action="store_true",
        help="Use only the deterministic embedding provider and no generation backends",
    )
    args = parser.parse_args()

    settings = get_settings()
    store = InMemoryChunkStore()
    provider = DeterministicEmbeddingProvider(
        dimension=settings.DETERMINISTIC_EMBEDDING_DIMENSION,
        similarity_threshold=settings.DETERMINISTIC_EMBEDDING_THRESHOLD,
    )
    await seed(DocumentIndexingService(provider, store, settings.CHUNK_SIZE, settings.CHUNK_OVERLAP))

    if args.offline:
        synthesizer = ResponseSynthesizer(store, retrievers=[MultiHopRetriever(provider)], backends=[])
    else:
        synthesizer = build_synthesizer(settings, store)

    try:
        response = await synthesizer.process_query(args.query)
    except ValidationError as e:
        logger.error(f"Invalid query: {e}")
        sys.exit(2)

    print(response.answer)
    print()
    for source in response.sources:
        print(f"- {source.document_name} ({source.category.value}, {source.similarity:.3f}): {source.excerpt_text}")
    print()
    print(f"Reasoning: {response.reasoning}")


if __name__ == "__main__":
    asyncio.run(main())
