"""Abstract base class and prompts for answer generation backends."""

from abc import ABC, abstractmethod

SYSTEM_PROMPT = """You are an AI assistant specialized in Community Corrections data analysis. You help answer questions about supervision transcripts and policy documents.

INSTRUCTIONS:
- Answer the user's question using ONLY the provided context
- Be accurate and specific - cite relevant information from the context
- If transcripts are relevant, reference specific conversations or quotes
- If policies are relevant, reference specific procedures or requirements
- For multi-hop questions, connect information across transcript and policy sources
- Always indicate which documents you're referencing
- If the context doesn't contain enough information, say so clearly
- Do not make up information not present in the context"""


def build_user_prompt(query: str) -> str:
    return (
        f"Question: {query}\n\n"
        "Please answer this question based on the provided Community Corrections documents and transcripts."
    )


def build_completion_prompt(query: str, context: str) -> str:
    """Single-string prompt for completion-style endpoints."""
    return f"{SYSTEM_PROMPT}\n\nCONTEXT:\n{context}\n\nQuestion: {query}\n\nAnswer:"


class GenerationBackend(ABC):
    """One answer-generation strategy in the synthesizer's cascade.

    Implementations either return a non-empty answer or raise
    ProviderUnavailableError / ProviderError; they never return partial output.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short identifier used in logs and the response reasoning."""
        pass

    @abstractmethod
    async def generate(self, query: str, context: str) -> str:
        """Answer a query from a context block.

        Args:
            query: The user's question
            context: Numbered excerpts of the retrieved chunks

        Returns:
            The generated answer
        """
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
