"""Tests for the hosted generation backends and their factory."""

import json

import httpx
import pytest

from corrections_rag.infrastructure.config import Settings
from corrections_rag.infrastructure.generation import (
    SYSTEM_PROMPT,
    CohereBackend,
    GeminiBackend,
    OpenAICompatibleChatBackend,
    TogetherBackend,
    build_generation_backend,
    build_generation_backends,
)
from corrections_rag.modules.common.exceptions import ProviderError, ProviderUnavailableError

CONTEXT = "[1] Document: Nathan_Transcript_1.pdf (transcript)\nNathan discussed stress about property taxes"
QUERY = "What did Nathan say about stress?"


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class RecordingHandler:
    """MockTransport handler that records requests and replies with a fixed body."""

    def __init__(self, body, status_code: int = 200):
        self.body = body
        self.status_code = status_code
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def payload(self):
        return json.loads(self.requests[0].content)


class TestOpenAICompatibleChatBackend:
    """Test chat-completions backends (OpenAI, Groq)."""

    @pytest.mark.asyncio
    async def test_generate_success(self):
        handler = RecordingHandler({"choices": [{"message": {"content": "  Nathan mentioned property taxes.  "}}]})

        async with mock_client(handler) as client:
            backend = OpenAICompatibleChatBackend("openai", "sk-test", "gpt-4o", "https://api.openai.com/v1", client=client)
            answer = await backend.generate(QUERY, CONTEXT)

        assert answer == "Nathan mentioned property taxes."
        request = handler.requests[0]
        assert request.url == "https://api.openai.com/v1/chat/completions"
        assert request.headers["Authorization"] == "Bearer sk-test"

        payload = handler.payload
        assert payload["model"] == "gpt-4o"
        assert payload["temperature"] == 0.1
        assert payload["max_tokens"] == 1000
        assert payload["messages"][0]["role"] == "system"
        assert payload["messages"][0]["content"].startswith(SYSTEM_PROMPT)
        assert CONTEXT in payload["messages"][0]["content"]
        assert QUERY in payload["messages"][1]["content"]

    @pytest.mark.asyncio
    async def test_groq_uses_its_own_base_url(self):
        handler = RecordingHandler({"choices": [{"message": {"content": "answer"}}]})

        async with mock_client(handler) as client:
            backend = OpenAICompatibleChatBackend(
                "groq", "gsk-test", "llama3-8b-8192", "https://api.groq.com/openai/v1/", client=client
            )
            await backend.generate(QUERY, CONTEXT)

        assert handler.requests[0].url == "https://api.groq.com/openai/v1/chat/completions"
        assert backend.name == "groq"

    @pytest.mark.asyncio
    async def test_missing_key_is_unavailable(self):
        backend = OpenAICompatibleChatBackend("openai", "", "gpt-4o", "https://api.openai.com/v1")

        with pytest.raises(ProviderUnavailableError) as exc_info:
            await backend.generate(QUERY, CONTEXT)

        assert exc_info.value.backend == "openai"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"choices": []},
            {"choices": [{"message": {}}]},
            {"error": {"message": "quota exceeded"}},
            {"choices": [{"message": {"content": "   "}}]},
            {"choices": [{"message": {"content": None}}]},
        ],
    )
    async def test_malformed_or_empty_completion(self, body):
        async with mock_client(RecordingHandler(body)) as client:
            backend = OpenAICompatibleChatBackend("openai", "sk-test", "gpt-4o", "https://api.openai.com/v1", client=client)

            with pytest.raises(ProviderError):
                await backend.generate(QUERY, CONTEXT)

    @pytest.mark.asyncio
    async def test_rate_limited(self):
        async with mock_client(RecordingHandler({"error": "rate limited"}, status_code=429)) as client:
            backend = OpenAICompatibleChatBackend("groq", "gsk-test", "llama3-8b-8192", "https://api.groq.com/openai/v1", client=client)

            with pytest.raises(ProviderError) as exc_info:
                await backend.generate(QUERY, CONTEXT)

        assert "HTTP 429" in str(exc_info.value)
        assert exc_info.value.backend == "groq"


class TestGeminiBackend:
    """Test the Gemini generateContent backend."""

    @pytest.mark.asyncio
    async def test_generate_success(self):
        handler = RecordingHandler({"candidates": [{"content": {"parts": [{"text": "Gemini answer"}]}}]})

        async with mock_client(handler) as client:
            backend = GeminiBackend(
                "gemini", "g-test", "gemini-pro", "https://generativelanguage.googleapis.com/v1beta", client=client
            )
            answer = await backend.generate(QUERY, CONTEXT)

        assert answer == "Gemini answer"
        request = handler.requests[0]
        assert request.url.path == "/v1beta/models/gemini-pro:generateContent"
        assert request.url.params["key"] == "g-test"

        prompt = handler.payload["contents"][0]["parts"][0]["text"]
        assert CONTEXT in prompt and QUERY in prompt
        assert handler.payload["generationConfig"]["maxOutputTokens"] == 1000

    @pytest.mark.asyncio
    async def test_no_candidates(self):
        async with mock_client(RecordingHandler({"promptFeedback": {"blockReason": "SAFETY"}})) as client:
            backend = GeminiBackend("gemini", "g-test", "gemini-pro", "https://example.test/v1beta", client=client)

            with pytest.raises(ProviderError):
                await backend.generate(QUERY, CONTEXT)


class TestCohereBackend:
    """Test the Cohere generate backend."""

    @pytest.mark.asyncio
    async def test_generate_success(self):
        handler = RecordingHandler({"generations": [{"text": "Cohere answer"}]})

        async with mock_client(handler) as client:
            backend = CohereBackend("cohere", "co-test", "command-light", "https://api.cohere.ai/v1", client=client)
            answer = await backend.generate(QUERY, CONTEXT)

        assert answer == "Cohere answer"
        assert handler.requests[0].url == "https://api.cohere.ai/v1/generate"
        assert handler.payload["model"] == "command-light"
        assert handler.payload["prompt"].endswith("Answer:")

    @pytest.mark.asyncio
    async def test_missing_key_is_unavailable(self):
        with pytest.raises(ProviderUnavailableError):
            await CohereBackend("cohere", "", "command-light", "https://api.cohere.ai/v1").generate(QUERY, CONTEXT)


class TestTogetherBackend:
    """Test the Together inference backend."""

    @pytest.mark.asyncio
    async def test_generate_success(self):
        handler = RecordingHandler({"output": {"choices": [{"text": "Together answer"}]}})

        async with mock_client(handler) as client:
            backend = TogetherBackend("together", "t-test", "togethercomputer/llama-2-7b-chat", "https://api.together.xyz", client=client)
            answer = await backend.generate(QUERY, CONTEXT)

        assert answer == "Together answer"
        assert handler.requests[0].url == "https://api.together.xyz/inference"

    @pytest.mark.asyncio
    async def test_malformed_payload(self):
        async with mock_client(RecordingHandler({"output": {}})) as client:
            backend = TogetherBackend("together", "t-test", "model", "https://api.together.xyz", client=client)

            with pytest.raises(ProviderError):
                await backend.generate(QUERY, CONTEXT)


class TestBuildGenerationBackends:
    """Test building the generation cascade from settings."""

    def test_default_order(self):
        backends = build_generation_backends(Settings(GENERATION_BACKENDS="openai,groq,gemini,cohere,together"))

        assert [backend.name for backend in backends] == ["openai", "groq", "gemini", "cohere", "together"]
        assert isinstance(backends[0], OpenAICompatibleChatBackend)
        assert isinstance(backends[1], OpenAICompatibleChatBackend)
        assert isinstance(backends[2], GeminiBackend)
        assert isinstance(backends[3], CohereBackend)
        assert isinstance(backends[4], TogetherBackend)

    def test_settings_are_applied(self):
        settings = Settings(GROQ_API_KEY="gsk-test", GENERATION_TEMPERATURE=0.5, GENERATION_MAX_TOKENS=256)

        backend = build_generation_backend("groq", settings)

        assert backend.api_key == "gsk-test"
        assert backend.model == settings.GROQ_MODEL
        assert backend.temperature == 0.5
        assert backend.max_tokens == 256

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown generation backend"):
            build_generation_backend("claude-instant", Settings())

    def test_empty_cascade(self):
        assert build_generation_backends(Settings(GENERATION_BACKENDS="")) == []
