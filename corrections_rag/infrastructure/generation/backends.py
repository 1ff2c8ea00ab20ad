"""Hosted LLM generation backends called over HTTP."""

from abc import abstractmethod
from typing import Any, Dict, Optional

import httpx

from ...modules.common.exceptions import ProviderError, ProviderUnavailableError
from ..http import bearer_headers, post_json
from ..logging import get_logger
from .base import SYSTEM_PROMPT, GenerationBackend, build_completion_prompt, build_user_prompt

logger = get_logger(__name__)


class HttpGenerationBackend(GenerationBackend):
    """Common request/validation flow for API-key authenticated backends."""

    def __init__(
        self,
        backend_name: str,
        api_key: str,
        model: str,
        base_url: str,
        temperature: float = 0.1,
        max_tokens: int = 1000,
        timeout: float = 30.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self._name = backend_name
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._client = client

    @property
    def name(self) -> str:
        return self._name

    async def generate(self, query: str, context: str) -> str:
        if not self.api_key:
            raise ProviderUnavailableError(self.name, "API key is not configured")

        body = await self._request(query, context)

        try:
            answer = self._extract_answer(body)
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            raise ProviderError(self.name, f"malformed completion payload: {exc!r}") from exc

        if not isinstance(answer, str) or not answer.strip():
            raise ProviderError(self.name, "empty completion")

        logger.debug(f"{self.name} generated {len(answer)} characters with {self.model}")
        return answer.strip()

    async def _post(
        self, url: str, payload: Dict[str, Any], headers: Optional[Dict[str, str]] = None, params: Optional[Dict[str, str]] = None
    ) -> Any:
        return await post_json(
            self.name, url, payload, headers=headers, params=params, timeout=self.timeout, client=self._client
        )

    @abstractmethod
    async def _request(self, query: str, context: str) -> Any:
        pass

    @abstractmethod
    def _extract_answer(self, body: Any) -> Any:
        pass


class OpenAICompatibleChatBackend(HttpGenerationBackend):
    """Chat-completions backend: OpenAI itself and OpenAI-compatible hosts such as Groq."""

    async def _request(self, query: str, context: str) -> Any:
        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": f"{SYSTEM_PROMPT}\n\nCONTEXT:\n{context}"},
                {"role": "user", "content": build_user_prompt(query)},
            ],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }
        return await self._post(f"{self.base_url}/chat/completions", payload, headers=bearer_headers(self.api_key))

    def _extract_answer(self, body: Any) -> Any:
        return body["choices"][0]["message"]["content"]


class GeminiBackend(HttpGenerationBackend):
    """Google Gemini generateContent backend."""

    async def _request(self, query: str, context: str) -> Any:
        payload = {
            "contents": [{"parts": [{"text": build_completion_prompt(query, context)}]}],
            "generationConfig": {"temperature": self.temperature, "maxOutputTokens": self.max_tokens},
        }
        return await self._post(
            f"{self.base_url}/models/{self.model}:generateContent",
            payload,
            headers={"Content-Type": "application/json"},
            params={"key": self.api_key},
        )

    def _extract_answer(self, body: Any) -> Any:
        return body["candidates"][0]["content"]["parts"][0]["text"]


class CohereBackend(HttpGenerationBackend):
    """Cohere generate backend."""

    async def _request(self, query: str, context: str) -> Any:
        payload = {
            "model": self.model,
            "prompt": build_completion_prompt(query, context),
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        return await self._post(f"{self.base_url}/generate", payload, headers=bearer_headers(self.api_key))

    def _extract_answer(self, body: Any) -> Any:
        return body["generations"][0]["text"]


class TogetherBackend(HttpGenerationBackend):
    """Together AI inference backend."""

    async def _request(self, query: str, context: str) -> Any:
        payload = {
            "model": self.model,
            "prompt": build_completion_prompt(query, context),
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }
        return await self._post(f"{self.base_url}/inference", payload, headers=bearer_headers(self.api_key))

    def _extract_answer(self, body: Any) -> Any:
        return body["output"]["choices"][0]["text"]
