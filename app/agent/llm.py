"""
Generation backends: Ollama (streaming), vLLM completions (batch), OpenAI chat (streaming).

Every backend exposes the same shape: an async generator of text chunks for a
prompt. Failures raise; retry and fallback decisions belong to the orchestrator.
"""

import json
import logging
from typing import Any, AsyncIterator, Protocol

import httpx
from openai import AsyncOpenAI

from app.core.config import (
    FALLBACK_LLM_TYPE,
    FALLBACK_LLM_URL,
    FALLBACK_MAX_TOKENS,
    FALLBACK_MODEL,
    LLM_TIMEOUT,
    OLLAMA_MODEL,
    OLLAMA_NUM_PREDICT,
    OLLAMA_TEMPERATURE,
    OLLAMA_URL,
    OPENAI_API_KEY,
    OPENAI_LLM_MODEL,
)

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """A generation backend answered with an error or an unusable payload."""


class GenerationBackend(Protocol):
    name: str

    def stream(self, prompt: str) -> AsyncIterator[str]:
        ...


class OllamaBackend:
    """POST /api/generate with stream=true; the body is one JSON object per line."""

    def __init__(
        self,
        url: str,
        model: str,
        name: str = "ollama",
        timeout: float = LLM_TIMEOUT,
        options: dict[str, Any] | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.model = model
        self.name = name
        self.timeout = timeout
        self.options = options
        self._transport = transport

    async def stream(self, prompt: str) -> AsyncIterator[str]:
        payload: dict[str, Any] = {"model": self.model, "prompt": prompt, "stream": True}
        if self.options:
            payload["options"] = self.options
        logger.info("[llm:%s] IN  prompt_len=%d model=%s", self.name, len(prompt), self.model)
        emitted = 0
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            async with client.stream("POST", self.url, json=payload) as response:
                if response.status_code != 200:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    raise BackendError(f"{self.name} returned {response.status_code}: {body[:200]}")
                async for line in response.aiter_lines():
                    if not line.strip():
                        continue
                    try:
                        data = json.loads(line)
                    except json.JSONDecodeError:
                        logger.debug("[llm:%s] skip non-JSON line=%r", self.name, line[:200])
                        continue
                    if data.get("error"):
                        raise BackendError(f"{self.name} error: {data['error']}")
                    text = data.get("response")
                    if text:
                        emitted += len(text)
                        yield text
                    if data.get("done"):
                        break
        logger.info("[llm:%s] OUT response_len=%d", self.name, emitted)


class VLLMBackend:
    """OpenAI-style /v1/completions endpoint called without streaming."""

    name = "vllm"

    def __init__(
        self,
        url: str,
        model: str,
        timeout: float = LLM_TIMEOUT,
        max_tokens: int = FALLBACK_MAX_TOKENS,
        temperature: float = OLLAMA_TEMPERATURE,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url
        self.model = model
        self.timeout = timeout
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._transport = transport

    async def stream(self, prompt: str) -> AsyncIterator[str]:
        payload = {
            "model": self.model,
            "prompt": prompt,
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
            "stream": False,
        }
        logger.info("[llm:vllm] IN  prompt_len=%d model=%s", len(prompt), self.model)
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            response = await client.post(self.url, json=payload)
        if response.status_code != 200:
            raise BackendError(f"vllm returned {response.status_code}: {response.text[:200]}")
        try:
            text = response.json()["choices"][0]["text"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise BackendError(f"vllm returned an unexpected payload: {response.text[:200]}") from e
        logger.info("[llm:vllm] OUT response_len=%d", len(text or ""))
        if text:
            yield text


class OpenAIChatBackend:
    """OpenAI (or compatible) chat completions with stream=True."""

    name = "openai"

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str | None = None,
        timeout: float = LLM_TIMEOUT,
        max_tokens: int = FALLBACK_MAX_TOKENS,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self.model = model
        self.max_tokens = max_tokens
        self._client = client or AsyncOpenAI(api_key=api_key, base_url=base_url or None, timeout=timeout)

    async def stream(self, prompt: str) -> AsyncIterator[str]:
        logger.info("[llm:openai] IN  prompt_len=%d model=%s", len(prompt), self.model)
        stream = await self._client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=self.max_tokens,
            stream=True,
        )
        emitted = 0
        async for chunk in stream:
            if not chunk.choices:
                continue
            delta = chunk.choices[0].delta
            content = getattr(delta, "content", None)
            if content:
                emitted += len(content)
                yield content
        logger.info("[llm:openai] OUT response_len=%d", emitted)


def build_primary_backend() -> GenerationBackend | None:
    """Ollama at OLLAMA_URL, or None when it is not configured."""
    if not OLLAMA_URL:
        logger.info("[llm] primary backend not configured (OLLAMA_URL unset)")
        return None
    return OllamaBackend(
        OLLAMA_URL,
        OLLAMA_MODEL,
        options={"num_predict": OLLAMA_NUM_PREDICT, "temperature": OLLAMA_TEMPERATURE},
    )


def build_fallback_backend() -> GenerationBackend | None:
    """Secondary backend chosen by FALLBACK_LLM_TYPE, or None when it is not configured."""
    kind = FALLBACK_LLM_TYPE
    if kind == "openai":
        if not OPENAI_API_KEY:
            logger.info("[llm] fallback type openai but OPENAI_API_KEY unset")
            return None
        return OpenAIChatBackend(OPENAI_API_KEY, OPENAI_LLM_MODEL, base_url=FALLBACK_LLM_URL or None)
    if not FALLBACK_LLM_URL:
        logger.info("[llm] fallback backend not configured (FALLBACK_LLM_URL unset)")
        return None
    if kind == "ollama":
        return OllamaBackend(FALLBACK_LLM_URL, FALLBACK_MODEL, name="fallback-ollama")
    if kind != "vllm":
        logger.warning("[llm] unknown FALLBACK_LLM_TYPE=%r; using vllm", kind)
    return VLLMBackend(FALLBACK_LLM_URL, FALLBACK_MODEL)
