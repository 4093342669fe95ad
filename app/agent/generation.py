"""
Generation orchestration: cache → primary (with retry) → fallback → give up.

Chunks are forwarded to the caller as soon as the backend yields them. Only
answers from the primary backend are cached. Closing the returned generator
(e.g. the client disconnected) closes the backend's HTTP stream with it.
"""

import asyncio
import logging
from contextlib import aclosing
from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable

from app.agent.llm import BackendError, GenerationBackend
from app.core.cache import ResponseCache, prompt_fingerprint
from app.core.config import LLM_MAX_RETRIES, RETRY_BASE_DELAY
from app.core.errors import GenerationUnavailableError

logger = logging.getLogger(__name__)

CACHE_SERVICE = "cache"


@dataclass
class GenerationOutcome:
    """Filled in while a generation runs; service names whoever served the answer."""

    service: str | None = None
    attempts: int = 0
    text: str = ""


class GenerationOrchestrator:
    def __init__(
        self,
        primary: GenerationBackend | None,
        fallback: GenerationBackend | None,
        cache: ResponseCache,
        max_retries: int = LLM_MAX_RETRIES,
        retry_base_delay: float = RETRY_BASE_DELAY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.primary = primary
        self.fallback = fallback
        self.cache = cache
        self.max_retries = max(0, max_retries)
        self.retry_base_delay = retry_base_delay
        self._sleep = sleep

    @property
    def configured(self) -> bool:
        return self.primary is not None or self.fallback is not None

    async def _run_backend(
        self, backend: GenerationBackend, prompt: str, parts: list[str]
    ) -> AsyncIterator[str]:
        async with aclosing(backend.stream(prompt)) as chunks:
            async for chunk in chunks:
                parts.append(chunk)
                yield chunk
        if not parts:
            raise BackendError(f"{backend.name} returned an empty response")

    async def stream(self, prompt: str, outcome: GenerationOutcome | None = None) -> AsyncIterator[str]:
        """
        Yield the answer for prompt chunk by chunk.

        Raises GenerationUnavailableError when no backend is configured or every
        configured backend failed. partial=True on the error means some text had
        already been yielded.
        """
        outcome = outcome if outcome is not None else GenerationOutcome()
        key = prompt_fingerprint(prompt)

        cached = self.cache.get(key)
        if cached is not None:
            logger.info("[generation:stream] cache hit key=%s", key[:8])
            outcome.service = CACHE_SERVICE
            outcome.text = cached
            yield cached
            return

        if self.primary is not None:
            for attempt in range(self.max_retries + 1):
                outcome.attempts += 1
                parts: list[str] = []
                try:
                    logger.info("[generation:stream] service=%s retry=%d", self.primary.name, attempt)
                    async with aclosing(self._run_backend(self.primary, prompt, parts)) as chunks:
                        async for chunk in chunks:
                            yield chunk
                except Exception as e:
                    if parts:
                        logger.error("[generation:stream] %s failed mid-stream: %s", self.primary.name, e)
                        raise GenerationUnavailableError("Generation interrupted.", partial=True) from e
                    logger.warning("[generation:stream] %s failed retry=%d error=%s", self.primary.name, attempt, e)
                    if attempt < self.max_retries:
                        delay = self.retry_base_delay * (2 ** attempt)
                        logger.info("[generation:stream] retrying %s delay=%.2fs", self.primary.name, delay)
                        await self._sleep(delay)
                    continue
                outcome.service = self.primary.name
                outcome.text = "".join(parts)
                self.cache.set(key, outcome.text)
                return
        else:
            logger.info("[generation:stream] primary not configured, using fallback directly")

        if self.fallback is not None:
            outcome.attempts += 1
            parts = []
            try:
                logger.info("[generation:stream] switching to fallback service=%s", self.fallback.name)
                async with aclosing(self._run_backend(self.fallback, prompt, parts)) as chunks:
                    async for chunk in chunks:
                        yield chunk
            except Exception as e:
                logger.error("[generation:stream] fallback %s failed: %s", self.fallback.name, e)
                raise GenerationUnavailableError("All LLM services unavailable.", partial=bool(parts)) from e
            outcome.service = self.fallback.name
            outcome.text = "".join(parts)
            return

        if self.configured:
            raise GenerationUnavailableError("All LLM services unavailable.")
        raise GenerationUnavailableError("No LLM service configured.")
