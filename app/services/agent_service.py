"""
Agent: orchestrate query understanding, retrieval, and answer generation.

Responsibility: own the long-lived service objects (record store, entity
index, planning graph, generation orchestrator, extractor), plan an answer
for a question and stream it. Called by the API; no HTTP here.
"""

import logging
from contextlib import aclosing
from dataclasses import dataclass
from typing import AsyncIterator

from app.agent.extractor import AnswerExtractor
from app.agent.generation import GenerationOrchestrator, GenerationOutcome
from app.agent.graph import (
    NO_RESULTS,
    NO_RESULTS_MESSAGE,
    OUT_OF_SCOPE,
    OUT_OF_SCOPE_MESSAGE,
    PipelineState,
    build_graph,
    run_pipeline,
)
from app.agent.llm import GenerationBackend, build_fallback_backend, build_primary_backend
from app.core.cache import ResponseCache
from app.core.errors import ExtractionFailure, GenerationUnavailableError, ValidationError
from app.services.entity_index import EntityIndex
from app.services.intent_service import IntentClassifier
from app.services.query_resolver import QueryResolver
from app.services.record_store import RecordStore

logger = logging.getLogger(__name__)

APOLOGY_MESSAGE = "Unable to process your query. Please try again."


@dataclass
class AgentServices:
    store: RecordStore
    index: EntityIndex
    classifier: IntentClassifier
    resolver: QueryResolver
    graph: object
    generator: GenerationOrchestrator
    extractor: AnswerExtractor


def build_services(
    store: RecordStore | None = None,
    primary: GenerationBackend | None = None,
    fallback: GenerationBackend | None = None,
    cache: ResponseCache | None = None,
    use_configured_backends: bool = True,
) -> AgentServices:
    """
    Load the records once and wire every service around the resulting index.
    Backends default to the configured ones unless use_configured_backends is False.
    """
    store = store or RecordStore()
    records = store.load_all()
    index = EntityIndex.from_records(records)
    classifier = IntentClassifier()
    resolver = QueryResolver(index)
    if use_configured_backends:
        primary = primary or build_primary_backend()
        fallback = fallback or build_fallback_backend()
    generator = GenerationOrchestrator(primary, fallback, cache or ResponseCache())
    logger.info(
        "[agent_service:build_services] agents=%d logins=%d primary=%s fallback=%s",
        index.agent_count, index.login_count,
        getattr(primary, "name", None), getattr(fallback, "name", None),
    )
    return AgentServices(
        store=store,
        index=index,
        classifier=classifier,
        resolver=resolver,
        graph=build_graph(classifier, resolver),
        generator=generator,
        extractor=AnswerExtractor(),
    )


def plan_answer(services: AgentServices, question: str) -> PipelineState:
    """Classify, resolve and build the prompt. Raises ValidationError on an empty question."""
    if not question or not str(question).strip():
        raise ValidationError("Question is required.")
    return run_pipeline(services.graph, str(question))


async def stream_answer(services: AgentServices, plan: PipelineState) -> AsyncIterator[str]:
    """
    Yield the answer text for a planned question.

    Out-of-scope and empty plans yield their fixed message. When generation is
    unavailable the extractor answers from the resolved contexts; if the stream
    had already started, it simply ends.
    """
    status = plan.get("status")
    if status == OUT_OF_SCOPE:
        yield OUT_OF_SCOPE_MESSAGE
        return
    if status == NO_RESULTS:
        yield NO_RESULTS_MESSAGE
        return

    question = plan["question"]
    outcome = GenerationOutcome()
    try:
        async with aclosing(services.generator.stream(plan["prompt"], outcome)) as chunks:
            async for chunk in chunks:
                yield chunk
        logger.info("[agent_service:stream_answer] OUT service=%s attempts=%d", outcome.service, outcome.attempts)
        return
    except GenerationUnavailableError as e:
        if e.partial:
            logger.error("[agent_service:stream_answer] stream interrupted after partial output: %s", e.message)
            return
        logger.error("[agent_service:stream_answer] all LLM services failed, using answer extractor: %s", e.message)

    contexts = [r.context for r in plan.get("results") or []]
    try:
        answer = services.extractor.extract(
            question, contexts, total_agents=services.index.agent_count, company_size=services.index.company_size
        )
        logger.info("[agent_service:stream_answer] answer extracted len=%d", len(answer))
    except ExtractionFailure:
        logger.exception("[agent_service:stream_answer] answer extractor failed")
        answer = APOLOGY_MESSAGE
    yield answer
