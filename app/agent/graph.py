"""
LangGraph pipeline: classify intent → resolve context → build prompt.

Planning only; generation is streamed separately by the orchestrator so that
the HTTP layer can start the response once a prompt exists. Two early exits:
out-of-scope questions skip the index entirely, and an empty resolution skips
prompt building.
"""

import logging
from typing import Literal, TypedDict

from langgraph.graph import END, StateGraph

from app.services.intent_service import IntentClassifier, IntentResult
from app.services.prompt_service import build_prompt
from app.services.query_resolver import QueryResolver, SearchResult

logger = logging.getLogger(__name__)

READY = "ready"
OUT_OF_SCOPE = "out_of_scope"
NO_RESULTS = "no_results"

OUT_OF_SCOPE_MESSAGE = (
    "I can only answer questions about travel agent profiles and login history. Please ask something like:\n"
    "- 'Find agent John Smith'\n"
    "- 'Show all agents from ABC Company'\n"
    "- 'When did CHAGT001 last login?'\n"
    "- 'How many times did agent@email.com login?'"
)
NO_RESULTS_MESSAGE = "No matching records found in the database for your query."


class PipelineState(TypedDict, total=False):
    question: str
    intent: IntentResult
    results: list[SearchResult]
    prompt: str
    status: str


def build_graph(classifier: IntentClassifier, resolver: QueryResolver):
    """
    Build and compile the planning graph.
    classify_intent → (END if out of scope) → resolve_context → (END if empty) → build_prompt → END.
    """

    def _classify_node(state: PipelineState) -> dict:
        question = state.get("question") or ""
        intent = classifier.classify(question)
        if intent.is_out_of_scope:
            logger.info("[graph:classify_intent] out of scope question=%r", question)
            return {"intent": intent, "status": OUT_OF_SCOPE}
        return {"intent": intent}

    def _resolve_node(state: PipelineState) -> dict:
        results = resolver.resolve(state["question"], state["intent"])
        if not results:
            logger.info("[graph:resolve_context] no results question=%r", state["question"])
            return {"results": [], "status": NO_RESULTS}
        return {"results": results}

    def _prompt_node(state: PipelineState) -> dict:
        contexts = [r.content for r in state.get("results") or []]
        prompt = build_prompt(state["question"], contexts, state["intent"])
        logger.info("[graph:build_prompt] OUT prompt_len=%d records=%d", len(prompt), len(contexts))
        return {"prompt": prompt, "status": READY}

    def _route_after_classify(state: PipelineState) -> Literal["resolve_context", "__end__"]:
        return END if state.get("status") == OUT_OF_SCOPE else "resolve_context"

    def _route_after_resolve(state: PipelineState) -> Literal["build_prompt", "__end__"]:
        return END if state.get("status") == NO_RESULTS else "build_prompt"

    graph = StateGraph(PipelineState)

    graph.add_node("classify_intent", _classify_node)
    graph.add_node("resolve_context", _resolve_node)
    graph.add_node("build_prompt", _prompt_node)

    graph.set_entry_point("classify_intent")
    graph.add_conditional_edges("classify_intent", _route_after_classify)
    graph.add_conditional_edges("resolve_context", _route_after_resolve)
    graph.add_edge("build_prompt", END)

    return graph.compile()


def run_pipeline(graph, question: str) -> PipelineState:
    """Run the planning graph for one question and return the final state."""
    q = (question or "").strip()
    logger.info("[run_pipeline] START question=%r", q)
    initial: PipelineState = {"question": q, "results": [], "prompt": "", "status": ""}
    final = graph.invoke(initial)
    logger.info(
        "[run_pipeline] END status=%s primary=%s results=%d",
        final.get("status"), getattr(final.get("intent"), "primary_intent", None), len(final.get("results") or []),
    )
    return final
