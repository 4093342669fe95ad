"""
Tests for the planning graph: early exits and prompt construction.
"""

from unittest.mock import MagicMock

from app.agent.graph import NO_RESULTS, OUT_OF_SCOPE, READY, build_graph, run_pipeline
from app.services.intent_service import IntentClassifier
from app.services.query_resolver import QueryResolver


def test_out_of_scope_skips_resolution(classifier: IntentClassifier) -> None:
    resolver = MagicMock(spec=QueryResolver)
    final = run_pipeline(build_graph(classifier, resolver), "What's the weather today?")
    assert final["status"] == OUT_OF_SCOPE
    resolver.resolve.assert_not_called()
    assert not final.get("prompt")


def test_no_results_skips_prompt(classifier: IntentClassifier, resolver: QueryResolver) -> None:
    final = run_pipeline(build_graph(classifier, resolver), "Find agent Zzyzx Qwerty")
    assert final["status"] == NO_RESULTS
    assert final["results"] == []
    assert not final.get("prompt")


def test_ready_plan_has_prompt(classifier: IntentClassifier, resolver: QueryResolver) -> None:
    final = run_pipeline(build_graph(classifier, resolver), "  Find agent John Smith ")
    assert final["status"] == READY
    assert final["question"] == "Find agent John Smith"
    assert final["intent"].primary_intent == "AGENT_BY_NAME"
    assert len(final["results"]) == 1
    assert "=== DATABASE RECORDS (1 found) ===" in final["prompt"]
    assert "Name: John Smith" in final["prompt"]
