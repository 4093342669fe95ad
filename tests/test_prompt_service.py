"""
Unit tests for prompt building.
"""

from app.services.intent_service import IntentClassifier, IntentResult
from app.services.prompt_service import DEFAULT_INSTRUCTION, build_intent_instructions, build_prompt


def test_prompt_numbers_records_and_states_count(classifier: IntentClassifier) -> None:
    intent = classifier.classify("When did CHAGT001 last login?")
    prompt = build_prompt("When did CHAGT001 last login?", ["AgentID: CHAGT001", "AgentID: CHAGT002"], intent)
    assert "[Record 1]\nAgentID: CHAGT001" in prompt
    assert "[Record 2]\nAgentID: CHAGT002" in prompt
    assert "=== DATABASE RECORDS (2 found) ===" in prompt
    assert prompt.rstrip().endswith("=== YOUR ANSWER ===")
    assert "When did CHAGT001 last login?" in prompt


def test_intent_specific_rules_included(classifier: IntentClassifier) -> None:
    intent = classifier.classify("When did CHAGT001 last login?")
    rules = build_intent_instructions(intent)
    assert "'last login' questions" in rules


def test_default_rule_when_no_intent() -> None:
    assert build_intent_instructions(IntentResult()) == DEFAULT_INSTRUCTION


def test_prompt_is_deterministic(classifier: IntentClassifier) -> None:
    intent = classifier.classify("Show all agents from ABC Company")
    contexts = ["Name: John Smith", "Name: Priya Sharma"]
    first = build_prompt("Show all agents from ABC Company", contexts, intent)
    second = build_prompt("Show all agents from ABC Company", list(contexts), classifier.classify("Show all agents from ABC Company"))
    assert first == second
