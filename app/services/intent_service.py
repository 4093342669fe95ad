"""
Intent classification: detect what kind of question was asked and which data it needs.

Multi-label: every intent whose pattern matches is kept. The primary intent is
the match with the lowest priority value. Priorities follow the order the
intents were historically declared in, so changing one is an explicit edit.
"""

import logging
import re
from dataclasses import dataclass, field

from app.core.config import DEFAULT_RESULT_LIMIT, LIST_RESULT_LIMIT

logger = logging.getLogger(__name__)

PROFILE = "profile"
LOGINS = "logins"
UNKNOWN_INTENT = "UNKNOWN"
OUT_OF_SCOPE = "OUT_OF_SCOPE"


@dataclass(frozen=True)
class IntentDefinition:
    label: str
    pattern: re.Pattern
    data_needed: frozenset[str]
    description: str
    priority: int
    is_list: bool = False
    full_history: bool = False

    def matches(self, question: str) -> bool:
        return bool(self.pattern.search(question))


@dataclass(frozen=True)
class MatchedIntent:
    label: str
    description: str
    data_needed: frozenset[str]


@dataclass(frozen=True)
class IntentResult:
    intents: tuple[MatchedIntent, ...] = ()
    primary_intent: str = UNKNOWN_INTENT
    is_list_query: bool = False
    is_out_of_scope: bool = False
    needs_login_data: bool = False
    needs_profile_data: bool = False
    needs_login_history: bool = False
    result_limit: int = DEFAULT_RESULT_LIMIT
    data_needed: frozenset[str] = field(default_factory=frozenset)

    @property
    def labels(self) -> list[str]:
        return [i.label for i in self.intents]

    def has(self, label: str) -> bool:
        return any(i.label == label for i in self.intents)


def _intent(label, pattern, data_needed, description, priority, is_list=False, full_history=False):
    return IntentDefinition(
        label=label,
        pattern=re.compile(pattern, re.IGNORECASE),
        data_needed=frozenset(data_needed),
        description=description,
        priority=priority,
        is_list=is_list,
        full_history=full_history,
    )


INTENT_DEFINITIONS: tuple[IntentDefinition, ...] = (
    _intent("AGENT_BY_EMAIL", r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}",
            (PROFILE, LOGINS), "Find agent by email", 10),
    _intent("AGENT_BY_ID", r"CHAGT\d+",
            (PROFILE, LOGINS), "Find agent by AgentID", 20),
    _intent("LOGIN_BY_ID", r"\b(?:login\s*)?id\s*\d+\b|\bat\s*(?:login\s*)?id\s*\d+",
            (LOGINS, PROFILE), "Find login by ID", 30),
    _intent("AGENT_BY_NAME", r"who is|find|details|info|tell me about|profile|agent.*name",
            (PROFILE, LOGINS), "Find agent by name", 40),
    _intent("LAST_LOGIN", r"last\s*(login|seen|active|access|time)|when.*last.*login|most\s*recent\s*login",
            (PROFILE, LOGINS), "Get last login date", 50),
    _intent("FIRST_LOGIN", r"first\s*(login|recorded|entry)|earliest\s*login",
            (LOGINS,), "Get first login date", 60, full_history=True),
    _intent("LOGIN_COUNT", r"how many times.*login|login\s*count|total\s*login|frequency|times.*login",
            (LOGINS, PROFILE), "Count logins", 70),
    _intent("LOGIN_HISTORY", r"login\s*history|all\s*login|when.*login|login.*dates",
            (LOGINS, PROFILE), "Full login history", 80, full_history=True),
    _intent("INACTIVE_AGENTS", r"not\s*login|inactive|haven.t\s*login|no\s*login|dormant|never\s*logged",
            (PROFILE, LOGINS), "Agents who haven't logged in", 90),
    _intent("MOST_ACTIVE", r"most\s*(active|login)|highest\s*login|top\s*agent|who.*logged.*most|most\s*frequent",
            (LOGINS, PROFILE), "Most active agents", 100, is_list=True),
    _intent("LEAST_ACTIVE", r"least\s*(active|login)|lowest\s*login|fewest\s*login|who.*logged.*least",
            (LOGINS, PROFILE), "Least active agents", 110, is_list=True),
    _intent("RECENT_LOGINS", r"recent|latest|today|this\s*week|this\s*month|last\s*\d+\s*days|on\s*\d{4}",
            (LOGINS, PROFILE), "Recently logged in agents", 120, is_list=True),
    _intent("ALL_AGENTS_COMPANY", r"all\s*agent|list\s*agent|who\s*work|agent.*company|company.*agent|agents?\s*from",
            (PROFILE, LOGINS), "List all agents in a company", 130, is_list=True),
    _intent("COMPANY_COUNT", r"how\s*many.*company|count.*agent.*company|total.*agent.*company",
            (PROFILE,), "Count agents per company", 140),
    _intent("NATIONALITY_SEARCH", r"nationality|citizen|from\s+[A-Z][a-z]+|country|agents?\s*from\s*[A-Z]",
            (PROFILE, LOGINS), "Search by nationality", 150, is_list=True),
    _intent("COUNT_QUERY", r"how\s*many|count|total|number\s*of",
            (PROFILE, LOGINS), "Count/aggregate query", 160, is_list=True),
    _intent("DATE_RANGE", r"between|from\s+\d|to\s+\d|after|before|since|until|\d{4}-\d{2}-\d{2}|on\s*\d{4}",
            (LOGINS, PROFILE), "Date range query", 170, full_history=True),
    _intent("MULTIPLE_AGENTIDS", r"multiple\s*agent|different\s*agent|same\s*email|duplicate",
            (PROFILE, LOGINS), "Agents with multiple AgentIDs", 180),
    _intent("DIRTY_DATA", r"dirty\s*data|spaces\s*in|mixed\s*case|data\s*quality|inconsistent",
            (PROFILE, LOGINS), "Detect dirty data", 190),
    _intent("AGENTS_NOT_IN_PROFILE", r"not\s*in\s*profile|login.*not.*profile|missing\s*profile",
            (LOGINS, PROFILE), "Agents in login data but not in profile", 200, is_list=True),
    _intent("LIST_ALL", r"list\s*all|show\s*all|every\s*agent|all\s*agents|give\s*me\s*all",
            (PROFILE,), "List all agents", 210, is_list=True),
    _intent(OUT_OF_SCOPE, r"weather|news|joke|capital\s*of|who\s*is\s*president|stock\s*price|recipe",
            (), "Not related to travel agent database", 220),
)


class IntentClassifier:
    def __init__(self, definitions: tuple[IntentDefinition, ...] = INTENT_DEFINITIONS) -> None:
        self.definitions = tuple(sorted(definitions, key=lambda d: d.priority))

    def classify(self, question: str) -> IntentResult:
        matched = [d for d in self.definitions if d.matches(question or "")]
        data_needed = frozenset(tag for d in matched for tag in d.data_needed)
        is_list = any(d.is_list for d in matched)
        result = IntentResult(
            intents=tuple(MatchedIntent(d.label, d.description, d.data_needed) for d in matched),
            primary_intent=matched[0].label if matched else UNKNOWN_INTENT,
            is_list_query=is_list,
            is_out_of_scope=any(d.label == OUT_OF_SCOPE for d in matched),
            needs_login_data=LOGINS in data_needed,
            needs_profile_data=PROFILE in data_needed,
            needs_login_history=any(d.full_history for d in matched),
            result_limit=LIST_RESULT_LIMIT if is_list else DEFAULT_RESULT_LIMIT,
            data_needed=data_needed,
        )
        logger.info(
            "[intent:classify] IN  question=%r OUT primary=%s intents=%s list=%s out_of_scope=%s",
            question, result.primary_intent, result.labels, result.is_list_query, result.is_out_of_scope,
        )
        return result


def classify_intent(question: str) -> IntentResult:
    """Classify with the default intent definitions."""
    return IntentClassifier().classify(question)
