"""
Query resolution: turn a question plus its intents into ranked context records.

Pipeline: analytics (for ranking intents) → login id → AgentID/email →
nationality → company → name (exact, fuzzy, token). Stops at the first stage
that finds anything; results are deduplicated by agent and cut to the
intent's result limit.
"""

import logging
import re
from dataclasses import dataclass, replace
from typing import Callable

from app.core.config import AGENT_ID_PATTERN, ANALYTICS_LIMIT, EMAIL_PATTERN, LOGIN_ID_PATTERN
from app.schemas.records import AgentRecord, LoginEvent
from app.services.entity_index import EntityIndex, agent_key
from app.services.intent_service import IntentResult
from app.services.text_processing import clean_text, normalize_company, normalize_key, tokenize

logger = logging.getLogger(__name__)

_EMAIL_RE = re.compile(EMAIL_PATTERN)
_AGENT_ID_RE = re.compile(AGENT_ID_PATTERN, re.IGNORECASE)
_LOGIN_ID_RE = re.compile(LOGIN_ID_PATTERN, re.IGNORECASE)
_NATIONALITY_VOCAB_RE = re.compile(r"\b(nationality|from|country|citizen|origin)\b")
_COMPANY_VOCAB_RE = re.compile(r"\bcompany\b|\ball agents?\b|\blist agents?\b|\bworks? (at|for)\b")

HISTORY_SIZE = 5

COMPANY_STOP_WORDS = frozenset({
    "company", "companies", "all", "agent", "agents", "list", "show", "from", "work", "works",
    "working", "the", "how", "many", "are", "there", "who", "which", "what", "give", "tell",
    "count", "total", "number", "employed", "does", "did", "find", "get", "please", "with",
    "name", "named", "under", "belong", "belongs", "for", "every",
})

NAME_STOP_WORDS = frozenset({
    "what", "is", "the", "of", "for", "tell", "me", "about", "whose", "with", "ends", "starts",
    "person", "company", "name", "agent", "agents", "details", "give", "show", "find", "search",
    "get", "which", "where", "does", "work", "works", "from", "in", "an", "their", "his", "her",
    "has", "have", "can", "you", "please", "all", "last", "login", "logins", "logged", "date",
    "dates", "full", "who", "when", "how", "did", "do", "info", "information", "profile", "email",
    "id", "agentid", "nationality", "country", "times", "many", "much", "most", "recent", "first",
    "history", "count", "total", "number", "was", "are", "on", "at", "to", "be", "it", "its",
})

ANALYTICS_INTENTS = frozenset({"MOST_ACTIVE", "LEAST_ACTIVE", "INACTIVE_AGENTS", "AGENTS_NOT_IN_PROFILE", "MULTIPLE_AGENTIDS"})


@dataclass(frozen=True)
class AgentContext:
    """Structured form of one context record; the text snippet is rendered from it."""

    agent_id: str = ""
    name: str = ""
    email: str = ""
    company: str = ""
    nationality: str = ""
    created: str = ""
    last_login: str | None = None
    total_logins: int | None = None
    first_login: str | None = None
    login_history: tuple[str, ...] = ()
    profile_found: bool = True
    login_id: int | None = None


@dataclass(frozen=True)
class SearchResult:
    identifier: str
    content: str
    score: float
    context: AgentContext


def _or_na(value: str | None) -> str:
    return value if value else "N/A"


def format_context(ctx: AgentContext) -> str:
    """Render a context record as the labelled text block shown to the model."""
    if not ctx.profile_found and ctx.login_id is not None:
        return (
            f"Login Record (ID: {ctx.login_id}):\n"
            f"- Agent: {ctx.agent_id}\n"
            f"- Login Date: {_or_na(ctx.last_login)}\n"
            f"- Note: No agent profile found in database"
        )
    if not ctx.profile_found:
        lines = [
            f"Login Information for {ctx.agent_id}:",
            f"- Last Login Date: {_or_na(ctx.last_login)}",
            f"- Total Logins: {ctx.total_logins or 0}",
        ]
        if ctx.first_login:
            lines.append(f"- First Login Date: {ctx.first_login}")
        if len(ctx.login_history) > 1:
            lines.append(f"- Login History: {', '.join(ctx.login_history)}")
        lines.append("- Note: No agent profile found in database")
        return "\n".join(lines)

    lines = [
        f"AgentID: {_or_na(ctx.agent_id)}",
        f"Name: {_or_na(ctx.name)}",
        f"Email: {_or_na(ctx.email)}",
        f"Company: {_or_na(ctx.company)}",
        f"Nationality: {_or_na(ctx.nationality)}",
        f"Created: {_or_na(ctx.created)}",
    ]
    if ctx.last_login:
        lines.append(f"Last Login: {ctx.last_login}")
    if ctx.total_logins is not None:
        lines.append(f"Total Logins: {ctx.total_logins}")
    if ctx.first_login:
        lines.append(f"First Login: {ctx.first_login}")
    if len(ctx.login_history) > 1:
        lines.append(f"Login History: {', '.join(ctx.login_history)}")
    return "\n".join(lines)


class _Collector:
    """Accumulates results, skipping any agent or identifier already collected."""

    def __init__(self) -> None:
        self.results: list[SearchResult] = []
        self._seen: set[str] = set()

    def add(self, identifier: str, ctx: AgentContext, score: float) -> None:
        key = normalize_key(identifier)
        if not key or key in self._seen:
            return
        self._seen.add(key)
        self.results.append(SearchResult(identifier=identifier, content=format_context(ctx), score=score, context=ctx))


class QueryResolver:
    def __init__(self, index: EntityIndex, analytics_limit: int = ANALYTICS_LIMIT) -> None:
        self.index = index
        self.analytics_limit = analytics_limit

    # --- Context building ---

    def agent_context(self, agent: AgentRecord, include_logins: bool = True, full_history: bool = False) -> AgentContext:
        ctx = AgentContext(
            agent_id=agent.agent_id,
            name=agent.name,
            email=agent.email,
            company=agent.company,
            nationality=agent.nationality,
            created=agent.created,
        )
        if not include_logins:
            return ctx
        events = self.index.logins_for_agent(agent)
        if not events:
            return replace(ctx, last_login=agent.last_login)
        return replace(
            ctx,
            last_login=events[0].login_date,
            total_logins=len(events),
            first_login=events[-1].login_date if full_history else None,
            login_history=tuple(e.login_date for e in events[:HISTORY_SIZE]) if full_history else (),
        )

    @staticmethod
    def orphan_context(identifier: str, events: list[LoginEvent], full_history: bool = False) -> AgentContext:
        return AgentContext(
            agent_id=identifier,
            last_login=events[0].login_date if events else None,
            total_logins=len(events),
            first_login=events[-1].login_date if (full_history and events) else None,
            login_history=tuple(e.login_date for e in events[:HISTORY_SIZE]) if full_history else (),
            profile_found=False,
        )

    def _add_agent(self, out: _Collector, agent: AgentRecord, score: float, intent: IntentResult) -> None:
        ctx = self.agent_context(agent, intent.needs_login_data, intent.needs_login_history)
        out.add(agent_key(agent), ctx, score)

    # --- Stages ---

    def _analytics_stage(self, question: str, intent: IntentResult, out: _Collector) -> None:
        # Highest-priority analytics intent; "Who is the most active agent?" also matches AGENT_BY_NAME
        primary = next((label for label in intent.labels if label in ANALYTICS_INTENTS), None)
        if primary is None:
            return
        if primary in ("MOST_ACTIVE", "LEAST_ACTIVE"):
            tallies = (
                self.index.most_active(self.analytics_limit)
                if primary == "MOST_ACTIVE"
                else self.index.least_active(self.analytics_limit)
            )
            for rank, tally in enumerate(tallies):
                ctx = self.agent_context(tally.agent, include_logins=True)
                out.add(agent_key(tally.agent), ctx, float(100 - rank))
        elif primary == "INACTIVE_AGENTS":
            agents = self.index.never_logged_in() or [t.agent for t in self.index.least_active(self.analytics_limit)]
            for agent in agents:
                self._add_agent(out, agent, 100.0, intent)
        elif primary == "AGENTS_NOT_IN_PROFILE":
            for identifier in self.index.orphan_login_identifiers():
                events = self.index.logins_for(identifier)
                out.add(identifier, self.orphan_context(identifier, events, intent.needs_login_history), 100.0)
        else:
            for group in self.index.shared_contact_groups():
                for agent in group:
                    self._add_agent(out, agent, 100.0, intent)

    def _login_id_stage(self, question: str, intent: IntentResult, out: _Collector) -> None:
        for raw_id in _LOGIN_ID_RE.findall(question):
            event = self.index.login_by_id(raw_id)
            if event is None:
                continue
            agent = self.index.resolve_identifier(event.agent_id)
            if agent is not None:
                ctx = self.agent_context(agent, include_logins=True, full_history=intent.needs_login_history)
                out.add(agent_key(agent), ctx, 100.0)
            else:
                ctx = AgentContext(
                    agent_id=event.agent_id.strip(),
                    last_login=event.login_date,
                    profile_found=False,
                    login_id=event.login_id,
                )
                out.add(f"LOGIN_{event.login_id}", ctx, 100.0)

    def _identifier_stage(self, question: str, intent: IntentResult, out: _Collector) -> None:
        identifiers = _EMAIL_RE.findall(question) + _AGENT_ID_RE.findall(question)
        for identifier in identifiers:
            agent = self.index.resolve_identifier(identifier) or self.index.resolve_identifier(identifier.lstrip("-"))
            if agent is not None:
                self._add_agent(out, agent, 100.0, intent)
                continue
            events = self.index.logins_for(identifier) or self.index.logins_for(identifier.lstrip("-"))
            if events:
                out.add(identifier, self.orphan_context(identifier, events, intent.needs_login_history), 100.0)

    def _nationality_stage(self, question: str, intent: IntentResult, out: _Collector) -> None:
        lowered = question.lower()
        if not _NATIONALITY_VOCAB_RE.search(lowered):
            return
        for agent in self.index.agents_by_nationality(lowered):
            self._add_agent(out, agent, 100.0, intent)

    def _company_stage(self, question: str, intent: IntentResult, out: _Collector) -> None:
        normalized = normalize_company(question)
        if not _COMPANY_VOCAB_RE.search(normalized):
            return
        tokens = [t for t in tokenize(normalized) if t not in COMPANY_STOP_WORDS]
        if not tokens:
            return
        for match in self.index.fuzzy_match_company(" ".join(tokens)):
            for agent in match.agents:
                self._add_agent(out, agent, match.score, intent)

    def _name_stage(self, question: str, intent: IntentResult, out: _Collector) -> None:
        tokens = [t for t in tokenize(question, min_length=2) if t not in NAME_STOP_WORDS]
        for match in self.index.fuzzy_match_name(tokens):
            self._add_agent(out, match.agent, match.score, intent)

    def _stages(self) -> list[Callable[[str, IntentResult, _Collector], None]]:
        return [
            self._analytics_stage,
            self._login_id_stage,
            self._identifier_stage,
            self._nationality_stage,
            self._company_stage,
            self._name_stage,
        ]

    def resolve(self, question: str, intent: IntentResult) -> list[SearchResult]:
        """Run the stages in order; the first stage that collects anything decides the result."""
        cleaned = clean_text(question)
        logger.info("[resolver:resolve] IN  question=%r primary=%s limit=%d", cleaned, intent.primary_intent, intent.result_limit)
        out = _Collector()
        for stage in self._stages():
            stage(cleaned, intent, out)
            if out.results:
                logger.info("[resolver:resolve] stage=%s results=%d", stage.__name__, len(out.results))
                break
        results = out.results[: intent.result_limit]
        logger.info(
            "[resolver:resolve] OUT results=%d ids=%s",
            len(results), [(r.identifier, r.score) for r in results],
        )
        return results
