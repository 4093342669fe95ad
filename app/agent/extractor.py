"""
Rule-based answers used when no generation backend could answer.

Works on the structured contexts the resolver produced; never calls out.
"""

import logging
import re
from typing import Callable

from app.core.errors import ExtractionFailure
from app.services.query_resolver import AgentContext
from app.services.text_processing import normalize_company

logger = logging.getLogger(__name__)

NO_INFORMATION = "No information found in the database."

_COUNT_RE = re.compile(r"total|count|how many|number of|all candidates|all agents")
_WHOLE_DB_RE = re.compile(r"total.*database|all.*database|how many.*total|entire database")
_LOGIN_RE = re.compile(r"login|last\s*login|login\s*time|login\s*date|when.*log")
_COMPANY_RE = re.compile(r"company|work.*at|works.*at|employed|organization|firm")
_EMAIL_RE = re.compile(r"email|contact|mail|reach")
_AGENT_ID_RE = re.compile(r"agent\s*id|agentid|id\s*is|identification")
_NATIONALITY_RE = re.compile(r"nationality|country|from\s*where|origin")
_LIST_RE = re.compile(r"list|all|show.*all|give.*all|candidates|employees|agents|people|members")

_NAME_STOP_WORDS = frozenset({
    "what", "is", "the", "of", "for", "company", "name", "candidate", "work", "at", "works",
    "given", "this", "tell", "me", "about", "who", "where", "when", "how", "does", "do", "can", "will",
})


def _single_company(agents: list[AgentContext]) -> str | None:
    companies = {a.company for a in agents}
    return agents[0].company if len(companies) == 1 else None


def _name_from_question(q: str) -> str:
    words = [w for w in q.split() if w.strip("?.,!") not in _NAME_STOP_WORDS]
    return " ".join(w.strip("?.,!") for w in words).strip()


def format_agent_info(agent: AgentContext) -> str:
    lines = [
        f"Name: {agent.name}",
        f"Company: {agent.company}",
        f"Email: {agent.email}",
        f"AgentID: {agent.agent_id}",
    ]
    if agent.nationality:
        lines.append(f"Nationality: {agent.nationality}")
    if agent.last_login:
        lines.append(f"Last Login: {agent.last_login}")
    return "\n".join(lines)


def format_orphan_summary(orphans: list[AgentContext]) -> str:
    lines = []
    for o in orphans:
        if o.login_id is not None:
            lines.append(
                f"Login ID {o.login_id} belongs to {o.agent_id} on {o.last_login or 'an unknown date'}. "
                f"No agent profile was found for {o.agent_id}."
            )
        else:
            lines.append(
                f"{o.agent_id} has {o.total_logins or 0} login(s), last on {o.last_login or 'an unknown date'}. "
                f"No agent profile was found for {o.agent_id}."
            )
    return "\n".join(lines)


class AnswerExtractor:
    def extract(
        self,
        question: str,
        contexts: list[AgentContext],
        total_agents: int | None = None,
        company_size: Callable[[str], int] | None = None,
    ) -> str:
        """
        Build a short answer from contexts. Raises ExtractionFailure when the
        contexts cannot be turned into an answer.

        company_size counts every agent of a company. It is used for count
        questions that name the company; otherwise counts come from contexts.
        """
        try:
            return self._extract(question, contexts, total_agents, company_size)
        except ExtractionFailure:
            raise
        except Exception as e:
            raise ExtractionFailure("Unable to extract an answer.") from e

    def _extract(
        self,
        question: str,
        contexts: list[AgentContext],
        total_agents: int | None,
        company_size: Callable[[str], int] | None,
    ) -> str:
        q = (question or "").lower().strip()
        agents = [c for c in contexts if c.profile_found and c.name]
        orphans = [c for c in contexts if not c.profile_found]
        logger.info("[extractor:extract] IN  agents=%d orphans=%d", len(agents), len(orphans))

        if not agents:
            return format_orphan_summary(orphans) if orphans else NO_INFORMATION

        if _COUNT_RE.search(q):
            return self._answer_count(q, agents, total_agents, company_size)
        if _LOGIN_RE.search(q):
            return self._answer_login(agents)
        if _COMPANY_RE.search(q):
            return self._answer_company(q, agents)
        if _EMAIL_RE.search(q):
            return self._pairs(agents, lambda a: f"{a.name}'s email: {a.email}", lambda a: f"{a.name}: {a.email}")
        if _AGENT_ID_RE.search(q):
            return self._pairs(agents, lambda a: f"{a.name}'s AgentID: {a.agent_id}", lambda a: f"{a.name}: {a.agent_id}")
        if _NATIONALITY_RE.search(q):
            return self._pairs(
                agents, lambda a: f"{a.name} is from {a.nationality}.", lambda a: f"{a.name}: {a.nationality}"
            )
        if _LIST_RE.search(q):
            return self._answer_list(agents)
        return format_agent_info(agents[0])

    @staticmethod
    def _pairs(agents: list[AgentContext], single, each) -> str:
        if len(agents) == 1:
            return single(agents[0])
        return "\n".join(each(a) for a in agents)

    @staticmethod
    def _answer_count(
        q: str,
        agents: list[AgentContext],
        total_agents: int | None,
        company_size: Callable[[str], int] | None,
    ) -> str:
        if _WHOLE_DB_RE.search(q):
            if total_agents is not None:
                return f"Total agents in the database: {total_agents}"
            return f"Unable to count total database records. Found {len(agents)} matching your query."
        company = _single_company(agents)
        if company:
            count = len(agents)
            # Contexts are truncated; a question naming the company gets its full headcount
            if company_size and normalize_company(company) in normalize_company(q):
                count = max(count, company_size(company))
            return f"There are {count} agent(s) from {company}."
        return f"Found {len(agents)} agent(s) matching your query."

    @staticmethod
    def _answer_login(agents: list[AgentContext]) -> str:
        if len(agents) == 1:
            a = agents[0]
            if a.last_login:
                total = f" Total logins: {a.total_logins}" if a.total_logins else ""
                return f"{a.name} last logged in on {a.last_login}.{total}"
            return f"No login information available for {a.name}. Login records may not be linked to AgentID {a.agent_id}."
        return "\n".join(f"{a.name}: {a.last_login or 'No login data'}" for a in agents)

    @staticmethod
    def _answer_company(q: str, agents: list[AgentContext]) -> str:
        wanted = _name_from_question(q)
        if wanted and len(agents) > 1:
            for a in agents:
                name = a.name.lower()
                if wanted in name or all(part in name for part in wanted.split()):
                    return f"{a.name} works at {a.company}."
        if len(agents) == 1:
            return f"{agents[0].name} works at {agents[0].company}."
        company = _single_company(agents)
        if company:
            return f"Agents from {company}:\n\n" + "\n".join(f"{i}. {a.name}" for i, a in enumerate(agents, start=1))
        return "\n".join(f"{i}. {a.name} - {a.company}" for i, a in enumerate(agents, start=1))

    @staticmethod
    def _answer_list(agents: list[AgentContext]) -> str:
        if len(agents) == 1:
            return format_agent_info(agents[0])
        company = _single_company(agents)
        if company:
            return f"Agents from {company}:\n\n" + "\n".join(f"{i}. {a.name}" for i, a in enumerate(agents, start=1))
        return f"Found {len(agents)} agents:\n\n" + "\n".join(
            f"{i}. {a.name} ({a.company})" for i, a in enumerate(agents, start=1)
        )
