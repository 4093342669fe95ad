"""
Entity index: in-memory lookup structures over agent profiles and login events.

Responsibility: identifier lookup, login history, fuzzy name/company matching,
token search, nationality grouping, and login analytics. Built once from the
full record set; a reload builds a new index instead of mutating this one.

Scores are ordinal ranking hints, not calibrated probabilities.
"""

import logging
import re
from collections import defaultdict
from dataclasses import dataclass
from typing import Iterable

from app.core.config import (
    COMPANY_SIMILARITY_THRESHOLD,
    COMPANY_WORD_SIMILARITY_THRESHOLD,
    FUZZY_MATCH_LIMIT,
    NAME_SIMILARITY_THRESHOLD,
)
from app.schemas.records import AgentRecord, LoginEvent
from app.services.record_store import RecordSet
from app.services.text_processing import (
    name_tokens,
    newest_first_key,
    normalize_company,
    normalize_key,
    similarity,
    tokenize,
)

logger = logging.getLogger(__name__)

# Words that say nothing about which company is meant
COMPANY_GENERIC_WORDS = frozenset({
    "and", "the", "of", "company", "pvt", "ltd", "inc", "llc", "limited", "private",
})


@dataclass(frozen=True)
class NameMatch:
    agent: AgentRecord
    score: float


@dataclass(frozen=True)
class CompanyMatch:
    company: str
    agents: tuple[AgentRecord, ...]
    score: float


@dataclass(frozen=True)
class LoginTally:
    agent: AgentRecord
    total_logins: int
    last_login: str | None


def agent_key(agent: AgentRecord) -> str:
    """Primary identity of an agent: its AgentID, or its email when the id is blank."""
    return normalize_key(agent.agent_id) or normalize_key(agent.email)


def sort_newest_first(events: Iterable[LoginEvent]) -> list[LoginEvent]:
    return sorted(events, key=lambda e: newest_first_key(e.login_date), reverse=True)


class EntityIndex:
    def __init__(self, agents: Iterable[AgentRecord], logins: Iterable[LoginEvent]) -> None:
        self._agents: tuple[AgentRecord, ...] = tuple(agents)
        self._logins: tuple[LoginEvent, ...] = tuple(logins)

        self._by_primary: dict[str, AgentRecord] = {}
        self._by_identifier: dict[str, AgentRecord] = {}
        self._by_name: dict[str, list[AgentRecord]] = defaultdict(list)
        self._by_company: dict[str, list[AgentRecord]] = defaultdict(list)
        self._company_display: dict[str, str] = {}
        self._by_nationality: dict[str, list[AgentRecord]] = defaultdict(list)
        self._by_contact: dict[str, list[AgentRecord]] = defaultdict(list)
        self._token_index: dict[str, set[str]] = defaultdict(set)
        self._logins_by_identifier: dict[str, list[LoginEvent]] = defaultdict(list)
        self._logins_by_id: dict[int, LoginEvent] = {}
        self._login_totals: dict[str, int] = {}

        self._build()

    @classmethod
    def from_records(cls, records: RecordSet) -> "EntityIndex":
        return cls(records.agents, records.logins)

    def _build(self) -> None:
        for agent in self._agents:
            key = agent_key(agent)
            if not key:
                continue
            self._by_primary.setdefault(key, agent)
            if agent.agent_id:
                self._by_identifier.setdefault(normalize_key(agent.agent_id), agent)
            name_key = " ".join(name_tokens(agent.name))
            if name_key:
                self._by_name[name_key].append(agent)
            company_key = normalize_company(agent.company)
            if company_key:
                self._by_company[company_key].append(agent)
                self._company_display.setdefault(company_key, agent.company.strip())
            nationality_key = normalize_key(agent.nationality)
            if nationality_key:
                self._by_nationality[nationality_key].append(agent)
            for token in tokenize(f"{agent.name} {agent.email} {agent.agent_id} {agent.company}"):
                self._token_index[token].add(key)

        # Contact ids go in after every primary id so a primary id always wins a collision
        for agent in self._agents:
            contact = normalize_key(agent.email)
            if contact:
                self._by_identifier.setdefault(contact, agent)
                self._by_contact[contact].append(agent)

        for event in self._logins:
            self._logins_by_id.setdefault(event.login_id, event)
            # Filed under the identifier as written; agents merge their own forms on read
            raw = normalize_key(event.agent_id)
            if raw:
                self._logins_by_identifier[raw].append(event)

        for key, agent in self._by_primary.items():
            self._login_totals[key] = len(self.logins_for_agent(agent))

        logger.info(
            "[entity_index:build] agents=%d companies=%d nationalities=%d keywords=%d logins=%d",
            len(self._by_primary), len(self._by_company), len(self._by_nationality),
            len(self._token_index), len(self._logins_by_id),
        )

    # --- Sizes ---

    @property
    def agents(self) -> tuple[AgentRecord, ...]:
        return self._agents

    @property
    def agent_count(self) -> int:
        return len(self._agents)

    @property
    def company_count(self) -> int:
        return len(self._by_company)

    def company_size(self, company: str | None) -> int:
        """Number of agents whose normalized company equals company's."""
        return len(self._by_company.get(normalize_company(company), ()))

    @property
    def nationality_count(self) -> int:
        return len(self._by_nationality)

    @property
    def login_count(self) -> int:
        return len(self._logins_by_id)

    # --- Identifiers and logins ---

    def resolve_identifier(self, identifier: str | None) -> AgentRecord | None:
        """AgentID or email, any case, surrounding spaces ignored."""
        return self._by_identifier.get(normalize_key(identifier))

    def get_agent(self, key: str) -> AgentRecord | None:
        return self._by_primary.get(normalize_key(key))

    def login_by_id(self, login_id: int | str) -> LoginEvent | None:
        try:
            return self._logins_by_id.get(int(login_id))
        except (TypeError, ValueError):
            return None

    def logins_for_agent(self, agent: AgentRecord) -> list[LoginEvent]:
        """Logins written against the agent's own AgentID or email, once each, newest first."""
        seen: dict[int, LoginEvent] = {}
        for form in (normalize_key(agent.agent_id), normalize_key(agent.email)):
            if not form:
                continue
            for event in self._logins_by_identifier.get(form, ()):
                seen.setdefault(event.login_id, event)
        return sort_newest_first(seen.values())

    def logins_for(self, identifier: str | None) -> list[LoginEvent]:
        """
        Logins for an identifier. When it names an agent, logins under all of the
        agent's identifier forms are merged; otherwise the raw identifier is used
        (orphan logins).
        """
        agent = self.resolve_identifier(identifier)
        if agent is not None:
            return self.logins_for_agent(agent)
        events = {e.login_id: e for e in self._logins_by_identifier.get(normalize_key(identifier), ())}
        return sort_newest_first(events.values())

    # --- Names ---

    def exact_or_partial_name(self, tokens: list[str]) -> list[NameMatch]:
        """Full-name equality scores 100; first and last query token both in the name scores 95."""
        if not tokens:
            return []
        query = " ".join(tokens)
        matches: list[NameMatch] = []
        for name_key, agents in self._by_name.items():
            parts = name_key.split(" ")
            if name_key == query:
                score = 100.0
            elif len(tokens) >= 2 and tokens[0] in parts and tokens[-1] in parts:
                score = 95.0
            else:
                continue
            matches.extend(NameMatch(agent, score) for agent in agents)
        matches.sort(key=lambda m: m.score, reverse=True)
        return matches

    def fuzzy_name(self, tokens: list[str], threshold: float = NAME_SIMILARITY_THRESHOLD) -> list[NameMatch]:
        """Count query-token/name-token pairs above threshold; keep names matching at least half the tokens."""
        if not tokens:
            return []
        scored: list[tuple[int, AgentRecord]] = []
        for name_key, agents in self._by_name.items():
            parts = name_key.split(" ")
            hits = sum(1 for token in tokens for part in parts if similarity(token, part) >= threshold)
            if hits and hits >= len(tokens) / 2:
                scored.extend((hits, agent) for agent in agents)
        scored.sort(key=lambda x: x[0], reverse=True)
        return [
            NameMatch(agent, round(min(90.0, 90.0 * hits / len(tokens)), 1))
            for hits, agent in scored[:FUZZY_MATCH_LIMIT]
        ]

    def token_search(self, tokens: list[str]) -> list[NameMatch]:
        """Inverted-index overlap: one point per query token found in an agent's indexed text."""
        counts: dict[str, int] = defaultdict(int)
        for token in tokens:
            for key in self._token_index.get(token, ()):
                counts[key] += 1
        ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)[:FUZZY_MATCH_LIMIT]
        return [
            NameMatch(self._by_primary[key], float(min(80, 20 * count)))
            for key, count in ranked
            if key in self._by_primary
        ]

    def fuzzy_match_name(self, tokens: list[str]) -> list[NameMatch]:
        """Exact/partial name, then fuzzy name, then token overlap; first non-empty result wins."""
        for strategy in (self.exact_or_partial_name, self.fuzzy_name, self.token_search):
            matches = strategy(tokens)
            if matches:
                logger.info(
                    "[entity_index:fuzzy_match_name] tokens=%s strategy=%s matches=%d",
                    tokens, strategy.__name__, len(matches),
                )
                return matches
        return []

    # --- Companies ---

    @staticmethod
    def _word_overlap_points(words: list[str], company_words: list[str]) -> float:
        points = 0.0
        for word in words:
            if word in company_words:
                points += 2
            elif len(word) >= 3 and any(
                cw.startswith(word) or word in cw or (len(cw) >= 3 and cw in word) for cw in company_words
            ):
                points += 1
            elif any(similarity(word, cw) >= COMPANY_WORD_SIMILARITY_THRESHOLD for cw in company_words):
                points += 0.5
        return points

    def _company_score(self, query: str, company_key: str) -> float:
        if company_key == query:
            return 100.0
        if len(query) >= 3 and (query in company_key or company_key in query):
            return 90.0
        words = [w for w in query.split() if w not in COMPANY_GENERIC_WORDS]
        if words:
            company_words = company_key.split()
            points = self._word_overlap_points(words, company_words)
            if points >= len(words):
                return round(min(85.0, 85.0 * points / (2 * len(words))), 1)
        ratio = similarity(query, company_key)
        if ratio >= COMPANY_SIMILARITY_THRESHOLD:
            return round(ratio * 80.0, 1)
        return 0.0

    def fuzzy_match_company(self, term: str) -> list[CompanyMatch]:
        """
        Companies matching term, best first: exact 100, containment 90, word
        overlap up to 85, whole-string similarity below that. Agents are not
        deduplicated across companies.
        """
        query = normalize_company(term)
        if not query:
            return []
        matches = []
        for company_key, agents in self._by_company.items():
            score = self._company_score(query, company_key)
            if score > 0:
                matches.append(CompanyMatch(self._company_display[company_key], tuple(agents), score))
        matches.sort(key=lambda m: m.score, reverse=True)
        logger.info(
            "[entity_index:fuzzy_match_company] term=%r normalized=%r companies=%s",
            term, query, [(m.company, m.score) for m in matches[:5]],
        )
        return matches

    # --- Nationalities ---

    def agents_by_nationality(self, text: str) -> list[AgentRecord]:
        """Agents whose nationality appears as a whole word in text."""
        haystack = normalize_key(text)
        found: list[AgentRecord] = []
        for nationality, agents in self._by_nationality.items():
            if re.search(rf"\b{re.escape(nationality)}\b", haystack):
                found.extend(agents)
        return found

    # --- Analytics ---

    def _tally(self, agent: AgentRecord) -> LoginTally:
        events = self.logins_for_agent(agent)
        last = events[0].login_date if events else agent.last_login
        return LoginTally(agent=agent, total_logins=len(events), last_login=last)

    def most_active(self, limit: int) -> list[LoginTally]:
        ranked = sorted(self._by_primary.items(), key=lambda kv: self._login_totals.get(kv[0], 0), reverse=True)
        return [self._tally(agent) for key, agent in ranked if self._login_totals.get(key, 0) > 0][:limit]

    def least_active(self, limit: int) -> list[LoginTally]:
        ranked = sorted(self._by_primary.items(), key=lambda kv: self._login_totals.get(kv[0], 0))
        return [self._tally(agent) for _, agent in ranked[:limit]]

    def never_logged_in(self) -> list[AgentRecord]:
        return [
            agent for key, agent in self._by_primary.items()
            if self._login_totals.get(key, 0) == 0 and not agent.last_login
        ]

    def orphan_login_identifiers(self) -> list[str]:
        """Identifiers that appear in login events but match no agent profile, first-seen order."""
        orphans: dict[str, str] = {}
        for event in self._logins:
            raw = normalize_key(event.agent_id)
            if raw and raw not in self._by_identifier:
                orphans.setdefault(raw, event.agent_id.strip())
        return list(orphans.values())

    def shared_contact_groups(self) -> list[list[AgentRecord]]:
        """Groups of agents registered with the same email under different AgentIDs."""
        return [agents for agents in self._by_contact.values() if len(agents) > 1]
