"""
Unit tests for query resolution: stage order, snippets, dedupe and limits.
"""

from app.schemas.records import AgentRecord
from app.services.entity_index import EntityIndex
from app.services.intent_service import IntentClassifier
from app.services.query_resolver import AgentContext, QueryResolver, format_context


def _resolve(resolver: QueryResolver, classifier: IntentClassifier, question: str):
    return resolver.resolve(question, classifier.classify(question))


class TestStages:
    """Tests for QueryResolver.resolve()."""

    def test_exact_name_single_result(self, resolver: QueryResolver, classifier: IntentClassifier) -> None:
        results = _resolve(resolver, classifier, "Find agent John Smith")
        assert len(results) == 1
        assert results[0].identifier == "chagt001"
        assert results[0].score == 100.0
        assert "Name: John Smith" in results[0].content

    def test_orphan_login_id(self, resolver: QueryResolver, classifier: IntentClassifier) -> None:
        results = _resolve(resolver, classifier, "Who logged in at ID 452?")
        assert len(results) == 1
        content = results[0].content
        assert "Login Record (ID: 452)" in content
        assert "- Agent: CHAGT999" in content
        assert "- Login Date: 2024-02-15T11:11:00" in content
        assert "No agent profile found" in content
        assert results[0].context.profile_found is False

    def test_login_id_with_known_owner(self, resolver: QueryResolver, classifier: IntentClassifier) -> None:
        results = _resolve(resolver, classifier, "Which agent made login id 104?")
        assert [r.context.agent_id for r in results] == ["CHAGT002"]

    def test_agent_id_with_login_history(self, resolver: QueryResolver, classifier: IntentClassifier) -> None:
        results = _resolve(resolver, classifier, "When did CHAGT001 last login?")
        ctx = results[0].context
        assert ctx.agent_id == "CHAGT001"
        assert ctx.total_logins == 3
        assert ctx.last_login == "2024-03-01T10:15:00"
        assert ctx.first_login == "2024-01-05T09:00:00"
        assert ctx.login_history == ("2024-03-01T10:15:00", "2024-02-10T10:30:00", "2024-01-05T09:00:00")
        assert "Total Logins: 3" in results[0].content

    def test_email_lookup(self, resolver: QueryResolver, classifier: IntentClassifier) -> None:
        results = _resolve(resolver, classifier, "How many times did kenji@sakura.jp login?")
        assert results[0].context.name == "Kenji Tanaka"
        assert results[0].context.total_logins == 4

    def test_orphan_identifier(self, resolver: QueryResolver, classifier: IntentClassifier) -> None:
        results = _resolve(resolver, classifier, "When did CHAGT999 last login?")
        assert len(results) == 1
        assert results[0].content.startswith("Login Information for CHAGT999:")

    def test_nationality(self, resolver: QueryResolver, classifier: IntentClassifier) -> None:
        results = _resolve(resolver, classifier, "List agents whose nationality is French")
        assert [r.context.name for r in results] == ["Marie Dubois"]

    def test_company_listing(self, resolver: QueryResolver, classifier: IntentClassifier) -> None:
        results = _resolve(resolver, classifier, "Show all agents from ABC Company")
        assert len(results) == 5
        assert {r.context.company for r in results} == {"ABC Company"}

    def test_company_count_question(self, resolver: QueryResolver, classifier: IntentClassifier) -> None:
        results = _resolve(resolver, classifier, "How many agents work at ABC Company")
        assert len(results) == 5

    def test_most_active_uses_analytics(self, resolver: QueryResolver, classifier: IntentClassifier) -> None:
        results = _resolve(resolver, classifier, "Who is the most active agent?")
        assert results[0].context.agent_id == "CHAGT007"
        assert results[0].context.total_logins == 4

    def test_agents_not_in_profile(self, resolver: QueryResolver, classifier: IntentClassifier) -> None:
        results = _resolve(resolver, classifier, "Which logins are missing profile data?")
        assert [r.identifier for r in results] == ["CHAGT999"]

    def test_nothing_found(self, resolver: QueryResolver, classifier: IntentClassifier) -> None:
        assert _resolve(resolver, classifier, "Find agent Zzyzx Qwerty") == []


class TestLimits:
    def test_non_list_results_capped_at_five(self, classifier: IntentClassifier) -> None:
        agents = [
            AgentRecord(agent_id=f"CHAGT1{i:02d}", name=f"Smith Person{i}", email=f"s{i}@x.com", company="Z Ltd")
            for i in range(12)
        ]
        resolver = QueryResolver(EntityIndex(agents, []))
        results = resolver.resolve("Find smith", classifier.classify("Find smith"))
        assert len(results) == 5

    def test_list_results_capped_at_twenty(self, classifier: IntentClassifier) -> None:
        agents = [
            AgentRecord(agent_id=f"CHAGT2{i:02d}", name=f"Agent {i}", email=f"a{i}@x.com", company="Big Travel")
            for i in range(30)
        ]
        resolver = QueryResolver(EntityIndex(agents, []))
        question = "Show all agents from Big Travel company"
        results = resolver.resolve(question, classifier.classify(question))
        assert len(results) == 20

    def test_results_deduplicated(self, resolver: QueryResolver, classifier: IntentClassifier) -> None:
        question = "Details for CHAGT001 and john.smith@abc.com"
        results = resolver.resolve(question, classifier.classify(question))
        assert len(results) == 1


class TestFormatContext:
    def test_profile_without_logins_uses_na(self) -> None:
        text = format_context(AgentContext(agent_id="CHAGT050", name="Solo"))
        assert "Email: N/A" in text
        assert "Total Logins" not in text
