"""
Unit tests for the entity index: identifiers, login history, name/company matching, analytics.
"""

from app.schemas.records import AgentRecord, LoginEvent
from app.services.entity_index import EntityIndex
from app.services.text_processing import similarity


class TestIdentifiers:
    """Tests for resolve_identifier() and login lookups."""

    def test_agent_id_any_case_and_spacing(self, index: EntityIndex) -> None:
        agent = index.resolve_identifier("  chagt001 ")
        assert agent is not None and agent.name == "John Smith"

    def test_email_resolves_to_same_record(self, index: EntityIndex) -> None:
        assert index.resolve_identifier("JOHN.SMITH@ABC.COM") is index.resolve_identifier("CHAGT001")

    def test_unknown_identifier(self, index: EntityIndex) -> None:
        assert index.resolve_identifier("CHAGT999") is None
        assert index.resolve_identifier(None) is None

    def test_logins_merged_across_identifier_forms(self, index: EntityIndex) -> None:
        # 101 and 103 reference the AgentID, 102 the email
        events = index.logins_for("CHAGT001")
        assert [e.login_id for e in events] == [103, 102, 101]
        assert [e.login_id for e in index.logins_for("john.smith@abc.com")] == [103, 102, 101]

    def test_event_reachable_twice_counted_once(self) -> None:
        agent = AgentRecord(agent_id="CHAGT010", name="Dana Lee", email="dana@x.com")
        event = LoginEvent(login_id=1, agent_id="dana@x.com", login_date="2024-01-01")
        idx = EntityIndex([agent], [event])
        assert len(idx.logins_for("CHAGT010")) == 1
        assert len(idx.logins_for("dana@x.com")) == 1

    def test_shared_email_does_not_borrow_agent_id_logins(self) -> None:
        john = AgentRecord(agent_id="CHAGT001", name="John Smith", email="shared@x.com")
        sara = AgentRecord(agent_id="CHAGT008", name="Sara Ali", email="shared@x.com")
        events = [
            LoginEvent(login_id=1, agent_id="CHAGT001", login_date="2024-01-01"),
            LoginEvent(login_id=2, agent_id="CHAGT001", login_date="2024-02-01"),
        ]
        idx = EntityIndex([john, sara], events)
        assert [e.login_id for e in idx.logins_for("CHAGT001")] == [2, 1]
        assert idx.logins_for("CHAGT008") == []
        assert [(t.agent.agent_id, t.total_logins) for t in idx.most_active(5)] == [("CHAGT001", 2)]
        assert [a.agent_id for a in idx.never_logged_in()] == ["CHAGT008"]

    def test_shared_email_logins_count_for_both(self) -> None:
        john = AgentRecord(agent_id="CHAGT001", name="John Smith", email="shared@x.com")
        sara = AgentRecord(agent_id="CHAGT008", name="Sara Ali", email="shared@x.com")
        event = LoginEvent(login_id=7, agent_id="Shared@X.com", login_date="2024-03-01")
        idx = EntityIndex([john, sara], [event])
        assert [e.login_id for e in idx.logins_for("CHAGT001")] == [7]
        assert [e.login_id for e in idx.logins_for("CHAGT008")] == [7]

    def test_orphan_logins_by_raw_identifier(self, index: EntityIndex) -> None:
        events = index.logins_for("chagt999")
        assert [e.login_id for e in events] == [452]

    def test_login_by_id(self, index: EntityIndex) -> None:
        assert index.login_by_id("452").agent_id == "CHAGT999"
        assert index.login_by_id(9999) is None
        assert index.login_by_id("abc") is None

    def test_primary_id_wins_over_contact_collision(self) -> None:
        first = AgentRecord(agent_id="a@x.com", name="First", email="first@x.com")
        second = AgentRecord(agent_id="CHAGT2", name="Second", email="a@x.com")
        idx = EntityIndex([second, first], [])
        assert idx.resolve_identifier("a@x.com").name == "First"

    def test_sizes(self, index: EntityIndex) -> None:
        assert index.agent_count == 8
        assert index.company_count == 4
        assert index.nationality_count == 5
        assert index.login_count == 10

    def test_company_size(self, index: EntityIndex) -> None:
        assert index.company_size("ABC Co.") == 5
        assert index.company_size("Desert Routes Pvt. Ltd.") == 1
        assert index.company_size("Nowhere Travel") == 0
        assert index.company_size(None) == 0


class TestFuzzyMatchName:
    """Tests for fuzzy_match_name() and its strategies."""

    def test_exact_full_name_scores_100(self, index: EntityIndex) -> None:
        matches = index.fuzzy_match_name(["john", "smith"])
        assert len(matches) == 1
        assert matches[0].agent.agent_id == "CHAGT001"
        assert matches[0].score == 100.0

    def test_partial_first_and_last_token(self) -> None:
        agent = AgentRecord(agent_id="CHAGT020", name="John Paul Smith", email="jps@x.com")
        idx = EntityIndex([agent], [])
        matches = idx.fuzzy_match_name(["john", "smith"])
        assert [(m.agent.agent_id, m.score) for m in matches] == [("CHAGT020", 95.0)]

    def test_misspelled_name_found_by_fuzzy(self, index: EntityIndex) -> None:
        matches = index.fuzzy_match_name(["jon", "smth"])
        assert len(matches) == 1
        assert matches[0].agent.name == "John Smith"
        assert matches[0].score == 90.0

    def test_fuzzy_never_returns_dissimilar_names(self, index: EntityIndex) -> None:
        tokens = ["kenjy"]
        for match in index.fuzzy_name(tokens):
            parts = match.agent.name.lower().split()
            assert any(similarity(t, p) >= 0.70 for t in tokens for p in parts)

    def test_token_search_fallback(self, index: EntityIndex) -> None:
        # No name contains "sakura"; the company token does
        matches = index.fuzzy_match_name(["sakura"])
        assert [m.agent.agent_id for m in matches] == ["CHAGT007"]
        assert matches[0].score == 20.0

    def test_no_tokens(self, index: EntityIndex) -> None:
        assert index.fuzzy_match_name([]) == []


class TestFuzzyMatchCompany:
    """Tests for fuzzy_match_company()."""

    def test_exact_after_normalization(self, index: EntityIndex) -> None:
        matches = index.fuzzy_match_company("ABC Co.")
        assert matches[0].company == "ABC Company"
        assert matches[0].score == 100.0
        assert len(matches[0].agents) == 5

    def test_legal_suffix_variants_match_exactly(self, index: EntityIndex) -> None:
        matches = index.fuzzy_match_company("desert routes private limited")
        assert matches[0].company == "Desert Routes Pvt. Ltd."
        assert matches[0].score == 100.0

    def test_containment(self, index: EntityIndex) -> None:
        matches = index.fuzzy_match_company("sakura")
        assert matches[0].company == "Sakura Tours Inc."
        assert matches[0].score == 90.0

    def test_word_overlap_with_typo(self, index: EntityIndex) -> None:
        matches = index.fuzzy_match_company("sakra tours")
        assert matches[0].company == "Sakura Tours Inc."
        assert 0 < matches[0].score <= 85.0

    def test_generic_words_alone_do_not_match(self, index: EntityIndex) -> None:
        assert all(m.company != "Sakura Tours Inc." for m in index.fuzzy_match_company("pvt ltd"))

    def test_empty_term(self, index: EntityIndex) -> None:
        assert index.fuzzy_match_company("") == []


class TestNationalityAndAnalytics:
    def test_agents_by_nationality_whole_word(self, index: EntityIndex) -> None:
        found = index.agents_by_nationality("Show agents with Japanese nationality")
        assert [a.agent_id for a in found] == ["CHAGT007"]

    def test_nationality_substring_not_matched(self, index: EntityIndex) -> None:
        assert index.agents_by_nationality("Indiana agents") == []

    def test_most_active(self, index: EntityIndex) -> None:
        top = index.most_active(2)
        assert [(t.agent.agent_id, t.total_logins) for t in top] == [("CHAGT007", 4), ("CHAGT001", 3)]
        assert top[0].last_login == "2024-03-03T18:30:00"

    def test_least_active_starts_with_zero_logins(self, index: EntityIndex) -> None:
        assert index.least_active(1)[0].total_logins == 0

    def test_never_logged_in(self, index: EntityIndex) -> None:
        assert [a.agent_id for a in index.never_logged_in()] == ["CHAGT008"]

    def test_orphan_login_identifiers(self, index: EntityIndex) -> None:
        assert index.orphan_login_identifiers() == ["CHAGT999"]

    def test_shared_contact_groups(self) -> None:
        a = AgentRecord(agent_id="CHAGT030", name="Lee One", email="shared@x.com")
        b = AgentRecord(agent_id="CHAGT031", name="Lee Two", email="Shared@X.com ")
        c = AgentRecord(agent_id="CHAGT032", name="Solo", email="solo@x.com")
        groups = EntityIndex([a, b, c], []).shared_contact_groups()
        assert [[x.agent_id for x in g] for g in groups] == [["CHAGT030", "CHAGT031"]]
