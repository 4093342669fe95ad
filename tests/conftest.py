"""
Shared fixtures: a small in-memory record set covering the lookup cases.

Five ABC Company agents, one agent per other company, an agent with no
logins at all, a login referenced by email instead of AgentID, and an orphan
login (ID 452) whose agent has no profile.
"""

import pytest

from app.schemas.records import AgentRecord, LoginEvent
from app.services.entity_index import EntityIndex
from app.services.intent_service import IntentClassifier
from app.services.query_resolver import QueryResolver
from app.services.record_store import RecordSet

AGENT_ROWS = [
    {"AgentID": "CHAGT001", "Name": "John Smith", "UserName": "john.smith@abc.com", "Comp_Name": "ABC Company",
     "Nationality": "Indian", "CreatedDate": "2023-01-10T09:00:00", "LastLogin": "2024-03-01T10:15:00"},
    {"AgentID": "CHAGT002", "Name": "Priya Sharma", "UserName": "priya@abc.com", "Comp_Name": "ABC Company",
     "Nationality": "Indian", "CreatedDate": "2023-02-14T11:30:00", "LastLogin": "2024-02-20T08:05:00"},
    {"AgentID": "CHAGT003", "Name": "Rahul Verma", "UserName": "rahul@abc.com", "Comp_Name": "ABC Company",
     "Nationality": "Indian", "CreatedDate": "2023-03-01T10:00:00", "LastLogin": "2024-01-02T10:00:00"},
    {"AgentID": "CHAGT004", "Name": "Anita Desai", "UserName": "anita@abc.com", "Comp_Name": "ABC Company",
     "Nationality": "British", "CreatedDate": "2023-03-05T10:00:00", "LastLogin": "2024-01-03T10:00:00"},
    {"AgentID": "CHAGT005", "Name": "Vikram Rao", "UserName": "vikram@abc.com", "Comp_Name": "ABC Company",
     "Nationality": "Indian", "CreatedDate": "2023-03-09T10:00:00", "LastLogin": "2024-01-04T10:00:00"},
    {"AgentID": "CHAGT006", "Name": "Marie Dubois", "UserName": "marie@voyages.fr", "Comp_Name": "Voyages & Co",
     "Nationality": "French", "CreatedDate": "2023-04-18T16:45:00", "LastLogin": "2024-01-11T12:00:00"},
    {"AgentID": "CHAGT007", "Name": "Kenji Tanaka", "UserName": "kenji@sakura.jp", "Comp_Name": "Sakura Tours Inc.",
     "Nationality": "Japanese", "CreatedDate": "2023-05-05T07:20:00", "LastLogin": "2024-03-03T18:30:00"},
    {"AgentID": "CHAGT008", "Name": "Ahmed Khan", "UserName": "ahmed@desert.ae", "Comp_Name": "Desert Routes Pvt. Ltd.",
     "Nationality": "Emirati", "CreatedDate": "2023-06-01T14:00:00", "LastLogin": None},
]

LOGIN_ROWS = [
    {"ID": 101, "AGENTID": "CHAGT001", "LOGINDATE": "2024-01-05T09:00:00"},
    {"ID": 102, "AGENTID": "john.smith@abc.com", "LOGINDATE": "2024-02-10T10:30:00"},
    {"ID": 103, "AGENTID": "CHAGT001", "LOGINDATE": "2024-03-01T10:15:00"},
    {"ID": 104, "AGENTID": "CHAGT002", "LOGINDATE": "2024-02-20T08:05:00"},
    {"ID": 105, "AGENTID": "CHAGT007", "LOGINDATE": "2024-01-20T18:00:00"},
    {"ID": 106, "AGENTID": "CHAGT007", "LOGINDATE": "2024-02-01T18:00:00"},
    {"ID": 107, "AGENTID": "kenji@sakura.jp", "LOGINDATE": "2024-02-15T18:00:00"},
    {"ID": 108, "AGENTID": "CHAGT007", "LOGINDATE": "2024-03-03T18:30:00"},
    {"ID": 109, "AGENTID": "CHAGT006", "LOGINDATE": "2024-01-11T12:00:00"},
    {"ID": 452, "AGENTID": "CHAGT999", "LOGINDATE": "2024-02-15T11:11:00"},
]


@pytest.fixture
def records() -> RecordSet:
    return RecordSet(
        agents=[AgentRecord.model_validate(row) for row in AGENT_ROWS],
        logins=[LoginEvent.model_validate(row) for row in LOGIN_ROWS],
        source="test",
    )


@pytest.fixture
def index(records: RecordSet) -> EntityIndex:
    return EntityIndex.from_records(records)


@pytest.fixture
def classifier() -> IntentClassifier:
    return IntentClassifier()


@pytest.fixture
def resolver(index: EntityIndex) -> QueryResolver:
    return QueryResolver(index)
