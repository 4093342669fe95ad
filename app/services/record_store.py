"""
Record store: bulk-load agent profiles and login events.

Reads from a lightweight SQLite DB (tables: agents, logins). When the DB holds
no agents, falls back to the JSON snapshot files in the data directory.
"""

import json
import logging
import sqlite3
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from pydantic import ValidationError as PydanticValidationError

from app.core.config import AGENT_DATA_DIR, AGENT_DB_PATH, AGENT_JSON_FILE, LOGIN_JSON_FILE
from app.core.errors import ServiceUnavailableError
from app.schemas.records import AgentRecord, LoginEvent

logger = logging.getLogger(__name__)

_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS agents (
        AgentID TEXT PRIMARY KEY,
        Name TEXT,
        UserName TEXT,
        Comp_Name TEXT,
        Nationality TEXT,
        CreatedDate TEXT,
        LastLogin TEXT,
        data TEXT
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS logins (
        ID INTEGER PRIMARY KEY,
        AGENTID TEXT,
        LOGINDATE TEXT,
        data TEXT
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_agent_username ON agents(UserName)",
    "CREATE INDEX IF NOT EXISTS idx_agent_company ON agents(Comp_Name)",
    "CREATE INDEX IF NOT EXISTS idx_login_agentid ON logins(AGENTID)",
)


@dataclass
class RecordSet:
    """The whole working set, as loaded at startup."""

    agents: list[AgentRecord] = field(default_factory=list)
    logins: list[LoginEvent] = field(default_factory=list)
    source: str = "empty"


def _parse_rows(rows: Iterable[dict[str, Any]], model: type, label: str) -> list:
    parsed = []
    skipped = 0
    for row in rows:
        try:
            parsed.append(model.model_validate(row))
        except PydanticValidationError as e:
            skipped += 1
            logger.debug("[record_store] skip %s row=%r error=%s", label, row, e)
    if skipped:
        logger.warning("[record_store] skipped %d malformed %s rows", skipped, label)
    return parsed


class RecordStore:
    def __init__(self, db_path: Path | str = AGENT_DB_PATH, data_dir: Path | str = AGENT_DATA_DIR) -> None:
        self.db_path = Path(db_path)
        self.data_dir = Path(data_dir)

    def _get_conn(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        return sqlite3.connect(str(self.db_path))

    def init_db(self) -> None:
        """Create the agents/logins tables and their lookup indexes if missing."""
        conn = self._get_conn()
        try:
            for statement in _SCHEMA:
                conn.execute(statement)
            conn.commit()
        finally:
            conn.close()

    def _fetch_json_column(self, table: str) -> list[dict[str, Any]]:
        conn = self._get_conn()
        try:
            cur = conn.execute(f"SELECT data FROM {table}")
            return [json.loads(row[0]) for row in cur.fetchall() if row[0]]
        finally:
            conn.close()

    def _read_json_file(self, name: str) -> list[dict[str, Any]]:
        path = self.data_dir / name
        if not path.is_file():
            return []
        with path.open(encoding="utf-8") as fh:
            data = json.load(fh)
        return data if isinstance(data, list) else []

    def load_all(self) -> RecordSet:
        """Load every agent and login. SQLite first; JSON snapshot when the DB has no agents."""
        try:
            self.init_db()
            agent_rows = self._fetch_json_column("agents")
            login_rows = self._fetch_json_column("logins")
            source = "sqlite"
            if not agent_rows:
                agent_rows = self._read_json_file(AGENT_JSON_FILE)
                login_rows = self._read_json_file(LOGIN_JSON_FILE)
                source = "json" if agent_rows else "empty"
        except (sqlite3.Error, OSError, json.JSONDecodeError) as e:
            logger.exception("[record_store:load_all] failed db=%s", self.db_path)
            raise ServiceUnavailableError("Agent records could not be loaded.") from e

        records = RecordSet(
            agents=_parse_rows(agent_rows, AgentRecord, "agent"),
            logins=_parse_rows(login_rows, LoginEvent, "login"),
            source=source,
        )
        logger.info(
            "[record_store:load_all] OUT source=%s agents=%d logins=%d",
            records.source, len(records.agents), len(records.logins),
        )
        return records

    def replace_all(self, agents: list[AgentRecord], logins: list[LoginEvent]) -> None:
        """Overwrite both tables with the given records (used by the seed script)."""
        self.init_db()
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM agents")
            conn.execute("DELETE FROM logins")
            conn.executemany(
                "INSERT OR REPLACE INTO agents VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                [
                    (
                        a.agent_id, a.name, a.email, a.company, a.nationality, a.created, a.last_login,
                        json.dumps(a.model_dump(by_alias=True)),
                    )
                    for a in agents
                ],
            )
            conn.executemany(
                "INSERT OR REPLACE INTO logins VALUES (?, ?, ?, ?)",
                [
                    (ev.login_id, ev.agent_id, ev.login_date, json.dumps(ev.model_dump(by_alias=True)))
                    for ev in logins
                ],
            )
            conn.commit()
            logger.info("[record_store:replace_all] agents=%d logins=%d", len(agents), len(logins))
        finally:
            conn.close()

    def load_snapshot(self) -> RecordSet:
        """Read only the JSON snapshot files."""
        return RecordSet(
            agents=_parse_rows(self._read_json_file(AGENT_JSON_FILE), AgentRecord, "agent"),
            logins=_parse_rows(self._read_json_file(LOGIN_JSON_FILE), LoginEvent, "login"),
            source="json",
        )

    def compute_stats(self) -> dict[str, int]:
        """Aggregate counts straight from the stored records (no index involved)."""
        agents = self.load_all().agents
        return {
            "total_agents": len(agents),
            "companies": len({a.company for a in agents}),
            "nationalities": len({a.nationality for a in agents}),
        }
