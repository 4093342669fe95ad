#!/usr/bin/env python3
"""
Migrate the JSON snapshot into the agents SQLite DB.

Reads agentData.json and agentLoginData.json from the data directory
(AGENT_DATA_DIR, default data/) and writes them into AGENT_DB_PATH
(default data/agents.db), replacing whatever rows were there.

Run from project root:

    python scripts/seed_records.py
    python scripts/seed_records.py --data-dir path/to/json --db path/to/agents.db
"""

import argparse
import logging
import sys
from pathlib import Path

# Project root on path so "app" resolves
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from app.core.config import AGENT_DATA_DIR, AGENT_DB_PATH
from app.services.record_store import RecordStore


def main() -> None:
    parser = argparse.ArgumentParser(description="Migrate agent JSON snapshot into SQLite.")
    parser.add_argument("--data-dir", default=str(AGENT_DATA_DIR), help="Directory holding the JSON snapshot.")
    parser.add_argument("--db", default=str(AGENT_DB_PATH), help="SQLite DB file to write.")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)
    store = RecordStore(db_path=args.db, data_dir=args.data_dir)
    snapshot = store.load_snapshot()
    if not snapshot.agents and not snapshot.logins:
        print(f"No snapshot found under {args.data_dir}; nothing to migrate.")
        sys.exit(1)

    store.replace_all(snapshot.agents, snapshot.logins)
    print(f"Done. Migrated {len(snapshot.agents)} agents and {len(snapshot.logins)} logins into {args.db}.")


if __name__ == "__main__":
    main()
