"""Audit log of completed chat turns, stored in SQLite."""

import datetime
import logging
from pathlib import Path
from typing import List, Union

from faqbot.clients.sqlite_client import SqliteClient
from faqbot.models import RagLog

logger = logging.getLogger(__name__)

CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS raglogs (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    session_id TEXT NOT NULL,
    user_question TEXT NOT NULL,
    standalone_question TEXT NOT NULL,
    retrieved_context TEXT NOT NULL,
    final_answer TEXT NOT NULL,
    timestamp TEXT NOT NULL
)
"""


class RagLogService:
    _sqlite_client: SqliteClient

    def __init__(self, db_path: Union[str, Path] = "rag_logs.db"):
        self._sqlite_client = SqliteClient(db_path)
        self._sqlite_client.execute(CREATE_TABLE_SQL)

    def store_turn(self, rag_log: RagLog) -> None:
        timestamp = datetime.datetime.now(datetime.timezone.utc).isoformat()

        self._sqlite_client.execute(
            """INSERT INTO raglogs
               (session_id, user_question, standalone_question, retrieved_context, final_answer, timestamp)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (
                rag_log.session_id,
                rag_log.user_question,
                rag_log.standalone_question,
                rag_log.retrieved_context,
                rag_log.final_answer,
                timestamp,
            ),
        )
        logger.debug(f"Stored audit log for session {rag_log.session_id!r}")

    def get_logs(self, session_id: str) -> List[RagLog]:
        """Return the audited turns of a session, oldest first."""
        rows = self._sqlite_client.fetch_all(
            """SELECT session_id, user_question, standalone_question, retrieved_context, final_answer
               FROM raglogs WHERE session_id = ? ORDER BY id""",
            (session_id,),
        )
        return [RagLog(*row) for row in rows]

    def close(self) -> None:
        """Close the database connection."""
        self._sqlite_client.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit with cleanup."""
        self.close()
        return False
