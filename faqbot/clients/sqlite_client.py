import sqlite3
from pathlib import Path
from sqlite3 import Connection
from typing import Any, List, Optional, Sequence, Tuple, Union


class SqliteClient:
    """SQLite database client with connection management."""

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._connection = sqlite3.connect(self.db_path)

    @property
    def connection(self) -> Connection:
        """Get the database connection."""
        return self._connection

    def execute(self, statement: str, params: Optional[Sequence[Any]] = None) -> None:
        """Execute a write or DDL statement and commit it."""
        with self._connection:
            self._connection.execute(statement, params or ())

    def fetch_all(self, query: str, params: Optional[Sequence[Any]] = None) -> List[Tuple]:
        """Run a read query and return all rows."""
        cursor = self._connection.execute(query, params or ())
        try:
            return cursor.fetchall()
        finally:
            cursor.close()

    def close(self):
        """Close the database connection."""
        self._connection.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit with cleanup."""
        self.close()
        return False
