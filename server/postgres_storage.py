"""PostgreSQL storage for learner progress and the event log."""

import json
import logging
import os
from contextlib import contextmanager

import psycopg2
from psycopg2.extras import RealDictCursor

from core.interfaces import Storage, StateLoadError

logger = logging.getLogger(__name__)

SCHEMA = [
    """
    CREATE TABLE IF NOT EXISTS user_state (
        user_id VARCHAR(255) PRIMARY KEY,
        state JSONB NOT NULL,
        created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS events (
        id SERIAL PRIMARY KEY,
        timestamp TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
        event VARCHAR(50) NOT NULL,
        user_id VARCHAR(255) NOT NULL,
        session_id VARCHAR(64),
        level INTEGER,
        data JSONB
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_events_user_event ON events(user_id, event)",
]


class PostgresStorage(Storage):
    """Progress snapshots as JSONB rows, one per learner, plus an events table.

    The connection is opened on first use and the schema created then.
    """

    def __init__(self, db_url: str = None):
        self.db_url = db_url or os.environ.get('DATABASE_URL', 'postgresql://localhost:5432/vocabox')
        self._conn = None

    @property
    def conn(self):
        if self._conn is None or self._conn.closed:
            self._conn = psycopg2.connect(self.db_url)
            with self._conn.cursor() as cur:
                for statement in SCHEMA:
                    cur.execute(statement)
            self._conn.commit()
            logger.info("Connected to PostgreSQL, schema ready")
        return self._conn

    @contextmanager
    def _transaction(self, cursor_factory=None):
        """Cursor that commits on success and rolls back on any database error."""
        conn = self.conn
        try:
            with conn.cursor(cursor_factory=cursor_factory) as cur:
                yield cur
            conn.commit()
        except psycopg2.Error:
            conn.rollback()
            raise

    def close(self):
        if self._conn and not self._conn.closed:
            self._conn.close()

    def load_state(self, user_id: str = "default") -> dict | None:
        try:
            with self._transaction(RealDictCursor) as cur:
                cur.execute("SELECT state FROM user_state WHERE user_id = %s", (user_id,))
                row = cur.fetchone()
        except psycopg2.Error as e:
            logger.error(f"Could not load progress for {user_id}: {e}")
            raise StateLoadError(f"Stored progress for '{user_id}' is unavailable") from e
        return row['state'] if row else None

    def save_state(self, state: dict, user_id: str = "default") -> None:
        try:
            with self._transaction() as cur:
                cur.execute("""
                    INSERT INTO user_state (user_id, state, updated_at)
                    VALUES (%s, %s, CURRENT_TIMESTAMP)
                    ON CONFLICT (user_id)
                    DO UPDATE SET state = EXCLUDED.state, updated_at = CURRENT_TIMESTAMP
                """, (user_id, json.dumps(state)))
        except psycopg2.Error as e:
            logger.error(f"Could not save progress for {user_id}: {e}")
            raise

    def list_users(self) -> list[str]:
        try:
            with self._transaction() as cur:
                cur.execute("SELECT user_id FROM user_state ORDER BY user_id")
                return [row[0] for row in cur.fetchall()]
        except psycopg2.Error as e:
            logger.error(f"Could not list learners: {e}")
            return []

    def user_exists(self, user_id: str) -> bool:
        try:
            with self._transaction() as cur:
                cur.execute("SELECT 1 FROM user_state WHERE user_id = %s", (user_id,))
                return cur.fetchone() is not None
        except psycopg2.Error as e:
            logger.error(f"Could not look up learner {user_id}: {e}")
            return False

    def delete_user(self, user_id: str) -> bool:
        """Remove a learner's progress. Their events are kept."""
        try:
            with self._transaction() as cur:
                cur.execute("DELETE FROM user_state WHERE user_id = %s", (user_id,))
                return cur.rowcount > 0
        except psycopg2.Error as e:
            logger.error(f"Could not delete learner {user_id}: {e}")
            return False

    def log_event(self, event: str, user_id: str, session_id: str = None,
                  level: int = None, **data) -> None:
        """Record an event. A failed insert is logged and otherwise ignored."""
        try:
            with self._transaction() as cur:
                cur.execute(
                    "INSERT INTO events (event, user_id, session_id, level, data) "
                    "VALUES (%s, %s, %s, %s, %s)",
                    (event, user_id, session_id, level, json.dumps(data) if data else None)
                )
        except psycopg2.Error as e:
            logger.error(f"Could not record {event} for {user_id}: {e}")

    def get_user_events(self, user_id: str, event_type: str = None,
                        limit: int = 100) -> list[dict]:
        query = "SELECT * FROM events WHERE user_id = %s"
        params = [user_id]
        if event_type:
            query += " AND event = %s"
            params.append(event_type)
        query += " ORDER BY timestamp DESC, id DESC LIMIT %s"
        params.append(limit)
        try:
            with self._transaction(RealDictCursor) as cur:
                cur.execute(query, params)
                return [dict(row) for row in cur.fetchall()]
        except psycopg2.Error as e:
            logger.error(f"Could not read events for {user_id}: {e}")
            return []

    def get_user_stats(self, user_id: str) -> dict:
        """Review totals for a learner, counted from 'review.result' events."""
        try:
            with self._transaction(RealDictCursor) as cur:
                cur.execute("""
                    SELECT
                        COUNT(*) AS total_reviews,
                        COUNT(*) FILTER (WHERE (data->>'correct')::boolean) AS correct_reviews,
                        COUNT(DISTINCT data->>'item_id') AS distinct_words,
                        COUNT(DISTINCT session_id) AS sessions
                    FROM events
                    WHERE user_id = %s AND event = 'review.result'
                """, (user_id,))
                return dict(cur.fetchone())
        except psycopg2.Error as e:
            logger.error(f"Could not compute review stats for {user_id}: {e}")
            return {}
