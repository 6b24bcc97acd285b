from psycopg.rows import dict_row

from pii_agent.database.connection import get_connection
from pii_agent.database.models import PreferenceRecord
from pii_agent.persistence.base import PreferenceStore


class PreferencesRepository(PreferenceStore):
    """Database operations for the agent_preferences table."""

    def ensure_schema(self) -> None:
        """Create the preferences table when it does not exist yet."""
        with get_connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS agent_preferences (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
                )
                """
            )
            conn.commit()

    def find(self, key: str) -> PreferenceRecord | None:
        with get_connection() as conn:
            with conn.cursor(row_factory=dict_row) as cur:
                cur.execute(
                    "SELECT key, value, updated_at FROM agent_preferences WHERE key = %s",
                    (key,),
                )
                row = cur.fetchone()

        if row is None:
            return None
        return PreferenceRecord(
            key=row["key"],
            value=row["value"],
            updated_at=row["updated_at"],
        )

    def get(self, key: str, default: str | None = None) -> str | None:
        record = self.find(key)
        return record.value if record is not None else default

    def set(self, key: str, value: str) -> None:
        """Upsert *value* under *key*."""
        with get_connection() as conn:
            conn.execute(
                """
                INSERT INTO agent_preferences (key, value, updated_at)
                VALUES (%s, %s, NOW())
                ON CONFLICT (key)
                DO UPDATE SET value = EXCLUDED.value, updated_at = NOW()
                """,
                (key, value),
            )
            conn.commit()
