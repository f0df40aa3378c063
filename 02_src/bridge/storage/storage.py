"""SQLite conversation store."""

import json
from pathlib import Path
from typing import Protocol

import aiosqlite

from ..config import resolve_db_path
from ..errors import NotFound, StoreError
from ..logging_config import get_logger
from ..models import ConversationTurn

logger = get_logger(__name__)


class IConversationStore(Protocol):
    """Append-only ledger of conversation turns keyed by message id."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    async def append(
        self,
        message_id: int,
        user_id: str,
        topic_id: str,
        request_text: str,
        response_text: str,
        elapsed: float,
    ) -> None:
        """Record one turn. elapsed is in seconds."""
        ...

    async def get_by_message_id(self, message_id: int) -> str:
        """Return the persisted response text for a message id."""
        ...

    async def get_recent(
        self, user_id: str, topic_id: str, limit: int = 10
    ) -> list[ConversationTurn]:
        """Return the most recent turns, oldest first."""
        ...

    async def clear(self) -> None:
        """Clear all data."""
        ...


class ConversationStore:
    """SQLite implementation of the conversation ledger."""

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Initialize database and create tables."""
        try:
            self._conn = await aiosqlite.connect(self._db_path)

            schema_path = Path(__file__).parent / "schema.sql"
            with open(schema_path, "r", encoding="utf-8") as f:
                schema_sql = f.read()
            await self._conn.executescript(schema_sql)
            await self._conn.commit()
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to open conversation store: {e}") from e

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise StoreError("Storage not initialized")
        return self._conn

    async def append(
        self,
        message_id: int,
        user_id: str,
        topic_id: str,
        request_text: str,
        response_text: str,
        elapsed: float,
    ) -> None:
        """
        Record one turn keyed by message_id.

        Raises:
            StoreError: On connectivity failure or when message_id already exists.
        """
        conn = self._require_conn()
        payload = json.dumps(
            ConversationTurn(request_text, response_text).to_dict(), ensure_ascii=False
        )

        try:
            await conn.execute(
                """
                INSERT INTO dialogue_records
                (msg_id, user_id, subscription_id, type_id, message, elapsed_ms)
                VALUES (?, ?, ?, 'message', ?, ?)
                """,
                (message_id, user_id, topic_id, payload, int(elapsed * 1000)),
            )
            await conn.commit()
        except aiosqlite.IntegrityError as e:
            await _rollback_quietly(conn)
            raise StoreError(f"Message {message_id} already recorded: {e}") from e
        except aiosqlite.Error as e:
            await _rollback_quietly(conn)
            raise StoreError(f"Failed to save message {message_id}: {e}") from e

        logger.debug("Saved conversation turn for message %s", message_id)

    async def get_by_message_id(self, message_id: int) -> str:
        """
        Return the response text recorded for message_id.

        Raises:
            NotFound: If nothing has been recorded for message_id yet.
            StoreError: On connectivity failure.
        """
        conn = self._require_conn()

        try:
            cursor = await conn.execute(
                "SELECT message FROM dialogue_records WHERE msg_id = ?",
                (message_id,),
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to load message {message_id}: {e}") from e

        if not row:
            raise NotFound(message_id)

        return _decode_turn(row[0]).response_text

    async def get_recent(
        self, user_id: str, topic_id: str, limit: int = 10
    ) -> list[ConversationTurn]:
        """Return the last `limit` turns for (user_id, topic_id), oldest first."""
        conn = self._require_conn()

        try:
            cursor = await conn.execute(
                """
                SELECT message
                FROM dialogue_records
                WHERE user_id = ? AND subscription_id = ?
                ORDER BY created_time DESC, id DESC
                LIMIT ?
                """,
                (user_id, topic_id, limit),
            )
            rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to load conversation for {user_id}: {e}") from e

        # Newest first from the query; callers want chronological order
        return [_decode_turn(row[0]) for row in reversed(rows)]

    async def count(self) -> int:
        """Number of recorded turns."""
        conn = self._require_conn()
        try:
            cursor = await conn.execute("SELECT COUNT(*) FROM dialogue_records")
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to count conversation records: {e}") from e
        return row[0]

    async def clear(self) -> None:
        """Clear all data."""
        conn = self._require_conn()
        try:
            await conn.execute("DELETE FROM dialogue_records")
            await conn.commit()
        except aiosqlite.Error as e:
            await _rollback_quietly(conn)
            raise StoreError(f"Failed to clear conversation records: {e}") from e


def _decode_turn(raw: str) -> ConversationTurn:
    try:
        return ConversationTurn.from_dict(json.loads(raw))
    except (ValueError, KeyError, TypeError) as e:
        raise StoreError(f"Corrupt conversation record: {e}") from e


async def _rollback_quietly(conn: aiosqlite.Connection) -> None:
    # Keeps the caller's error as the one raised
    try:
        await conn.rollback()
    except aiosqlite.Error as e:
        logger.warning("Rollback failed: %s", e)
