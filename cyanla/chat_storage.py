"""SQLite-backed store of chat messages between named users."""

from __future__ import annotations

import json
import logging
import os
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Iterable, Optional, Sequence

log = logging.getLogger(__name__)

DATABASE_NAME = "chat_history.db"
TABLE_NAME = "chat_messages"
DATABASE_VERSION = 1

_COLUMNS = "id, sender, receiver, message, timestamp"


class ChatStorageError(Exception):
    """Raised when the chat store cannot do what was asked."""


def _to_db(ts: datetime) -> str:
    return ts.isoformat(timespec="milliseconds")


def _from_db(value: Any) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(str(value))
    except ValueError:
        return None


@dataclass
class Message:
    """A single chat message."""

    sender: str = ""
    receiver: str = ""
    message: str = ""
    timestamp: Optional[datetime] = field(default_factory=datetime.now)
    id: int = -1

    def to_json(self) -> dict:
        """Return the message as a JSON-ready dictionary."""
        return {
            "id": self.id,
            "sender": self.sender,
            "receiver": self.receiver,
            "message": self.message,
            "timestamp": (
                self.timestamp.isoformat(timespec="seconds") if self.timestamp else ""
            ),
        }

    @classmethod
    def from_json(cls, data: dict) -> "Message":
        """Build a message from a dictionary made by :meth:`to_json`."""
        raw_id = data.get("id", 0)
        try:
            message_id = int(raw_id)
        except (TypeError, ValueError):
            message_id = 0
        return cls(
            sender=str(data.get("sender", "")),
            receiver=str(data.get("receiver", "")),
            message=str(data.get("message", "")),
            timestamp=_from_db(data.get("timestamp")),
            id=message_id,
        )


def default_database_path() -> Path:
    """Return the default location of the chat history database."""
    base = os.environ.get("XDG_DATA_HOME")
    root = Path(base) if base else Path.home() / ".local" / "share"
    return root / "Cyanla" / DATABASE_NAME


class ChatStorage:
    """Chat history kept in an SQLite database file."""

    def __init__(self, path: Optional[os.PathLike | str] = None) -> None:
        self.path = Path(path) if path is not None else default_database_path()
        self._conn: Optional[sqlite3.Connection] = None
        self.message_inserted: list[Callable[[Message], None]] = []
        self.message_deleted: list[Callable[[int], None]] = []

    # -- lifecycle -------------------------------------------------------

    def initialize(self) -> None:
        """Open the database and create the table and indexes if needed."""
        if self._conn is not None:
            return
        directory = self.path.absolute().parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ChatStorageError(f"无法创建数据库目录: {directory}") from exc
        try:
            conn = sqlite3.connect(str(self.path))
        except sqlite3.Error as exc:
            raise ChatStorageError(f"无法打开数据库: {exc}") from exc
        try:
            self._create_tables(conn)
        except ChatStorageError:
            conn.close()
            raise
        self._conn = conn

    def _create_tables(self, conn: sqlite3.Connection) -> None:
        try:
            with conn:
                conn.execute(
                    f"CREATE TABLE IF NOT EXISTS {TABLE_NAME} ("
                    "id INTEGER PRIMARY KEY AUTOINCREMENT, "
                    "sender TEXT NOT NULL, "
                    "receiver TEXT NOT NULL, "
                    "message TEXT NOT NULL, "
                    "timestamp DATETIME NOT NULL, "
                    "created_at DATETIME DEFAULT CURRENT_TIMESTAMP)"
                )
        except sqlite3.Error as exc:
            raise ChatStorageError(f"创建表失败: {exc}") from exc
        indexes = (
            f"CREATE INDEX IF NOT EXISTS idx_sender ON {TABLE_NAME}(sender)",
            f"CREATE INDEX IF NOT EXISTS idx_receiver ON {TABLE_NAME}(receiver)",
            f"CREATE INDEX IF NOT EXISTS idx_timestamp ON {TABLE_NAME}(timestamp)",
            f"CREATE INDEX IF NOT EXISTS idx_sender_receiver "
            f"ON {TABLE_NAME}(sender, receiver)",
        )
        for statement in indexes:
            try:
                with conn:
                    conn.execute(statement)
            except sqlite3.Error as exc:
                log.warning("index creation failed: %s", exc)

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "ChatStorage":
        self.initialize()
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def is_valid(self) -> bool:
        """Return whether the store is open and ready."""
        return self._conn is not None

    def _connection(self) -> sqlite3.Connection:
        if self._conn is None:
            raise ChatStorageError("数据库未初始化")
        return self._conn

    # -- inserting -------------------------------------------------------

    def insert_message(
        self,
        sender: str,
        receiver: str,
        message: str,
        timestamp: Optional[datetime] = None,
    ) -> Message:
        """Store a message and return it with its new id."""
        conn = self._connection()
        ts = timestamp if timestamp is not None else datetime.now()
        try:
            with conn:
                cursor = conn.execute(
                    f"INSERT INTO {TABLE_NAME} (sender, receiver, message, timestamp) "
                    "VALUES (?, ?, ?, ?)",
                    (sender, receiver, message, _to_db(ts)),
                )
        except sqlite3.Error as exc:
            raise ChatStorageError(f"插入消息失败: {exc}") from exc
        stored = Message(sender, receiver, message, ts, cursor.lastrowid)
        for callback in self.message_inserted:
            callback(stored)
        return stored

    def insert(self, message: Message) -> Message:
        """Store ``message`` and return the stored copy with its id."""
        return self.insert_message(
            message.sender, message.receiver, message.message, message.timestamp
        )

    # -- queries ---------------------------------------------------------

    def _query(self, sql: str, params: Sequence[Any] = ()) -> list[Message]:
        conn = self._connection()
        try:
            rows = conn.execute(sql, tuple(params)).fetchall()
        except sqlite3.Error as exc:
            raise ChatStorageError(f"查询消息失败: {exc}") from exc
        return [
            Message(
                sender=str(sender),
                receiver=str(receiver),
                message=str(text),
                timestamp=_from_db(ts),
                id=int(message_id),
            )
            for message_id, sender, receiver, text, ts in rows
        ]

    def all_messages(self) -> list[Message]:
        """Return every message, oldest first."""
        return self._query(
            f"SELECT {_COLUMNS} FROM {TABLE_NAME} ORDER BY timestamp ASC"
        )

    def messages_between(self, user1: str, user2: str) -> list[Message]:
        """Return the conversation between two users in both directions."""
        return self._query(
            f"SELECT {_COLUMNS} FROM {TABLE_NAME} "
            "WHERE (sender = ? AND receiver = ?) OR (sender = ? AND receiver = ?) "
            "ORDER BY timestamp ASC",
            (user1, user2, user2, user1),
        )

    def messages_in_range(self, start: datetime, end: datetime) -> list[Message]:
        """Return messages whose timestamp lies in ``[start, end]``."""
        return self._query(
            f"SELECT {_COLUMNS} FROM {TABLE_NAME} "
            "WHERE timestamp BETWEEN ? AND ? ORDER BY timestamp ASC",
            (_to_db(start), _to_db(end)),
        )

    def messages_by_sender(self, sender: str) -> list[Message]:
        """Return messages sent by ``sender``."""
        return self._query(
            f"SELECT {_COLUMNS} FROM {TABLE_NAME} "
            "WHERE sender = ? ORDER BY timestamp ASC",
            (sender,),
        )

    def messages_by_receiver(self, receiver: str) -> list[Message]:
        """Return messages received by ``receiver``."""
        return self._query(
            f"SELECT {_COLUMNS} FROM {TABLE_NAME} "
            "WHERE receiver = ? ORDER BY timestamp ASC",
            (receiver,),
        )

    def page(self, offset: int = 0, limit: int = 50) -> list[Message]:
        """Return one page of messages, newest first."""
        return self._query(
            f"SELECT {_COLUMNS} FROM {TABLE_NAME} "
            "ORDER BY timestamp DESC LIMIT ? OFFSET ?",
            (limit, offset),
        )

    def page_between(
        self, user1: str, user2: str, offset: int = 0, limit: int = 50
    ) -> list[Message]:
        """Return one page of a two-user conversation, newest first."""
        return self._query(
            f"SELECT {_COLUMNS} FROM {TABLE_NAME} "
            "WHERE (sender = ? AND receiver = ?) OR (sender = ? AND receiver = ?) "
            "ORDER BY timestamp DESC LIMIT ? OFFSET ?",
            (user1, user2, user2, user1, limit, offset),
        )

    # -- deleting --------------------------------------------------------

    def _execute(self, sql: str, params: Sequence[Any], failure: str) -> int:
        conn = self._connection()
        try:
            with conn:
                cursor = conn.execute(sql, tuple(params))
        except sqlite3.Error as exc:
            raise ChatStorageError(f"{failure}: {exc}") from exc
        return cursor.rowcount

    def delete_message(self, message_id: int) -> None:
        """Delete one message; raise if it does not exist."""
        removed = self._execute(
            f"DELETE FROM {TABLE_NAME} WHERE id = ?", (message_id,), "删除消息失败"
        )
        if removed <= 0:
            raise ChatStorageError("未找到要删除的消息")
        for callback in self.message_deleted:
            callback(message_id)

    def delete_between(self, user1: str, user2: str) -> int:
        """Delete the conversation between two users; return rows removed."""
        return self._execute(
            f"DELETE FROM {TABLE_NAME} "
            "WHERE (sender = ? AND receiver = ?) OR (sender = ? AND receiver = ?)",
            (user1, user2, user2, user1),
            "删除用户间消息失败",
        )

    def delete_in_range(self, start: datetime, end: datetime) -> int:
        """Delete messages in ``[start, end]``; return rows removed."""
        return self._execute(
            f"DELETE FROM {TABLE_NAME} WHERE timestamp BETWEEN ? AND ?",
            (_to_db(start), _to_db(end)),
            "按时间范围删除消息失败",
        )

    def delete_all(self) -> int:
        """Delete every message; return rows removed."""
        return self._execute(f"DELETE FROM {TABLE_NAME}", (), "清空所有消息失败")

    # -- statistics ------------------------------------------------------

    def _scalar(self, sql: str, params: Sequence[Any], failure: str) -> int:
        conn = self._connection()
        try:
            row = conn.execute(sql, tuple(params)).fetchone()
        except sqlite3.Error as exc:
            raise ChatStorageError(f"{failure}: {exc}") from exc
        return int(row[0]) if row else 0

    def total_count(self) -> int:
        """Return the number of stored messages."""
        return self._scalar(
            f"SELECT COUNT(*) FROM {TABLE_NAME}", (), "获取消息总数失败"
        )

    def count_between(self, sender: str, receiver: str) -> int:
        """Return the number of messages exchanged between two users."""
        return self._scalar(
            f"SELECT COUNT(*) FROM {TABLE_NAME} "
            "WHERE (sender = ? AND receiver = ?) OR (sender = ? AND receiver = ?)",
            (sender, receiver, receiver, sender),
            "获取用户间消息数失败",
        )

    def users(self) -> list[str]:
        """Return every name that appears as sender or receiver."""
        conn = self._connection()
        try:
            rows = conn.execute(
                f"SELECT DISTINCT sender FROM {TABLE_NAME} "
                f"UNION SELECT DISTINCT receiver FROM {TABLE_NAME}"
            ).fetchall()
        except sqlite3.Error as exc:
            raise ChatStorageError(f"获取用户列表失败: {exc}") from exc
        return [str(name) for (name,) in rows]

    # -- export ----------------------------------------------------------

    def export_json(self, messages: Iterable[Message]) -> str:
        """Return ``messages`` as an indented JSON document."""
        items = [msg.to_json() for msg in messages]
        document = {
            "export_timestamp": datetime.now().isoformat(timespec="seconds"),
            "message_count": len(items),
            "messages": items,
        }
        return json.dumps(document, ensure_ascii=False, indent=4, sort_keys=True) + "\n"

    def export_all_json(self) -> str:
        """Return every stored message as a JSON document."""
        return self.export_json(self.all_messages())

    def export_to_file(
        self, path: os.PathLike | str, messages: Iterable[Message]
    ) -> None:
        """Write ``messages`` as a UTF-8 JSON document to ``path``."""
        text = self.export_json(messages)
        try:
            with open(path, "w", encoding="utf-8") as handle:
                handle.write(text)
        except OSError as exc:
            raise ChatStorageError(f"无法打开导出文件: {path}") from exc