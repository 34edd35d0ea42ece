"""SQLite-backed persistence for the registry namespaces."""
from __future__ import annotations

import json
import re
import sqlite3
import threading
from contextlib import closing, contextmanager
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple

from .storage import OrderedMap, V

NAMESPACES: Tuple[str, ...] = ("users", "sessions", "bookings")

_NAMESPACE_PATTERN = re.compile(r"^[a-z_][a-z0-9_]*$")


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the registry database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "mentorship.sqlite3").resolve(strict=False)


def _validate_namespace(namespace: str) -> str:
    if not _NAMESPACE_PATTERN.fullmatch(namespace):
        raise ValueError(f"Invalid namespace name: {namespace!r}")
    return namespace


class Database:
    """Simple wrapper around SQLite holding one ordered table per namespace."""

    def __init__(self, path: Path, *, timeout: float = 5.0) -> None:
        _ensure_directory(path)
        self._path = path
        self._timeout = timeout

    @property
    def path(self) -> Path:
        return self._path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, timeout=self._timeout, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def initialize(self) -> None:
        """Create the registry namespaces if they do not already exist."""

        with closing(self._connect()) as conn:
            conn.execute("PRAGMA journal_mode=WAL")
        for namespace in NAMESPACES:
            self.ensure_namespace(namespace)

    def ensure_namespace(self, namespace: str) -> None:
        table = _validate_namespace(namespace)
        with self.transaction() as conn:
            conn.execute(
                f"""
                CREATE TABLE IF NOT EXISTS {table} (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection holding the write lock until the block exits."""

        conn = self._connect()
        try:
            conn.execute("BEGIN IMMEDIATE")
            yield conn
            conn.commit()
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def reader(self) -> Iterator[sqlite3.Connection]:
        with closing(self._connect()) as conn:
            yield conn

    def ordered_map(
        self,
        namespace: str,
        *,
        encode: Callable[[V], Dict[str, Any]],
        decode: Callable[[Dict[str, Any]], V],
    ) -> "SQLiteOrderedMap[V]":
        """Return a durable ordered map bound to ``namespace``."""

        self.ensure_namespace(namespace)
        return SQLiteOrderedMap(self, namespace, encode=encode, decode=decode)


class SQLiteOrderedMap(OrderedMap[V]):
    """Ordered map persisted as JSON documents in a single SQLite table.

    Keys compare with SQLite's binary collation, which orders UTF-8 text the
    same way Python orders ``str`` values. Inside :meth:`exclusive` every call
    made by the owning thread shares one ``BEGIN IMMEDIATE`` transaction, so
    other processes cannot write to the database until the block exits.
    """

    def __init__(
        self,
        database: Database,
        namespace: str,
        *,
        encode: Callable[[V], Dict[str, Any]],
        decode: Callable[[Dict[str, Any]], V],
    ) -> None:
        self._database = database
        self._table = _validate_namespace(namespace)
        self._encode = encode
        self._decode = decode
        self._bound = threading.local()

    @property
    def namespace(self) -> str:
        return self._table

    @contextmanager
    def exclusive(self) -> Iterator[None]:
        if getattr(self._bound, "conn", None) is not None:
            yield
            return
        with self._database.transaction() as conn:
            self._bound.conn = conn
            try:
                yield
            finally:
                self._bound.conn = None

    @contextmanager
    def _writer(self) -> Iterator[sqlite3.Connection]:
        conn = getattr(self._bound, "conn", None)
        if conn is not None:
            yield conn
            return
        with self._database.transaction() as conn:
            yield conn

    @contextmanager
    def _reader(self) -> Iterator[sqlite3.Connection]:
        conn = getattr(self._bound, "conn", None)
        if conn is not None:
            yield conn
            return
        with self._database.reader() as conn:
            yield conn

    def insert(self, key: str, value: V) -> Optional[V]:
        document = json.dumps(self._encode(value), sort_keys=True)
        with self._writer() as conn:
            row = conn.execute(f"SELECT value FROM {self._table} WHERE key = ?", (key,)).fetchone()
            conn.execute(
                f"INSERT OR REPLACE INTO {self._table} (key, value) VALUES (?, ?)",
                (key, document),
            )
        return self._row_to_value(row)

    def get(self, key: str) -> Optional[V]:
        with self._reader() as conn:
            row = conn.execute(f"SELECT value FROM {self._table} WHERE key = ?", (key,)).fetchone()
        return self._row_to_value(row)

    def remove(self, key: str) -> Optional[V]:
        with self._writer() as conn:
            row = conn.execute(f"SELECT value FROM {self._table} WHERE key = ?", (key,)).fetchone()
            if row is not None:
                conn.execute(f"DELETE FROM {self._table} WHERE key = ?", (key,))
        return self._row_to_value(row)

    def values(self) -> List[V]:
        with self._reader() as conn:
            rows = conn.execute(f"SELECT value FROM {self._table} ORDER BY key").fetchall()
        return [self._decode(json.loads(row["value"])) for row in rows]

    def __len__(self) -> int:
        with self._reader() as conn:
            row = conn.execute(f"SELECT COUNT(*) AS total FROM {self._table}").fetchone()
        return int(row["total"])

    def _row_to_value(self, row: Optional[sqlite3.Row]) -> Optional[V]:
        if row is None:
            return None
        return self._decode(json.loads(row["value"]))


__all__ = ["Database", "NAMESPACES", "SQLiteOrderedMap", "resolve_database_path"]
