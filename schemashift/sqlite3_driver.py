"""Database driver that keeps its schema version in an SQLite file."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlsplit

from schemashift.errors import LockedError, MigrateError
from schemashift.migrate import NIL_VERSION, DatabaseDriver

DEFAULT_MIGRATIONS_TABLE = "schema_migrations"


class Sqlite3Error(MigrateError):
    """A statement or transaction failed in the SQLite driver."""

    def __init__(
        self,
        message: str = "",
        orig_err: Optional[BaseException] = None,
        query: Optional[str] = None,
    ) -> None:
        self.message = message
        self.orig_err = orig_err
        self.query = query
        super().__init__(self._describe())

    def _describe(self) -> str:
        parts = [part for part in (self.message, self.orig_err) if part]
        text = ": ".join(str(part) for part in parts) or "database error"
        if self.query:
            text += f" in query: {self.query}"
        return text


@dataclass
class Sqlite3Config:
    """Settings for the SQLite driver."""

    migrations_table: str = ""
    database_name: str = ""


def _as_text(migration) -> str:
    if hasattr(migration, "read"):
        migration = migration.read()
    if isinstance(migration, (bytes, bytearray, memoryview)):
        return bytes(migration).decode("utf-8")
    return str(migration)


def _as_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "t", "1")
    return bool(value)


class Sqlite3Driver(DatabaseDriver):
    """Runs migrations against an SQLite connection."""

    def __init__(self, connection: sqlite3.Connection, config: Sqlite3Config) -> None:
        self._conn = connection
        self.config = config
        self.is_locked = False

    def close(self) -> None:
        self._conn.close()

    def lock(self) -> None:
        if self.is_locked:
            raise LockedError()
        self.is_locked = True

    def unlock(self) -> None:
        self.is_locked = False

    def run(self, migration) -> None:
        """Execute a migration given as bytes, text or a readable object."""
        self._execute_query(_as_text(migration))

    def set_version(self, version: int, dirty: bool) -> None:
        table = self.config.migrations_table
        delete = f"DELETE FROM {table}"
        insert = f"INSERT INTO {table} (version, dirty) VALUES (?, ?)"
        current = delete
        try:
            with self._conn:
                self._conn.execute(delete)
                if version >= 0:
                    current = insert
                    self._conn.execute(insert, (version, int(dirty)))
        except sqlite3.Error as exc:
            raise Sqlite3Error(orig_err=exc, query=current) from exc

    def version(self) -> tuple[int, bool]:
        query = f"SELECT version, dirty FROM {self.config.migrations_table} LIMIT 1"
        try:
            row = self._conn.execute(query).fetchone()
        except sqlite3.Error:
            return NIL_VERSION, False
        if row is None or row[0] is None:
            return NIL_VERSION, False
        return int(row[0]), _as_bool(row[1])

    def drop(self) -> None:
        """Drop every table and compact the database file."""
        query = "SELECT name FROM sqlite_master WHERE type = 'table';"
        try:
            rows = self._conn.execute(query).fetchall()
        except sqlite3.Error as exc:
            raise Sqlite3Error(orig_err=exc, query=query) from exc

        names = [row[0] for row in rows if row[0]]
        if not names:
            return
        for name in names:
            self._execute_query("DROP TABLE " + name)
        try:
            self._conn.execute("VACUUM")
        except sqlite3.Error as exc:
            raise Sqlite3Error(orig_err=exc, query="VACUUM") from exc

    def _execute_query(self, query: str) -> None:
        script = query
        stripped = query.strip()
        if stripped and not sqlite3.complete_statement(stripped):
            script = query + "\n;"
        try:
            self._conn.executescript(f"BEGIN;\n{script}\nCOMMIT;")
        except sqlite3.Error as exc:
            try:
                self._conn.rollback()
            except sqlite3.Error as rollback_error:
                raise Sqlite3Error(
                    f"rollback failed: {rollback_error}", exc, query
                ) from exc
            raise Sqlite3Error(orig_err=exc, query=query) from exc

    def _ensure_version_table(self) -> None:
        self.lock()
        table = self.config.migrations_table
        query = (
            f"CREATE TABLE IF NOT EXISTS {table} (version uint64,dirty bool);\n"
            f"CREATE UNIQUE INDEX IF NOT EXISTS version_unique ON {table} (version);"
        )
        try:
            self._conn.executescript(query)
        except sqlite3.Error as exc:
            raise Sqlite3Error(orig_err=exc, query=query) from exc
        finally:
            self.unlock()


def with_instance(
    instance: sqlite3.Connection, config: Optional[Sqlite3Config]
) -> Sqlite3Driver:
    """Wrap an open connection, creating the migrations table if needed."""
    if config is None:
        raise Sqlite3Error("no config")
    try:
        instance.execute("SELECT 1")
    except sqlite3.Error as exc:
        raise Sqlite3Error("ping failed", exc) from exc

    if not config.migrations_table:
        config.migrations_table = DEFAULT_MIGRATIONS_TABLE

    driver = Sqlite3Driver(instance, config)
    driver._ensure_version_table()
    return driver


def open_sqlite3(url: str) -> Sqlite3Driver:
    """Open the database named by a ``sqlite3://`` URL.

    Query parameters starting with ``x-`` configure the driver and are not
    passed on; ``x-migrations-table`` names the version table.
    """
    head, _, rest = url.partition("?")
    query, _, _fragment = rest.partition("#")
    params = parse_qsl(query, keep_blank_values=True)

    migrations_table = next(
        (value for key, value in params if key == "x-migrations-table"), ""
    )
    kept = [(key, value) for key, value in params if not key.startswith("x-")]
    filtered = head + ("?" + urlencode(kept) if kept else "")
    db_file = filtered.replace("sqlite3://", "", 1)

    try:
        if "?" in db_file:
            connection = sqlite3.connect(
                "file:" + db_file, uri=True, check_same_thread=False
            )
        else:
            connection = sqlite3.connect(db_file, check_same_thread=False)
    except sqlite3.Error as exc:
        raise Sqlite3Error("open failed", exc) from exc

    return with_instance(
        connection,
        Sqlite3Config(
            migrations_table=migrations_table or DEFAULT_MIGRATIONS_TABLE,
            database_name=urlsplit(url).path,
        ),
    )