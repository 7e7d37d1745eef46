"""Running migrations from a source against a database."""

from __future__ import annotations

import queue
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from typing import Iterable, Iterator, Optional

from schemashift.errors import (
    DirtyError,
    InvalidVersionError,
    LockedError,
    LockTimeoutError,
    MigrateError,
    NilVersionError,
    NoChangeError,
)
from schemashift.logger import Logger
from schemashift.migration import Migration
from schemashift.reading import DEFAULT_PREFETCH_MIGRATIONS, MigrationReader, SourceDriver

NIL_VERSION = -1
DEFAULT_LOCK_TIMEOUT = 15.0


class DatabaseDriver(ABC):
    """A database that migrations are run against."""

    @abstractmethod
    def lock(self) -> None:
        """Acquire the migration lock; raise ``LockedError`` if held."""

    @abstractmethod
    def unlock(self) -> None:
        """Release the migration lock."""

    @abstractmethod
    def run(self, migration: bytes) -> None:
        """Execute the body of a migration."""

    @abstractmethod
    def set_version(self, version: int, dirty: bool) -> None:
        """Record the current version and dirty state; -1 means no version."""

    @abstractmethod
    def version(self) -> tuple[int, bool]:
        """Return the recorded version (-1 if none) and dirty state."""

    @abstractmethod
    def drop(self) -> None:
        """Delete everything in the database."""

    @abstractmethod
    def close(self) -> None:
        """Release the database."""


class Migrate:
    """Reads migrations from a source and applies them to a database."""

    def __init__(
        self,
        source: SourceDriver,
        database: DatabaseDriver,
        source_name: str = "",
        database_name: str = "",
        logger: Optional[Logger] = None,
    ) -> None:
        self.source = source
        self.database = database
        self.source_name = source_name
        self.database_name = database_name
        self.lock_timeout = DEFAULT_LOCK_TIMEOUT
        self._stop_event = threading.Event()
        self._lock_mutex = threading.Lock()
        self._is_locked = False
        self._reader = MigrationReader(source, logger, self._should_stop)
        self._reader.prefetch_migrations = DEFAULT_PREFETCH_MIGRATIONS

    @property
    def log(self) -> Optional[Logger]:
        """The logger receiving progress messages, or None."""
        return self._reader.logger

    @log.setter
    def log(self, logger: Optional[Logger]) -> None:
        self._reader.logger = logger

    @property
    def prefetch_migrations(self) -> int:
        """Number of migrations read ahead of the one being run."""
        return self._reader.prefetch_migrations

    @prefetch_migrations.setter
    def prefetch_migrations(self, value: int) -> None:
        self._reader.prefetch_migrations = value

    def close(self) -> None:
        """Close the source and the database, raising if either fails."""
        self._log_verbose("Closing source and database")
        errors: list[Exception] = []
        for closer in (self.source.close, self.database.close):
            try:
                closer()
            except Exception as exc:
                errors.append(exc)
        if len(errors) == 1:
            raise errors[0]
        if errors:
            raise MigrateError(f"source: {errors[0]}, database: {errors[1]}") from errors[0]

    def migrate(self, version: int) -> None:
        """Migrate up or down from the current version to ``version``."""
        with self._holding_lock():
            current = self._clean_version()
            self._run_migrations(self._reader.read(current, version))

    def steps(self, n: int) -> None:
        """Apply ``n`` up migrations if positive, ``-n`` down ones if negative."""
        if n == 0:
            raise NoChangeError()
        with self._holding_lock():
            current = self._clean_version()
            if n > 0:
                migrations = self._reader.read_up(current, n)
            else:
                migrations = self._reader.read_down(current, -n)
            self._run_migrations(migrations)

    def up(self) -> None:
        """Apply every remaining up migration."""
        with self._holding_lock():
            current = self._clean_version()
            self._run_migrations(self._reader.read_up(current, -1))

    def down(self) -> None:
        """Apply every down migration."""
        with self._holding_lock():
            current = self._clean_version()
            self._run_migrations(self._reader.read_down(current, -1))

    def drop(self) -> None:
        """Delete everything in the database."""
        with self._holding_lock():
            self.database.drop()

    def run(self, *args: Migration) -> None:
        """Run the given migrations without consulting the source."""
        if not args:
            raise NoChangeError()
        with self._holding_lock():
            self._clean_version()
            self._run_migrations(self._schedule_all(args))

    def force(self, version: int) -> None:
        """Set the version without running anything, clearing the dirty state."""
        if version < -1:
            raise InvalidVersionError()
        with self._holding_lock():
            self.database.set_version(version, False)

    def version(self) -> tuple[int, bool]:
        """Return the active version and dirty state.

        Raises ``NilVersionError`` if no migration has been applied.
        """
        version, dirty = self.database.version()
        if version == NIL_VERSION:
            raise NilVersionError()
        return version, dirty

    def request_stop(self) -> None:
        """Stop after the running migration, at a safe point."""
        self._stop_event.set()

    def lock(self) -> None:
        """Lock the database, waiting at most ``lock_timeout`` seconds."""
        with self._lock_mutex:
            if self._is_locked:
                raise LockedError()

            outcome: queue.Queue = queue.Queue(maxsize=1)

            def attempt() -> None:
                try:
                    self.database.lock()
                except BaseException as exc:
                    outcome.put(exc)
                else:
                    outcome.put(None)

            threading.Thread(target=attempt, daemon=True).start()
            try:
                error = outcome.get(timeout=self.lock_timeout)
            except queue.Empty:
                raise LockTimeoutError() from None
            if error is not None:
                raise error
            self._is_locked = True

    def unlock(self) -> None:
        """Unlock the database."""
        with self._lock_mutex:
            self.database.unlock()
            self._is_locked = False

    @contextmanager
    def _holding_lock(self) -> Iterator[None]:
        self.lock()
        try:
            yield
        except BaseException as exc:
            try:
                self.unlock()
            except Exception as unlock_error:
                raise MigrateError(f"{exc}; {unlock_error}") from exc
            raise
        self.unlock()

    def _clean_version(self) -> int:
        version, dirty = self.database.version()
        if dirty:
            raise DirtyError(version)
        return version

    def _should_stop(self) -> bool:
        return self._stop_event.is_set()

    def _schedule_all(self, migrations: Iterable[Migration]) -> Iterator[Migration]:
        for migration in migrations:
            if self.prefetch_migrations > 0 and migration.body is not None:
                self._log_verbose(f"Start buffering {migration.log_string()}")
            else:
                self._log_verbose(f"Scheduled {migration.log_string()}")
            threading.Thread(target=self._buffer, args=(migration,), daemon=True).start()
            yield migration

    def _buffer(self, migration: Migration) -> None:
        try:
            migration.buffer()
        except Exception as exc:
            self._log_err(exc)

    def _run_migrations(self, migrations: Iterable[Migration]) -> None:
        iterator = iter(migrations)
        while True:
            try:
                migration = next(iterator)
            except StopIteration:
                return
            except Exception:
                if self._should_stop():
                    return
                raise
            if self._should_stop():
                return
            self._apply(migration)

    def _apply(self, migration: Migration) -> None:
        self.database.set_version(migration.target_version, True)
        if migration.body is not None:
            self._log_verbose(f"Read and execute {migration.log_string()}")
            self.database.run(migration.read_body())
        self.database.set_version(migration.target_version, False)

        logger = self.log
        if logger is None:
            return
        end_time = datetime.now()
        finished = migration.finished_reading or end_time
        started = migration.started_buffering or finished
        read_time = finished - started
        run_time = end_time - finished
        if logger.verbose():
            logger.log(f"Finished {migration.log_string()} (read {read_time}, ran {run_time})")
        else:
            logger.log(f"{migration.log_string()} ({read_time + run_time})")

    def _log_verbose(self, message: str) -> None:
        logger = self.log
        if logger is not None and logger.verbose():
            logger.log(message)

    def _log_err(self, error: BaseException) -> None:
        logger = self.log
        if logger is not None:
            logger.log(f"error: {error}")