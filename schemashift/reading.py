"""Reading migrations from a source in the order they must be applied."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from typing import BinaryIO, Callable, Iterator, Optional

from schemashift.errors import NoChangeError, ShortLimitError
from schemashift.logger import Logger
from schemashift.migration import Migration

DEFAULT_PREFETCH_MIGRATIONS = 10


class SourceDriver(ABC):
    """A place migrations are read from.

    Every method raises ``FileNotFoundError`` when the requested version
    or migration does not exist.
    """

    @abstractmethod
    def first(self) -> int:
        """Return the lowest available version."""

    @abstractmethod
    def prev(self, version: int) -> int:
        """Return the version just below ``version``."""

    @abstractmethod
    def next(self, version: int) -> int:
        """Return the version just above ``version``."""

    @abstractmethod
    def read_up(self, version: int) -> tuple[BinaryIO, str]:
        """Return the body and identifier of the up migration."""

    @abstractmethod
    def read_down(self, version: int) -> tuple[BinaryIO, str]:
        """Return the body and identifier of the down migration."""

    @abstractmethod
    def close(self) -> None:
        """Release the source."""


def _not_found(version: int) -> FileNotFoundError:
    return FileNotFoundError(f"no migration found for version {version}")


class MigrationReader:
    """Produces the migrations between versions of a source.

    Each reading method is a generator: it yields ``Migration`` objects in
    the order they must be applied and raises when it cannot go on. Bodies
    are buffered in background threads as soon as a migration is yielded.
    """

    def __init__(
        self,
        source: SourceDriver,
        logger: Optional[Logger] = None,
        should_stop: Optional[Callable[[], bool]] = None,
    ) -> None:
        self.source = source
        self.logger = logger
        self.should_stop = should_stop
        self.prefetch_migrations = DEFAULT_PREFETCH_MIGRATIONS

    def _stopped(self) -> bool:
        return self.should_stop is not None and self.should_stop()

    def _schedule(self, migration: Migration) -> Migration:
        thread = threading.Thread(target=self._buffer, args=(migration,), daemon=True)
        thread.start()
        return migration

    def _buffer(self, migration: Migration) -> None:
        try:
            migration.buffer()
        except Exception as exc:  # reported through the logger only
            self._log_err(exc)

    def read(self, from_version: int, to_version: int) -> Iterator[Migration]:
        """Yield the up or down migrations leading from one version to another."""
        if from_version >= 0:
            self.version_exists(from_version)
        if to_version >= 0:
            self.version_exists(to_version)

        if from_version == to_version:
            raise NoChangeError()

        current = from_version
        if current < to_version:
            if current == -1:
                first = self.source.first()
                yield self._schedule(self.new_migration(first, first))
                current = first

            while current < to_version:
                if self._stopped():
                    return
                following = self.source.next(current)
                yield self._schedule(self.new_migration(following, following))
                current = following
        else:
            while current > to_version and current >= 0:
                if self._stopped():
                    return
                try:
                    previous = self.source.prev(current)
                except FileNotFoundError:
                    if to_version != -1:
                        raise
                    yield self._schedule(self.new_migration(current, -1))
                    return
                yield self._schedule(self.new_migration(current, previous))
                current = previous

    def read_up(self, from_version: int, limit: int) -> Iterator[Migration]:
        """Yield up to ``limit`` up migrations; a limit of -1 means all."""
        if from_version >= 0:
            self.version_exists(from_version)

        if limit == 0:
            raise NoChangeError()

        current = from_version
        count = 0
        while count < limit or limit == -1:
            if self._stopped():
                return

            if current == -1:
                first = self.source.first()
                yield self._schedule(self.new_migration(first, first))
                current = first
                count += 1
                continue

            try:
                following = self.source.next(current)
            except FileNotFoundError:
                if limit == -1 and count == 0:
                    raise NoChangeError() from None
                if limit == -1:
                    return
                if limit > 0 and count == 0:
                    raise
                if count < limit:
                    raise ShortLimitError(limit - count) from None
                raise

            yield self._schedule(self.new_migration(following, following))
            current = following
            count += 1

    def read_down(self, from_version: int, limit: int) -> Iterator[Migration]:
        """Yield up to ``limit`` down migrations; a limit of -1 means all."""
        if from_version >= 0:
            self.version_exists(from_version)

        if limit == 0:
            raise NoChangeError()

        if from_version == -1 and limit == -1:
            raise NoChangeError()

        if from_version == -1 and limit > 0:
            raise FileNotFoundError("no version to migrate down from")

        current = from_version
        count = 0
        while count < limit or limit == -1:
            if self._stopped():
                return

            try:
                previous = self.source.prev(current)
            except FileNotFoundError:
                previous = None

            if previous is None:
                if limit == -1 or limit - count > 0:
                    first = self.source.first()
                    yield self._schedule(self.new_migration(first, -1))
                    count += 1
                if count < limit:
                    raise ShortLimitError(limit - count)
                return

            yield self._schedule(self.new_migration(current, previous))
            current = previous
            count += 1

    def version_exists(self, version: int) -> None:
        """Raise ``FileNotFoundError`` unless an up or down migration exists."""
        for reader in (self.source.read_up, self.source.read_down):
            try:
                body, _identifier = reader(version)
            except FileNotFoundError:
                continue
            if body is not None:
                body.close()
            return

        error = _not_found(version)
        self._log_err(error)
        raise error

    def new_migration(self, version: int, target_version: int) -> Migration:
        """Build the migration that moves ``version`` to ``target_version``."""
        reader = self.source.read_up if target_version >= version else self.source.read_down
        try:
            body, identifier = reader(version)
        except FileNotFoundError:
            migration = Migration(None, "", version, target_version)
        else:
            migration = Migration(body, identifier, version, target_version)

        if self.prefetch_migrations > 0 and migration.body is not None:
            self._log_verbose(f"Start buffering {migration.log_string()}")
        else:
            self._log_verbose(f"Scheduled {migration.log_string()}")
        return migration

    def _log_verbose(self, message: str) -> None:
        if self.logger is not None and self.logger.verbose():
            self.logger.log(message)

    def _log_err(self, error: BaseException) -> None:
        if self.logger is not None:
            self.logger.log(f"error: {error}")