"""In-memory database driver that records what it was asked to do."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from schemashift.errors import LockedError

DROP = "DROP"


@dataclass
class StubConfig:
    """Configuration for the stub driver; it has no options."""


@dataclass
class StubDatabase:
    """Database driver keeping its version and run migrations in memory."""

    url: str = ""
    instance: Any = None
    current_version: int = -1
    migration_sequence: list[str] = field(default_factory=list)
    last_run_migration: Optional[bytes] = None
    is_dirty: bool = False
    is_locked: bool = False
    config: Optional[StubConfig] = None

    def open(self, url: str) -> "StubDatabase":
        """Return a fresh stub driver for ``url``."""
        return StubDatabase(url=url, config=StubConfig())

    def close(self) -> None:
        """Nothing to release."""

    def lock(self) -> None:
        if self.is_locked:
            raise LockedError()
        self.is_locked = True

    def unlock(self) -> None:
        self.is_locked = False

    def run(self, migration) -> None:
        """Record a migration given as bytes, text or a readable object."""
        if hasattr(migration, "read"):
            migration = migration.read()
        if isinstance(migration, str):
            migration = migration.encode("utf-8")
        data = bytes(migration)
        self.last_run_migration = data
        self.migration_sequence.append(data.decode("utf-8"))

    def set_version(self, version: int, dirty: bool) -> None:
        self.current_version = version
        self.is_dirty = dirty

    def version(self) -> tuple[int, bool]:
        return self.current_version, self.is_dirty

    def drop(self) -> None:
        self.current_version = -1
        self.last_run_migration = None
        self.migration_sequence.append(DROP)

    def equal_sequence(self, sequence: Iterable[str]) -> bool:
        """Return True if exactly ``sequence`` has been recorded."""
        return list(sequence) == self.migration_sequence


def with_instance(instance: Any, config: Optional[StubConfig]) -> StubDatabase:
    """Return a stub driver wrapping an existing instance."""
    return StubDatabase(instance=instance, config=config)