"""DDL helpers for Cloud Spanner migrations."""

from __future__ import annotations

import re
from typing import Iterable, Union

_NAME_MATCHER = re.compile(r"(CREATE TABLE\s(\S+)\s)|(CREATE.+INDEX\s(\S+)\s)")


def migration_statements(migration: Union[bytes, str]) -> list[str]:
    """Split a migration into its non-empty, trimmed statements."""
    if isinstance(migration, (bytes, bytearray, memoryview)):
        migration = bytes(migration).decode("utf-8")
    statements = (part.strip() for part in migration.strip().split(";"))
    return [statement for statement in statements if statement]


def drop_statements(ddl_statements: Iterable[str]) -> list[str]:
    """Return statements dropping the tables and indexes of a schema.

    They come in reverse order, undoing the schema from its last statement.
    """
    drops = []
    for statement in reversed(list(ddl_statements)):
        match = _NAME_MATCHER.search(statement)
        if match is None:
            continue
        table, index = match.group(2), match.group(4)
        if table:
            drops.append(f"DROP TABLE {table}")
        elif index:
            drops.append(f"DROP INDEX {index}")
    return drops