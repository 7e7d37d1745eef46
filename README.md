# schemashift

schemashift reads versioned migrations from a source and applies them to a
database. All of the migration logic is in the package. A source only has to
answer a few questions ("what is the first version?", "what comes after
version N?", "give me the up body of version N"), and a database only has to
lock, run a body and record a version.

## Concepts

- **Version**: a non-negative integer. A database that has never been migrated
  is at the *nil version*, represented as `-1`.
- **Migration**: a `schemashift.migration.Migration` with a `version`, a
  `target_version` and an optional body. A migration without a body (its
  identifier then becomes `<empty>`) still moves the database to its target
  version. `log_string()` describes it as `1/u create_users`, with `d` for a
  step downwards.
- **Dirty**: a database is marked dirty before a migration body runs and clean
  once it has finished. A failed migration leaves it dirty; fix it by hand and
  then call `force` with the correct version.

## Sources and databases

A source implements `schemashift.reading.SourceDriver`:
`first()`, `prev(version)`, `next(version)`, `read_up(version)`,
`read_down(version)` and `close()`. The `read_*` methods return a
`(binary_stream, identifier)` pair. Each method raises `FileNotFoundError`
when the version or migration does not exist.

A database implements `schemashift.migrate.DatabaseDriver`:
`lock()`, `unlock()`, `run(body)`, `set_version(version, dirty)`,
`version()`, `drop()` and `close()`. The package provides two:

- `schemashift.sqlite3_driver.Sqlite3Driver`, for SQLite through the
  standard `sqlite3` module. Open one with `open_sqlite3("sqlite3://app.db")`
  or wrap an existing connection with
  `with_instance(connection, Sqlite3Config())`. The version table is
  `schema_migrations` unless `Sqlite3Config.migrations_table` or the URL
  parameter `x-migrations-table` names another; other `x-` parameters are
  dropped from the URL. Failures are raised as `Sqlite3Error`.
- `schemashift.database_stub.StubDatabase`, an in-memory database that
  records every body it runs in `migration_sequence` (and `"DROP"` on
  `drop()`); useful in tests.

## Running migrations

```python
from schemashift.errors import NoChangeError
from schemashift.logger import ListLogger
from schemashift.migrate import Migrate
from schemashift.sqlite3_driver import open_sqlite3

database = open_sqlite3("sqlite3://app.db")
source = ...  # your SourceDriver implementation

m = Migrate(source, database, "files", "sqlite3", ListLogger())
try:
    m.up()            # apply every pending up migration
except NoChangeError:
    pass

version, dirty = m.version()
m.close()
```

Operations on `Migrate`:

- `migrate(version)`: move up or down to `version`.
- `steps(n)`: apply `n` up migrations, or `-n` down migrations when negative.
- `up()` / `down()`: apply every remaining up or down migration.
- `drop()`: remove everything from the database.
- `force(version)`: record a version and clear the dirty flag without running
  anything.
- `run(migration, ...)`: run `Migration` objects you built yourself.
- `version()`: the current `(version, dirty)` pair.
- `request_stop()`: stop at the next safe point between migrations.
- `close()`: close the source and the database.

Each operation locks the database first and unlocks it afterwards.
`lock_timeout` (seconds, default 15) limits how long the lock is waited for;
`prefetch_migrations` (default 10) only affects what is logged. Migration
bodies are read in background threads as soon as each migration is scheduled.

## Errors

Failures are raised as exceptions from `schemashift.errors`, all derived from
`MigrateError`:

| Exception             | Raised when                                           |
|-----------------------|-------------------------------------------------------|
| `NoChangeError`       | there is nothing to do                                |
| `NilVersionError`     | `version()` is asked and nothing has been applied     |
| `InvalidVersionError` | a forced version is below `-1`                        |
| `LockedError`         | the database is already locked                        |
| `LockTimeoutError`    | the lock could not be acquired in time                |
| `ShortLimitError`     | fewer migrations exist than the requested step count  |
| `DirtyError`          | the database is dirty and must be fixed first         |

A version the source does not know raises `FileNotFoundError`.

## Logging

A logger is any `schemashift.logger.Logger`: an object with `log(message)` and
`verbose()`. `ListLogger` collects messages in a list;
`schemashift.cli_log.CliLog` writes them to standard error (or a given
stream), prefixed with date and time when verbose. Every applied migration is
logged with its total time; in verbose mode the read and run times are given
separately, and scheduling and buffering are logged as well.

## Helpers

- `schemashift.url.scheme_from_url(url)`: the driver name in front of the
  first `:`; raises `UrlError` for an empty URL or one without a scheme.
- `schemashift.dbutil.generate_advisory_lock_id(name, *more)`: a stable
  numeric lock identifier derived from a database name and optional schema
  names.
- `schemashift.spanner_ddl.migration_statements(body)`: split a DDL body into
  trimmed, non-empty statements; `drop_statements(ddl)` turns a schema into
  `DROP TABLE` / `DROP INDEX` statements in reverse order.
- `schemashift.cli_commands`: the work behind a command-line tool.
  `create_migration_files(...)` creates an empty `up`/`down` pair named by a
  timestamp, Unix time or a zero-padded sequence number (`next_seq`,
  `clean_dir`); `goto_command`, `up_command`, `down_command`, `drop_command`,
  `force_command` and `version_command` drive a `Migrate` and log a
  `NoChangeError` instead of raising it; `num_down_migrations_from_args`
  interprets the arguments of a "down" command. Bad arguments raise
  `CommandError`.

## What the package does not do

- It installs no command-line program; the functions in
  `schemashift.cli_commands` have to be called from your own script.
- It ships no source driver: reading migrations from files or anywhere else
  is up to your `SourceDriver` implementation.
- The only real database driver is SQLite. For Cloud Spanner there are just
  the DDL helpers above, no driver that connects to it.