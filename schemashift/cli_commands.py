"""The work behind each command of the command line interface."""

from __future__ import annotations

import glob
import os
import posixpath
import re
from datetime import datetime

from schemashift.errors import NoChangeError
from schemashift.logger import Logger
from schemashift.migrate import Migrate

DEFAULT_TIME_FORMAT = "%Y%m%d%H%M%S"

_SIGNED_INT = re.compile(r"[+-]?[0-9]+")
_UNSIGNED_INT = re.compile(r"[0-9]+")


class CommandError(Exception):
    """A command could not be carried out because of its arguments."""


def _parse_int(text: str) -> int:
    if not _SIGNED_INT.fullmatch(text):
        raise CommandError(f'parsing "{text}": invalid syntax')
    return int(text)


def next_seq(matches: list[str], directory: str, seq_digits: int) -> str:
    """Return the zero-padded sequence number following the last match."""
    if seq_digits <= 0:
        raise CommandError("Digits must be positive")

    following = 1
    if matches:
        filename = matches[-1]
        seq_text = filename[len(directory):] if filename.startswith(directory) else filename
        index = seq_text.find("_")
        # At least one digit must precede the underscore.
        if index < 1:
            raise CommandError("Malformed migration filename: " + filename)
        following = _parse_int(seq_text[:index]) + 1

    if following <= 0:
        raise CommandError("Next sequence number must be positive")

    text = str(following)
    if len(text) > seq_digits:
        raise CommandError(
            f"Next sequence number {text} too large. At most {seq_digits} digits are allowed"
        )
    return text.rjust(seq_digits, "0")


def clean_dir(directory: str) -> str:
    """Normalise a directory so it can be used as a file name prefix."""
    cleaned = posixpath.normpath(directory) if directory else "."
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    if cleaned == ".":
        return ""
    if cleaned == "/":
        return cleaned
    return cleaned + "/"


def _unix_nanos(moment: datetime) -> int:
    return int(moment.timestamp()) * 1_000_000_000 + moment.microsecond * 1000


def create_migration_files(
    directory: str,
    start_time: datetime,
    time_format: str,
    name: str,
    ext: str,
    seq: bool,
    seq_digits: int,
) -> list[str]:
    """Create an empty up and down migration; return their paths."""
    directory = clean_dir(directory)
    if seq and time_format != DEFAULT_TIME_FORMAT:
        raise CommandError("The seq and format options are mutually exclusive")

    if seq:
        if seq_digits <= 0:
            raise CommandError("Digits must be positive")
        matches = sorted(glob.glob(directory + "*" + ext))
        base = f"{directory}{next_seq(matches, directory, seq_digits)}_{name}."
    elif time_format == "":
        raise CommandError("Time format may not be empty")
    elif time_format == "unix":
        base = f"{directory}{int(start_time.timestamp())}_{name}."
    elif time_format == "unixNano":
        base = f"{directory}{_unix_nanos(start_time)}_{name}."
    else:
        base = f"{directory}{start_time.strftime(time_format)}_{name}."

    if directory:
        os.makedirs(directory, exist_ok=True)

    paths = [base + "up" + ext, base + "down" + ext]
    for path in paths:
        with open(path, "w", encoding="utf-8"):
            pass
    return paths


def goto_command(migrator: Migrate, version: int, log: Logger) -> None:
    """Migrate to ``version``; having nothing to do is only logged."""
    try:
        migrator.migrate(version)
    except NoChangeError as exc:
        log.log(str(exc))


def up_command(migrator: Migrate, limit: int, log: Logger) -> None:
    """Apply ``limit`` up migrations, or all of them if ``limit`` is negative."""
    try:
        if limit >= 0:
            migrator.steps(limit)
        else:
            migrator.up()
    except NoChangeError as exc:
        log.log(str(exc))


def down_command(migrator: Migrate, limit: int, log: Logger) -> None:
    """Apply ``limit`` down migrations, or all of them if ``limit`` is negative."""
    try:
        if limit >= 0:
            migrator.steps(-limit)
        else:
            migrator.down()
    except NoChangeError as exc:
        log.log(str(exc))


def drop_command(migrator: Migrate) -> None:
    """Delete everything in the database."""
    migrator.drop()


def force_command(migrator: Migrate, version: int) -> None:
    """Set the version without running a migration."""
    migrator.force(version)


def version_command(migrator: Migrate, log: Logger) -> None:
    """Log the current version, marking it when dirty."""
    version, dirty = migrator.version()
    log.log(f"{version} (dirty)" if dirty else str(version))


def num_down_migrations_from_args(apply_all: bool, args: list[str]) -> tuple[int, bool]:
    """Return how many down migrations to apply and whether to ask first.

    -1 means all of them.
    """
    if apply_all:
        if args:
            raise CommandError("-all cannot be used with other arguments")
        return -1, False

    if not args:
        return -1, True
    if len(args) == 1:
        value = args[0]
        if not _UNSIGNED_INT.fullmatch(value) or int(value) >= 2**64:
            raise CommandError("can't read limit argument N")
        return int(value), False
    raise CommandError("too many arguments")