"""Utilities shared by database drivers."""

import zlib

_ADVISORY_LOCK_ID_SALT = 1486364155


def generate_advisory_lock_id(database_name: str, *args: str) -> str:
    """Return a numeric advisory lock id derived from the given names."""
    if args:
        database_name = "\x00".join([*args, database_name])
    checksum = zlib.crc32(database_name.encode("utf-8"))
    return str((checksum * _ADVISORY_LOCK_ID_SALT) & 0xFFFFFFFF)