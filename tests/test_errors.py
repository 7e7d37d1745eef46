import pytest

from schemashift.errors import (
    DirtyError,
    InvalidVersionError,
    LockedError,
    LockTimeoutError,
    MigrateError,
    NilVersionError,
    NoChangeError,
    ShortLimitError,
)


@pytest.mark.parametrize(
    ("error", "message"),
    [
        (NoChangeError(), "no change"),
        (NilVersionError(), "no migration"),
        (InvalidVersionError(), "version must be >= -1"),
        (LockedError(), "database locked"),
        (LockTimeoutError(), "timeout: can't acquire database lock"),
    ],
)
def test_default_messages(error, message):
    assert str(error) == message
    assert isinstance(error, MigrateError)


def test_short_limit_message_and_value():
    error = ShortLimitError(3)
    assert error.short == 3
    assert str(error) == "limit 3 short"


def test_short_limit_equality():
    assert ShortLimitError(1) == ShortLimitError(1)
    assert not ShortLimitError(1) == ShortLimitError(2)
    assert len({ShortLimitError(1), ShortLimitError(1)}) == 1


def test_dirty_message_and_value():
    error = DirtyError(5)
    assert error.version == 5
    assert str(error) == "Dirty database version 5. Fix and force version."


def test_dirty_equality():
    assert DirtyError(0) == DirtyError(0)
    assert not DirtyError(0) == DirtyError(1)


def test_errors_can_be_caught_by_base_class():
    error = DirtyError(2)
    with pytest.raises(MigrateError) as info:
        raise error
    assert info.value.version == 2
    assert str(info.value) == "Dirty database version 2. Fix and force version."
    assert info.value == DirtyError(2)