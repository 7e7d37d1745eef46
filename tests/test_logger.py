import pytest

from schemashift.logger import ListLogger, Logger


def test_logger_is_abstract():
    with pytest.raises(TypeError):
        Logger()


def test_list_logger_collects_messages_in_order():
    logger = ListLogger()
    logger.log("first")
    logger.log("second")
    assert logger.messages == ["first", "second"]


def test_list_logger_verbose_flag():
    assert ListLogger().verbose() is False
    assert ListLogger(verbose_enabled=True).verbose() is True


def test_list_loggers_do_not_share_messages():
    a = ListLogger()
    b = ListLogger()
    a.log("only in a")
    assert b.messages == []
    assert a.messages == ["only in a"]


def test_list_logger_is_a_logger():
    logger = ListLogger()
    assert isinstance(logger, Logger)
    logger.log("x")
    assert len(logger.messages) == 1