import datetime as dt
import io
import threading

import pytest

from rtpkit import log as rlog
from rtpkit.log import FatalLogError, Logger, LogLevel, format_record


@pytest.fixture
def captured():
    logger = Logger()
    records = []
    logger.set_handler(lambda domain, level, msg: records.append((domain, level, msg)))
    return logger, records


def test_default_mask():
    logger = Logger()
    assert logger.get_level_mask(None) == LogLevel.WARNING | LogLevel.ERROR | LogLevel.FATAL


def test_set_level_enables_higher_levels():
    logger = Logger()
    logger.set_level(None, LogLevel.MESSAGE)
    expected = LogLevel.MESSAGE | LogLevel.WARNING | LogLevel.ERROR | LogLevel.FATAL
    assert logger.get_level_mask(None) == expected
    assert logger.level_enabled(None, LogLevel.MESSAGE)
    assert logger.level_enabled(None, LogLevel.DEBUG) == 0
    assert logger.level_enabled(None, LogLevel.TRACE) == 0


def test_domain_masks_are_independent():
    logger = Logger()
    logger.set_level_mask("net", LogLevel.DEBUG)
    assert logger.get_level_mask("net") == LogLevel.DEBUG
    assert logger.get_level_mask(None) == logger.get_level_mask("other")
    assert logger.level_enabled("net", LogLevel.DEBUG)
    assert not logger.level_enabled("net", LogLevel.ERROR)
    logger.reset_domains()
    assert logger.get_level_mask("net") == logger.get_level_mask(None)


def test_filtering_and_formatting(captured):
    logger, records = captured
    logger.log(None, LogLevel.DEBUG, "hidden %d", 1)
    logger.log("dom", LogLevel.ERROR, "value %d", 3)
    assert records == [("dom", LogLevel.ERROR, "value 3")]


def test_fatal_raises_after_logging(captured):
    logger, records = captured
    with pytest.raises(FatalLogError):
        logger.log(None, LogLevel.FATAL, "boom")
    assert records == [(None, LogLevel.FATAL, "boom")]


def test_deferred_until_flush(captured):
    logger, records = captured
    logger.set_thread_id(threading.get_ident() + 1)
    logger.log(None, LogLevel.WARNING, "first")
    logger.log(None, LogLevel.ERROR, "second")
    assert records == []
    logger.flush()
    assert [r[2] for r in records] == ["first", "second"]


def test_reset_thread_id_flushes(captured):
    logger, records = captured
    logger.set_thread_id(threading.get_ident() + 1)
    logger.log(None, LogLevel.WARNING, "pending")
    logger.set_thread_id(0)
    assert [r[2] for r in records] == ["pending"]
    logger.log(None, LogLevel.WARNING, "direct")
    assert [r[2] for r in records] == ["pending", "direct"]


def test_output_thread_flushes_before_own_message(captured):
    logger, records = captured
    logger.set_thread_id(threading.get_ident())
    worker = threading.Thread(target=logger.log, args=(None, LogLevel.ERROR, "from worker"))
    worker.start()
    worker.join()
    assert records == []
    logger.log(None, LogLevel.ERROR, "from owner")
    assert [r[2] for r in records] == ["from worker", "from owner"]


def test_format_record():
    when = dt.datetime(2020, 1, 2, 3, 4, 5, 6000)
    assert format_record(LogLevel.WARNING, "hello", when) == "2020-01-02 03:04:05:006 rtpkit-warning-hello"


def test_format_record_unknown_level():
    when = dt.datetime(2020, 1, 2, 3, 4, 5)
    assert format_record(LogLevel.TRACE, "x", when).endswith("rtpkit-badlevel-x")


def test_default_handler_writes_to_file():
    logger = Logger()
    out = io.StringIO()
    logger.set_log_file(out)
    logger.log(None, LogLevel.ERROR, "%s-%d", "code", 7)
    assert out.getvalue().endswith(" rtpkit-error-code-7\n")


def test_handler_roundtrip():
    logger = Logger()
    handler = lambda d, l, m: None  # noqa: E731
    logger.set_handler(handler)
    assert logger.get_handler() is handler


def test_module_level_functions():
    logger = rlog.get_logger()
    records = []
    old_handler = logger.get_handler()
    old_mask = logger.get_level_mask(None)
    logger.set_handler(lambda d, l, m: records.append((l, m)))
    logger.set_level(None, LogLevel.DEBUG)
    try:
        rlog.debug("d")
        rlog.message("m %d", 2)
        rlog.warning("w")
        rlog.error("e")
        rlog.log(LogLevel.MESSAGE, "l")
        with pytest.raises(FatalLogError):
            rlog.fatal("f")
    finally:
        logger.set_handler(old_handler)
        logger.set_level_mask(None, old_mask)
    assert records == [
        (LogLevel.DEBUG, "d"),
        (LogLevel.MESSAGE, "m 2"),
        (LogLevel.WARNING, "w"),
        (LogLevel.ERROR, "e"),
        (LogLevel.MESSAGE, "l"),
        (LogLevel.FATAL, "f"),
    ]
    assert rlog.get_logger() is logger