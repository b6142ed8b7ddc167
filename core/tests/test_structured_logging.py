"""Tests for run/file correlation logging context."""

import logging

from core.structured_logging import (
    _RunContextFilter,
    file_scope,
    get_run_id,
    set_run_id,
)


def _tagged_file() -> str:
    record = logging.LogRecord("test", logging.INFO, __file__, 1, "msg", None, None)
    assert _RunContextFilter().filter(record)
    return record.source_file


def test_set_run_id_generates_value() -> None:
    run_id = set_run_id()
    assert run_id
    assert get_run_id() == run_id


def test_set_run_id_explicit() -> None:
    assert set_run_id("run-42") == "run-42"
    assert get_run_id() == "run-42"


def test_file_scope_is_restored() -> None:
    assert _tagged_file() == "-"
    with file_scope("/s/a.ps1"):
        assert _tagged_file() == "/s/a.ps1"
        with file_scope("/s/b.ps1"):
            assert _tagged_file() == "/s/b.ps1"
        assert _tagged_file() == "/s/a.ps1"
    assert _tagged_file() == "-"


def test_filter_injects_run_id() -> None:
    set_run_id("run-7")
    record = logging.LogRecord("test", logging.INFO, __file__, 1, "msg", None, None)
    with file_scope("/s/c.ps1"):
        assert _RunContextFilter().filter(record)
    assert record.run_id == "run-7"
    assert record.source_file == "/s/c.ps1"
