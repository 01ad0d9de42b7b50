from __future__ import annotations

import logging

import pytest

from lab_allocator.utils.logger import format_fields, get_logger, log_duration


def test_format_fields_uses_pipe_separator() -> None:
    assert format_fields(labs=3, groups=5) == "labs=3 | groups=5"
    assert format_fields() == ""


def test_log_duration_reports_success(caplog) -> None:
    logger = get_logger("tests.timing")
    with caplog.at_level(logging.INFO, logger="tests.timing"):
        with log_duration(logger, "Allocation run", labs=2):
            pass

    messages = [record.getMessage() for record in caplog.records]
    assert len(messages) == 1
    assert messages[0].startswith("Allocation run finished | duration_ms=")
    assert messages[0].endswith("| labs=2")


def test_log_duration_reports_failure_and_reraises(caplog) -> None:
    logger = get_logger("tests.timing")
    with caplog.at_level(logging.INFO, logger="tests.timing"):
        with pytest.raises(RuntimeError):
            with log_duration(logger, "Allocation run"):
                raise RuntimeError("boom")

    [record] = caplog.records
    assert record.levelno == logging.WARNING
    assert record.getMessage().startswith("Allocation run failed | duration_ms=")
