import json
import logging

import pytest

from metrix.logger import get_logger, initialize


@pytest.mark.parametrize(
    ("level", "expected"),
    [
        ("info", logging.INFO),
        ("debug", logging.DEBUG),
        ("WARN", logging.WARNING),
        ("", logging.INFO),
        ("fatal", logging.CRITICAL),
    ],
)
def test_initialize_valid_levels(level, expected):
    initialize(level)
    assert get_logger().level == expected


def test_initialize_invalid_level_keeps_logger():
    initialize("debug")
    with pytest.raises(ValueError):
        initialize("notalevel")
    assert get_logger().level == logging.DEBUG


def test_initialize_rejects_mixed_case():
    with pytest.raises(ValueError):
        initialize("Info")


def test_initialized_logger_writes_json(capsys):
    initialize("info")
    get_logger().info("Request", extra={"fields": {"method": "GET"}})
    line = capsys.readouterr().err.strip()
    entry = json.loads(line)
    assert entry["msg"] == "Request"
    assert entry["level"] == "info"
    assert entry["method"] == "GET"


def test_level_filters_lower_records(capsys):
    initialize("error")
    get_logger().info("hidden")
    assert capsys.readouterr().err == ""