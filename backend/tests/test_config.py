import logging
import os
import sys

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from bowling_tracker import config


@pytest.mark.parametrize(
    "raw, expected",
    [(None, "/api"), ("", "/api"), ("api", "/api"), ("/bowling/", "/bowling"), ("/", "/")],
)
def test_canon_prefix(raw, expected):
    assert config._canon_prefix(raw) == expected


def test_parse_origins():
    assert config._parse_origins(None) == []
    assert config._parse_origins(" https://a.example , ,https://b.example") == [
        "https://a.example",
        "https://b.example",
    ]
    with pytest.raises(ValueError, match="wildcard"):
        config._parse_origins("https://a.example,*")


def test_parse_number(caplog):
    default = config.DEFAULT_GAME_TTL_SECONDS
    assert config._parse_number("GAME_TTL_SECONDS", None, default) == default
    assert config._parse_number("GAME_TTL_SECONDS", "90", default) == 90.0
    assert config._parse_number("SENTRY_TRACES_SAMPLE_RATE", "0", 0.5) == 0.0
    with caplog.at_level(logging.WARNING):
        assert config._parse_number("GAME_TTL_SECONDS", "soon", default) == default
        assert config._parse_number("GAME_TTL_SECONDS", "0", default, positive=True) == default
        assert config._parse_number("SENTRY_TRACES_SAMPLE_RATE", "-1", 0.0) == 0.0
    assert "GAME_TTL_SECONDS must be positive" in caplog.text
    assert "SENTRY_TRACES_SAMPLE_RATE must be non-negative" in caplog.text
