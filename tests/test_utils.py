"""
Tests for small parsing helpers.
"""

from datetime import UTC, datetime

import pytest

from setapp_cli.utils import parse_max_age, random_token, try_parse_date


class TestParseMaxAge:
    @pytest.mark.parametrize(
        "header, expected",
        [
            ("public, max-age=14400", 14400),
            ("max-age=0", 0),
            ("no-store", None),
            ("max-age=soon", None),
            ("", None),
            (None, None),
        ],
    )
    def test_values(self, header, expected):
        assert parse_max_age(header) == expected


class TestTryParseDate:
    def test_http_date(self):
        assert try_parse_date("Tue, 14 Nov 2023 22:13:20 GMT") == datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)

    def test_naive_dates_are_utc(self):
        assert try_parse_date("2023-11-14 22:13:20").tzinfo is UTC

    def test_garbage(self):
        assert try_parse_date("garbage") is None
        assert try_parse_date(None) is None


def test_random_token_is_hex_and_varies():
    a, b = random_token(), random_token()
    assert a != b
    assert len(a) == 16
    int(a, 16)
