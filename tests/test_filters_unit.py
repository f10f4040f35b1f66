"""
Unit tests — Response filter pipeline (status allow-list, body regex).
"""

import re
from unittest.mock import MagicMock

import pytest

from gety.core.filters import FilterConfig, accept, passes_body, passes_status
from gety.core.models import Method, RequestOutcome


def _outcome(code: int) -> RequestOutcome:
    return RequestOutcome(method=Method.GET, url="http://a.test/", status_code=code, reason="")


class TestStatusFilter:

    def test_empty_allow_set_accepts_everything(self):
        for code in (200, 301, 404, 500, 999):
            assert passes_status(code, frozenset())

    def test_allow_set_membership(self):
        allowed = frozenset({200, 403})
        kept = [c for c in (200, 301, 403, 500) if passes_status(c, allowed)]
        assert kept == [200, 403]


class TestBodyFilter:

    def test_no_pattern_accepts(self):
        assert passes_body("anything", None)

    def test_search_is_unanchored(self):
        pat = re.compile(r"token=[a-f0-9]{4}")
        assert passes_body("<p>your token=beef here</p>", pat)
        assert not passes_body("<p>no token</p>", pat)


class TestAccept:
    """gety.core.filters.accept — ordering and lazy body reads."""

    def test_body_not_read_without_pattern(self):
        read_body = MagicMock(return_value="irrelevant")
        assert accept(_outcome(200), FilterConfig(), read_body)
        read_body.assert_not_called()

    def test_body_not_read_when_status_rejects(self):
        read_body = MagicMock(return_value="secret")
        cfg = FilterConfig(status_codes=frozenset({200}), body_pattern=re.compile("secret"))
        assert not accept(_outcome(500), cfg, read_body)
        read_body.assert_not_called()

    @pytest.mark.parametrize("body,expected", [("the secret word", True), ("nothing here", False)])
    def test_body_pattern_decides(self, body, expected):
        read_body = MagicMock(return_value=body)
        cfg = FilterConfig(body_pattern=re.compile("secret"))
        assert accept(_outcome(200), cfg, read_body) is expected
        read_body.assert_called_once_with()

    def test_status_and_body_both_required(self):
        cfg = FilterConfig(status_codes=frozenset({200, 403}), body_pattern=re.compile("admin"))
        assert accept(_outcome(403), cfg, lambda: "admin panel")
        assert not accept(_outcome(403), cfg, lambda: "login")
        assert not accept(_outcome(404), cfg, lambda: "admin panel")
