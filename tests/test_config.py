"""Tests for environment-driven pagination configuration."""

from __future__ import annotations

import pytest

from transcript_editor import config
from transcript_editor.core.errors import PreconditionError


class TestLoadPaginationConfig:

    @pytest.fixture(autouse=True)
    def _clean_env(self, monkeypatch):
        for name in (
            "TRANSCRIPT_CHARS_PER_LINE",
            "TRANSCRIPT_LINES_PER_PAGE",
            "TRANSCRIPT_MIN_FIRST_LINE_WIDTH",
        ):
            monkeypatch.delenv(name, raising=False)

    def test_defaults(self):
        pagination = config.load_pagination_config()
        assert pagination.chars_per_line == config.CHARS_PER_LINE
        assert pagination.lines_per_page == config.LINES_PER_PAGE
        assert pagination.min_first_line_width == config.MIN_FIRST_LINE_WIDTH

    def test_environment_override(self, monkeypatch):
        monkeypatch.setenv("TRANSCRIPT_CHARS_PER_LINE", "80")
        monkeypatch.setenv("TRANSCRIPT_LINES_PER_PAGE", " 30 ")
        pagination = config.load_pagination_config()
        assert (pagination.chars_per_line, pagination.lines_per_page) == (80, 30)

    def test_blank_value_uses_default(self, monkeypatch):
        monkeypatch.setenv("TRANSCRIPT_MIN_FIRST_LINE_WIDTH", "")
        assert config.load_pagination_config().min_first_line_width == config.MIN_FIRST_LINE_WIDTH

    def test_non_integer_value(self, monkeypatch):
        monkeypatch.setenv("TRANSCRIPT_LINES_PER_PAGE", "many")
        with pytest.raises(ValueError, match="TRANSCRIPT_LINES_PER_PAGE"):
            config.load_pagination_config()

    def test_non_positive_value(self, monkeypatch):
        monkeypatch.setenv("TRANSCRIPT_CHARS_PER_LINE", "0")
        with pytest.raises(PreconditionError):
            config.load_pagination_config()
