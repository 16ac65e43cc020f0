"""Configuration constants and .env loading.

WHY: Page geometry must be identical for every renderer and every
request, so it is configuration, not a per-call parameter. Keeping the
values in one module makes them easy to find and override per
deployment.

HOW: python-dotenv loads the .env file on import. Constants are read
from environment variables with the package defaults as fallback.
load_pagination_config() turns them into a validated PaginationConfig.

RULES:
- TRANSCRIPT_CHARS_PER_LINE, TRANSCRIPT_LINES_PER_PAGE and
  TRANSCRIPT_MIN_FIRST_LINE_WIDTH control pagination
- SESSION_TTL_SECONDS and MAX_SESSIONS control the HTTP session store
- Non-integer values raise ValueError with the variable name
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

from transcript_editor.core.pagination import (
    DEFAULT_CHARS_PER_LINE,
    DEFAULT_LINES_PER_PAGE,
    DEFAULT_MIN_FIRST_LINE_WIDTH,
    PaginationConfig,
)

# Load .env from the project root (where the app is run from)
load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(
            "{} must be an integer, got {!r}".format(name, raw)
        ) from None


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------

CHARS_PER_LINE = _int_env("TRANSCRIPT_CHARS_PER_LINE", DEFAULT_CHARS_PER_LINE)
LINES_PER_PAGE = _int_env("TRANSCRIPT_LINES_PER_PAGE", DEFAULT_LINES_PER_PAGE)
MIN_FIRST_LINE_WIDTH = _int_env(
    "TRANSCRIPT_MIN_FIRST_LINE_WIDTH", DEFAULT_MIN_FIRST_LINE_WIDTH
)

# ---------------------------------------------------------------------------
# HTTP session store
# ---------------------------------------------------------------------------

SESSION_TTL_SECONDS = _int_env("SESSION_TTL_SECONDS", 3600)
MAX_SESSIONS = _int_env("MAX_SESSIONS", 100)


def load_pagination_config() -> PaginationConfig:
    """Build the PaginationConfig from the environment.

    RULES:
    - Reads the environment at call time, so tests can monkeypatch it
    - Raises PreconditionError for non-positive values
    """
    return PaginationConfig(
        chars_per_line=_int_env("TRANSCRIPT_CHARS_PER_LINE", CHARS_PER_LINE),
        lines_per_page=_int_env("TRANSCRIPT_LINES_PER_PAGE", LINES_PER_PAGE),
        min_first_line_width=_int_env(
            "TRANSCRIPT_MIN_FIRST_LINE_WIDTH", MIN_FIRST_LINE_WIDTH
        ),
    )
