"""Pytest configuration and shared fixtures."""

import pytest

from tablesmith.config import Settings
from tablesmith.ops import TableEditSession
from tablesmith.table import TableModel

SAMPLE_MARKDOWN = """# Inventory

| Name | Qty | Price |
| :--- | :---: | ---: |
| apple | 3 | 1.20 |
| pear | 10 | 0.80 |
| fig | 7 | 2.50 |

Trailing text.
"""


@pytest.fixture
def test_settings() -> Settings:
    """Create settings with test values."""
    return Settings(
        history_max_size=50,
        header_ignore_case=True,
        detect_column_renames=True,
        rename_similarity_threshold=0.75,
        host="127.0.0.1",
        port=8000,
        debug=False,
        cors_allow_origins=["*"],
    )


@pytest.fixture
def sample_markdown() -> str:
    return SAMPLE_MARKDOWN


@pytest.fixture
def sample_table() -> TableModel:
    """A 3x3 table with a text, an integer and a decimal column."""
    return TableModel.from_cells(
        ["Name", "Qty", "Price"],
        [
            ["apple", "3", "1.20"],
            ["pear", "10", "0.80"],
            ["fig", "7", "2.50"],
        ],
    )


@pytest.fixture
def session(sample_table) -> TableEditSession:
    return TableEditSession(sample_table, session_id="test-session", max_history=50)
