from __future__ import annotations

import pytest

from fakes import ANSWERS, HEADER, RESPONSES, FakeScorer, FakeSheetStore


@pytest.fixture
def one_row_store() -> FakeSheetStore:
    """Header plus one submission with every answer filled and no scores."""
    return FakeSheetStore(
        {RESPONSES: [HEADER, ["2026-10-19 09:00", "Alpha", *ANSWERS]]}
    )


@pytest.fixture
def scorer() -> FakeScorer:
    return FakeScorer(score=2)
