from __future__ import annotations

import pytest

from tests._fixtures.fact_builder import FactBuilder


@pytest.fixture
def facts() -> FactBuilder:
    """Provide an empty fact builder for a single test."""
    return FactBuilder()
