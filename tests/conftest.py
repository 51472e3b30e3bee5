"""Shared test fixtures for choropleth tests."""

from __future__ import annotations

from typing import List

import pandas as pd
import pytest

from choropleth.datasource import DataPackage

FIXED_COLORS = ["aa0000", "00aa00", "0000aa", "000000"]


def fixed_palette(name: str, count: int) -> List[str]:
    """Palette generator returning the first ``count`` fixed colors."""
    return FIXED_COLORS[:count]


@pytest.fixture
def palette():
    return fixed_palette


@pytest.fixture
def abc_package() -> DataPackage:
    """Three districts with values 10, 60 and 90 on a 0-100 scale."""
    return DataPackage.from_json(
        {
            "idColumn": "districts",
            "columns": {
                "districts": ["A", "B", "C"],
                "score": [10, 60, 90],
            },
            "summaries": {
                "score": {"stats": {"MIN": 0, "MAX": 100, "RANGE": 100}},
            },
        }
    )


@pytest.fixture
def classified_package() -> DataPackage:
    """Package with precomputed class breaks covering all values."""
    frame = pd.DataFrame(
        {
            "id2": ["d1", "d2", "d3", "d4", "d5"],
            "income": [12.0, 20.0, 35.5, 50.0, 80.0],
            "label": ["a", "b", "c", "d", "e"],
        }
    )
    return DataPackage.from_frame(
        frame,
        summaries={"income": {"classBreaks": [20, 40, 60, 80]}},
    )
