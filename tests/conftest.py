from __future__ import annotations

import os

import pytest

# The web module opens its store at import time.
os.environ.setdefault("COMPARISON_DATABASE_URL", "sqlite://")

from retire_calc.data_models import ScenarioParameters


@pytest.fixture()
def make_params():
    def _make(**overrides) -> ScenarioParameters:
        values = dict(
            name="Test",
            starting_age=30,
            starting_balance=0.0,
            interest_rate_percent=0.0,
            retirement_age=65,
            max_age=90,
            starting_investment_per_month=0.0,
            investment_increasing_rate_percent=0.0,
            spending_per_year=0.0,
        )
        values.update(overrides)
        return ScenarioParameters(**values)

    return _make
