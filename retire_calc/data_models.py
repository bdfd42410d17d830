"""Data models for the retirement calculator.

This module defines dataclasses representing the entities used by the
calculator: the parameter record of a scenario, the yearly snapshots produced
by the projection engine and the series that bundles them. Parameters are
frozen so that every edit produces a new value, which keeps recomputation
simple: a changed record always means a fresh projection.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, Tuple


@dataclass(frozen=True)
class ScenarioParameters:
    """Inputs of a single retirement scenario.

    Attributes
    ----------
    name: str
        Display label of the scenario. Not used in the computation.
    starting_age: int
        Age in years at which the projection starts.
    starting_balance: float
        Savings at ``starting_age``. May be negative to represent debt.
    interest_rate_percent: float
        Nominal annual interest rate in percent, compounded monthly.
    retirement_age: int
        First age at which contributions stop and withdrawals begin.
    max_age: int
        Projection horizon. No snapshot is produced for this age or later.
    starting_investment_per_month: float
        Monthly contribution during the first year of accumulation.
    investment_increasing_rate_percent: float
        Annual growth of the monthly contribution, in percent.
    spending_per_year: float
        Annual withdrawal during retirement, taken in 12 equal parts.
    """

    name: str
    starting_age: int
    starting_balance: float
    interest_rate_percent: float
    retirement_age: int
    max_age: int
    starting_investment_per_month: float
    investment_increasing_rate_percent: float
    spending_per_year: float


DEFAULT_PARAMETERS = ScenarioParameters(
    name="Albert",
    starting_age=20,
    starting_balance=0.0,
    interest_rate_percent=10.0,
    retirement_age=50,
    max_age=120,
    starting_investment_per_month=500.0,
    investment_increasing_rate_percent=1.0,
    spending_per_year=100_000.0,
)


@dataclass(frozen=True)
class YearSnapshot:
    """State of a scenario at the start of one age-year.

    Every amount is recorded before the year's contributions, withdrawals and
    interest are applied. ``interest_per_year`` holds the interest credited in
    the final month of the previous year (zero for the first snapshot).
    """

    year: int
    value: float
    principal: float
    total_interest: float
    spending: float
    interest_per_year: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class ScenarioSeries:
    """Yearly snapshots of one scenario, ordered by increasing age.

    Both the series and its snapshots are immutable; the registry hands the
    same object to every reader.
    """

    name: str
    points: Tuple[YearSnapshot, ...] = ()

    def __len__(self) -> int:
        return len(self.points)

    def to_dict(self) -> Dict[str, object]:
        return {"name": self.name, "points": [p.to_dict() for p in self.points]}
