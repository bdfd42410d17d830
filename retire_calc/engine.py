"""Core projection engine for the retirement calculator.

This module implements the year-by-year, month-by-month simulation of a
savings balance under monthly compounding. Before ``retirement_age`` a growing
monthly contribution is added to the balance; from ``retirement_age`` onward a
fixed monthly withdrawal is taken instead. The result is a
``ScenarioSeries`` with one snapshot per simulated year, plus a summary
dictionary helper used by the command-line and web front ends.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from .data_models import ScenarioParameters, ScenarioSeries, YearSnapshot

logger = logging.getLogger(__name__)

# Upper bound on the number of simulated years accepted by ``project``.
MAX_PROJECTION_YEARS = 500

MONTHS_PER_YEAR = 12


class ProjectionLimitError(ValueError):
    """Raised when a scenario asks for more years than the engine allows."""

    def __init__(self, years: int, limit: int):
        super().__init__(
            f"Projection spans {years} years, which exceeds the limit of {limit}"
        )
        self.years = years
        self.limit = limit


def project(params: ScenarioParameters, max_years: int = MAX_PROJECTION_YEARS) -> ScenarioSeries:
    """Project the balance of a scenario from ``starting_age`` to ``max_age``.

    Parameters
    ----------
    params: ScenarioParameters
        The scenario inputs.
    max_years: int
        Ceiling on ``max_age - starting_age``. Scenarios above it are rejected
        before any computation.

    Returns
    -------
    ScenarioSeries
        One snapshot per age-year, taken before that year's activity. The
        series stops early, right after the snapshot, if the balance at the
        start of a year is negative.

    Raises
    ------
    ProjectionLimitError
        If the projection would span more than ``max_years`` years.
    """
    years = params.max_age - params.starting_age
    if years > max_years:
        raise ProjectionLimitError(years, max_years)

    current_age = params.starting_age
    current_balance = float(params.starting_balance)
    current_monthly_contribution = float(params.starting_investment_per_month)
    principal = float(params.starting_balance)
    total_interest = 0.0
    spending = 0.0
    interest_per_year = 0.0

    monthly_interest_rate = params.interest_rate_percent / 100 / MONTHS_PER_YEAR
    monthly_spending = params.spending_per_year / MONTHS_PER_YEAR
    contribution_growth = 1 + params.investment_increasing_rate_percent / 100

    points: List[YearSnapshot] = []
    while current_age < params.max_age:
        points.append(
            YearSnapshot(
                year=current_age,
                value=current_balance,
                principal=principal,
                total_interest=total_interest,
                spending=spending,
                interest_per_year=interest_per_year,
            )
        )
        if current_balance < 0:
            logger.debug("Scenario %r insolvent at age %s", params.name, current_age)
            break

        # The phase is fixed for the whole age-year
        accumulating = current_age < params.retirement_age
        for _ in range(MONTHS_PER_YEAR):
            if accumulating:
                principal += current_monthly_contribution
                current_balance += current_monthly_contribution
            else:
                spending += monthly_spending
                current_balance -= monthly_spending
            # Only the last month's interest survives into the next snapshot
            interest_per_year = current_balance * monthly_interest_rate
            total_interest += interest_per_year
            current_balance *= 1 + monthly_interest_rate

        current_monthly_contribution *= contribution_growth
        current_age += 1

    logger.debug("Projected scenario %r: %d points", params.name, len(points))
    return ScenarioSeries(name=params.name, points=tuple(points))


def summarize_series(series: ScenarioSeries) -> Dict[str, object]:
    """Return aggregate metrics for a projected series.

    The summary reports the horizon actually covered, the last and highest
    balances, the cumulative totals of the final snapshot and whether the
    projection ended on an insolvent year.
    """
    points = series.points
    if not points:
        return {
            "name": series.name,
            "years_projected": 0,
            "start_age": None,
            "end_age": None,
            "final_balance": 0.0,
            "peak_balance": 0.0,
            "peak_age": None,
            "total_principal": 0.0,
            "total_interest": 0.0,
            "total_spending": 0.0,
            "depleted": False,
            "depletion_age": None,
        }

    last = points[-1]
    peak = max(points, key=lambda p: p.value)
    depletion_age: Optional[int] = last.year if last.value < 0 else None
    return {
        "name": series.name,
        "years_projected": len(points),
        "start_age": points[0].year,
        "end_age": last.year,
        "final_balance": float(last.value),
        "peak_balance": float(peak.value),
        "peak_age": peak.year,
        "total_principal": float(last.principal),
        "total_interest": float(last.total_interest),
        "total_spending": float(last.spending),
        "depleted": depletion_age is not None,
        "depletion_age": depletion_age,
    }
