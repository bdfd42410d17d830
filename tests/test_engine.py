from __future__ import annotations

import dataclasses
from math import isclose

import pytest

from retire_calc.data_models import DEFAULT_PARAMETERS, YearSnapshot
from retire_calc.engine import ProjectionLimitError, project, summarize_series


PROPERTY_CASES = [
    DEFAULT_PARAMETERS,
    dict(starting_balance=-500.0, interest_rate_percent=5.0),
    dict(starting_balance=250_000.0, retirement_age=30, spending_per_year=40_000.0, interest_rate_percent=4.0),
    dict(starting_investment_per_month=1_000.0, investment_increasing_rate_percent=3.0, spending_per_year=80_000.0),
    dict(interest_rate_percent=-2.0, starting_investment_per_month=200.0, spending_per_year=5_000.0),
    dict(retirement_age=20, starting_balance=1_000_000.0, spending_per_year=30_000.0, interest_rate_percent=7.0),
]


def _build(make_params, case):
    if isinstance(case, dict):
        return make_params(**case)
    return case


def test_default_scenario_first_points():
    series = project(DEFAULT_PARAMETERS)

    assert series.name == "Albert"
    assert series.points[0] == YearSnapshot(
        year=20, value=0.0, principal=0.0, total_interest=0.0, spending=0.0, interest_per_year=0.0
    )
    assert series.points[1].year == 21
    assert series.points[1].value > 6000.0
    assert isclose(series.points[1].principal, 6000.0)


def test_default_scenario_accumulates_until_retirement():
    series = project(DEFAULT_PARAMETERS)
    accumulation = [p for p in series.points if p.year <= 49]

    assert [p.year for p in accumulation] == list(range(20, 50))
    assert all(p.value >= 0 for p in accumulation)
    assert all(p.spending == 0 for p in accumulation)
    assert series.points[-1].year < 120


def test_insolvency_scenario_stops_at_second_point(make_params):
    params = make_params(
        starting_age=60,
        starting_balance=1000.0,
        interest_rate_percent=0.0,
        retirement_age=50,
        max_age=120,
        starting_investment_per_month=0.0,
        investment_increasing_rate_percent=0.0,
        spending_per_year=12000.0,
    )
    series = project(params)

    assert [p.year for p in series.points] == [60, 61]
    last = series.points[-1]
    assert last.value == -11000.0
    assert last.spending == 12000.0
    assert last.principal == 1000.0
    assert last.total_interest == 0.0


def test_zero_length_scenario(make_params):
    assert project(make_params(starting_age=70, max_age=70)).points == ()
    assert project(make_params(starting_age=80, max_age=70)).points == ()


def test_contributions_grow_yearly(make_params):
    params = make_params(
        starting_age=60,
        max_age=63,
        retirement_age=62,
        starting_investment_per_month=100.0,
        investment_increasing_rate_percent=10.0,
    )
    points = project(params).points

    assert [p.year for p in points] == [60, 61, 62]
    assert points[1].value == pytest.approx(1200.0)
    assert points[2].value == pytest.approx(1200.0 + 1320.0)
    assert points[2].principal == pytest.approx(2520.0)


def test_interest_per_year_reports_last_month_only(make_params):
    params = make_params(starting_balance=1200.0, interest_rate_percent=12.0, max_age=32)
    points = project(params).points

    assert points[0].interest_per_year == 0.0
    assert points[1].value == pytest.approx(1200.0 * 1.01 ** 12)
    assert points[1].interest_per_year == pytest.approx(1200.0 * 1.01 ** 11 * 0.01)
    assert points[1].total_interest == pytest.approx(1200.0 * (1.01 ** 12 - 1))
    assert points[1].principal == 1200.0


def test_withdrawal_applied_before_monthly_interest(make_params):
    params = make_params(
        starting_age=65,
        max_age=67,
        retirement_age=65,
        starting_balance=12000.0,
        interest_rate_percent=12.0,
        spending_per_year=1200.0,
    )
    points = project(params).points

    expected = 12000.0
    for _ in range(12):
        expected = (expected - 100.0) * 1.01
    assert points[1].value == pytest.approx(expected)
    assert points[1].spending == pytest.approx(1200.0)


def test_retired_from_start_never_contributes(make_params):
    params = make_params(
        starting_age=40,
        retirement_age=40,
        starting_balance=100_000.0,
        starting_investment_per_month=1_000.0,
        spending_per_year=6_000.0,
        max_age=50,
    )
    points = project(params).points

    assert all(p.principal == 100_000.0 for p in points)
    assert points[-1].spending == pytest.approx(6_000.0 * 9)


def test_phase_is_decided_per_year(make_params):
    params = make_params(
        starting_age=49,
        retirement_age=50,
        max_age=52,
        starting_investment_per_month=100.0,
        spending_per_year=600.0,
    )
    points = project(params).points

    assert points[1].principal == 1200.0
    assert points[1].spending == 0.0
    assert points[2].principal == 1200.0
    assert points[2].spending == 600.0
    assert points[2].value == 600.0


def test_negative_starting_balance_emits_single_point(make_params):
    series = project(make_params(starting_balance=-1.0, starting_investment_per_month=500.0))

    assert len(series.points) == 1
    assert series.points[0].value == -1.0


@pytest.mark.parametrize("case", PROPERTY_CASES)
def test_series_properties(make_params, case):
    params = _build(make_params, case)
    points = project(params).points

    assert points[0].year == params.starting_age
    for prev, cur in zip(points, points[1:]):
        assert cur.year - prev.year == 1
        assert cur.principal >= prev.principal
        assert cur.spending >= prev.spending
    if len(points) < params.max_age - params.starting_age:
        assert points[-1].value < 0


@pytest.mark.parametrize("case", PROPERTY_CASES)
def test_projection_is_deterministic(make_params, case):
    params = _build(make_params, case)
    assert project(params) == project(params)


def test_iteration_ceiling(make_params):
    params = make_params(starting_age=0, max_age=10_000)

    with pytest.raises(ProjectionLimitError) as excinfo:
        project(params)
    assert excinfo.value.years == 10_000

    assert len(project(make_params(starting_age=0, max_age=10), max_years=10).points) == 10
    with pytest.raises(ValueError):
        project(make_params(starting_age=0, max_age=11), max_years=10)


def test_summary_of_insolvent_series(make_params):
    params = make_params(
        name="Broke",
        starting_age=60,
        starting_balance=1000.0,
        retirement_age=50,
        spending_per_year=12000.0,
    )
    summary = summarize_series(project(params))

    assert summary["name"] == "Broke"
    assert summary["years_projected"] == 2
    assert summary["depleted"] is True
    assert summary["depletion_age"] == 61
    assert summary["final_balance"] == -11000.0
    assert summary["peak_balance"] == 1000.0
    assert summary["peak_age"] == 60
    assert summary["total_spending"] == 12000.0


def test_summary_of_empty_series(make_params):
    summary = summarize_series(project(make_params(starting_age=70, max_age=70)))

    assert summary["years_projected"] == 0
    assert summary["end_age"] is None
    assert summary["depleted"] is False


def test_summary_of_default_series():
    summary = summarize_series(project(DEFAULT_PARAMETERS))

    assert summary["start_age"] == 20
    assert summary["peak_balance"] > 0
    assert summary["total_principal"] > 6000.0 * 30


def test_projected_series_is_immutable():
    series = project(DEFAULT_PARAMETERS)

    assert isinstance(series.points, tuple)
    with pytest.raises(dataclasses.FrozenInstanceError):
        series.points[0].value = 1_000_000.0
    with pytest.raises(dataclasses.FrozenInstanceError):
        series.points = ()


def test_overflowing_rates_stay_well_defined(make_params):
    params = make_params(starting_age=0, max_age=400, interest_rate_percent=1000.0, starting_investment_per_month=500.0)
    series = project(params)

    assert len(series.points) == 400
    assert series.points[-1].value == float("inf")
