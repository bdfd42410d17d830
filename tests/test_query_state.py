from __future__ import annotations

import logging

import pytest

from retire_calc.data_models import DEFAULT_PARAMETERS
from retire_calc.query_state import (
    MAX_SCENARIOS,
    apply_field_change,
    get_field,
    parameters_from_form,
    parameters_from_mapping,
    parameters_from_query,
    query_from_parameters,
    scenario_count,
    scenarios_from_query,
)


def test_missing_keys_fall_back_to_defaults():
    assert parameters_from_query({}, 0) == DEFAULT_PARAMETERS
    assert scenarios_from_query({}) == [DEFAULT_PARAMETERS]


def test_field_keys_use_index_and_label():
    assert get_field("starting_age").key(0) == "0.Starting age"
    assert get_field("interest_rate_percent").key(2) == "2.Interest Rate (%)"
    with pytest.raises(ValueError):
        get_field("inflation")


def test_indexed_keys_select_scenarios():
    query = {"0.Starting age": "30", "1.Max Age": "90", "1.Name": "Bob"}
    scenarios = scenarios_from_query(query)

    assert len(scenarios) == 2
    assert scenarios[0].starting_age == 30
    assert scenarios[0].max_age == 120
    assert scenarios[1].name == "Bob"
    assert scenarios[1].max_age == 90
    assert scenarios[1].starting_age == 20


def test_scenario_count_key():
    assert scenario_count({"scenarios": "3"}) == 3
    assert scenario_count({"scenarios": "0"}) == 0
    assert scenario_count({"scenarios": "1", "4.Name": "x"}) == 5
    assert scenario_count({"9.Unknown": "x"}) == 1
    assert scenario_count({"scenarios": "1000"}) == MAX_SCENARIOS


def test_invalid_query_value_is_ignored(caplog):
    with caplog.at_level(logging.WARNING):
        params = parameters_from_query({"0.Starting age": "abc", "0.Max Age": "99"}, 0)

    assert params.starting_age == DEFAULT_PARAMETERS.starting_age
    assert params.max_age == 99
    assert "0.Starting age" in caplog.text


def test_apply_field_change_sets_and_removes_keys():
    query = {}

    apply_field_change(query, 0, "retirement_age", "55")
    assert query == {"0.Retirement Age": "55"}

    apply_field_change(query, 0, "retirement_age", "50")
    assert query == {}

    apply_field_change(query, 1, "starting_balance", "10000", default=10000.0)
    assert query == {}

    with pytest.raises(ValueError):
        apply_field_change(query, 0, "max_age", "old")


def test_query_round_trip(make_params):
    scenarios = [
        DEFAULT_PARAMETERS,
        make_params(name="Bob", interest_rate_percent=7.5, spending_per_year=60_000.0),
    ]
    query = query_from_parameters(scenarios)

    assert query["scenarios"] == "2"
    assert not any(key.startswith("0.") for key in query)
    assert query["1.Interest Rate (%)"] == "7.5"
    assert query["1.Spending Per Year Input"] == "60000"
    assert scenarios_from_query(query) == scenarios


def test_single_default_scenario_has_empty_query():
    assert query_from_parameters([DEFAULT_PARAMETERS]) == {}


def test_parameters_from_form_rejects_bad_values():
    form = {"0.Name": "Ann", "0.Starting age": "", "0.Max Age": "ninety"}

    with pytest.raises(ValueError) as excinfo:
        parameters_from_form(form, 0)
    assert "Max Age" in str(excinfo.value)

    params = parameters_from_form({"0.Name": "Ann", "0.Starting age": ""}, 0)
    assert params.name == "Ann"
    assert params.starting_age == DEFAULT_PARAMETERS.starting_age


def test_parameters_from_mapping():
    params = parameters_from_mapping({"starting_age": 30, "interest_rate_percent": 7.5, "name": "Cy"})

    assert params.starting_age == 30
    assert params.interest_rate_percent == 7.5
    assert params.name == "Cy"
    assert params.max_age == DEFAULT_PARAMETERS.max_age

    with pytest.raises(ValueError):
        parameters_from_mapping({"inflation": 2})
    with pytest.raises(ValueError):
        parameters_from_mapping({"starting_age": 30.5})
    with pytest.raises(ValueError):
        parameters_from_mapping({"starting_balance": True})
