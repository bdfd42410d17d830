import os
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import parse_qsl, urlencode
from uuid import uuid4

from flask import Flask, jsonify, redirect, render_template, request, session, url_for

from retire_calc.data_models import DEFAULT_PARAMETERS, ScenarioParameters, ScenarioSeries
from retire_calc.engine import MAX_PROJECTION_YEARS, summarize_series
from retire_calc.query_state import (
    FIELDS,
    MAX_SCENARIOS,
    parameters_from_form,
    parameters_from_mapping,
    query_from_parameters,
    scenario_count,
    scenarios_from_query,
)
from retire_calc.registry import ScenarioRegistry
from retire_calc.utils import json_safe
from retire_calc_web.comparison_store import create_store_from_env

app = Flask(__name__)
app.config["ASSET_VERSION"] = os.environ.get("ASSET_VERSION", "1")
app.config["MAX_PROJECTION_YEARS"] = int(os.environ.get("RETIRE_CALC_MAX_YEARS", MAX_PROJECTION_YEARS))
app.secret_key = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
comparison_store = create_store_from_env(os.environ.get("COMPARISON_DATABASE_URL"))


def _ensure_user_token() -> str:
    token = session.get("user_token")
    if not token:
        token = uuid4().hex
        session["user_token"] = token
        session.modified = True
    return token


def _index_url(query: Mapping[str, str]) -> str:
    base = url_for("index")
    return f"{base}?{urlencode(query)}" if query else base


def _compute(params_list: List[ScenarioParameters]) -> ScenarioRegistry:
    """Project every scenario in its own registry entry."""
    registry = ScenarioRegistry(max_years=app.config["MAX_PROJECTION_YEARS"])
    for params in params_list:
        registry.add_scenario(params)
    return registry


def chart_data(series_list: List[ScenarioSeries]) -> Dict[str, Any]:
    """Build the Chart.js payload: one line of (age, balance) per scenario."""
    datasets = []
    for series in series_list:
        datasets.append(
            {
                "label": series.name,
                "data": [{"x": p.year, "y": p.value} for p in series.points],
            }
        )
    return {"datasets": datasets}


def _submitted_scenarios():
    """Parse the submitted field grid.

    On a bad value the scenarios are rebuilt leniently from the same fields so
    that the page can be shown again with the error.
    """
    form = request.form
    try:
        return [parameters_from_form(form, i) for i in range(scenario_count(form))], None
    except ValueError as exc:
        return scenarios_from_query(form.to_dict()), str(exc)


def _render_page(params_list: List[ScenarioParameters], error: Optional[str] = None, status: int = 200):
    user_token = _ensure_user_token()
    series_list: List[ScenarioSeries] = []
    summaries: List[Dict[str, object]] = []
    if error is None:
        try:
            registry = _compute(params_list)
        except ValueError as exc:
            app.logger.warning("Projection rejected: %s", exc)
            error = str(exc)
            status = 400
        else:
            series_list = registry.all_series()
            summaries = [summarize_series(s) for s in series_list]

    scenarios_view = [
        {
            "index": index,
            "fields": [
                {
                    "key": f.key(index),
                    "label": f.label,
                    "type": f.input_type,
                    "value": f.format(getattr(params, f.attr)),
                }
                for f in FIELDS
            ],
        }
        for index, params in enumerate(params_list)
    ]
    current_query = urlencode(query_from_parameters(params_list))
    return (
        render_template(
            "index.html",
            scenarios=scenarios_view,
            scenario_count=len(params_list),
            max_scenarios=MAX_SCENARIOS,
            summaries=summaries,
            chart_payload=json_safe(chart_data(series_list)),
            current_query=current_query,
            saved_comparisons=comparison_store.list_comparisons(user_token),
            error=error,
            asset_version=app.config["ASSET_VERSION"],
        ),
        status,
    )


@app.get("/")
def index():
    params_list = scenarios_from_query(request.args.to_dict())
    return _render_page(params_list)


@app.post("/update")
def update():
    params_list, error = _submitted_scenarios()
    if error:
        return _render_page(params_list, error=error, status=400)
    return redirect(_index_url(query_from_parameters(params_list)))


@app.post("/scenario/add")
def add_scenario():
    params_list, error = _submitted_scenarios()
    if error:
        return _render_page(params_list, error=error, status=400)
    if len(params_list) < MAX_SCENARIOS:
        params_list.append(DEFAULT_PARAMETERS)
    return redirect(_index_url(query_from_parameters(params_list)))


@app.post("/scenario/remove")
def remove_scenario():
    params_list, error = _submitted_scenarios()
    if error:
        return _render_page(params_list, error=error, status=400)
    if len(params_list) > 1:
        params_list.pop()
    return redirect(_index_url(query_from_parameters(params_list)))


@app.post("/api/project")
def api_project():
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"error": "Expected a JSON object"}), 400
    many = "scenarios" in payload
    raw_scenarios = payload["scenarios"] if many else [payload]
    if not isinstance(raw_scenarios, list) or not all(isinstance(s, dict) for s in raw_scenarios):
        return jsonify({"error": "'scenarios' must be a list of objects"}), 400
    if len(raw_scenarios) > MAX_SCENARIOS:
        return jsonify({"error": f"At most {MAX_SCENARIOS} scenarios are allowed"}), 400
    try:
        params_list = [parameters_from_mapping(s) for s in raw_scenarios]
        registry = _compute(params_list)
    except ValueError as exc:
        app.logger.warning("Rejected API projection: %s", exc)
        return jsonify({"error": str(exc)}), 400

    results = [
        {"series": series.to_dict(), "summary": summarize_series(series)}
        for series in registry.all_series()
    ]
    if many:
        return jsonify(json_safe({"scenarios": results}))
    return jsonify(json_safe(results[0]))


@app.get("/api/chart")
def api_chart():
    params_list = scenarios_from_query(request.args.to_dict())
    try:
        registry = _compute(params_list)
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400
    return jsonify(json_safe(chart_data(registry.all_series())))


@app.post("/comparison/save")
def save_comparison():
    user_token = _ensure_user_token()
    query_string = request.form.get("query", "")
    name = request.form.get("comparison_name", "").strip() or "Comparison"
    query = dict(reversed(parse_qsl(query_string, keep_blank_values=True)))
    params_list = scenarios_from_query(query)
    try:
        registry = _compute(params_list)
    except ValueError as exc:
        return _render_page(params_list, error=str(exc), status=400)
    summaries = json_safe([summarize_series(s) for s in registry.all_series()])
    comparison_store.add_comparison(user_token, uuid4().hex, name, query_string, summaries)
    return redirect(_index_url(query))


@app.post("/comparison/remove")
def remove_comparison():
    comparison_id = request.form.get("comparison_id")
    user_token = session.get("user_token")
    comparison_store.remove_comparison(user_token, comparison_id)
    return redirect(url_for("index"))


@app.post("/comparison/clear")
def clear_comparisons():
    user_token = session.get("user_token")
    comparison_store.clear_comparisons(user_token)
    return redirect(url_for("index"))


if __name__ == "__main__":
    print("Starting Retirement Comparison Calculator web app...")
    app.run(host="0.0.0.0", port=8710, debug=True)
