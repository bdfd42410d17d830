"""Command-line interface for the retirement calculator.

This module uses the ``click`` library to implement a multi-command
interface. Users can project a single scenario, view its summary or compare
several scenarios. Results can be printed to the terminal or exported to
JSON/CSV files.
"""

from __future__ import annotations

import csv
import json
import logging
import shlex
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import parse_qsl

import click

from .data_models import DEFAULT_PARAMETERS, ScenarioParameters, ScenarioSeries
from .engine import ProjectionLimitError, project, summarize_series
from .formatter import print_comparison, print_series, print_summary
from .query_state import parameters_from_mapping, scenarios_from_query
from .utils import format_number, json_safe

# Option flags of a scenario, mapped to ScenarioParameters attributes. Used
# both by the click decorators and by the ``compare`` option-string parser.
SCENARIO_FLAGS: Dict[str, str] = {
    "--name": "name",
    "--starting-age": "starting_age",
    "--starting-balance": "starting_balance",
    "--interest-rate": "interest_rate_percent",
    "--retirement-age": "retirement_age",
    "--max-age": "max_age",
    "--investment": "starting_investment_per_month",
    "--investment-increase": "investment_increasing_rate_percent",
    "--spending": "spending_per_year",
}

SHORT_FLAGS: Dict[str, str] = {
    "-n": "--name",
    "-a": "--starting-age",
    "-b": "--starting-balance",
    "-r": "--interest-rate",
    "-R": "--retirement-age",
    "-m": "--max-age",
    "-i": "--investment",
    "-g": "--investment-increase",
    "-s": "--spending",
}

_HELP: Dict[str, str] = {
    "name": "Scenario name",
    "starting_age": "Age at the start of the projection",
    "starting_balance": "Savings at the starting age (e.g. 25k)",
    "interest_rate_percent": "Annual interest rate (percent)",
    "retirement_age": "Age at which contributions stop and spending starts",
    "max_age": "Projection horizon (exclusive)",
    "starting_investment_per_month": "Monthly contribution in the first year",
    "investment_increasing_rate_percent": "Yearly growth of the monthly contribution (percent)",
    "spending_per_year": "Yearly spending in retirement (e.g. 100k)",
}


def scenario_options(func: Callable) -> Callable:
    """Attach one option per scenario parameter to a click command."""
    short_by_long = {v: k for k, v in SHORT_FLAGS.items()}
    for flag, attr in reversed(list(SCENARIO_FLAGS.items())):
        func = click.option(
            short_by_long[flag],
            flag,
            attr,
            default=format_number(getattr(DEFAULT_PARAMETERS, attr)),
            show_default=True,
            help=_HELP[attr],
        )(func)
    return func


def build_parameters_from_options(**options: Any) -> ScenarioParameters:
    """Convert raw option strings into a ``ScenarioParameters`` record."""
    try:
        return parameters_from_mapping(options)
    except ValueError as exc:
        raise click.BadParameter(str(exc))


def run_projection(params: ScenarioParameters) -> ScenarioSeries:
    try:
        return project(params)
    except ProjectionLimitError as exc:
        raise click.BadParameter(str(exc), param_hint="--max-age")


def parse_scenario_opts(opts: str) -> Dict[str, Any]:
    """Parse a quoted scenario option string into parameter values.

    Example: ``"-n Bob --starting-age 30 --spending 60k"``. Both long flags
    and their short forms are accepted, as is ``--flag=value``.
    """
    tokens = shlex.split(opts)
    params: Dict[str, Any] = {}
    i = 0
    while i < len(tokens):
        token = tokens[i]
        value: Optional[str] = None
        if token.startswith("--") and "=" in token:
            token, value = token.split("=", 1)
        flag = SHORT_FLAGS.get(token, token)
        if flag not in SCENARIO_FLAGS:
            raise click.BadParameter(f"Unknown option in scenario: {token}")
        if value is None:
            i += 1
            if i >= len(tokens):
                raise click.BadParameter(f"Option {token} requires a value")
            value = tokens[i]
        params[SCENARIO_FLAGS[flag]] = value
        i += 1
    return params


def export_to_json(path: Path, series: ScenarioSeries, summary: Dict[str, Any]) -> None:
    """Export series and summary to a JSON file."""
    data = json_safe({"summary": summary, "series": series.to_dict()})
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, allow_nan=False)


def export_to_csv(path: Path, series: ScenarioSeries) -> None:
    """Export the yearly snapshots to a CSV file."""
    header = [
        "Year",
        "Value",
        "Principal",
        "Total_Interest",
        "Spending",
        "Interest_Per_Year",
    ]
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(header)
        for p in series.points:
            writer.writerow(
                [
                    p.year,
                    p.value,
                    p.principal,
                    p.total_interest,
                    p.spending,
                    p.interest_per_year,
                ]
            )


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Retirement savings projections and scenario comparisons."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@cli.command(name="project")
@scenario_options
@click.option("--output", "-o", "output", type=str, help="Output file path (.json or .csv)")
def project_command(output: Optional[str], **options: str) -> None:
    """Compute and print the yearly projection of one scenario."""
    params = build_parameters_from_options(**options)
    series = run_projection(params)
    summary_data = summarize_series(series)
    if output:
        path = Path(output)
        if path.suffix.lower() == ".json":
            export_to_json(path, series, summary_data)
        elif path.suffix.lower() == ".csv":
            export_to_csv(path, series)
        else:
            raise click.BadParameter("Unsupported output format; use .json or .csv", param_hint="--output")
        click.echo(f"Projection exported to {path}")
    else:
        print_summary(summary_data)
        print_series(series.points)


@cli.command()
@scenario_options
@click.option("--output", "-o", "output", type=str, help="Output file path (.json)")
def summary(output: Optional[str], **options: str) -> None:
    """Compute and print only the summary metrics of one scenario."""
    params = build_parameters_from_options(**options)
    summary_data = summarize_series(run_projection(params))
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Summary export must use .json extension", param_hint="--output")
        with path.open("w", encoding="utf-8") as f:
            json.dump(json_safe({"summary": summary_data}), f, indent=2, allow_nan=False)
        click.echo(f"Summary exported to {path}")
    else:
        print_summary(summary_data)


@cli.command()
@click.option("--scenario", "scenarios", multiple=True, help="Scenario options as a quoted string")
@click.option("--query", "query", help="URL query string of the web calculator")
def compare(scenarios: Tuple[str, ...], query: Optional[str]) -> None:
    """Compare several retirement scenarios.

    Scenarios are provided as quoted option strings, for example:

        retire-calc compare --scenario "-n Early -R 45" --scenario "-n Late -R 60"

    or as the query string of a web calculator URL with ``--query``.
    """
    params_list: List[ScenarioParameters] = []
    if query:
        pairs = parse_qsl(query.lstrip("?"), keep_blank_values=True)
        params_list.extend(scenarios_from_query(dict(reversed(pairs))))
    for opts in scenarios:
        params_list.append(build_parameters_from_options(**parse_scenario_opts(opts)))
    if not params_list:
        raise click.UsageError("Provide at least one --scenario or a --query")
    summaries = [summarize_series(run_projection(p)) for p in params_list]
    print_comparison(summaries)


if __name__ == "__main__":
    cli()
