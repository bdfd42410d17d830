"""Output helpers for the retirement calculator.

This module provides simple functions to render projected series and their
summaries in a tabular text format using built-in printing and string
formatting.
"""

from __future__ import annotations

from typing import Dict, Iterable, List

from .data_models import YearSnapshot


def _age(value) -> str:
    return "-" if value is None else str(value)


def print_summary(summary: Dict[str, object]) -> None:
    """Print the metrics of one scenario in a human-readable format."""
    print(f"Summary: {summary['name']}")
    print("-" * 72)
    if not summary["years_projected"]:
        print("No years projected (max age is not above starting age)")
        print("-" * 72)
        return
    print(f"Ages               : {summary['start_age']} - {summary['end_age']}")
    print(f"Years projected    : {summary['years_projected']}")
    print(f"Final balance      : {summary['final_balance']:.2f}")
    print(f"Peak balance       : {summary['peak_balance']:.2f} (age {summary['peak_age']})")
    print(f"Total principal    : {summary['total_principal']:.2f}")
    print(f"Total interest     : {summary['total_interest']:.2f}")
    print(f"Total spending     : {summary['total_spending']:.2f}")
    if summary["depleted"]:
        print(f"Money runs out at  : {summary['depletion_age']}")
    else:
        print("Money runs out at  : never")
    print("-" * 72)


def print_series(points: Iterable[YearSnapshot]) -> None:
    """Print the yearly snapshots as a simple tab-separated table."""
    headers = [
        "Age",
        "Balance",
        "Principal",
        "Interest",
        "Spending",
        "LastMonthInt",
    ]
    print("\t".join(headers))
    for p in points:
        row = [
            str(p.year),
            f"{p.value:.2f}",
            f"{p.principal:.2f}",
            f"{p.total_interest:.2f}",
            f"{p.spending:.2f}",
            f"{p.interest_per_year:.2f}",
        ]
        print("\t".join(row))


def print_comparison(summaries: List[Dict[str, object]]) -> None:
    """Print the metrics of several scenarios side by side.

    The last column shows the difference between the last and the first
    scenario for numeric metrics.
    """
    print("Comparison")
    print("=" * 72)
    names = [str(s["name"]) for s in summaries]
    header = f"{'Metric':18s}" + "".join(f" {n[:14]:>14s}" for n in names)
    if len(summaries) > 1:
        header += f" {'Difference':>14s}"
    print(header)
    keys = [
        "final_balance",
        "peak_balance",
        "total_principal",
        "total_interest",
        "total_spending",
    ]
    for key in keys:
        values = [float(s[key]) for s in summaries]
        line = f"{key:18s}" + "".join(f" {v:14.2f}" for v in values)
        if len(values) > 1:
            line += f" {values[-1] - values[0]:14.2f}"
        print(line)
    for key in ("end_age", "depletion_age"):
        line = f"{key:18s}" + "".join(f" {_age(s[key]):>14s}" for s in summaries)
        print(line)
    print("=" * 72)
