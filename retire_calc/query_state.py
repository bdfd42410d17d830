"""Field catalogue and URL query-string state for scenario inputs.

Every scenario parameter is edited through a labelled field. A field reads its
initial value from a query parameter named ``"<index>.<label>"`` and falls
back to its default when the parameter is missing. When a field changes, the
query parameter is dropped if the new value equals the default and set
otherwise, so the address bar always holds the smallest query that reproduces
the page.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, MutableMapping, Optional, Sequence

from .data_models import DEFAULT_PARAMETERS, ScenarioParameters
from .utils import format_number, parse_age, parse_amount, parse_percent

logger = logging.getLogger(__name__)

SCENARIO_COUNT_KEY = "scenarios"
MAX_SCENARIOS = 20

_INDEXED_KEY = re.compile(r"^(\d+)\.(.+)$")


def _parse_text(value: str) -> str:
    return str(value)


@dataclass(frozen=True)
class Field:
    """A labelled input bound to one attribute of ``ScenarioParameters``."""

    attr: str
    label: str
    kind: str  # 'text', 'age', 'amount' or 'percent'
    parser: Callable[[str], Any]

    def key(self, index: int) -> str:
        return f"{index}.{self.label}"

    def parse(self, raw: str) -> Any:
        return self.parser(raw)

    def format(self, value: Any) -> str:
        if self.kind == "text":
            return str(value)
        return format_number(value)

    @property
    def input_type(self) -> str:
        return "text" if self.kind == "text" else "number"


FIELDS: List[Field] = [
    Field("name", "Name", "text", _parse_text),
    Field("starting_age", "Starting age", "age", parse_age),
    Field("starting_balance", "Starting Balance", "amount", parse_amount),
    Field("interest_rate_percent", "Interest Rate (%)", "percent", parse_percent),
    Field("retirement_age", "Retirement Age", "age", parse_age),
    Field("max_age", "Max Age", "age", parse_age),
    Field("starting_investment_per_month", "Starting Investment Per Month", "amount", parse_amount),
    Field("investment_increasing_rate_percent", "Investment Increasing Rate (%)", "percent", parse_percent),
    Field("spending_per_year", "Spending Per Year Input", "amount", parse_amount),
]

FIELDS_BY_ATTR: Dict[str, Field] = {f.attr: f for f in FIELDS}
FIELDS_BY_LABEL: Dict[str, Field] = {f.label: f for f in FIELDS}


def get_field(attr: str) -> Field:
    try:
        return FIELDS_BY_ATTR[attr]
    except KeyError:
        raise ValueError(f"Unknown parameter: {attr}") from None


def parameters_from_query(
    query: Mapping[str, str],
    index: int,
    defaults: ScenarioParameters = DEFAULT_PARAMETERS,
) -> ScenarioParameters:
    """Build the parameters of scenario ``index`` from a query mapping.

    Missing keys take the default. Unparsable values are ignored with a
    warning and also take the default.
    """
    values: Dict[str, Any] = {}
    for f in FIELDS:
        raw = query.get(f.key(index))
        if raw is None:
            continue
        try:
            values[f.attr] = f.parse(raw)
        except ValueError:
            logger.warning("Ignoring invalid value %r for %s", raw, f.key(index))
    return dataclasses.replace(defaults, **values)


def scenario_count(query: Mapping[str, str]) -> int:
    """Return how many scenarios a query describes.

    The explicit ``scenarios`` key is widened to cover every indexed field key
    present, and the result is clamped to ``MAX_SCENARIOS``.
    """
    count = 1
    raw = query.get(SCENARIO_COUNT_KEY)
    if raw is not None:
        try:
            count = max(parse_age(raw), 0)
        except ValueError:
            logger.warning("Ignoring invalid scenario count %r", raw)
    for key in query:
        match = _INDEXED_KEY.match(key)
        if match and match.group(2) in FIELDS_BY_LABEL:
            count = max(count, int(match.group(1)) + 1)
    if count > MAX_SCENARIOS:
        logger.warning("Clamping scenario count %d to %d", count, MAX_SCENARIOS)
        count = MAX_SCENARIOS
    return count


def scenarios_from_query(
    query: Mapping[str, str],
    defaults: ScenarioParameters = DEFAULT_PARAMETERS,
) -> List[ScenarioParameters]:
    """Bootstrap every scenario described by a query mapping."""
    return [parameters_from_query(query, i, defaults) for i in range(scenario_count(query))]


def apply_field_change(
    query: MutableMapping[str, str],
    index: int,
    attr: str,
    raw_value: str,
    default: Optional[Any] = None,
) -> MutableMapping[str, str]:
    """Record a field edit in ``query``.

    The key is removed when the parsed value equals ``default`` (the field's
    entry in ``DEFAULT_PARAMETERS`` when omitted) and set to the raw string
    otherwise.

    Raises
    ------
    ValueError
        If ``raw_value`` cannot be parsed for the field.
    """
    f = get_field(attr)
    if default is None:
        default = getattr(DEFAULT_PARAMETERS, attr)
    value = f.parse(raw_value)
    key = f.key(index)
    if value == default:
        query.pop(key, None)
    else:
        query[key] = str(raw_value).strip() if f.kind != "text" else str(raw_value)
    return query


def query_from_parameters(
    scenarios: Sequence[ScenarioParameters],
    defaults: ScenarioParameters = DEFAULT_PARAMETERS,
) -> Dict[str, str]:
    """Return the canonical query for a list of scenarios.

    Values equal to the defaults are omitted, as is the scenario count when
    there is exactly one scenario.
    """
    query: Dict[str, str] = {}
    if len(scenarios) != 1:
        query[SCENARIO_COUNT_KEY] = str(len(scenarios))
    for index, params in enumerate(scenarios):
        for f in FIELDS:
            value = getattr(params, f.attr)
            if value != getattr(defaults, f.attr):
                query[f.key(index)] = f.format(value)
    return query


def parameters_from_form(
    form: Mapping[str, str],
    index: int,
    defaults: ScenarioParameters = DEFAULT_PARAMETERS,
) -> ScenarioParameters:
    """Build parameters from a submitted field grid.

    Unlike ``parameters_from_query``, bad values raise ``ValueError`` so that
    the page can show the error next to the submitted form. Empty fields take
    the default.
    """
    values: Dict[str, Any] = {}
    for f in FIELDS:
        raw = form.get(f.key(index))
        if raw is None or (f.kind != "text" and not str(raw).strip()):
            continue
        try:
            values[f.attr] = f.parse(raw)
        except ValueError as exc:
            raise ValueError(f"{f.label} (scenario {index + 1}): {exc}") from exc
    return dataclasses.replace(defaults, **values)


def parameters_from_mapping(
    mapping: Mapping[str, Any],
    defaults: ScenarioParameters = DEFAULT_PARAMETERS,
) -> ScenarioParameters:
    """Build parameters from a mapping keyed by attribute name.

    Used by the JSON API and the command line. Missing keys take the default;
    unknown keys and unparsable values raise ``ValueError``.
    """
    values: Dict[str, Any] = {}
    for attr, raw in mapping.items():
        f = get_field(attr)
        if raw is None:
            continue
        if f.kind != "text" and isinstance(raw, bool):
            raise ValueError(f"Invalid value for {attr}: {raw!r}")
        values[attr] = f.parse(str(raw))
    return dataclasses.replace(defaults, **values)
