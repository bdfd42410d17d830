"""In-memory registry of named retirement scenarios.

Each scenario owns its parameter record and the series derived from it.
Whenever the parameters change the series is recomputed from scratch by the
projection engine and published to any subscribed observers. Scenarios never
share state, so edits to one scenario never touch another.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Optional

from .data_models import ScenarioParameters, ScenarioSeries
from .engine import MAX_PROJECTION_YEARS, project

logger = logging.getLogger(__name__)

Observer = Callable[["ScenarioHandle", ScenarioSeries], None]


class UnknownScenarioError(KeyError):
    """Raised when a handle does not refer to a registered scenario."""


@dataclass(frozen=True)
class ScenarioHandle:
    """Opaque reference to a registered scenario."""

    id: int


@dataclass
class _Scenario:
    params: ScenarioParameters
    series: ScenarioSeries


class ScenarioRegistry:
    """Ordered collection of independently computed scenarios."""

    def __init__(self, *, max_years: int = MAX_PROJECTION_YEARS) -> None:
        self._scenarios: Dict[ScenarioHandle, _Scenario] = {}
        self._observers: List[Observer] = []
        self._next_id = 0
        self._max_years = max_years

    def __len__(self) -> int:
        return len(self._scenarios)

    def __iter__(self) -> Iterator[ScenarioHandle]:
        return iter(list(self._scenarios))

    def __contains__(self, handle: object) -> bool:
        return handle in self._scenarios

    def handles(self) -> List[ScenarioHandle]:
        return list(self._scenarios)

    def add_scenario(self, params: ScenarioParameters) -> ScenarioHandle:
        """Register a scenario, compute its series and return its handle."""
        series = project(params, self._max_years)
        handle = ScenarioHandle(self._next_id)
        self._next_id += 1
        self._scenarios[handle] = _Scenario(params=params, series=series)
        logger.debug("Added scenario %s (%r)", handle.id, params.name)
        self._publish(handle, series)
        return handle

    def update_parameters(self, handle: ScenarioHandle, params: ScenarioParameters) -> bool:
        """Replace the parameters of a scenario and recompute its series.

        Returns ``False`` without recomputing when ``params`` equals the
        current record. If the projection raises, the scenario keeps its
        previous parameters and series.
        """
        scenario = self._get(handle)
        if params == scenario.params:
            return False
        series = project(params, self._max_years)
        scenario.params = params
        scenario.series = series
        logger.debug("Recomputed scenario %s (%r)", handle.id, params.name)
        self._publish(handle, series)
        return True

    def edit(self, handle: ScenarioHandle, **changes) -> bool:
        """Change individual fields of a scenario's parameters."""
        current = self._get(handle).params
        return self.update_parameters(handle, dataclasses.replace(current, **changes))

    def get_series(self, handle: ScenarioHandle) -> ScenarioSeries:
        return self._get(handle).series

    def get_parameters(self, handle: ScenarioHandle) -> ScenarioParameters:
        return self._get(handle).params

    def all_series(self) -> List[ScenarioSeries]:
        return [s.series for s in self._scenarios.values()]

    def remove_scenario(self, handle: ScenarioHandle) -> None:
        self._get(handle)
        del self._scenarios[handle]
        logger.debug("Removed scenario %s", handle.id)

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register ``observer`` for published series.

        The returned callable removes the observer again.
        """
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _get(self, handle: ScenarioHandle) -> _Scenario:
        scenario: Optional[_Scenario] = self._scenarios.get(handle)
        if scenario is None:
            raise UnknownScenarioError(handle)
        return scenario

    def _publish(self, handle: ScenarioHandle, series: ScenarioSeries) -> None:
        for observer in list(self._observers):
            observer(handle, series)
