"""
CurriculumGraph - Static prerequisite DAG over curriculum units.

Validated once at load time:
- Unit IDs and positions are unique
- Every prerequisite refers to a unit in the catalog
- The prerequisite graph is acyclic (networkx cycle detection)
"""

import logging
from typing import Iterable, Iterator

import networkx as nx

from cyberpath.errors import CatalogError, NotFoundError
from cyberpath.schemas import Unit

logger = logging.getLogger(__name__)


class CurriculumGraph:
    """
    Read-only curriculum, ordered by unit position.

    Edges run prerequisite -> dependent.
    """

    def __init__(self, units: Iterable[Unit]):
        self._units: list[Unit] = sorted(units, key=lambda u: u.position)
        self._by_id: dict[str, Unit] = {}
        self._graph = nx.DiGraph()
        self._validate()

    def _validate(self):
        positions: set[int] = set()
        for unit in self._units:
            if unit.id in self._by_id:
                raise CatalogError(f"Duplicate unit id: {unit.id}")
            if unit.position in positions:
                raise CatalogError(f"Duplicate unit position {unit.position} ({unit.id})")
            self._by_id[unit.id] = unit
            positions.add(unit.position)
            self._graph.add_node(unit.id)

        for unit in self._units:
            for prereq in unit.prerequisites:
                if prereq not in self._by_id:
                    raise CatalogError(f"Unit {unit.id} requires unknown unit {prereq}")
                self._graph.add_edge(prereq, unit.id)

        try:
            cycle = nx.find_cycle(self._graph)
        except nx.NetworkXNoCycle:
            logger.debug(f"Curriculum graph valid: {len(self._units)} units")
            return
        path = " -> ".join(u for u, _ in cycle) + f" -> {cycle[0][0]}"
        raise CatalogError(f"Prerequisite cycle: {path}")

    @property
    def units(self) -> list[Unit]:
        """Units in catalog (position) order."""
        return list(self._units)

    def get(self, unit_id: str) -> Unit:
        unit = self._by_id.get(unit_id)
        if unit is None:
            raise NotFoundError("unit", unit_id)
        return unit

    def dependents(self, unit_id: str) -> list[str]:
        """IDs of units that list `unit_id` as a direct prerequisite, in catalog order."""
        self.get(unit_id)
        successors = set(self._graph.successors(unit_id))
        return [u.id for u in self._units if u.id in successors]

    def topological_order(self) -> list[str]:
        """Unit IDs such that every unit follows its prerequisites; ties broken by position."""
        position = {u.id: u.position for u in self._units}
        return list(nx.lexicographical_topological_sort(self._graph, key=lambda n: position[n]))

    def __contains__(self, unit_id: object) -> bool:
        return unit_id in self._by_id

    def __len__(self) -> int:
        return len(self._units)

    def __iter__(self) -> Iterator[Unit]:
        return iter(self._units)
