"""
Unlock resolver - which curriculum units a learner can currently access.

Pure functions over the unit catalog and a learner's completed-unit set:
- A unit without prerequisites is always accessible
- A unit with prerequisites is accessible iff every prerequisite is completed
"""

from typing import Iterable, Optional

from cyberpath.schemas import Progress, Unit, UnitAvailability


def is_unit_accessible(unit: Unit, completed_ids: set[str]) -> bool:
    return all(prereq in completed_ids for prereq in unit.prerequisites)


def resolve_unlocks(units: Iterable[Unit], completed_ids: set[str]) -> dict[str, bool]:
    """Map each unit ID to whether it is currently accessible."""
    return {unit.id: is_unit_accessible(unit, completed_ids) for unit in units}


def missing_prerequisites(unit: Unit, completed_ids: set[str]) -> list[str]:
    """IDs of unmet prerequisites, in declaration order."""
    return [prereq for prereq in unit.prerequisites if prereq not in completed_ids]


def completed_unit_ids(progress: Iterable[Progress]) -> set[str]:
    """Units whose progress record is flagged completed, whatever the percent."""
    return {p.unit_id for p in progress if p.completed}


def unit_status(unit: Unit, progress: Optional[Progress], completed_ids: set[str]) -> UnitAvailability:
    """
    Display status for one unit.

    Completion wins over everything; a started unit is in progress; otherwise
    the prerequisites decide between available and locked.
    """
    if progress is not None and progress.completed:
        return UnitAvailability.COMPLETED
    if not is_unit_accessible(unit, completed_ids):
        return UnitAvailability.LOCKED
    if progress is not None and progress.percent > 0:
        return UnitAvailability.IN_PROGRESS
    return UnitAvailability.AVAILABLE
