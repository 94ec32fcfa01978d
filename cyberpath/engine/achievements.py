"""
AchievementEngine - evaluate achievement conditions after a learner action.

Each (learner, achievement) pair moves locked -> unlocked exactly once. A
condition is only evaluated for the actions it is relevant to, and the
unlock itself is an atomic conditional insert in the store.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Iterable, Optional

from cyberpath.errors import NotFoundError
from cyberpath.schemas import (
    Achievement,
    AchievementConfig,
    ActionKind,
    ConditionKind,
    Progress,
    Project,
    UnlockedAchievement,
)
from cyberpath.storage import ProgressStore

from .graph import CurriculumGraph

logger = logging.getLogger(__name__)


@dataclass
class LearnerSnapshot:
    """Aggregate counters the conditions are evaluated against."""
    completed_units: int
    tagged_projects: int
    total_units: int


class AchievementEngine:
    """
    Check and grant achievements for one learner action at a time.

    All reads happen before the first write, so a failing store leaves no
    partial unlocks behind from that call.
    """

    def __init__(
        self,
        store: ProgressStore,
        graph: CurriculumGraph,
        achievements: Iterable[Achievement],
        config: Optional[AchievementConfig] = None,
    ):
        self.store = store
        self.graph = graph
        self.achievements = list(achievements)
        self.config = config or AchievementConfig()
        self._by_id = {a.id: a for a in self.achievements}

    def get_achievement(self, achievement_id: int) -> Achievement:
        achievement = self._by_id.get(achievement_id)
        if achievement is None:
            raise NotFoundError("achievement", achievement_id)
        return achievement

    def evaluate(
        self,
        learner_id: int,
        action: str,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> list[UnlockedAchievement]:
        """
        Evaluate all locked achievements against a learner action.

        Args:
            learner_id: Learner who performed the action
            action: Action kind, e.g. "complete_unit" or "create_project"
            payload: Optional action data; for "complete_unit" a "unit_id"
                must name a catalog unit

        Returns:
            Newly unlocked achievements with their unlock timestamps, in
            catalog order. Empty for unrecognized actions.

        Raises:
            NotFoundError: Unknown learner, or unknown unit in the payload
            StoreUnavailableError: If the store fails
        """
        if self.store.get_learner(learner_id) is None:
            raise NotFoundError("learner", learner_id)

        try:
            action_kind = ActionKind(action)
        except ValueError:
            logger.debug(f"Ignoring unrecognized action {action!r} for learner {learner_id}")
            return []

        if action_kind == ActionKind.COMPLETE_UNIT:
            unit_id = (payload or {}).get("unit_id")
            if unit_id is not None and (not isinstance(unit_id, str) or unit_id not in self.graph):
                raise NotFoundError("unit", unit_id)

        unlocked_ids = {r.achievement_id for r in self.store.get_unlock_records(learner_id)}
        candidates = [
            a for a in self.achievements
            if a.id not in unlocked_ids and self.is_relevant(a, action_kind)
        ]
        if not candidates:
            return []

        snapshot = self._snapshot(learner_id, candidates)

        newly_unlocked = []
        for achievement in candidates:
            if not self.is_satisfied(achievement, snapshot):
                continue
            record, created = self.store.insert_unlock(learner_id, achievement.id)
            if not created:
                # another evaluation got there first
                continue
            logger.info(f"Learner {learner_id} unlocked achievement {achievement.id} ({achievement.title})")
            newly_unlocked.append(UnlockedAchievement(
                **achievement.model_dump(exclude={"condition"}),
                condition=achievement.condition,
                unlocked_at=record.unlocked_at,
            ))
        return newly_unlocked

    def is_relevant(self, achievement: Achievement, action: ActionKind) -> bool:
        """Whether the achievement's condition kind is checked on this action."""
        return action in self.config.condition_actions.get(achievement.condition.kind, [])

    def _snapshot(self, learner_id: int, candidates: list[Achievement]) -> LearnerSnapshot:
        """Read only the aggregates the candidate conditions need."""
        kinds = {a.condition.kind for a in candidates}

        completed = 0
        if kinds & {ConditionKind.COMPLETED_UNITS, ConditionKind.ALL_UNITS_COMPLETED}:
            completed = count_completed_units(self.store.get_progress(learner_id), self.graph)

        tagged = 0
        if ConditionKind.TAGGED_PROJECTS in kinds:
            tagged = count_tagged_projects(self.store.get_projects(learner_id), self.config.project_tag_keywords)

        return LearnerSnapshot(
            completed_units=completed,
            tagged_projects=tagged,
            total_units=len(self.graph),
        )

    @staticmethod
    def is_satisfied(achievement: Achievement, snapshot: LearnerSnapshot) -> bool:
        condition = achievement.condition
        if condition.kind == ConditionKind.COMPLETED_UNITS:
            return snapshot.completed_units >= condition.threshold
        if condition.kind == ConditionKind.TAGGED_PROJECTS:
            return snapshot.tagged_projects >= condition.threshold
        if condition.kind == ConditionKind.ALL_UNITS_COMPLETED:
            return snapshot.total_units > 0 and snapshot.completed_units >= snapshot.total_units
        return False


def count_completed_units(progress: Iterable[Progress], graph: CurriculumGraph) -> int:
    """Completed records for units in the catalog."""
    return sum(1 for p in progress if p.completed and p.unit_id in graph)


def count_tagged_projects(projects: Iterable[Project], keywords: list[str]) -> int:
    return sum(1 for p in projects if p.has_tag_matching(keywords))
