"""
Tracker - the operations CyberPath exposes to its caller.

Combines the catalog (read-only configuration) with a ProgressStore (learner
state) and the two engines:
- Recommendations and achievement checks
- Progress, project and post recording
- Unit availability and progress summaries for display
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from cyberpath.config import Settings
from cyberpath.engine import (
    AchievementEngine,
    CurriculumGraph,
    RecommendationEngine,
    completed_unit_ids,
    missing_prerequisites,
    resolve_unlocks,
    unit_status,
)
from cyberpath.errors import NotFoundError
from cyberpath.schemas import (
    ActionKind,
    Learner,
    Post,
    Progress,
    Project,
    Suggestion,
    Unit,
    UnitAvailability,
    UnlockedAchievement,
)
from cyberpath.storage import ProgressStore, SQLiteStore
from cyberpath.utils import Catalog, load_catalog

logger = logging.getLogger(__name__)


@dataclass
class UnitView:
    """Unit with a learner's progress and availability."""
    unit: Unit
    availability: UnitAvailability
    percent: int
    missing_prerequisites: list[str] = field(default_factory=list)


class Tracker:
    """
    Facade over the engines for one catalog and one store.

    Holds no per-learner state; every call reads a fresh snapshot.
    """

    def __init__(self, store: ProgressStore, catalog: Catalog):
        """
        Args:
            store: Per-learner state
            catalog: Units, achievements and engine lookup tables

        Raises:
            CatalogError: If the unit prerequisites do not form a valid DAG
        """
        self.store = store
        self.catalog = catalog
        self.graph = CurriculumGraph(catalog.units)
        self.recommendations = RecommendationEngine(store, self.graph, catalog.recommendations)
        self.achievements = AchievementEngine(store, self.graph, catalog.achievements, catalog.achievement_rules)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Tracker":
        """Build a tracker over the configured catalog and SQLite database."""
        catalog = load_catalog(settings.catalog_path)
        logger.info(f"Loaded catalog: {len(catalog.units)} units, {len(catalog.achievements)} achievements")
        return cls(SQLiteStore(settings.db_path), catalog)

    def require_learner(self, learner_id: int) -> Learner:
        learner = self.store.get_learner(learner_id)
        if learner is None:
            raise NotFoundError("learner", learner_id)
        return learner

    def find_learner(self, username: str) -> Learner:
        learner = self.store.find_learner(username)
        if learner is None:
            raise NotFoundError("learner", username)
        return learner

    # -------------------------------------------------------------------------
    # Engine operations
    # -------------------------------------------------------------------------

    def get_recommendations(self, learner_id: int) -> list[Suggestion]:
        """Ranked suggestions for the learner. Pure read."""
        return self.recommendations.generate(learner_id)

    def check_achievements(
        self,
        learner_id: int,
        action: str,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> list[UnlockedAchievement]:
        """Newly unlocked achievements for a learner action."""
        return self.achievements.evaluate(learner_id, action, payload)

    # -------------------------------------------------------------------------
    # Progress recording
    # -------------------------------------------------------------------------

    def update_progress(
        self,
        learner_id: int,
        unit_id: str,
        completed: Optional[bool] = None,
        percent: Optional[int] = None,
    ) -> Progress:
        """
        Upsert progress for one unit.

        The percentage is stored as given, even for completed units.
        """
        self.require_learner(learner_id)
        self.graph.get(unit_id)
        return self.store.upsert_progress(learner_id, unit_id, completed=completed, percent=percent)

    def complete_unit(self, learner_id: int, unit_id: str, percent: Optional[int] = None) -> list[UnlockedAchievement]:
        """Mark a unit completed and return achievements it unlocked."""
        self.update_progress(learner_id, unit_id, completed=True, percent=percent)
        return self.check_achievements(learner_id, ActionKind.COMPLETE_UNIT.value, {"unit_id": unit_id})

    def record_project(
        self,
        learner_id: int,
        title: str,
        description: str = "",
        tools: Optional[list[str]] = None,
        result: Optional[str] = None,
        unit_id: Optional[str] = None,
    ) -> tuple[Project, list[UnlockedAchievement]]:
        """Store a project and return it with any achievements it unlocked."""
        self.require_learner(learner_id)
        if unit_id is not None:
            self.graph.get(unit_id)
        project = self.store.create_project(
            learner_id, title, description=description, tools=tools, result=result, unit_id=unit_id
        )
        unlocked = self.check_achievements(learner_id, ActionKind.CREATE_PROJECT.value, {"project_id": project.id})
        return project, unlocked

    def record_post(self, learner_id: int, title: str, content: str = "", published: bool = False) -> Post:
        self.require_learner(learner_id)
        return self.store.create_post(learner_id, title, content=content, published=published)

    def update_project(
        self,
        project_id: int,
        title: Optional[str] = None,
        description: Optional[str] = None,
        tools: Optional[list[str]] = None,
        result: Optional[str] = None,
        unit_id: Optional[str] = None,
    ) -> Project:
        """
        Edit a project. Omitted fields keep their value.

        Editing does not trigger achievement checks; only new projects do.

        Raises:
            NotFoundError: Unknown project, or unknown unit
        """
        if unit_id is not None:
            self.graph.get(unit_id)
        project = self.store.update_project(
            project_id, title=title, description=description, tools=tools, result=result, unit_id=unit_id
        )
        if project is None:
            raise NotFoundError("project", project_id)
        return project

    def update_post(
        self,
        post_id: int,
        title: Optional[str] = None,
        content: Optional[str] = None,
        published: Optional[bool] = None,
    ) -> Post:
        """Edit or publish a post. Raises NotFoundError for unknown posts."""
        post = self.store.update_post(post_id, title=title, content=content, published=published)
        if post is None:
            raise NotFoundError("post", post_id)
        return post

    def delete_project(self, project_id: int):
        """
        Remove a project. Achievements it helped unlock stay unlocked.

        Raises:
            NotFoundError: If no such project exists
        """
        if not self.store.delete_project(project_id):
            raise NotFoundError("project", project_id)

    def delete_post(self, post_id: int):
        if not self.store.delete_post(post_id):
            raise NotFoundError("post", post_id)

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def get_accessible_units(self, learner_id: int) -> dict[str, bool]:
        self.require_learner(learner_id)
        completed = completed_unit_ids(self.store.get_progress(learner_id))
        return resolve_unlocks(self.graph.units, completed)

    def get_unit_views(self, learner_id: int) -> list[UnitView]:
        """Every unit in catalog order with the learner's status."""
        self.require_learner(learner_id)
        progress = {p.unit_id: p for p in self.store.get_progress(learner_id)}
        completed = completed_unit_ids(progress.values())

        views = []
        for unit in self.graph.units:
            record = progress.get(unit.id)
            views.append(UnitView(
                unit=unit,
                availability=unit_status(unit, record, completed),
                percent=record.percent if record else 0,
                missing_prerequisites=missing_prerequisites(unit, completed),
            ))
        return views

    def get_learner_achievements(self, learner_id: int) -> list[UnlockedAchievement]:
        """Achievements the learner holds, oldest unlock first."""
        self.require_learner(learner_id)
        result = []
        for record in sorted(self.store.get_unlock_records(learner_id), key=lambda r: r.unlocked_at):
            try:
                achievement = self.achievements.get_achievement(record.achievement_id)
            except NotFoundError:
                logger.warning(f"Unlock record for retired achievement {record.achievement_id}")
                continue
            result.append(UnlockedAchievement(
                **achievement.model_dump(exclude={"condition"}),
                condition=achievement.condition,
                unlocked_at=record.unlocked_at,
            ))
        return result

    def get_progress_summary(self, learner_id: int) -> dict:
        """Progress summary for display."""
        views = self.get_unit_views(learner_id)
        total = len(views)
        completed = sum(1 for v in views if v.availability == UnitAvailability.COMPLETED)
        in_progress = sum(1 for v in views if v.availability == UnitAvailability.IN_PROGRESS)
        locked = sum(1 for v in views if v.availability == UnitAvailability.LOCKED)

        return {
            "total_units": total,
            "completed": completed,
            "in_progress": in_progress,
            "locked": locked,
            "completion_percent": round(completed / total * 100) if total > 0 else 0,
            "unit_stats": f"{completed}/{total}",
            "projects": len(self.store.get_projects(learner_id)),
            "posts": len(self.store.get_posts(learner_id)),
            "achievements": len(self.store.get_unlock_records(learner_id)),
        }
