"""
RecommendationEngine - ranked next-best-action suggestions for a learner.

Suggestions are generated in a fixed order, then stably sorted by priority:
1. Next units (accessible, not completed)
2. Tools complementing completed units
3. External challenges matching the learner's experience level
4. Documentation nudge (more projects than posts)
5. Advanced-technique nudge (enough completed units)
"""

import logging
import re
from typing import Optional

from cyberpath.errors import NotFoundError
from cyberpath.schemas import (
    Difficulty,
    Priority,
    Progress,
    Project,
    RecommendationConfig,
    Suggestion,
    SuggestionKind,
    Unit,
)
from cyberpath.storage import ProgressStore

from .graph import CurriculumGraph
from .unlock import completed_unit_ids, is_unit_accessible

logger = logging.getLogger(__name__)


REASON_FIRST_UNIT = "Perfect starting point for your cybersecurity journey"
REASON_PREREQUISITES_MET = "You've completed the prerequisites. Ready for the next challenge!"
REASON_COMPLEMENTARY = "Build on your existing knowledge with this complementary module"


def _slug(name: str) -> str:
    return re.sub(r"\s+", "-", name.strip().lower())


class RecommendationEngine:
    """
    Build suggestion lists from a fresh store snapshot on every call.

    Holds only read-only configuration; nothing is cached between calls.
    """

    def __init__(self, store: ProgressStore, graph: CurriculumGraph, config: Optional[RecommendationConfig] = None):
        """
        Args:
            store: Source of per-learner progress, projects and posts
            graph: Validated curriculum
            config: Lookup tables and caps (defaults if omitted)
        """
        self.store = store
        self.graph = graph
        self.config = config or RecommendationConfig()

    def generate(self, learner_id: int) -> list[Suggestion]:
        """
        Generate the ranked suggestion list for a learner.

        Raises:
            NotFoundError: If the learner does not exist
            StoreUnavailableError: If the store fails
        """
        if self.store.get_learner(learner_id) is None:
            raise NotFoundError("learner", learner_id)

        progress = self._catalog_progress(self.store.get_progress(learner_id))
        projects = self.store.get_projects(learner_id)
        posts = self.store.get_posts(learner_id)

        completed = [p for p in progress if p.completed]

        suggestions: list[Suggestion] = []
        suggestions.extend(self.next_unit_suggestions(completed))
        suggestions.extend(self.tool_suggestions(completed))
        suggestions.extend(self.challenge_suggestions(completed, projects))

        nudge = self.documentation_nudge(len(projects), len(posts))
        if nudge:
            suggestions.append(nudge)

        nudge = self.advanced_nudge(len(completed))
        if nudge:
            suggestions.append(nudge)

        logger.debug(f"Generated {len(suggestions)} suggestions for learner {learner_id}")
        return rank_suggestions(suggestions)

    def _catalog_progress(self, progress: list[Progress]) -> list[Progress]:
        """Drop records for units that are no longer in the catalog."""
        known = []
        for record in progress:
            if record.unit_id in self.graph:
                known.append(record)
            else:
                logger.warning(f"Ignoring progress for unknown unit {record.unit_id} (learner {record.learner_id})")
        return known

    # -------------------------------------------------------------------------
    # Step 1: Next units
    # -------------------------------------------------------------------------

    def next_unit_suggestions(self, completed: list[Progress]) -> list[Suggestion]:
        completed_ids = completed_unit_ids(completed)
        candidates = [
            unit for unit in self.graph.units
            if unit.id not in completed_ids and is_unit_accessible(unit, completed_ids)
        ]
        return [
            Suggestion(
                id=f"unit-{unit.id}",
                kind=SuggestionKind.UNIT,
                title=f"Start {unit.title}",
                description=unit.description,
                reason=self._unit_reason(unit, len(completed_ids)),
                priority=Priority.HIGH,
                category=unit.title,
                estimated_time=self.config.unit_estimated_time,
                difficulty=self.unit_difficulty(unit),
            )
            for unit in candidates[:self.config.max_next_units]
        ]

    @staticmethod
    def _unit_reason(unit: Unit, completed_count: int) -> str:
        if completed_count == 0:
            return REASON_FIRST_UNIT
        if unit.prerequisites:
            return REASON_PREREQUISITES_MET
        return REASON_COMPLEMENTARY

    def unit_difficulty(self, unit: Unit) -> Difficulty:
        return self.config.unit_difficulty.get(unit.title, self.config.default_unit_difficulty)

    # -------------------------------------------------------------------------
    # Step 2: Tools
    # -------------------------------------------------------------------------

    def tool_suggestions(self, completed: list[Progress]) -> list[Suggestion]:
        """Tools for each completed unit, in generation order, capped in total."""
        suggestions = []
        for record in completed:
            unit = self.graph.get(record.unit_id)
            categories = set(self.config.unit_tool_categories.get(unit.title, []))
            for tool in self.config.tools:
                if tool.category not in categories:
                    continue
                suggestions.append(Suggestion(
                    id=f"tool-{tool.name.lower()}",
                    kind=SuggestionKind.TOOL,
                    title=f"Master {tool.name}",
                    description=tool.description,
                    reason=f"Perfect complement to your {unit.title} knowledge",
                    priority=Priority.MEDIUM,
                    category=tool.category,
                    estimated_time=self.config.tool_estimated_time,
                    difficulty=Difficulty.INTERMEDIATE,
                ))
        return suggestions[:self.config.max_tool_suggestions]

    # -------------------------------------------------------------------------
    # Step 3: Challenges
    # -------------------------------------------------------------------------

    def experience_score(self, completed_count: int, project_count: int) -> int:
        return self.config.completed_unit_weight * completed_count + project_count

    def experience_level(self, completed_count: int, project_count: int) -> Difficulty:
        score = self.experience_score(completed_count, project_count)
        if score >= self.config.advanced_score:
            return Difficulty.ADVANCED
        if score >= self.config.intermediate_score:
            return Difficulty.INTERMEDIATE
        return Difficulty.BEGINNER

    def challenge_suggestions(self, completed: list[Progress], projects: list[Project]) -> list[Suggestion]:
        level = self.experience_level(len(completed), len(projects))
        accepted = {level}
        if level == Difficulty.ADVANCED:
            accepted.add(Difficulty.INTERMEDIATE)

        suggestions = [
            Suggestion(
                id=f"challenge-{_slug(challenge.name)}",
                kind=SuggestionKind.CHALLENGE,
                title=f"Try {challenge.name}",
                description=challenge.description,
                reason=f"Matches your current skill level ({level.value})",
                priority=Priority.MEDIUM,
                category=challenge.category,
                estimated_time=self.config.challenge_estimated_time,
                difficulty=challenge.difficulty,
            )
            for challenge in self.config.challenges
            if challenge.difficulty in accepted
        ]
        return suggestions[:self.config.max_challenge_suggestions]

    # -------------------------------------------------------------------------
    # Steps 4-5: Nudges
    # -------------------------------------------------------------------------

    def documentation_nudge(self, project_count: int, post_count: int) -> Optional[Suggestion]:
        if project_count <= post_count:
            return None
        return Suggestion(
            id="post-documentation",
            kind=SuggestionKind.RESOURCE,
            title="Document Your Projects",
            description="Create detailed writeups for your recent penetration testing projects",
            reason=(
                f"You have {project_count} projects but only {post_count} posts. "
                "Documentation helps solidify learning."
            ),
            priority=Priority.MEDIUM,
            category="Documentation",
            estimated_time="1-2 hours",
            difficulty=Difficulty.BEGINNER,
        )

    def advanced_nudge(self, completed_count: int) -> Optional[Suggestion]:
        if completed_count < self.config.advanced_nudge_min_completed:
            return None
        return Suggestion(
            id="advanced-techniques",
            kind=SuggestionKind.CHALLENGE,
            title="Advanced Exploitation Techniques",
            description="Explore buffer overflow exploitation and shellcode development",
            reason="Based on your progress in multiple modules, you're ready for advanced exploitation",
            priority=Priority.MEDIUM,
            category="Advanced",
            estimated_time="3-6 weeks",
            difficulty=Difficulty.ADVANCED,
        )


def rank_suggestions(suggestions: list[Suggestion]) -> list[Suggestion]:
    """Sort by descending priority weight; equal weights keep generation order."""
    return sorted(suggestions, key=lambda s: s.priority.weight, reverse=True)
