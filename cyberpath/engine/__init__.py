"""
CyberPath Engine - decision logic over learner progress.

This module provides:
- CurriculumGraph: validated prerequisite DAG
- Unlock resolver: which units a learner can access
- RecommendationEngine: ranked next-best-action suggestions
- AchievementEngine: idempotent achievement unlocks
"""

from .graph import CurriculumGraph

from .unlock import (
    is_unit_accessible,
    resolve_unlocks,
    missing_prerequisites,
    completed_unit_ids,
    unit_status,
)

from .recommendations import (
    RecommendationEngine,
    rank_suggestions,
)

from .achievements import (
    AchievementEngine,
    LearnerSnapshot,
    count_completed_units,
    count_tagged_projects,
)

__all__ = [
    # Graph
    "CurriculumGraph",
    # Unlock
    "is_unit_accessible",
    "resolve_unlocks",
    "missing_prerequisites",
    "completed_unit_ids",
    "unit_status",
    # Recommendations
    "RecommendationEngine",
    "rank_suggestions",
    # Achievements
    "AchievementEngine",
    "LearnerSnapshot",
    "count_completed_units",
    "count_tagged_projects",
]
