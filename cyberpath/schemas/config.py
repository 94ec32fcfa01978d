"""
Engine configuration schemas for CyberPath.

Lookup tables that drive the engines are data, not code: they are loaded from
the catalog file and handed to each engine's constructor.
"""

from pydantic import BaseModel, Field

from .achievement import ActionKind, ConditionKind
from .curriculum import ChallengeEntry, Difficulty, ToolEntry


class RecommendationConfig(BaseModel):
    tools: list[ToolEntry] = []
    challenges: list[ChallengeEntry] = []
    unit_tool_categories: dict[str, list[str]] = {}  # unit title -> tool categories
    unit_difficulty: dict[str, Difficulty] = {}      # unit title -> difficulty
    default_unit_difficulty: Difficulty = Difficulty.INTERMEDIATE

    max_next_units: int = Field(default=2, ge=0)
    max_tool_suggestions: int = Field(default=3, ge=0)
    max_challenge_suggestions: int = Field(default=2, ge=0)

    # experience score = completed_weight * completed units + projects
    completed_unit_weight: int = 2
    intermediate_score: int = 5
    advanced_score: int = 10

    advanced_nudge_min_completed: int = 3

    unit_estimated_time: str = "2-4 weeks"
    tool_estimated_time: str = "1-2 weeks"
    challenge_estimated_time: str = "Ongoing"


def default_condition_actions() -> dict[ConditionKind, list[ActionKind]]:
    return {
        ConditionKind.COMPLETED_UNITS: [ActionKind.COMPLETE_UNIT],
        ConditionKind.TAGGED_PROJECTS: [ActionKind.CREATE_PROJECT],
        ConditionKind.ALL_UNITS_COMPLETED: [ActionKind.COMPLETE_UNIT],
    }


class AchievementConfig(BaseModel):
    project_tag_keywords: list[str] = ["script", "python", "bash"]
    # Each condition kind is only evaluated for these actions
    condition_actions: dict[ConditionKind, list[ActionKind]] = Field(
        default_factory=default_condition_actions
    )
