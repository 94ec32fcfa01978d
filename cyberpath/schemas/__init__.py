"""
CyberPath Schemas - Pydantic models for the learner-progress tracker.

This module exports all schema classes for:
- Curriculum: units, tool and challenge catalog entries
- Progress: learners, unit progress, projects, posts
- Achievement: parsed conditions, achievements, unlock records
- Suggestion: recommendation engine output
- Config: lookup tables that drive the engines
"""

# Curriculum schemas
from .curriculum import (
    Difficulty,
    Unit,
    ToolEntry,
    ChallengeEntry,
)

# Progress schemas
from .progress import (
    UnitAvailability,
    Learner,
    Progress,
    Project,
    Post,
    utcnow,
)

# Achievement schemas
from .achievement import (
    ActionKind,
    ConditionKind,
    Condition,
    Achievement,
    UnlockRecord,
    UnlockedAchievement,
)

# Suggestion schemas
from .suggestion import (
    SuggestionKind,
    Priority,
    PRIORITY_WEIGHTS,
    Suggestion,
)

# Config schemas
from .config import (
    RecommendationConfig,
    AchievementConfig,
)

__all__ = [
    # Curriculum
    'Difficulty',
    'Unit',
    'ToolEntry',
    'ChallengeEntry',
    # Progress
    'UnitAvailability',
    'Learner',
    'Progress',
    'Project',
    'Post',
    'utcnow',
    # Achievement
    'ActionKind',
    'ConditionKind',
    'Condition',
    'Achievement',
    'UnlockRecord',
    'UnlockedAchievement',
    # Suggestion
    'SuggestionKind',
    'Priority',
    'PRIORITY_WEIGHTS',
    'Suggestion',
    # Config
    'RecommendationConfig',
    'AchievementConfig',
]
