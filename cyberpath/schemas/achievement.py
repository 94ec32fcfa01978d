"""
Achievement schemas for CyberPath.

Condition expressions are stored as text ("complete_units:5") in the catalog
and parsed once, at load time, into a tagged Condition.
"""

from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import Optional
from datetime import datetime
from enum import Enum


class ActionKind(str, Enum):
    """Learner actions that trigger an achievement check."""
    COMPLETE_UNIT = "complete_unit"
    CREATE_PROJECT = "create_project"


class ConditionKind(str, Enum):
    COMPLETED_UNITS = "complete_units"          # complete_units:N
    TAGGED_PROJECTS = "tagged_projects"         # tagged_projects:N
    ALL_UNITS_COMPLETED = "complete_all_units"  # no threshold
    UNKNOWN = "unknown"                         # never transitions


THRESHOLD_KINDS = {ConditionKind.COMPLETED_UNITS, ConditionKind.TAGGED_PROJECTS}


class Condition(BaseModel):
    """Parsed condition expression: kind plus optional threshold."""
    model_config = ConfigDict(frozen=True)

    kind: ConditionKind
    threshold: Optional[int] = Field(default=None, ge=0)
    raw: str = ""

    @classmethod
    def parse(cls, text: str) -> "Condition":
        """
        Parse "kind" or "kind:threshold".

        Unrecognized kinds and malformed thresholds parse to UNKNOWN rather
        than raising, so a catalog may carry conditions this engine cannot
        evaluate yet.
        """
        raw = text.strip()
        name, _, threshold_text = raw.partition(":")
        try:
            kind = ConditionKind(name.strip())
        except ValueError:
            return cls(kind=ConditionKind.UNKNOWN, raw=raw)
        if kind == ConditionKind.UNKNOWN:
            return cls(kind=ConditionKind.UNKNOWN, raw=raw)

        if kind in THRESHOLD_KINDS:
            try:
                threshold = int(threshold_text)
            except ValueError:
                return cls(kind=ConditionKind.UNKNOWN, raw=raw)
            if threshold < 0:
                return cls(kind=ConditionKind.UNKNOWN, raw=raw)
            return cls(kind=kind, threshold=threshold, raw=raw)

        if threshold_text:
            return cls(kind=ConditionKind.UNKNOWN, raw=raw)
        return cls(kind=kind, raw=raw)


class Achievement(BaseModel):
    """Achievement definition. Immutable catalog entry."""
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    description: str
    icon: str = "fa-trophy"
    condition: Condition

    @model_validator(mode='before')
    @classmethod
    def parse_condition_text(cls, data):
        if isinstance(data, dict) and isinstance(data.get('condition'), str):
            data = {**data, 'condition': Condition.parse(data['condition'])}
        return data


class UnlockRecord(BaseModel):
    """At most one per (learner_id, achievement_id)."""
    learner_id: int
    achievement_id: int
    unlocked_at: datetime


class UnlockedAchievement(Achievement):
    """An achievement together with the moment it was granted."""
    unlocked_at: datetime

    def to_dict(self) -> dict:
        data = self.model_dump(mode='json', exclude={'condition'})
        data['condition'] = self.condition.raw
        return data
