"""
Curriculum schemas for CyberPath.

Defines Pydantic models for the static curriculum:
- Units (learning modules) with ordered positions and prerequisites
- Tool and challenge catalog entries used by the recommendation engine
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from enum import Enum


class Difficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


class Unit(BaseModel):
    """One node of the curriculum graph. Immutable after creation."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    title: str
    description: str
    icon: str = "fa-book"        # display only
    position: int = Field(..., ge=0)  # unique, totally orders the curriculum
    tools: list[str] = []
    prerequisites: list[str] = []  # unit IDs

    @field_validator('prerequisites', mode='before')
    @classmethod
    def none_means_empty(cls, v):
        # seed data stores "no prerequisites" as null
        return v or []

    @field_validator('prerequisites')
    @classmethod
    def no_self_reference(cls, v, info):
        unit_id = info.data.get('id')
        if unit_id is not None and unit_id in v:
            raise ValueError(f'Unit {unit_id} cannot be its own prerequisite')
        return v


# -----------------------------------------------------------------------------
# Static catalogs for suggestions
# -----------------------------------------------------------------------------


class ToolEntry(BaseModel):
    """A tool worth mastering, grouped by category."""
    name: str
    category: str        # matched against unit-title -> category table
    description: str


class ChallengeEntry(BaseModel):
    """An external practice platform with a declared difficulty."""
    name: str
    difficulty: Difficulty
    category: str
    description: str
