"""
Suggestion schema for CyberPath.

Suggestions are produced fresh on every recommendation request and never
stored.
"""

from pydantic import BaseModel
from typing import Optional
from enum import Enum

from .curriculum import Difficulty


class SuggestionKind(str, Enum):
    UNIT = "unit"
    TOOL = "tool"
    CHALLENGE = "challenge"
    RESOURCE = "resource"


class Priority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def weight(self) -> int:
        return PRIORITY_WEIGHTS[self]


PRIORITY_WEIGHTS = {
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}


class Suggestion(BaseModel):
    id: str
    kind: SuggestionKind
    title: str
    description: str
    reason: str              # templated justification text
    priority: Priority
    category: str
    estimated_time: Optional[str] = None
    difficulty: Optional[Difficulty] = None

    def to_dict(self) -> dict:
        """JSON-compatible dict; absent optional fields are omitted."""
        return self.model_dump(mode='json', exclude_none=True)
