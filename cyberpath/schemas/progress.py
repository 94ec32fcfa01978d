"""
Progress tracking schemas for CyberPath.

Defines Pydantic models for per-learner state:
- Learner profile
- Unit progress (one record per learner/unit pair)
- Projects and posts, used by the engines as aggregate counters
"""

from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime, timezone
from enum import Enum


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UnitAvailability(str, Enum):
    """Unit availability status for display."""
    LOCKED = "locked"            # Prerequisites not met
    AVAILABLE = "available"      # Can start
    IN_PROGRESS = "in_progress"  # Started but not completed
    COMPLETED = "completed"      # Finished


class Learner(BaseModel):
    id: int
    username: str
    email: str
    created_at: datetime = Field(default_factory=utcnow)


class Progress(BaseModel):
    """
    Progress of one learner on one unit.

    `completed` is authoritative for unlock and achievement purposes; a
    completed record may still carry a percent below 100.
    """
    learner_id: int
    unit_id: str
    completed: bool = False
    percent: int = Field(default=0, ge=0, le=100)
    last_accessed: datetime = Field(default_factory=utcnow)


class Project(BaseModel):
    id: int
    learner_id: int
    title: str
    description: str = ""
    tools: list[str] = []  # free-text technology tags
    result: Optional[str] = None
    unit_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

    def has_tag_matching(self, keywords: list[str]) -> bool:
        """True if any tag contains any keyword (case-insensitive substring)."""
        lowered = [k.lower() for k in keywords]
        return any(
            keyword in tool.lower()
            for tool in self.tools
            for keyword in lowered
        )


class Post(BaseModel):
    id: int
    learner_id: int
    title: str
    content: str = ""
    published: bool = False
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
