"""
ProgressStore - storage interface consumed by the engines.

The engines hold no process-wide state; everything per-learner comes from an
injected store. Implementations must make `insert_unlock` an atomic
conditional insert keyed by (learner_id, achievement_id).
"""

from abc import ABC, abstractmethod
from typing import Optional

from cyberpath.schemas import Learner, Post, Progress, Project, UnlockRecord


class ProgressStore(ABC):
    """
    Per-learner mutable state.

    Backend failures are raised as StoreUnavailableError.
    """

    # -------------------------------------------------------------------------
    # Learners
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_learner(self, learner_id: int) -> Optional[Learner]:
        """Return the learner, or None if unknown."""

    @abstractmethod
    def create_learner(self, username: str, email: str) -> Learner:
        """Create a learner with a fresh ID."""

    @abstractmethod
    def find_learner(self, username: str) -> Optional[Learner]:
        """Look a learner up by username, or None if unknown."""

    # -------------------------------------------------------------------------
    # Unit progress
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_progress(self, learner_id: int) -> list[Progress]:
        """All progress records for a learner, oldest first."""

    @abstractmethod
    def get_unit_progress(self, learner_id: int, unit_id: str) -> Optional[Progress]:
        """Progress for one unit, or None if never touched."""

    @abstractmethod
    def upsert_progress(
        self,
        learner_id: int,
        unit_id: str,
        completed: Optional[bool] = None,
        percent: Optional[int] = None,
    ) -> Progress:
        """
        Insert or update the single record for (learner, unit).

        Fields passed as None keep their stored value (or the default on
        insert). `last_accessed` is always refreshed.
        """

    # -------------------------------------------------------------------------
    # Projects and posts
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_projects(self, learner_id: int) -> list[Project]:
        """Projects for a learner."""

    @abstractmethod
    def create_project(
        self,
        learner_id: int,
        title: str,
        description: str = "",
        tools: Optional[list[str]] = None,
        result: Optional[str] = None,
        unit_id: Optional[str] = None,
    ) -> Project:
        """Store a new project."""

    @abstractmethod
    def update_project(
        self,
        project_id: int,
        title: Optional[str] = None,
        description: Optional[str] = None,
        tools: Optional[list[str]] = None,
        result: Optional[str] = None,
        unit_id: Optional[str] = None,
    ) -> Optional[Project]:
        """
        Change a project's fields. Fields passed as None keep their value.

        Returns:
            The updated project, or None if it does not exist
        """

    @abstractmethod
    def delete_project(self, project_id: int) -> bool:
        """Delete a project; True if it existed."""

    @abstractmethod
    def get_posts(self, learner_id: int) -> list[Post]:
        """Posts for a learner."""

    @abstractmethod
    def create_post(self, learner_id: int, title: str, content: str = "", published: bool = False) -> Post:
        """Store a new post."""

    @abstractmethod
    def update_post(
        self,
        post_id: int,
        title: Optional[str] = None,
        content: Optional[str] = None,
        published: Optional[bool] = None,
    ) -> Optional[Post]:
        """
        Change a post's fields and refresh `updated_at`. Fields passed as
        None keep their value.

        Returns:
            The updated post, or None if it does not exist
        """

    @abstractmethod
    def delete_post(self, post_id: int) -> bool:
        """Delete a post; True if it existed."""

    # -------------------------------------------------------------------------
    # Achievement unlocks
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_unlock_records(self, learner_id: int) -> list[UnlockRecord]:
        """Unlock records for a learner."""

    @abstractmethod
    def insert_unlock(self, learner_id: int, achievement_id: int) -> tuple[UnlockRecord, bool]:
        """
        Atomically insert the unlock record unless one already exists.

        Returns:
            Tuple of (record, created). When the pair was already unlocked the
            existing record is returned with created=False.
        """
