"""
MemoryStore - in-process ProgressStore.

Used by tests and for trying the engines without a database. A single lock
serializes writes so the unlock check-then-insert is atomic.
"""

import threading
from itertools import count
from typing import Optional

from cyberpath.schemas import Learner, Post, Progress, Project, UnlockRecord, utcnow

from .base import ProgressStore


class MemoryStore(ProgressStore):
    """Dict-backed store keyed the same way as the SQLite tables."""

    def __init__(self):
        self._lock = threading.Lock()
        self._learners: dict[int, Learner] = {}
        self._progress: dict[tuple[int, str], Progress] = {}
        self._projects: dict[int, Project] = {}
        self._posts: dict[int, Post] = {}
        self._unlocks: dict[tuple[int, int], UnlockRecord] = {}
        self._learner_ids = count(1)
        self._project_ids = count(1)
        self._post_ids = count(1)

    # -------------------------------------------------------------------------
    # Learners
    # -------------------------------------------------------------------------

    def get_learner(self, learner_id: int) -> Optional[Learner]:
        return self._learners.get(learner_id)

    def create_learner(self, username: str, email: str) -> Learner:
        with self._lock:
            learner = Learner(id=next(self._learner_ids), username=username, email=email)
            self._learners[learner.id] = learner
        return learner

    def find_learner(self, username: str) -> Optional[Learner]:
        return next((learner for learner in list(self._learners.values()) if learner.username == username), None)

    # -------------------------------------------------------------------------
    # Unit progress
    # -------------------------------------------------------------------------

    def get_progress(self, learner_id: int) -> list[Progress]:
        return [p for (lid, _), p in list(self._progress.items()) if lid == learner_id]

    def get_unit_progress(self, learner_id: int, unit_id: str) -> Optional[Progress]:
        return self._progress.get((learner_id, unit_id))

    def upsert_progress(
        self,
        learner_id: int,
        unit_id: str,
        completed: Optional[bool] = None,
        percent: Optional[int] = None,
    ) -> Progress:
        key = (learner_id, unit_id)
        with self._lock:
            existing = self._progress.get(key)
            if existing is None:
                record = Progress(
                    learner_id=learner_id,
                    unit_id=unit_id,
                    completed=completed if completed is not None else False,
                    percent=percent if percent is not None else 0,
                )
            else:
                updates = {"last_accessed": utcnow()}
                if completed is not None:
                    updates["completed"] = completed
                if percent is not None:
                    updates["percent"] = percent
                # re-validate so percent bounds are enforced on update too
                record = Progress(**{**existing.model_dump(), **updates})
            self._progress[key] = record
        return record

    # -------------------------------------------------------------------------
    # Projects and posts
    # -------------------------------------------------------------------------

    def get_projects(self, learner_id: int) -> list[Project]:
        return [p for p in list(self._projects.values()) if p.learner_id == learner_id]

    def create_project(
        self,
        learner_id: int,
        title: str,
        description: str = "",
        tools: Optional[list[str]] = None,
        result: Optional[str] = None,
        unit_id: Optional[str] = None,
    ) -> Project:
        with self._lock:
            project = Project(
                id=next(self._project_ids),
                learner_id=learner_id,
                title=title,
                description=description,
                tools=tools or [],
                result=result,
                unit_id=unit_id,
            )
            self._projects[project.id] = project
        return project

    def update_project(
        self,
        project_id: int,
        title: Optional[str] = None,
        description: Optional[str] = None,
        tools: Optional[list[str]] = None,
        result: Optional[str] = None,
        unit_id: Optional[str] = None,
    ) -> Optional[Project]:
        changes = {
            "title": title,
            "description": description,
            "tools": tools,
            "result": result,
            "unit_id": unit_id,
        }
        with self._lock:
            existing = self._projects.get(project_id)
            if existing is None:
                return None
            updates = {k: v for k, v in changes.items() if v is not None}
            project = Project(**{**existing.model_dump(), **updates})
            self._projects[project_id] = project
        return project

    def delete_project(self, project_id: int) -> bool:
        with self._lock:
            return self._projects.pop(project_id, None) is not None

    def get_posts(self, learner_id: int) -> list[Post]:
        return [p for p in list(self._posts.values()) if p.learner_id == learner_id]

    def create_post(self, learner_id: int, title: str, content: str = "", published: bool = False) -> Post:
        with self._lock:
            post = Post(
                id=next(self._post_ids),
                learner_id=learner_id,
                title=title,
                content=content,
                published=published,
            )
            self._posts[post.id] = post
        return post

    def update_post(
        self,
        post_id: int,
        title: Optional[str] = None,
        content: Optional[str] = None,
        published: Optional[bool] = None,
    ) -> Optional[Post]:
        changes = {"title": title, "content": content, "published": published}
        with self._lock:
            existing = self._posts.get(post_id)
            if existing is None:
                return None
            updates = {k: v for k, v in changes.items() if v is not None}
            updates["updated_at"] = utcnow()
            post = Post(**{**existing.model_dump(), **updates})
            self._posts[post_id] = post
        return post

    def delete_post(self, post_id: int) -> bool:
        with self._lock:
            return self._posts.pop(post_id, None) is not None

    # -------------------------------------------------------------------------
    # Achievement unlocks
    # -------------------------------------------------------------------------

    def get_unlock_records(self, learner_id: int) -> list[UnlockRecord]:
        return [r for (lid, _), r in list(self._unlocks.items()) if lid == learner_id]

    def insert_unlock(self, learner_id: int, achievement_id: int) -> tuple[UnlockRecord, bool]:
        key = (learner_id, achievement_id)
        with self._lock:
            existing = self._unlocks.get(key)
            if existing is not None:
                return existing, False
            record = UnlockRecord(learner_id=learner_id, achievement_id=achievement_id, unlocked_at=utcnow())
            self._unlocks[key] = record
        return record, True
