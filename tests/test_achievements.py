"""Tests for the achievement rule engine."""

import threading

import pytest

from cyberpath.engine import AchievementEngine, CurriculumGraph
from cyberpath.errors import NotFoundError, StoreUnavailableError
from cyberpath.schemas import AchievementConfig, ActionKind, ConditionKind
from cyberpath.storage import MemoryStore, SQLiteStore

from conftest import make_unit


@pytest.fixture
def engine(store, graph, achievements):
    return AchievementEngine(store, graph, achievements)


def unlocked_titles(result):
    return [a.title for a in result]


class TestCompletedUnits:
    """complete_units:N is checked on unit completion only."""

    def test_first_unit_unlocks_once(self, engine, store, learner):
        store.upsert_progress(learner.id, "recon", completed=True, percent=100)

        result = engine.evaluate(learner.id, "complete_unit", {"unit_id": "recon"})
        assert unlocked_titles(result) == ["First Steps"]
        assert result[0].unlocked_at is not None

        again = engine.evaluate(learner.id, "complete_unit", {"unit_id": "recon"})
        assert again == []
        assert len(store.get_unlock_records(learner.id)) == 1

    def test_not_checked_on_other_actions(self, engine, store, learner):
        store.upsert_progress(learner.id, "recon", completed=True)
        assert engine.evaluate(learner.id, "create_project") == []
        assert store.get_unlock_records(learner.id) == []

    def test_below_threshold(self, engine, learner):
        assert engine.evaluate(learner.id, "complete_unit") == []

    def test_threshold_three(self, engine, store, learner):
        for unit_id in ("recon", "web"):
            store.upsert_progress(learner.id, unit_id, completed=True)
        assert unlocked_titles(engine.evaluate(learner.id, "complete_unit")) == ["First Steps"]

        store.upsert_progress(learner.id, "bluetooth", completed=True)
        assert unlocked_titles(engine.evaluate(learner.id, "complete_unit")) == ["Hat Trick"]

    def test_incomplete_progress_does_not_count(self, engine, store, learner):
        store.upsert_progress(learner.id, "recon", percent=100)
        assert engine.evaluate(learner.id, "complete_unit") == []

    def test_accepts_action_enum(self, engine, store, learner):
        store.upsert_progress(learner.id, "recon", completed=True)
        assert unlocked_titles(engine.evaluate(learner.id, ActionKind.COMPLETE_UNIT)) == ["First Steps"]


class TestAllUnitsCompleted:
    """complete_all_units compares against the catalog size."""

    def test_all_units(self, engine, store, learner, graph):
        for unit in graph.units[:-1]:
            store.upsert_progress(learner.id, unit.id, completed=True)
        result = engine.evaluate(learner.id, "complete_unit")
        assert "Elite" not in unlocked_titles(result)

        store.upsert_progress(learner.id, graph.units[-1].id, completed=True)
        result = engine.evaluate(learner.id, "complete_unit")
        assert unlocked_titles(result) == ["Elite"]

    def test_unknown_units_do_not_count(self, store, learner, achievements):
        graph = CurriculumGraph([make_unit("a", 1)])
        engine = AchievementEngine(store, graph, achievements)
        store.upsert_progress(learner.id, "retired", completed=True)
        assert engine.evaluate(learner.id, "complete_unit") == []

    def test_empty_catalog_never_completes(self, store, learner, achievements):
        engine = AchievementEngine(store, CurriculumGraph([]), achievements)
        assert engine.evaluate(learner.id, "complete_unit") == []


class TestTaggedProjects:
    """tagged_projects:N counts projects with a matching tag substring."""

    def test_ten_tagged_projects(self, engine, store, learner):
        tags = [["Python"], ["bash"], ["shell-script"], ["PowerShell Scripts", "nmap"]]
        for i in range(9):
            store.create_project(learner.id, f"p{i}", tools=tags[i % len(tags)])
        store.create_project(learner.id, "untagged", tools=["nmap", "burp"])
        assert engine.evaluate(learner.id, "create_project") == []

        store.create_project(learner.id, "p9", tools=["python3"])
        assert unlocked_titles(engine.evaluate(learner.id, "create_project")) == ["Script Kiddie"]
        assert engine.evaluate(learner.id, "create_project") == []

    def test_not_checked_on_unit_completion(self, engine, store, learner):
        for i in range(10):
            store.create_project(learner.id, f"p{i}", tools=["python"])
        assert engine.evaluate(learner.id, "complete_unit") == []

    def test_custom_keywords(self, store, graph, achievements, learner):
        config = AchievementConfig(project_tag_keywords=["rust"])
        engine = AchievementEngine(store, graph, achievements, config)
        for i in range(10):
            store.create_project(learner.id, f"p{i}", tools=["python"])
        assert engine.evaluate(learner.id, "create_project") == []


class TestIgnoredInputs:
    """Unrecognized actions and conditions yield no transitions."""

    def test_unknown_action(self, engine, store, learner):
        store.upsert_progress(learner.id, "recon", completed=True)
        assert engine.evaluate(learner.id, "find_vuln") == []
        assert store.get_unlock_records(learner.id) == []

    def test_unknown_action_ignores_payload(self, engine, learner):
        assert engine.evaluate(learner.id, "github_sync", {"unit_id": "ghost"}) == []
        assert engine.evaluate(learner.id, "github_sync", {"unit_id": ["recon"]}) == []

    def test_unit_id_only_checked_on_completion(self, engine, store, learner):
        for i in range(10):
            store.create_project(learner.id, f"p{i}", tools=["python"])
        result = engine.evaluate(learner.id, "create_project", {"unit_id": "retired"})
        assert unlocked_titles(result) == ["Script Kiddie"]

    def test_unknown_condition_never_unlocks(self, engine, achievements):
        bug_hunter = next(a for a in achievements if a.title == "Bug Hunter")
        assert bug_hunter.condition.kind == ConditionKind.UNKNOWN
        for action in ActionKind:
            assert not engine.is_relevant(bug_hunter, action)

    def test_relevance_table(self, engine, achievements):
        by_title = {a.title: a for a in achievements}
        assert engine.is_relevant(by_title["First Steps"], ActionKind.COMPLETE_UNIT)
        assert not engine.is_relevant(by_title["First Steps"], ActionKind.CREATE_PROJECT)
        assert engine.is_relevant(by_title["Script Kiddie"], ActionKind.CREATE_PROJECT)
        assert engine.is_relevant(by_title["Elite"], ActionKind.COMPLETE_UNIT)


class TestNotFound:
    """Missing learner, unit or achievement ids propagate."""

    def test_unknown_learner(self, engine):
        with pytest.raises(NotFoundError) as exc:
            engine.evaluate(42, "complete_unit")
        assert exc.value.kind == "learner"

    def test_unknown_unit_in_payload(self, engine, learner):
        with pytest.raises(NotFoundError) as exc:
            engine.evaluate(learner.id, "complete_unit", {"unit_id": "ghost"})
        assert exc.value.kind == "unit"

    @pytest.mark.parametrize("unit_id", [["recon"], {"id": "recon"}, 7])
    def test_non_string_unit_in_payload(self, engine, store, learner, unit_id):
        store.upsert_progress(learner.id, "recon", completed=True)
        with pytest.raises(NotFoundError) as exc:
            engine.evaluate(learner.id, "complete_unit", {"unit_id": unit_id})
        assert exc.value.kind == "unit"
        assert store.get_unlock_records(learner.id) == []

    def test_unknown_achievement(self, engine):
        assert engine.get_achievement(1).title == "First Steps"
        with pytest.raises(NotFoundError):
            engine.get_achievement(99)


class FailingStore(MemoryStore):
    """Memory store whose project reads fail."""

    def __init__(self):
        super().__init__()
        self.inserts = 0

    def get_projects(self, learner_id):
        raise StoreUnavailableError("projects table unreachable")

    def insert_unlock(self, learner_id, achievement_id):
        self.inserts += 1
        return super().insert_unlock(learner_id, achievement_id)


class TestStoreFailure:
    """A failing store surfaces unchanged and nothing is written."""

    def test_read_failure_propagates_without_writes(self, graph, achievements):
        store = FailingStore()
        learner = store.create_learner("a", "a@example.com")
        for i in range(10):
            store.create_project(learner.id, f"p{i}", tools=["python"])
        engine = AchievementEngine(store, graph, achievements)

        with pytest.raises(StoreUnavailableError):
            engine.evaluate(learner.id, "create_project")
        assert store.inserts == 0
        assert store.get_unlock_records(learner.id) == []


class TestConcurrentUnlocks:
    """Concurrent evaluations for the same pair unlock exactly once."""

    @pytest.mark.parametrize("backend", ["memory", "sqlite"])
    def test_single_winner(self, backend, tmp_path, graph, achievements):
        store = MemoryStore() if backend == "memory" else SQLiteStore(tmp_path / "progress.db")
        learner = store.create_learner("racer", "racer@example.com")
        store.upsert_progress(learner.id, "recon", completed=True)
        engine = AchievementEngine(store, graph, achievements)

        results = []
        barrier = threading.Barrier(8)

        def worker():
            barrier.wait()
            results.append(engine.evaluate(learner.id, "complete_unit", {"unit_id": "recon"}))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        granted = [a for result in results for a in result]
        assert unlocked_titles(granted) == ["First Steps"]
        assert len(store.get_unlock_records(learner.id)) == 1
