"""Tests for the recommendation engine."""

import pytest

from cyberpath.engine import CurriculumGraph, RecommendationEngine, rank_suggestions
from cyberpath.errors import NotFoundError
from cyberpath.schemas import (
    Difficulty,
    Priority,
    RecommendationConfig,
    Suggestion,
    SuggestionKind,
)
from cyberpath.engine.recommendations import (
    REASON_COMPLEMENTARY,
    REASON_FIRST_UNIT,
    REASON_PREREQUISITES_MET,
)

from conftest import make_unit


@pytest.fixture
def engine(store, graph, recommendation_config):
    return RecommendationEngine(store, graph, recommendation_config)


def complete(store, learner_id, *unit_ids):
    for unit_id in unit_ids:
        store.upsert_progress(learner_id, unit_id, completed=True, percent=100)


def add_projects(store, learner_id, n, tools=None):
    for i in range(n):
        store.create_project(learner_id, f"Project {i}", tools=tools or ["nmap"])


def add_posts(store, learner_id, n):
    for i in range(n):
        store.create_post(learner_id, f"Post {i}")


def of_kind(suggestions, kind):
    return [s for s in suggestions if s.kind == kind]


class TestNewLearner:
    """Learner with no progress, projects or posts."""

    def test_only_root_unit_suggested(self, engine, learner):
        suggestions = engine.generate(learner.id)
        units = of_kind(suggestions, SuggestionKind.UNIT)
        # only recon has no prerequisites, so only one unit is reachable
        assert [s.id for s in units] == ["unit-recon"]
        assert units[0].reason == REASON_FIRST_UNIT
        assert units[0].priority == Priority.HIGH
        assert units[0].difficulty == Difficulty.BEGINNER
        assert units[0].estimated_time == "2-4 weeks"
        assert units[0].title == "Start Reconnaissance"

    def test_two_unblocked_units_in_catalog_order(self, store, learner, recommendation_config):
        graph = CurriculumGraph([
            make_unit("c", 3),
            make_unit("a", 1),
            make_unit("b", 2, ["a"]),
            make_unit("d", 4),
        ])
        engine = RecommendationEngine(store, graph, recommendation_config)
        units = of_kind(engine.generate(learner.id), SuggestionKind.UNIT)
        assert [s.id for s in units] == ["unit-a", "unit-c"]

    def test_beginner_challenges_and_no_nudges(self, engine, learner):
        suggestions = engine.generate(learner.id)
        challenges = of_kind(suggestions, SuggestionKind.CHALLENGE)
        assert [s.title for s in challenges] == ["Try TryHackMe", "Try OverTheWire"]
        assert all(s.difficulty == Difficulty.BEGINNER for s in challenges)
        assert of_kind(suggestions, SuggestionKind.TOOL) == []
        assert of_kind(suggestions, SuggestionKind.RESOURCE) == []
        assert all(s.id != "advanced-techniques" for s in suggestions)

    def test_empty_catalog(self, store, learner):
        engine = RecommendationEngine(store, CurriculumGraph([]))
        assert engine.generate(learner.id) == []

    def test_unknown_learner(self, engine):
        with pytest.raises(NotFoundError):
            engine.generate(999)


class TestNextUnits:
    """Step 1: reachable units and their justification."""

    def test_prerequisites_satisfied_reason(self, engine, store, learner):
        complete(store, learner.id, "recon")
        units = of_kind(engine.generate(learner.id), SuggestionKind.UNIT)
        assert [s.id for s in units] == ["unit-web", "unit-bluetooth"]
        assert all(s.reason == REASON_PREREQUISITES_MET for s in units)
        assert units[0].difficulty == Difficulty.INTERMEDIATE  # unlisted title default

    def test_complementary_reason_for_root_units(self, store, learner, recommendation_config):
        graph = CurriculumGraph([make_unit("a", 1), make_unit("b", 2)])
        engine = RecommendationEngine(store, graph, recommendation_config)
        complete(store, learner.id, "a")
        units = of_kind(engine.generate(learner.id), SuggestionKind.UNIT)
        assert [s.id for s in units] == ["unit-b"]
        assert units[0].reason == REASON_COMPLEMENTARY

    def test_completed_but_partial_percent_counts_as_completed(self, engine, store, learner):
        store.upsert_progress(learner.id, "recon", completed=True, percent=10)
        units = of_kind(engine.generate(learner.id), SuggestionKind.UNIT)
        assert "unit-recon" not in [s.id for s in units]
        assert "unit-web" in [s.id for s in units]

    def test_progress_for_unknown_unit_ignored(self, engine, store, learner):
        complete(store, learner.id, "retired-unit")
        units = of_kind(engine.generate(learner.id), SuggestionKind.UNIT)
        assert units[0].reason == REASON_FIRST_UNIT


class TestToolSuggestions:
    """Step 2: tools complementing completed units."""

    def test_tools_for_completed_unit(self, engine, store, learner):
        complete(store, learner.id, "recon")
        tools = of_kind(engine.generate(learner.id), SuggestionKind.TOOL)
        assert [s.id for s in tools] == ["tool-wireshark", "tool-gobuster"]
        assert tools[0].reason == "Perfect complement to your Reconnaissance knowledge"
        assert tools[0].estimated_time == "1-2 weeks"
        assert tools[0].difficulty == Difficulty.INTERMEDIATE

    def test_capped_at_three_in_generation_order(self, engine, store, learner):
        complete(store, learner.id, "recon", "web", "active-directory")
        tools = of_kind(engine.generate(learner.id), SuggestionKind.TOOL)
        # recon: wireshark, gobuster; web: gobuster (duplicate kept); AD cut off
        assert [s.id for s in tools] == ["tool-wireshark", "tool-gobuster", "tool-gobuster"]

    def test_never_more_than_three(self, engine, store, learner, graph):
        complete(store, learner.id, *[u.id for u in graph.units])
        assert len(of_kind(engine.generate(learner.id), SuggestionKind.TOOL)) == 3


class TestChallengeSuggestions:
    """Step 3: challenges matching the experience level."""

    @pytest.mark.parametrize("completed,projects,level", [
        (0, 0, Difficulty.BEGINNER),
        (2, 0, Difficulty.BEGINNER),
        (2, 1, Difficulty.INTERMEDIATE),
        (0, 9, Difficulty.INTERMEDIATE),
        (5, 0, Difficulty.ADVANCED),
        (5, 3, Difficulty.ADVANCED),
    ])
    def test_experience_level(self, engine, completed, projects, level):
        assert engine.experience_level(completed, projects) == level

    def test_intermediate_learner(self, engine, store, learner):
        add_projects(store, learner.id, 5)
        challenges = of_kind(engine.generate(learner.id), SuggestionKind.CHALLENGE)
        assert [s.title for s in challenges] == ["Try HackTheBox", "Try VulnHub"]
        assert challenges[0].reason == "Matches your current skill level (intermediate)"
        assert challenges[0].estimated_time == "Ongoing"

    def test_advanced_learner_gets_advanced_or_intermediate(self, engine, store, learner):
        complete(store, learner.id, "recon", "web", "exploit-dev", "active-directory", "bluetooth")
        add_projects(store, learner.id, 3)
        suggestions = engine.generate(learner.id)
        challenges = [s for s in of_kind(suggestions, SuggestionKind.CHALLENGE) if s.id.startswith("challenge-")]
        assert len(challenges) == 2
        assert all(s.difficulty in (Difficulty.ADVANCED, Difficulty.INTERMEDIATE) for s in challenges)
        # catalog order: HackTheBox, VulnHub come before Zero Day Range
        assert [s.id for s in challenges] == ["challenge-hackthebox", "challenge-vulnhub"]

    def test_slug_ids(self, store, learner, graph):
        config = RecommendationConfig(challenges=[
            {"name": "Over The Wire", "difficulty": "beginner", "category": "Wargames", "description": "x"},
        ])
        engine = RecommendationEngine(store, graph, config)
        challenges = of_kind(engine.generate(learner.id), SuggestionKind.CHALLENGE)
        assert challenges[0].id == "challenge-over-the-wire"


class TestNudges:
    """Steps 4 and 5."""

    def test_documentation_nudge_when_more_projects_than_posts(self, engine, store, learner):
        add_projects(store, learner.id, 4)
        add_posts(store, learner.id, 1)
        resources = of_kind(engine.generate(learner.id), SuggestionKind.RESOURCE)
        assert len(resources) == 1
        assert "4 projects" in resources[0].reason
        assert "1 posts" in resources[0].reason
        assert resources[0].priority == Priority.MEDIUM

    def test_no_documentation_nudge_when_equal(self, engine, store, learner):
        add_projects(store, learner.id, 2)
        add_posts(store, learner.id, 2)
        assert of_kind(engine.generate(learner.id), SuggestionKind.RESOURCE) == []

    def test_advanced_nudge_from_three_completed(self, engine, store, learner):
        complete(store, learner.id, "recon", "web")
        assert all(s.id != "advanced-techniques" for s in engine.generate(learner.id))
        complete(store, learner.id, "bluetooth")
        nudges = [s for s in engine.generate(learner.id) if s.id == "advanced-techniques"]
        assert len(nudges) == 1
        assert nudges[0].kind == SuggestionKind.CHALLENGE
        assert nudges[0].priority == Priority.MEDIUM


class TestRanking:
    """Step 6: stable sort by priority."""

    def test_sorted_by_non_increasing_weight(self, engine, store, learner):
        complete(store, learner.id, "recon", "web", "bluetooth")
        add_projects(store, learner.id, 3)
        suggestions = engine.generate(learner.id)
        weights = [s.priority.weight for s in suggestions]
        assert weights == sorted(weights, reverse=True)
        assert suggestions[0].kind == SuggestionKind.UNIT

    def test_generation_order_kept_among_equals(self, engine, store, learner):
        complete(store, learner.id, "recon", "web", "bluetooth")
        add_projects(store, learner.id, 3)
        medium = [s.kind for s in engine.generate(learner.id) if s.priority == Priority.MEDIUM]
        assert medium == [
            SuggestionKind.TOOL,
            SuggestionKind.TOOL,
            SuggestionKind.TOOL,
            SuggestionKind.CHALLENGE,
            SuggestionKind.CHALLENGE,
            SuggestionKind.RESOURCE,
            SuggestionKind.CHALLENGE,
        ]

    def test_rank_is_stable(self):
        def s(ident, priority):
            return Suggestion(
                id=ident, kind=SuggestionKind.RESOURCE, title=ident, description="",
                reason="", priority=priority, category="x",
            )
        ranked = rank_suggestions([
            s("l1", Priority.LOW), s("m1", Priority.MEDIUM), s("h1", Priority.HIGH),
            s("m2", Priority.MEDIUM), s("l2", Priority.LOW), s("h2", Priority.HIGH),
        ])
        assert [x.id for x in ranked] == ["h1", "h2", "m1", "m2", "l1", "l2"]

    def test_fresh_list_each_call(self, engine, store, learner):
        first = engine.generate(learner.id)
        complete(store, learner.id, "recon")
        second = engine.generate(learner.id)
        assert first is not second
        assert [s.id for s in first] != [s.id for s in second]
