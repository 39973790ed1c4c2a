"""Tests for search module."""
import pytest

from planner_search.index import empty_index
from planner_search.models import EntityType, FieldSpec, SearchOptions
from planner_search.search import FuzzySearchEngine, search
from planner_search.service import TASK_FIELDS, index_entities


@pytest.fixture
def engine():
    return FuzzySearchEngine()


class TestBasicSearch:
    def test_finds_matching_tasks(self, errand_index):
        results = search(errand_index, "buy", {"threshold": 0.4, "limit": 20})
        ids = [r.record.id for r in results]
        assert sorted(ids) == ["1", "3"]
        assert "2" not in ids

    def test_ties_keep_index_order(self, errand_index):
        results = search(errand_index, "buy")
        assert [r.record.id for r in results] == ["1", "3"]
        assert [r.score for r in results] == [0.0, 0.0]

    def test_empty_query_returns_empty(self, errand_index):
        assert search(errand_index, "") == []
        assert search(errand_index, "   ") == []

    def test_no_match_returns_empty(self, errand_index):
        assert search(errand_index, "xyznonexistent") == []

    def test_unbuilt_index_returns_empty(self):
        assert search(empty_index(EntityType.TASKS, TASK_FIELDS), "buy") == []

    def test_respects_limit(self):
        index = index_entities(EntityType.TASKS, [
            {"id": "a", "name": "Task A"},
            {"id": "b", "name": "Task B"},
            {"id": "c", "name": "Task C"},
        ])
        assert len(search(index, "task", {"limit": 2})) == 2

    def test_limit_clamped_to_one(self, errand_index):
        assert len(search(errand_index, "buy", {"limit": -5})) == 1

    def test_better_matches_rank_first(self):
        index = index_entities(EntityType.TASKS, [
            {"id": "fuzzy", "name": "Walc the dog"},
            {"id": "exact", "name": "Walk the dog"},
        ])
        results = search(index, "walk")
        assert [r.record.id for r in results] == ["exact", "fuzzy"]
        assert results[0].score < results[1].score

    def test_results_carry_match_ranges(self, errand_index):
        results = search(errand_index, "flowers")
        assert len(results) == 1
        match = results[0].per_field[0]
        assert match.field_name == "name"
        assert match.ranges == ((4, 10),)


class TestFieldWeights:
    def test_description_only_match_is_found(self):
        index = index_entities(EntityType.TASKS, [
            {"id": "1", "name": "Meeting", "description": "Important meeting notes"},
            {"id": "2", "name": "Random", "description": "thoughts"},
        ])
        results = search(index, "meeting")
        assert [r.record.id for r in results] == ["1"]
        assert results[0].score == 0

    def test_match_in_name_scores_no_worse_than_in_description(self):
        index = index_entities(EntityType.TASKS, [
            {"id": "in-description", "name": "Weekly sync", "description": "Draft the reprot outline"},
            {"id": "in-name", "name": "Draft the reprot outline", "description": "Weekly sync"},
        ])
        results = {r.record.id: r.score for r in search(index, "report")}
        assert results["in-name"] <= results["in-description"]

    def test_exact_substring_field_scores_zero(self):
        index = index_entities(EntityType.TASKS, [
            {"id": "1", "name": "Pay rent", "description": "Transfer money to the landlord"},
        ])
        result = search(index, "landlord")[0]
        assert result.per_field[0].field_name == "description"
        assert result.per_field[0].sub_score == 0


class TestProperties:
    QUERIES = ["buy", "dgo", "flwers", "walk dog", "groceries"]

    def test_deterministic(self, errand_index):
        for query in self.QUERIES:
            first = search(errand_index, query, {"threshold": 0.6})
            second = search(errand_index, query, {"threshold": 0.6})
            assert first == second

    def test_threshold_monotonic(self, errand_index):
        thresholds = [i / 10 for i in range(11)]
        for query in self.QUERIES:
            previous = set()
            for threshold in thresholds:
                found = {r.record.id for r in search(errand_index, query, {"threshold": threshold})}
                assert previous <= found, (query, threshold)
                previous = found

    def test_scores_within_threshold(self, errand_index):
        for query in self.QUERIES:
            for result in search(errand_index, query, {"threshold": 0.5}):
                assert 0.0 <= result.score <= 0.5 + 1e-9


class TestPredicate:
    def test_predicate_applied_before_limit(self, engine):
        index = index_entities(EntityType.TASKS, [
            {"id": "done", "name": "Call mom", "is_completed": True},
            {"id": "open", "name": "Call dad", "is_completed": False},
        ])
        options = SearchOptions(limit=1)
        results = engine.search(index, "call", options, predicate=lambda r: not r.payload.get("is_completed"))
        assert [r.record.id for r in results] == ["open"]

    def test_custom_field_specs(self, engine):
        index = index_entities(EntityType.LISTS, [
            {"id": "l1", "name": "Travel", "emoji": "plane"},
        ])
        assert [r.record.id for r in engine.search(index, "plane")] == ["l1"]
        assert index.field_specs == (FieldSpec("name", 0.8), FieldSpec("emoji", 0.2))
