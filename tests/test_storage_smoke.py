"""Smoke tests for the JSON document store and stats persistence."""

import json

import pytest
from pydantic import TypeAdapter

from lifeup.models.habit import Habit
from lifeup.models.stats import UserStats, View
from lifeup.storage.stats import load_stats, load_view, rename_user, save_stats, save_view
from lifeup.storage.store import Collection, JsonStore


class TestJsonStore:
    def test_read_missing_returns_none(self, store):
        assert store.read(Collection.HABITS) is None
        assert not store.exists(Collection.HABITS)

    def test_write_then_read(self, store):
        store.write(Collection.VIEW, "journal")
        assert store.exists(Collection.VIEW)
        assert store.read(Collection.VIEW) == "journal"

    def test_write_replaces_whole_document(self, store):
        store.write(Collection.HABITS, [{"a": 1}, {"b": 2}])
        store.write(Collection.HABITS, [{"c": 3}])
        assert store.read(Collection.HABITS) == [{"c": 3}]

    def test_no_temp_files_left(self, store):
        store.write(Collection.STATS, {"xp": 1})
        assert [p.name for p in store.root.iterdir()] == ["stats.json"]

    def test_failed_write_keeps_previous_document(self, store):
        store.write(Collection.STATS, {"xp": 1})
        with pytest.raises(TypeError):
            store.write(Collection.STATS, {"xp": object()})
        assert [p.name for p in store.root.iterdir()] == ["stats.json"]
        assert store.read(Collection.STATS) == {"xp": 1}

    def test_non_ascii_roundtrip(self, store):
        store.write(Collection.JOURNAL, [{"content": "今天很好 😊"}])
        raw = store.path_for(Collection.JOURNAL).read_text(encoding="utf-8")
        assert "今天很好" in raw
        assert store.read(Collection.JOURNAL) == [{"content": "今天很好 😊"}]

    def test_load_initializes_missing_collection(self, store):
        habits = store.load(
            Collection.HABITS,
            TypeAdapter(list[Habit]),
            lambda: [Habit(name="Walk")],
            lambda hs: [h.to_document() for h in hs],
        )
        assert [h.name for h in habits] == ["Walk"]
        assert store.read(Collection.HABITS)[0]["name"] == "Walk"


class TestCorruptDocuments:
    def test_invalid_json_is_quarantined(self, store):
        store.path_for(Collection.STATS).write_text("{not json", encoding="utf-8")
        stats = load_stats(store)
        assert stats == UserStats()
        quarantined = list(store.root.glob("stats.corrupt-*.json"))
        assert len(quarantined) == 1
        assert quarantined[0].read_text(encoding="utf-8") == "{not json"
        assert json.loads(store.path_for(Collection.STATS).read_text())["xp"] == 0

    def test_invalid_document_is_quarantined(self, store):
        store.write(Collection.STATS, {"xp": -40})
        assert load_stats(store).xp == 0
        assert len(list(store.root.glob("stats.corrupt-*.json"))) == 1


class TestStats:
    def test_first_load_creates_defaults(self, store):
        stats = load_stats(store)
        assert stats.xp == 0
        assert store.exists(Collection.STATS)

    def test_save_and_load(self, store):
        save_stats(store, UserStats(name="Mia", xp=340, coins=25))
        loaded = load_stats(store)
        assert loaded.name == "Mia"
        assert loaded.level == 4
        assert loaded.coins == 25

    def test_rename_user(self, store):
        rename_user(store, "Kai")
        assert load_stats(store).name == "Kai"
        rename_user(store, "")
        assert load_stats(store).name == "Kai"


class TestView:
    def test_default_view(self, store):
        assert load_view(store) == View.HABITS

    def test_save_and_load(self, store):
        save_view(store, View.ENGLISH)
        assert load_view(store) == View.ENGLISH
        assert store.read(Collection.VIEW) == "english"

    def test_unknown_view_resets(self, store):
        store.write(Collection.VIEW, "settings")
        assert load_view(store) == View.HABITS
