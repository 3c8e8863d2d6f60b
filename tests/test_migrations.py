"""Tests for versioned data migrations."""

from lifeup.english.library import ArticleLibrary
from lifeup.storage.migrations import (
    LATEST_VERSION,
    SCHEMA_VERSION_KEY,
    get_schema_version,
    open_store,
    run_migrations,
)
from lifeup.storage.store import Collection


class TestLegacyArticleMigration:
    def test_completed_legacy_article(self, store):
        store.write(
            Collection.LEGACY_ARTICLE,
            {"title": "A", "content": "B", "lastCompletedDate": "2024-01-01"},
        )
        run_migrations(store)
        library = ArticleLibrary(store).articles()
        assert len(library) == 1
        assert library[0].title == "A"
        assert library[0].content == "B"
        assert library[0].completion_count == 1
        assert library[0].id

    def test_never_completed_legacy_article(self, store):
        store.write(Collection.LEGACY_ARTICLE, {"title": "A", "content": "B"})
        run_migrations(store)
        assert ArticleLibrary(store).articles()[0].completion_count == 0

    def test_existing_library_untouched(self, store):
        store.write(Collection.ENGLISH_LIBRARY, [])
        store.write(Collection.LEGACY_ARTICLE, {"title": "A", "content": "B"})
        run_migrations(store)
        assert store.read(Collection.ENGLISH_LIBRARY) == []

    def test_no_legacy_document(self, store):
        run_migrations(store)
        assert not store.exists(Collection.ENGLISH_LIBRARY)

    def test_invalid_legacy_document_quarantined(self, store):
        store.write(Collection.LEGACY_ARTICLE, {"title": "no content"})
        run_migrations(store)
        assert not store.exists(Collection.ENGLISH_LIBRARY)
        assert len(list(store.root.glob("english_article.corrupt-*.json"))) == 1


class TestRunMigrations:
    def test_records_version(self, store):
        assert get_schema_version(store) == 0
        assert run_migrations(store) == LATEST_VERSION
        assert store.read(Collection.META) == {SCHEMA_VERSION_KEY: LATEST_VERSION}

    def test_runs_once(self, store):
        run_migrations(store)
        store.write(Collection.LEGACY_ARTICLE, {"title": "Late", "content": "C"})
        run_migrations(store)
        assert not store.exists(Collection.ENGLISH_LIBRARY)

    def test_open_store(self, tmp_path):
        store = open_store(tmp_path / "fresh")
        assert store.root.exists()
        assert get_schema_version(store) == LATEST_VERSION
