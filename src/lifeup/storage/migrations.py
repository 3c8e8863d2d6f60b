"""Versioned data migrations, each applied once at startup."""

from collections.abc import Callable
from datetime import datetime
from pathlib import Path

import structlog
from pydantic import ValidationError

from lifeup.models.article import EnglishArticle
from lifeup.storage.store import Collection, CorruptDocument, JsonStore

logger = structlog.get_logger()

SCHEMA_VERSION_KEY = "schemaVersion"


def migrate_single_article_to_library(store: JsonStore) -> None:
    """Convert the pre-library single-article document into a one-item library.

    Skipped when a library already exists or there is no legacy document.
    An article with any recorded completion is credited one completion.
    """
    if store.exists(Collection.ENGLISH_LIBRARY):
        return
    try:
        legacy = store.read(Collection.LEGACY_ARTICLE)
    except CorruptDocument:
        store.quarantine(Collection.LEGACY_ARTICLE)
        return
    if not legacy:
        return

    data = {k: v for k, v in legacy.items() if k not in ("id", "addedDate", "completionCount")}
    data["addedDate"] = datetime.now().isoformat()
    data["completionCount"] = 1 if legacy.get("lastCompletedDate") else 0
    try:
        article = EnglishArticle.model_validate(data)
    except ValidationError:
        logger.exception("legacy_article_invalid")
        store.quarantine(Collection.LEGACY_ARTICLE)
        return

    store.write(Collection.ENGLISH_LIBRARY, [article.to_document()])
    logger.info(
        "legacy_article_migrated",
        article_id=article.id,
        completion_count=article.completion_count,
    )


MIGRATIONS: list[tuple[int, Callable[[JsonStore], None]]] = [
    (1, migrate_single_article_to_library),
]

LATEST_VERSION = MIGRATIONS[-1][0]


def get_schema_version(store: JsonStore) -> int:
    try:
        meta = store.read(Collection.META)
    except CorruptDocument:
        store.quarantine(Collection.META)
        return 0
    if not isinstance(meta, dict):
        return 0
    return int(meta.get(SCHEMA_VERSION_KEY, 0))


def run_migrations(store: JsonStore) -> int:
    """Apply every migration newer than the stored schema version.

    Returns:
        The schema version after migrating.
    """
    version = get_schema_version(store)
    for target, migrate in MIGRATIONS:
        if target <= version:
            continue
        logger.info("migration_start", version=target, migration=migrate.__name__)
        migrate(store)
        version = target
        store.write(Collection.META, {SCHEMA_VERSION_KEY: version})
    return version


def open_store(root: Path) -> JsonStore:
    """Open the store at ``root`` and bring its documents up to date."""
    store = JsonStore(root)
    run_migrations(store)
    return store
