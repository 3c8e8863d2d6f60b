"""Persistent store: one JSON document per collection (fcntl.flock + atomic write)."""

import fcntl
import json
import os
import tempfile
from collections.abc import Callable
from datetime import datetime
from enum import StrEnum
from pathlib import Path
from typing import Any, TypeVar

import structlog
from pydantic import TypeAdapter, ValidationError

logger = structlog.get_logger()

T = TypeVar("T")


class Collection(StrEnum):
    """Logical collection names. Each maps to ``<name>.json`` in the data dir."""

    STATS = "stats"
    HABITS = "habits"
    JOURNAL = "journal"
    ENGLISH_LIBRARY = "english_library"
    VIEW = "view"
    META = "meta"
    LEGACY_ARTICLE = "english_article"


class CorruptDocument(Exception):
    """A stored document could not be parsed as JSON."""


class JsonStore:
    """Whole-document reads and writes keyed by collection name.

    The store knows nothing about document contents. Unreadable documents
    are moved aside (never deleted) and replaced with the caller's default.

    Args:
        root: Directory holding the collection files.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def path_for(self, collection: str) -> Path:
        return self.root / f"{collection}.json"

    def exists(self, collection: str) -> bool:
        return self.path_for(collection).exists()

    def read(self, collection: str) -> Any | None:
        """Return the raw document, or None if the collection was never written."""
        path = self.path_for(collection)
        if not path.exists():
            return None
        with open(path, encoding="utf-8") as f:
            fcntl.flock(f, fcntl.LOCK_SH)
            try:
                return json.load(f)
            except json.JSONDecodeError as e:
                raise CorruptDocument(f"{path}: {e}") from e
            finally:
                fcntl.flock(f, fcntl.LOCK_UN)

    def write(self, collection: str, document: Any) -> None:
        path = self.path_for(collection)
        with tempfile.NamedTemporaryFile(
            "w", dir=self.root, delete=False, suffix=".json", encoding="utf-8"
        ) as tmp:
            try:
                json.dump(document, tmp, ensure_ascii=False, indent=2)
            except Exception:
                tmp.close()
                os.unlink(tmp.name)
                raise
        os.replace(tmp.name, path)

    def quarantine(self, collection: str) -> Path:
        """Move a damaged document aside so it can be inspected later."""
        path = self.path_for(collection)
        stamp = datetime.now().strftime("%Y%m%dT%H%M%S")
        target = self.root / f"{collection}.corrupt-{stamp}.json"
        os.replace(path, target)
        logger.warning("document_quarantined", collection=collection, moved_to=str(target))
        return target

    def load(
        self,
        collection: str,
        adapter: TypeAdapter[T],
        default: Callable[[], T],
        dump: Callable[[T], Any],
    ) -> T:
        """Read and validate a collection, initializing it with ``default()`` if needed.

        Args:
            collection: Collection name.
            adapter: Validates the raw document into the model type.
            default: Factory for the initial value of a missing or damaged collection.
            dump: Serializes a value back to a JSON-compatible document.
        """
        try:
            raw = self.read(collection)
            if raw is not None:
                return adapter.validate_python(raw)
        except (CorruptDocument, ValidationError):
            logger.exception("document_unreadable", collection=collection)
            self.quarantine(collection)

        value = default()
        self.write(collection, dump(value))
        logger.info("collection_initialized", collection=collection)
        return value
