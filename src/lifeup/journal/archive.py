"""Journal archive: dated entries with mood and photos, newest first."""

import structlog
from pydantic import Field, TypeAdapter

from lifeup.confirmation import ConfirmationGate, PendingAction
from lifeup.errors import NotFound, ValidationRejected
from lifeup.journal.images import check_compressed, compress_image
from lifeup.models.base import CamelModel
from lifeup.models.journal import JournalEntry, Mood
from lifeup.storage.store import Collection, JsonStore

logger = structlog.get_logger()

_entries_adapter = TypeAdapter(list[JournalEntry])


class JournalDraft(CamelModel):
    """An entry being written. Staged images live here until the entry is saved."""

    content: str = ""
    mood: Mood = Mood.NEUTRAL
    images: list[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.content.strip() and not self.images

    def remove_image(self, index: int) -> str:
        """Unstage one image; the others keep their order."""
        if not 0 <= index < len(self.images):
            raise ValidationRejected(f"No staged image at position {index}.")
        return self.images.pop(index)

    def clear(self) -> None:
        self.content = ""
        self.mood = Mood.NEUTRAL
        self.images = []


class JournalArchive:
    """Owns the ``journal`` collection.

    Args:
        store: Persistent store.
        max_dimension: Long-edge limit for staged photos.
        quality: JPEG quality for staged photos.
    """

    def __init__(self, store: JsonStore, max_dimension: int = 800, quality: int = 70):
        self.store = store
        self.max_dimension = max_dimension
        self.quality = quality

    def entries(self) -> list[JournalEntry]:
        return self.store.load(
            Collection.JOURNAL,
            _entries_adapter,
            list,
            lambda entries: [e.to_document() for e in entries],
        )

    def _save(self, entries: list[JournalEntry]) -> None:
        self.store.write(Collection.JOURNAL, [e.to_document() for e in entries])

    async def stage_image(self, draft: JournalDraft, data: bytes) -> str:
        """Compress an image and append it to the draft once decoding finishes.

        Concurrent stagings each append on completion; none overwrites another.
        """
        image = await compress_image(data, self.max_dimension, self.quality)
        draft.images.append(image)
        return image

    def save_entry(self, draft: JournalDraft) -> JournalEntry:
        """Turn the draft into a saved entry at the top of the journal and clear it."""
        if draft.is_empty:
            raise ValidationRejected("Write something or add a photo first.")
        for image in draft.images:
            check_compressed(image, self.max_dimension)
        entry = JournalEntry(content=draft.content, mood=draft.mood, images=list(draft.images))
        self._save([entry, *self.entries()])
        draft.clear()
        logger.info("journal_entry_saved", entry_id=entry.id, images=len(entry.images))
        return entry

    def get(self, entry_id: str) -> JournalEntry:
        for entry in self.entries():
            if entry.id == entry_id:
                return entry
        raise NotFound(f"Journal entry {entry_id} not found.")

    def request_deletion(self, entry_id: str, gate: ConfirmationGate) -> PendingAction:
        self.get(entry_id)
        return gate.request(
            "journal_entry",
            entry_id,
            "Delete this journal entry?",
            lambda: self.delete_entry(entry_id),
        )

    def delete_entry(self, entry_id: str) -> None:
        entries = self.entries()
        remaining = [e for e in entries if e.id != entry_id]
        if len(remaining) == len(entries):
            raise NotFound(f"Journal entry {entry_id} not found.")
        self._save(remaining)
        logger.info("journal_entry_deleted", entry_id=entry_id)
