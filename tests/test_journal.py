"""Tests for journal image compression and the journal archive."""

import asyncio
import base64
import io

import pytest
from PIL import Image

from conftest import make_image_bytes
from lifeup.confirmation import ConfirmationGate
from lifeup.errors import NotFound, ValidationRejected
from lifeup.journal.archive import JournalArchive, JournalDraft
from lifeup.journal.images import (
    DATA_URL_PREFIX,
    compress_image,
    compress_image_bytes,
    decode_data_url,
)
from lifeup.models.journal import ImageLayout, Mood


def _size_of(data_url: str) -> tuple[int, int]:
    with Image.open(io.BytesIO(decode_data_url(data_url))) as img:
        assert img.format == "JPEG"
        return img.size


def _photo(width: int = 40, height: int = 30) -> str:
    return compress_image_bytes(make_image_bytes(width, height))


@pytest.fixture
def archive(store):
    return JournalArchive(store, max_dimension=800, quality=70)


class TestCompressImage:
    def test_landscape_scaled_to_max_width(self):
        url = compress_image_bytes(make_image_bytes(2000, 1000), max_dimension=800)
        assert url.startswith(DATA_URL_PREFIX)
        assert _size_of(url) == (800, 400)

    def test_portrait_scaled_to_max_height(self):
        url = compress_image_bytes(make_image_bytes(600, 1200), max_dimension=800)
        assert _size_of(url) == (400, 800)

    def test_small_image_not_enlarged(self):
        url = compress_image_bytes(make_image_bytes(120, 80), max_dimension=800)
        assert _size_of(url) == (120, 80)

    def test_transparent_png_converted(self):
        buf = io.BytesIO()
        Image.new("RGBA", (50, 50), (0, 0, 0, 0)).save(buf, format="PNG")
        assert _size_of(compress_image_bytes(buf.getvalue())) == (50, 50)

    def test_not_an_image(self):
        with pytest.raises(ValidationRejected):
            compress_image_bytes(b"definitely not an image")

    def test_decompression_bomb_rejected(self, monkeypatch):
        monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
        with pytest.raises(ValidationRejected):
            compress_image_bytes(make_image_bytes(100, 100))

    async def test_async_wrapper(self):
        url = await compress_image(make_image_bytes(1600, 1600), max_dimension=1024)
        assert _size_of(url) == (1024, 1024)


class TestDraft:
    def test_remove_image_keeps_order(self):
        draft = JournalDraft(images=["a", "b", "c"])
        assert draft.remove_image(1) == "b"
        assert draft.images == ["a", "c"]

    def test_remove_bad_index(self):
        draft = JournalDraft(images=["a"])
        with pytest.raises(ValidationRejected):
            draft.remove_image(3)
        with pytest.raises(ValidationRejected):
            draft.remove_image(-1)
        assert draft.images == ["a"]

    def test_is_empty(self):
        assert JournalDraft(content="  ").is_empty
        assert not JournalDraft(images=["a"]).is_empty
        assert not JournalDraft(content="hi").is_empty


class TestStaging:
    async def test_stage_two_then_remove_first(self, archive):
        draft = JournalDraft()
        first = await archive.stage_image(draft, make_image_bytes(900, 900, color=(255, 0, 0)))
        second = await archive.stage_image(draft, make_image_bytes(300, 200, color=(0, 0, 255)))
        assert draft.images == [first, second]

        draft.remove_image(0)
        assert draft.images == [second]

    async def test_concurrent_staging_appends(self, archive):
        draft = JournalDraft()
        await asyncio.gather(
            archive.stage_image(draft, make_image_bytes(1000, 500)),
            archive.stage_image(draft, make_image_bytes(500, 1000)),
            archive.stage_image(draft, make_image_bytes(64, 64)),
        )
        assert len(draft.images) == 3
        assert sorted(_size_of(url) for url in draft.images) == [(64, 64), (400, 800), (800, 400)]

    async def test_staging_leaves_saved_entries_alone(self, archive):
        archive.save_entry(JournalDraft(content="Saved"))
        draft = JournalDraft()
        await archive.stage_image(draft, make_image_bytes(10, 10))
        assert archive.entries()[0].images == []

    async def test_failed_staging_adds_nothing(self, archive):
        draft = JournalDraft()
        with pytest.raises(ValidationRejected):
            await archive.stage_image(draft, b"junk")
        assert draft.images == []


class TestSaveEntry:
    def test_empty_draft_rejected(self, archive):
        with pytest.raises(ValidationRejected):
            archive.save_entry(JournalDraft(content="   "))
        assert archive.entries() == []

    def test_images_only(self, archive):
        draft = JournalDraft(images=[_photo()])
        entry = archive.save_entry(draft)
        assert entry.content == ""
        assert entry.image_layout == ImageLayout.SINGLE
        assert len(archive.entries()) == 1

    def test_newest_first_and_draft_cleared(self, archive):
        archive.save_entry(JournalDraft(content="first"))
        first, second = _photo(), _photo(20, 20)
        draft = JournalDraft(content="second", mood=Mood.EXCITED, images=[first, second])
        entry = archive.save_entry(draft)

        assert [e.content for e in archive.entries()] == ["second", "first"]
        assert entry.mood == Mood.EXCITED
        assert entry.images == [first, second]
        assert entry.image_layout == ImageLayout.PAIR
        assert entry.tags == []
        assert draft.content == ""
        assert draft.images == []
        assert draft.mood == Mood.NEUTRAL

    def test_saved_images_independent_of_draft(self, archive):
        photo = _photo()
        draft = JournalDraft(content="x", images=[photo])
        entry = archive.save_entry(draft)
        draft.images.append(_photo(10, 10))
        assert entry.images == [photo]
        assert archive.entries()[0].images == [photo]

    @pytest.mark.parametrize(
        "image",
        [
            "not-an-image",
            DATA_URL_PREFIX + "%%%",
            DATA_URL_PREFIX + base64.b64encode(b"plain text").decode(),
            "data:image/png;base64," + base64.b64encode(make_image_bytes(10, 10)).decode(),
            DATA_URL_PREFIX + base64.b64encode(make_image_bytes(10, 10)).decode(),
        ],
    )
    def test_unprocessed_images_rejected(self, archive, image):
        draft = JournalDraft(content="note", images=[image])
        with pytest.raises(ValidationRejected):
            archive.save_entry(draft)
        assert archive.entries() == []
        assert draft.images == [image]

    def test_oversized_photo_rejected(self, archive):
        big = compress_image_bytes(make_image_bytes(1200, 600), max_dimension=1200)
        with pytest.raises(ValidationRejected):
            archive.save_entry(JournalDraft(images=[big]))
        assert archive.entries() == []


class TestDeleteEntry:
    def test_confirmed_delete(self, archive):
        keep = archive.save_entry(JournalDraft(content="keep"))
        drop = archive.save_entry(JournalDraft(content="drop"))
        gate = ConfirmationGate()
        pending = archive.request_deletion(drop.id, gate)
        assert [e.id for e in archive.entries()] == [drop.id, keep.id]
        gate.confirm(pending.token)
        assert [e.id for e in archive.entries()] == [keep.id]

    def test_cancelled_delete(self, archive):
        entry = archive.save_entry(JournalDraft(content="keep"))
        gate = ConfirmationGate()
        gate.cancel(archive.request_deletion(entry.id, gate).token)
        assert archive.get(entry.id).content == "keep"

    def test_delete_unknown(self, archive):
        with pytest.raises(NotFound):
            archive.delete_entry("missing")
        with pytest.raises(NotFound):
            archive.request_deletion("missing", ConfirmationGate())
