import io
from datetime import date

import pytest
from PIL import Image

from lifeup.models.stats import UserStats
from lifeup.storage.store import JsonStore

TODAY = date(2026, 3, 14)


@pytest.fixture
def store(tmp_path):
    return JsonStore(tmp_path / "data")


@pytest.fixture
def fresh_stats():
    return UserStats()


def make_image_bytes(width: int, height: int, fmt: str = "PNG", color=(200, 80, 40)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format=fmt)
    return buf.getvalue()
