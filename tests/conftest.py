from collections.abc import Generator
from io import BytesIO
from typing import Any

import fakeredis
import pytest
from fastapi.testclient import TestClient
from PIL import Image

from src.infra.redis import set_redis
from src.main import app
from src.services.detection import set_detection
from src.services.history import HistoryStore, set_history
from src.services.session import clear_sessions

RAW_RESPONSE: dict[str, Any] = {
    "count": 2,
    "detections": [
        {
            "confidence": 0.92,
            "bbox": [0.1, 0.2, 0.3, 0.4],
            "label": "Microplastic",
            "width_px": 120,
            "height_px": 80,
            "width_µm": 60.0,
            "height_µm": 40.0,
            "diagonal_µm": 72.11,
            "size_category": "small",
        },
        {"confidence": "0.35", "bbox": [500, 20, 100, 50], "label": "Fiber"},
    ],
    "image_size": [1000, 500],
    "size_counts": {"nanoplastic": 0, "small": 1, "medium": 0, "large": 0},
    "calibration_info": {"microns_per_pixel": 0.5, "field_of_view_µm": [500, 250]},
}


def make_test_image(width: int = 1000, height: int = 500, fmt: str = "JPEG") -> BytesIO:
    """테스트용 실제 이미지 바이트 생성"""
    img = Image.new("RGB", (width, height), color="white")
    buf = BytesIO()
    img.save(buf, format=fmt)
    buf.seek(0)
    return buf


class MemoryPersistence:
    """HistoryPersistence 인메모리 구현 (테스트용)"""

    def __init__(self, blob: str | None = None, fail_on_save: bool = False) -> None:
        self.blob = blob
        self.fail_on_save = fail_on_save
        self.save_count = 0

    def load(self) -> str | None:
        return self.blob

    def save(self, blob: str) -> None:
        if self.fail_on_save:
            raise ConnectionError("storage unavailable")
        self.save_count += 1
        self.blob = blob

    def delete(self) -> None:
        self.blob = None


class MockDetector:
    def __init__(self, response: Any = None, error: Exception | None = None) -> None:
        self.response = RAW_RESPONSE if response is None else response
        self.error = error
        self.calls: list[str] = []

    def detect(self, image: bytes, filename: str) -> Any:
        self.calls.append(filename)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def persistence() -> MemoryPersistence:
    return MemoryPersistence()


@pytest.fixture
def history(persistence: MemoryPersistence) -> Generator[HistoryStore, None, None]:
    store = HistoryStore(persistence)
    set_history(store)
    yield store
    set_history(None)


@pytest.fixture
def detector() -> Generator[MockDetector, None, None]:
    mock = MockDetector()
    set_detection(mock)
    yield mock
    set_detection(None)


@pytest.fixture
def fake_redis() -> Generator[fakeredis.FakeRedis, None, None]:
    r = fakeredis.FakeRedis(decode_responses=True)
    set_redis(r)
    yield r
    set_redis(None)


@pytest.fixture
def client(
    history: HistoryStore, detector: MockDetector
) -> Generator[TestClient, None, None]:
    yield TestClient(app)
    clear_sessions()
