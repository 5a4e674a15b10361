"""History Store: 최근 분석 결과 보관 (최대 50개, 최신순)

저장소(persistence)는 생성 시 한 번 읽고, 변경될 때마다 배열 전체를 덮어쓴다.
저장 실패는 로그만 남기고 메모리 상태는 되돌리지 않는다.
"""

import logging
import math
import time
from datetime import datetime

from pydantic import TypeAdapter, ValidationError

from src.constants import Limits
from src.infra.history import HistoryPersistence, create_persistence
from src.schemas.detection import DetectionResult, HistoryItem

logger = logging.getLogger(__name__)

_items_adapter = TypeAdapter(list[HistoryItem])


class HistoryNotFoundError(Exception):
    def __init__(self, item_id: str):
        self.item_id = item_id
        super().__init__(f"History item not found: {item_id}")


def format_local_timestamp(now: datetime) -> str:
    """'Oct 19, 2026, 07:08:09 PM' 형태"""
    return f"{now:%b} {now.day}, {now:%Y}, {now:%I:%M:%S %p}"


class HistoryStore:
    def __init__(self, persistence: HistoryPersistence, max_items: int = Limits.HISTORY_MAX_ITEMS):
        self._persistence = persistence
        self._max_items = max_items
        self._items: list[HistoryItem] = self._hydrate()

    def _hydrate(self) -> list[HistoryItem]:
        try:
            blob = self._persistence.load()
        except Exception as e:
            logger.error(f"히스토리 로드 실패: {e}")
            return []

        if not blob:
            return []

        try:
            items = _items_adapter.validate_json(blob)
        except ValidationError as e:
            logger.error(f"히스토리 파싱 실패, 빈 히스토리로 시작: {e.error_count()}개 오류")
            return []

        return items[: self._max_items]

    def _persist(self) -> None:
        try:
            self._persistence.save(_items_adapter.dump_json(self._items, by_alias=True).decode())
        except Exception as e:
            logger.warning(f"히스토리 저장 실패: {e}")

    def _next_id(self) -> str:
        """밀리초 타임스탬프. 같은 밀리초에 연속 추가돼도 겹치지 않게 증가."""
        candidate = time.time_ns() // 1_000_000
        if self._items and self._items[0].id.isdigit():
            candidate = max(candidate, int(self._items[0].id) + 1)
        return str(candidate)

    def append(self, result: DetectionResult, image_data: str, filename: str) -> HistoryItem:
        item = HistoryItem(
            id=self._next_id(),
            timestamp=format_local_timestamp(datetime.now()),
            result=result,
            image_data=image_data,
            filename=filename,
        )
        self._items = [item, *self._items][: self._max_items]
        self._persist()
        return item

    def remove(self, item_id: str) -> bool:
        """없는 id면 아무것도 하지 않고 False"""
        for i, item in enumerate(self._items):
            if item.id == item_id:
                self._items = self._items[:i] + self._items[i + 1 :]
                self._persist()
                return True
        return False

    def clear(self) -> None:
        self._items = []
        try:
            self._persistence.delete()
        except Exception as e:
            logger.warning(f"히스토리 삭제 실패: {e}")

    def get(self, item_id: str) -> HistoryItem:
        """
        Raises:
            HistoryNotFoundError: 해당 id 없음
        """
        for item in self._items:
            if item.id == item_id:
                return item
        raise HistoryNotFoundError(item_id)

    def page(self, n: int, size: int = Limits.HISTORY_PAGE_SIZE) -> list[HistoryItem]:
        """n번째 페이지 (0부터). 범위를 벗어나면 빈 리스트."""
        if n < 0 or size <= 0:
            return []
        start = n * size
        return self._items[start : start + size]

    def total_pages(self, size: int = Limits.HISTORY_PAGE_SIZE) -> int:
        if size <= 0:
            return 0
        return math.ceil(len(self._items) / size)

    def items(self) -> list[HistoryItem]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)


_store: HistoryStore | None = None


def get_history() -> HistoryStore:
    """프로세스 시작 후 처음 호출될 때 한 번 로드"""
    global _store
    if _store is None:
        _store = HistoryStore(create_persistence())
    return _store


def set_history(store: HistoryStore | None) -> None:
    """history store 설정 (테스트용)"""
    global _store
    _store = store
