"""분석 세션: 운영자 화면 하나의 표시 상태

이미지 → 탐지 요청 → 결과 표시 흐름을 관리한다.
새 촬영/업로드/초기화가 일어나면 generation이 증가하고,
늦게 도착한 이전 요청의 응답은 표시하지도 저장하지도 않는다 (마지막 사용자 동작 우선).

모든 상태 변경은 이벤트 루프 한 곳에서 일어나므로 락은 필요 없다.
"""

import asyncio
import logging
import time
import uuid
from typing import Literal

from src.constants import Limits, SessionId
from src.schemas.base import BaseSchema
from src.schemas.detection import DetectionResult, HistoryItem, ImageSize
from src.services.detection import DetectionError, get_detection
from src.services.history import get_history
from src.services.normalizer import normalize_result
from src.services.overlay import Overlay, project_all
from src.services.upload import InvalidImageError, UploadedImage, from_data_url, image_size_of

logger = logging.getLogger(__name__)

SessionMode = Literal["camera", "gallery"]

DETECTION_FAILED_NOTICE = "Detection failed. Please try again."


class SessionNotFoundError(Exception):
    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")


class NothingToSaveError(Exception):
    pass


class SessionState(BaseSchema):
    session_id: str
    mode: SessionMode
    image_data: str | None = None
    result: DetectionResult | None = None
    rendered_size: ImageSize | None = None
    loading: bool = False
    notice: str | None = None


class AnalysisSession:
    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        self.mode: SessionMode = "camera"
        self.image_data: str | None = None
        self.result: DetectionResult | None = None
        self.rendered_size: ImageSize | None = None
        self.loading = False
        self.notice: str | None = None
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def _is_current(self, ticket: int) -> bool:
        return ticket == self._generation

    def begin(self, image_data: str) -> int:
        """새 이미지로 분석 시작. 이전 결과와 렌더링 크기는 비운다."""
        self._generation += 1
        self.mode = "gallery"
        self.image_data = image_data
        self.result = None
        self.rendered_size = None
        self.loading = True
        self.notice = None
        return self._generation

    def image_loaded(self, width: int, height: int) -> None:
        self.rendered_size = ImageSize(width=width, height=height)

    def reset(self) -> None:
        self._generation += 1
        self.mode = "camera"
        self.image_data = None
        self.result = None
        self.rendered_size = None
        self.loading = False
        self.notice = None

    async def analyze(self, image: UploadedImage) -> DetectionResult | None:
        """이미지를 탐지 서비스로 보내고 결과를 표시/자동 저장

        Returns:
            표시된 결과. 응답 도착 전에 새 동작이 있었으면 None.

        Raises:
            DetectionError: 현재 요청이 실패한 경우 (재시도 없음)
        """
        ticket = self.begin(image.data_url)
        self.image_loaded(image.size.width, image.size.height)

        try:
            raw = await asyncio.to_thread(get_detection().detect, image.content, image.filename)
        except DetectionError as e:
            if not self._is_current(ticket):
                logger.info(f"[{self.session_id}] 이전 요청 실패 무시: {e}")
                return None
            logger.error(f"[{self.session_id}] Detection 실패: {e}")
            self.loading = False
            self.notice = DETECTION_FAILED_NOTICE
            raise

        result = normalize_result(raw)

        if not self._is_current(ticket):
            logger.info(f"[{self.session_id}] 이전 요청 응답 폐기 (generation {ticket})")
            return None

        self.result = result
        self.loading = False
        logger.info(f"[{self.session_id}] Detection 완료: {result.count}개")

        filename = f"detection_{time.time_ns() // 1_000_000}.jpg"
        get_history().append(result, image.data_url, filename)
        return result

    def load_history_item(self, item: HistoryItem) -> None:
        self._generation += 1
        self.mode = "gallery"
        self.image_data = item.image_data
        self.result = item.result
        self.loading = False
        self.notice = None

        try:
            content, _ = from_data_url(item.image_data)
            self.rendered_size = image_size_of(content)
        except InvalidImageError:
            logger.warning(f"[{self.session_id}] 히스토리 이미지 디코딩 실패: {item.id}")
            self.rendered_size = None

    def overlays(self) -> list[Overlay]:
        if self.result is None or self.image_data is None:
            return []
        return project_all(self.result, self.rendered_size)

    def save_current(self, filename: str | None = None) -> HistoryItem:
        """
        Raises:
            NothingToSaveError: 표시 중인 결과가 없음
        """
        if self.result is None or self.image_data is None:
            raise NothingToSaveError("No result to save")

        name = filename or f"microplastics_{time.time_ns() // 1_000_000}"
        return get_history().append(self.result, self.image_data, name)

    def state(self) -> SessionState:
        return SessionState(
            session_id=self.session_id,
            mode=self.mode,
            image_data=self.image_data,
            result=self.result,
            rendered_size=self.rendered_size,
            loading=self.loading,
            notice=self.notice,
        )


_sessions: dict[str, AnalysisSession] = {}


def _generate_session_id() -> str:
    return f"{SessionId.PREFIX}{uuid.uuid4().hex[:8]}"


def create_session() -> AnalysisSession:
    """세션 생성. 최대 개수를 넘으면 가장 오래된 세션부터 제거."""
    session = AnalysisSession(_generate_session_id())
    _sessions[session.session_id] = session

    while len(_sessions) > Limits.MAX_SESSIONS:
        oldest = next(iter(_sessions))
        del _sessions[oldest]

    return session


def get_session(session_id: str) -> AnalysisSession:
    """
    Raises:
        SessionNotFoundError: 존재하지 않는 세션 ID
    """
    session = _sessions.get(session_id) if SessionId.PATTERN.match(session_id) else None
    if session is None:
        raise SessionNotFoundError(session_id)
    return session


def clear_sessions() -> None:
    """세션 전체 제거 (테스트용)"""
    _sessions.clear()
