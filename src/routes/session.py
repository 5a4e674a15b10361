"""Session API 라우트

운영자 화면 하나의 상태(표시 이미지, 결과, 렌더링 크기)를 서버에서 관리한다.
"""

from typing import Annotated

from fastapi import APIRouter, File, HTTPException, UploadFile, status

from src.routes.detect import detection_failed, invalid_image
from src.schemas.base import BaseSchema
from src.schemas.detection import HistoryItem
from src.services import session as session_service
from src.services.detection import DetectionError
from src.services.history import HistoryNotFoundError, get_history
from src.services.overlay import Overlay
from src.services.upload import InvalidImageError, read_upload

router = APIRouter(prefix="/sessions", tags=["sessions"])


class ImageSizeRequest(BaseSchema):
    width: int
    height: int


class SaveRequest(BaseSchema):
    filename: str | None = None


def _get_session(session_id: str) -> session_service.AnalysisSession:
    try:
        return session_service.get_session(session_id)
    except session_service.SessionNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "SESSION_NOT_FOUND", "message": str(e)},
        ) from None


@router.post(
    "", response_model=session_service.SessionState, status_code=status.HTTP_201_CREATED
)
async def create_session() -> session_service.SessionState:
    return session_service.create_session().state()


@router.get("/{session_id}", response_model=session_service.SessionState)
async def read_session(session_id: str) -> session_service.SessionState:
    return _get_session(session_id).state()


@router.post("/{session_id}/analyze", response_model=session_service.SessionState)
async def analyze(
    session_id: str, file: Annotated[UploadFile, File()]
) -> session_service.SessionState:
    session = _get_session(session_id)

    try:
        image = await read_upload(file)
    except InvalidImageError as e:
        raise invalid_image(e) from None

    try:
        await session.analyze(image)
    except DetectionError as e:
        raise detection_failed(e) from None

    return session.state()


@router.post("/{session_id}/reset", response_model=session_service.SessionState)
async def reset(session_id: str) -> session_service.SessionState:
    session = _get_session(session_id)
    session.reset()
    return session.state()


@router.post("/{session_id}/image-size", response_model=session_service.SessionState)
async def image_loaded(
    session_id: str, request: ImageSizeRequest
) -> session_service.SessionState:
    session = _get_session(session_id)
    session.image_loaded(request.width, request.height)
    return session.state()


@router.get("/{session_id}/overlays", response_model=list[Overlay])
async def read_overlays(session_id: str) -> list[Overlay]:
    return _get_session(session_id).overlays()


@router.post(
    "/{session_id}/save", response_model=HistoryItem, status_code=status.HTTP_201_CREATED
)
async def save_current(session_id: str, request: SaveRequest | None = None) -> HistoryItem:
    session = _get_session(session_id)
    try:
        return session.save_current(request.filename if request else None)
    except session_service.NothingToSaveError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"code": "NOTHING_TO_SAVE", "message": str(e)},
        ) from None


@router.post("/{session_id}/history/{item_id}", response_model=session_service.SessionState)
async def load_history_item(session_id: str, item_id: str) -> session_service.SessionState:
    session = _get_session(session_id)
    try:
        item = get_history().get(item_id)
    except HistoryNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"code": "HISTORY_NOT_FOUND", "message": str(e)},
        ) from None

    session.load_history_item(item)
    return session.state()
