"""Detect API 라우트

이미지 한 장을 탐지 서비스로 보내고 정규화된 결과를 반환한다.
성공 시 결과는 히스토리에 자동 저장된다.
"""

import asyncio
import logging
import time
from typing import Annotated, Any

from fastapi import APIRouter, File, HTTPException, UploadFile, status

from src.schemas.base import BaseSchema
from src.schemas.detection import DetectionResult, ImageSize
from src.services.detection import DetectionError, get_detection
from src.services.history import get_history
from src.services.normalizer import normalize_result
from src.services.overlay import Overlay, project_all
from src.services.upload import InvalidImageError, read_upload

router = APIRouter(tags=["detect"])
logger = logging.getLogger(__name__)


class DetectResponse(BaseSchema):
    result: DetectionResult
    history_id: str
    image_size: ImageSize


class OverlayRequest(BaseSchema):
    result: dict[str, Any]
    rendered_width: int
    rendered_height: int


def invalid_image(e: InvalidImageError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail={"code": "INVALID_IMAGE", "message": str(e)},
    )


def detection_failed(e: DetectionError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail={"code": "DETECTION_FAILED", "message": str(e)},
    )


@router.post("/detect", response_model=DetectResponse, status_code=status.HTTP_200_OK)
async def detect(file: Annotated[UploadFile, File()]) -> DetectResponse:
    try:
        image = await read_upload(file)
    except InvalidImageError as e:
        raise invalid_image(e) from None

    try:
        raw = await asyncio.to_thread(get_detection().detect, image.content, image.filename)
    except DetectionError as e:
        logger.error(f"Detection 실패: {e}")
        raise detection_failed(e) from None

    result = normalize_result(raw)
    item = get_history().append(
        result, image.data_url, f"detection_{time.time_ns() // 1_000_000}.jpg"
    )
    logger.info(f"Detection 완료: {result.count}개, history={item.id}")

    return DetectResponse(result=result, history_id=item.id, image_size=image.size)


@router.post("/overlays", response_model=list[Overlay])
async def overlays(request: OverlayRequest) -> list[Overlay]:
    """렌더링된 이미지 크기 기준 오버레이 배치 계산"""
    rendered_size = None
    if request.rendered_width > 0 and request.rendered_height > 0:
        rendered_size = ImageSize(width=request.rendered_width, height=request.rendered_height)
    return project_all(normalize_result(request.result), rendered_size)
