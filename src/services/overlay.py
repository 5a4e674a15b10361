"""Overlay Projector

정규화된 detection과 화면에 렌더링된 이미지의 픽셀 크기로
퍼센트 기준 배치 사각형과 라벨 위치를 계산한다 (렌더링과 분리된 순수 함수).

좌표 기준은 원본 촬영 크기(image_size)가 아니라 실제로 표시 중인 이미지의 natural size.
"""

from typing import Literal

from src.constants import OverlayRule
from src.schemas.base import BaseSchema
from src.schemas.detection import Detection, DetectionResult, ImageSize
from src.services.classifier import DisplayBucket, classify, is_particle_of_interest
from src.services.geometry import to_pixels

LabelAnchor = Literal["above", "inside"]


class Overlay(BaseSchema):
    index: int  # 1부터 시작하는 표시 번호
    label: str
    left_pct: float
    top_pct: float
    width_pct: float
    height_pct: float
    label_anchor: LabelAnchor
    label_top_pct: float
    bucket: DisplayBucket
    size_text: str | None = None


def _label_position(top_pct: float) -> tuple[LabelAnchor, float]:
    """박스 위에 라벨을 두고, 상단 10% 안쪽이면 박스 안쪽 상단으로 뒤집는다"""
    if top_pct < OverlayRule.LABEL_FLIP_TOP_PCT:
        return "inside", top_pct + OverlayRule.LABEL_INSIDE_OFFSET_PCT
    return "above", max(top_pct - OverlayRule.LABEL_OFFSET_PCT, OverlayRule.LABEL_MIN_TOP_PCT)


def _size_text(detection: Detection) -> str | None:
    metrics = detection.size_metrics
    if metrics is None or metrics.diagonal_um is None or not is_particle_of_interest(detection):
        return None

    text = f"Size: {metrics.diagonal_um:.1f} µm"
    if metrics.width_um is not None and metrics.height_um is not None:
        text += f", Dim: {metrics.width_um:.1f} × {metrics.height_um:.1f} µm"
    return text


def project(
    detection: Detection, rendered_size: ImageSize | None, index: int = 1
) -> Overlay | None:
    """detection 하나의 화면 배치 계산

    렌더링 크기를 아직 모르면(이미지 로드 전) None.
    """
    if rendered_size is None or rendered_size.width <= 0 or rendered_size.height <= 0:
        return None

    width, height = rendered_size.width, rendered_size.height
    x, y, w, h = to_pixels(detection.bbox, width, height)

    top_pct = y / height * 100
    label_anchor, label_top_pct = _label_position(top_pct)

    return Overlay(
        index=index,
        label=detection.label,
        left_pct=x / width * 100,
        top_pct=top_pct,
        width_pct=w / width * 100,
        height_pct=h / height * 100,
        label_anchor=label_anchor,
        label_top_pct=label_top_pct,
        bucket=classify(detection),
        size_text=_size_text(detection),
    )


def project_all(result: DetectionResult, rendered_size: ImageSize | None) -> list[Overlay]:
    """detections 순서 그대로 배치 계산"""
    overlays: list[Overlay] = []
    for i, detection in enumerate(result.detections, start=1):
        overlay = project(detection, rendered_size, index=i)
        if overlay is not None:
            overlays.append(overlay)
    return overlays
