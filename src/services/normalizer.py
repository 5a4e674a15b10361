"""Result Normalizer

Detection 서비스의 원본 응답(타입 보장 없음)을 DetectionResult로 변환한다.
어떤 입력이 와도 예외를 던지지 않고, 잘못된 필드는 기본값으로 대체한다.
"""

import logging
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any

from src.constants import DEFAULT_LABEL
from src.schemas.detection import (
    SIZE_CATEGORIES,
    CalibrationInfo,
    Detection,
    DetectionResult,
    ImageSize,
    SizeCategory,
    SizeCounts,
    SizeMetrics,
)
from src.services.geometry import parse_box
from src.utils.numbers import to_count, to_float, to_optional_float

logger = logging.getLogger(__name__)

# 업스트림은 µ 키를 쓰고, 정규화된 결과를 다시 넣으면 camelCase 키가 들어온다
_METRIC_KEYS: dict[str, tuple[str, ...]] = {
    "width_px": ("width_px", "widthPx"),
    "height_px": ("height_px", "heightPx"),
    "width_um": ("width_µm", "width_um", "widthUm"),
    "height_um": ("height_µm", "height_um", "heightUm"),
    "diagonal_um": ("diagonal_µm", "diagonal_um", "diagonalUm"),
}


def _pick(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw:
            return raw[key]
    return None


def _now_iso() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(value, str | bytes)


def _normalize_size_metrics(raw: Mapping[str, Any]) -> SizeMetrics | None:
    nested = _pick(raw, "size_metrics", "sizeMetrics")
    source = nested if isinstance(nested, Mapping) else raw

    values = {name: to_optional_float(_pick(source, *keys)) for name, keys in _METRIC_KEYS.items()}
    if all(v is None for v in values.values()):
        return None
    return SizeMetrics(**values)


def _normalize_size_category(value: Any) -> SizeCategory | None:
    if isinstance(value, str) and value in SIZE_CATEGORIES:
        return value  # type: ignore[return-value]
    return None


def _normalize_label(value: Any) -> str:
    if isinstance(value, str) and value:
        return value
    return DEFAULT_LABEL


def normalize_detection(raw: Any) -> Detection:
    """detection 원소 하나 정규화. 매핑이 아니면 전부 기본값."""
    if not isinstance(raw, Mapping):
        return Detection()

    return Detection(
        confidence=to_float(raw.get("confidence")),
        bbox=parse_box(raw.get("bbox")),
        label=_normalize_label(raw.get("label")),
        size_metrics=_normalize_size_metrics(raw),
        size_category=_normalize_size_category(_pick(raw, "size_category", "sizeCategory")),
    )


def _normalize_image_size(raw: Any) -> ImageSize | None:
    if isinstance(raw, Mapping):
        width, height = raw.get("width"), raw.get("height")
    elif _is_sequence(raw) and len(raw) >= 2:
        width, height = raw[0], raw[1]
    else:
        return None

    w, h = to_count(width), to_count(height)
    if w == 0 or h == 0:
        return None
    return ImageSize(width=w, height=h)


def _normalize_size_counts(raw: Any) -> SizeCounts:
    if not isinstance(raw, Mapping) or not all(name in raw for name in SIZE_CATEGORIES):
        return SizeCounts()
    return SizeCounts(**{name: to_count(raw[name]) for name in SIZE_CATEGORIES})


def _normalize_calibration(raw: Any) -> CalibrationInfo | None:
    if not isinstance(raw, Mapping):
        return None

    microns_per_pixel = _pick(raw, "microns_per_pixel", "micronsPerPixel")
    if to_optional_float(microns_per_pixel) is None:
        return None

    fov = _pick(raw, "field_of_view_µm", "field_of_view_um", "fieldOfViewUm")
    if _is_sequence(fov) and len(fov) >= 2:
        field_of_view = (to_float(fov[0]), to_float(fov[1]))
    else:
        field_of_view = (0.0, 0.0)

    return CalibrationInfo(
        microns_per_pixel=to_float(microns_per_pixel),
        field_of_view_um=field_of_view,
    )


def normalize_result(raw: Any) -> DetectionResult:
    """원본 응답 → DetectionResult

    - count는 detections 길이와 무관하게 업스트림 값 유지 (기본 0)
    - detections가 리스트가 아니면 빈 리스트
    - timestamp는 항상 지금 시각으로 덮어씀
    """
    if not isinstance(raw, Mapping):
        logger.warning(f"Detection 응답이 객체가 아님: {type(raw).__name__}")
        raw = {}

    raw_detections = raw.get("detections")
    detections = (
        [normalize_detection(d) for d in raw_detections] if _is_sequence(raw_detections) else []
    )

    result = DetectionResult(
        count=to_count(raw.get("count")),
        detections=detections,
        image_size=_normalize_image_size(_pick(raw, "image_size", "imageSize")),
        size_counts=_normalize_size_counts(_pick(raw, "size_counts", "sizeCounts")),
        calibration_info=_normalize_calibration(_pick(raw, "calibration_info", "calibrationInfo")),
        timestamp=_now_iso(),
    )

    if result.count != len(result.detections):
        logger.warning(
            f"count 불일치: count={result.count}, detections={len(result.detections)}"
        )
    return result
