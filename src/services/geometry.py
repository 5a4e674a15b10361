"""Geometry Normalizer

원본 bbox 배열을 (x, y, w, h) 튜플로 정리하고,
정규화 좌표(0~1)인지 절대 좌표(px)인지 판별한다.
"""

from collections.abc import Sequence
from typing import Any

from src.schemas.detection import Box
from src.utils.numbers import to_float

EMPTY_BOX: Box = (0.0, 0.0, 0.0, 0.0)


def parse_box(raw: Any) -> Box:
    """원본 bbox → (x, y, w, h)

    None, 시퀀스가 아닌 값, 문자열, 원소 4개 미만은 (0, 0, 0, 0).
    5번째 이후 원소는 무시하고, 숫자가 아닌 원소는 0으로 대체.
    """
    if raw is None or isinstance(raw, str | bytes) or not isinstance(raw, Sequence):
        return EMPTY_BOX
    if len(raw) < 4:
        return EMPTY_BOX

    return (to_float(raw[0]), to_float(raw[1]), to_float(raw[2]), to_float(raw[3]))


def is_normalized_box(box: Box) -> bool:
    """x, y, w, h가 모두 1 이하이면 정규화 좌표로 간주

    NOTE: 원점 근처의 1px 미만 절대 좌표 박스도 정규화 좌표로 판정됨 (알려진 오판).
          업스트림 API 계약이 확정되기 전까지 별도 처리하지 않는다.
    """
    x, y, w, h = box
    return x <= 1 and y <= 1 and w <= 1 and h <= 1


def to_pixels(box: Box, width: float, height: float) -> Box:
    """박스를 주어진 크기 기준 절대 좌표(px)로 변환"""
    if not is_normalized_box(box):
        return box

    x, y, w, h = box
    return (x * width, y * height, w * width, h * height)
