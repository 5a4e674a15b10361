"""느슨한 타입의 숫자 값을 유한한 float/int로 변환"""

import math
from typing import Any


def to_float(value: Any, default: float = 0.0) -> float:
    """숫자 또는 숫자 문자열을 유한한 float으로 변환

    bool, None, 파싱 불가 문자열, NaN/Inf는 default 반환.
    """
    if isinstance(value, bool) or value is None:
        return default

    if isinstance(value, str):
        value = value.strip()
        if not value:
            return default

    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return default

    if math.isnan(number) or math.isinf(number):
        return default
    return number


def to_count(value: Any) -> int:
    """개수 필드용: 0 이상의 정수 (소수점 이하 버림)"""
    return max(0, int(to_float(value)))


def to_optional_float(value: Any) -> float | None:
    """값이 없거나 0이거나 숫자가 아니면 None"""
    number = to_float(value)
    return number if number != 0 else None
