"""Detection 결과 데이터 모델

Result Normalizer가 만드는 정규화된(canonical) 형태.
외부 서비스의 원본 응답은 normalizer를 거친 뒤에만 이 모델로 들어온다.
"""

from typing import Literal

from pydantic import Field

from src.constants import DEFAULT_LABEL
from src.schemas.base import BaseSchema

SizeCategory = Literal["nanoplastic", "small", "medium", "large"]

SIZE_CATEGORIES: tuple[SizeCategory, ...] = ("nanoplastic", "small", "medium", "large")

Box = tuple[float, float, float, float]


class ImageSize(BaseSchema):
    width: int
    height: int


class SizeMetrics(BaseSchema):
    """물리 크기 정보 (캘리브레이션이 있을 때만 존재)"""

    width_px: float | None = None
    height_px: float | None = None
    width_um: float | None = None
    height_um: float | None = None
    diagonal_um: float | None = None


class SizeCounts(BaseSchema):
    nanoplastic: int = 0
    small: int = 0
    medium: int = 0
    large: int = 0


class CalibrationInfo(BaseSchema):
    """표시/리포트 전용. 좌표 계산에는 사용하지 않는다."""

    microns_per_pixel: float
    field_of_view_um: tuple[float, float] = (0.0, 0.0)


class Detection(BaseSchema):
    """탐지된 입자 하나

    bbox는 (x, y, w, h). 정규화 좌표(0~1)일 수도, 원본 이미지 기준 px일 수도 있다.
    """

    confidence: float = 0.0
    bbox: Box = (0.0, 0.0, 0.0, 0.0)
    label: str = DEFAULT_LABEL
    size_metrics: SizeMetrics | None = None
    size_category: SizeCategory | None = None


class DetectionResult(BaseSchema):
    """분석 결과 하나

    count는 detections 길이와 다를 수 있다 (업스트림 값을 그대로 유지).
    """

    count: int = 0
    detections: list[Detection] = Field(default_factory=list)
    image_size: ImageSize | None = None
    size_counts: SizeCounts = Field(default_factory=SizeCounts)
    calibration_info: CalibrationInfo | None = None
    timestamp: str


class HistoryItem(BaseSchema):
    id: str
    timestamp: str  # 사람이 읽는 로컬 시각
    result: DetectionResult
    image_data: str  # data URL
    filename: str
