"""Size Classifier

크기 분류 대상 라벨이면서 size_category가 있으면 크기 구간으로,
그 외에는 confidence 구간으로 표시 방식을 정한다. 두 정책은 섞지 않는다.
"""

from typing import Literal

from pydantic import BaseModel

from src.config import get_settings
from src.constants import Confidence
from src.schemas.detection import Detection, SizeCategory

BucketPolicy = Literal["size", "confidence"]


class DisplayBucket(BaseModel):
    key: str
    label: str
    color: str
    policy: BucketPolicy


SIZE_BUCKETS: dict[SizeCategory, DisplayBucket] = {
    "nanoplastic": DisplayBucket(
        key="nanoplastic", label="Nanoplastic (<1µm)", color="red", policy="size"
    ),
    "small": DisplayBucket(key="small", label="Small (1-100µm)", color="yellow", policy="size"),
    "medium": DisplayBucket(
        key="medium", label="Medium (100-1000µm)", color="blue", policy="size"
    ),
    "large": DisplayBucket(key="large", label="Large (1-5mm)", color="purple", policy="size"),
}

HIGH_CONFIDENCE = DisplayBucket(
    key="high", label="High confidence", color="green", policy="confidence"
)
MEDIUM_CONFIDENCE = DisplayBucket(
    key="medium", label="Medium confidence", color="yellow", policy="confidence"
)
LOW_CONFIDENCE = DisplayBucket(key="low", label="Low confidence", color="red", policy="confidence")


def is_particle_of_interest(detection: Detection) -> bool:
    return detection.label.lower() == get_settings().particle_label.lower()


def confidence_bucket(confidence: float) -> DisplayBucket:
    """> 0.7 high, > 0.4 medium, 나머지 low (경계값은 아래 구간)"""
    if confidence > Confidence.HIGH:
        return HIGH_CONFIDENCE
    if confidence > Confidence.MEDIUM:
        return MEDIUM_CONFIDENCE
    return LOW_CONFIDENCE


def classify(detection: Detection) -> DisplayBucket:
    if detection.size_category is not None and is_particle_of_interest(detection):
        return SIZE_BUCKETS[detection.size_category]
    return confidence_bucket(detection.confidence)
