"""Detection 모듈

사용법:
    from src.services.detection import get_detection

    detector = get_detection()
    raw = detector.detect(image_bytes, "image.jpg")

백엔드 선택 (.env DETECTION_PROVIDER):
    - "http": multipart POST (기본값, DETECTION_URL)
    - "hf_space": HuggingFace Space API (HF_SPACE_URL)
"""

from src.config import get_settings
from src.services.detection.base import DetectionError, Detector

__all__ = ["DetectionError", "Detector", "get_detection", "set_detection"]

_detector: Detector | None = None


def get_detection() -> Detector:
    """설정에 따라 detection 백엔드 반환"""
    global _detector
    if _detector is None:
        settings = get_settings()
        if settings.detection_provider == "http":
            from src.services.detection.http_api import HttpDetection

            _detector = HttpDetection(
                url=settings.detection_url,
                timeout=settings.detection_timeout,
            )
        elif settings.detection_provider == "hf_space":
            from src.services.detection.hf_space import HFSpaceDetection

            _detector = HFSpaceDetection(
                space_url=settings.hf_space_url,
                api_timeout=settings.detection_timeout,
            )
        else:
            raise ValueError(f"Unknown detection provider: {settings.detection_provider!r}")
    return _detector


def set_detection(detector: Detector | None) -> None:
    """detection 백엔드 설정 (테스트용)"""
    global _detector
    _detector = detector
