"""HTTP Detection 구현체 (multipart/form-data 업로드)"""

from typing import Any

import httpx

from src.services.detection.base import DetectionError


class HttpDetection:
    """탐지 서비스에 이미지를 `file` 필드로 POST

    실패 시 재시도하지 않는다. 재시도 여부는 사용자가 결정.
    """

    def __init__(self, url: str, timeout: int = 120) -> None:
        self._url = url
        self._timeout = timeout

    def detect(self, image: bytes, filename: str) -> Any:
        try:
            response = httpx.post(
                self._url,
                files={"file": (filename, image, "image/jpeg")},
                timeout=self._timeout,
            )
            response.raise_for_status()
            return response.json()
        except (httpx.HTTPError, ValueError) as e:
            raise DetectionError(f"Detection API 호출 실패: {e}") from e
