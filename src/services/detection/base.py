"""Detection Protocol

교체 가능한 입자 탐지 서비스 클라이언트 인터페이스.
응답은 검증하지 않은 원본 그대로 반환하고, 정규화는 normalizer가 담당한다.
"""

from typing import Any, Protocol


class DetectionError(Exception):
    """탐지 서비스 호출 실패 (네트워크 오류, 서비스 거부 등)"""


class Detector(Protocol):
    """입자 탐지 인터페이스

    구현체:
    - HttpDetection: multipart POST (기본값)
    - HFSpaceDetection: HuggingFace Space API
    """

    def detect(self, image: bytes, filename: str) -> Any:
        """이미지 한 장을 탐지 서비스로 전송

        Args:
            image: 이미지 바이트
            filename: 전송할 파일명

        Returns:
            원본 응답 (타입 보장 없음)

        Raises:
            DetectionError: API 호출 실패 시 (재시도 없음)
        """
        ...
