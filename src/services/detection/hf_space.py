"""HuggingFace Space Detection 구현체"""

# pyright: reportMissingTypeStubs=false

import tempfile
from pathlib import Path
from typing import Any

from gradio_client import Client, handle_file

from src.services.detection.base import DetectionError


class HFSpaceDetection:
    """HuggingFace Space API를 사용한 입자 탐지

    Note: HF Space는 슬립 상태일 수 있음. 첫 호출이 느릴 수 있다.
    """

    def __init__(self, space_url: str, api_timeout: int = 120) -> None:
        self._space_url = space_url
        self._api_timeout = api_timeout

    def detect(self, image: bytes, filename: str) -> Any:
        suffix = Path(filename).suffix or ".jpg"
        with tempfile.TemporaryDirectory() as tmpdir:
            image_path = Path(tmpdir) / f"input{suffix}"
            image_path.write_bytes(image)

            try:
                client = Client(self._space_url, httpx_kwargs={"timeout": self._api_timeout})
                return client.predict(handle_file(str(image_path)), api_name="/detect")
            except Exception as e:
                raise DetectionError(f"Detection API 호출 실패: {e}") from e
