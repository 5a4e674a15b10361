"""HFSpaceDetection 구현체 테스트"""

from unittest.mock import MagicMock, patch

import pytest

from src.services.detection import DetectionError
from src.services.detection.hf_space import HFSpaceDetection

MOCK_API_RESPONSE = {
    "count": 2,
    "detections": [
        {"confidence": 0.95, "bbox": [10.0, 20.0, 200.0, 100.0], "label": "Microplastic"},
        {"confidence": 0.87, "bbox": [0.3, 0.4, 0.1, 0.1], "label": "Fiber"},
    ],
}

HF_SPACE_MODULE = "src.services.detection.hf_space"


@patch(f"{HF_SPACE_MODULE}.handle_file", return_value="mock_file_handle")
class TestHFSpaceDetection:
    def setup_method(self) -> None:
        self.detector = HFSpaceDetection(space_url="test/space", api_timeout=10)

    def test_detect_returns_raw_payload(self, mock_handle: MagicMock) -> None:
        with patch(f"{HF_SPACE_MODULE}.Client") as mock_client_cls:
            mock_client = MagicMock()
            mock_client.predict.return_value = MOCK_API_RESPONSE
            mock_client_cls.return_value = mock_client

            result = self.detector.detect(b"png", "sample.png")

        assert result == MOCK_API_RESPONSE
        mock_client.predict.assert_called_once_with("mock_file_handle", api_name="/detect")
        assert mock_handle.call_args[0][0].endswith(".png")

    def test_failure_raises_without_retry(self, _mock_handle: MagicMock) -> None:
        with patch(f"{HF_SPACE_MODULE}.Client") as mock_client_cls:
            mock_client = MagicMock()
            mock_client.predict.side_effect = Exception("API 장애")
            mock_client_cls.return_value = mock_client

            with pytest.raises(DetectionError, match="Detection API 호출 실패"):
                self.detector.detect(b"png", "sample.png")

        assert mock_client.predict.call_count == 1

    def test_unexpected_schema_passed_through(self, _mock_handle: MagicMock) -> None:
        with patch(f"{HF_SPACE_MODULE}.Client") as mock_client_cls:
            mock_client = MagicMock()
            mock_client.predict.return_value = {"unexpected": "schema"}
            mock_client_cls.return_value = mock_client

            assert self.detector.detect(b"png", "sample.png") == {"unexpected": "schema"}
