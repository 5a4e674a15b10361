from io import BytesIO

import pytest
from fastapi import UploadFile
from starlette.datastructures import Headers

from src.constants import Limits
from src.services.upload import (
    ALLOWED_TYPES,
    InvalidImageError,
    from_data_url,
    read_upload,
    to_data_url,
    validate_image,
)
from tests.conftest import make_test_image


def create_upload_file(
    content: bytes,
    filename: str = "test.jpg",
    content_type: str = "image/jpeg",
) -> UploadFile:
    return UploadFile(
        file=BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


class TestReadUpload:
    async def test_jpeg(self) -> None:
        image = await read_upload(create_upload_file(make_test_image(640, 480).getvalue()))

        assert image.content_type == "image/jpeg"
        assert (image.size.width, image.size.height) == (640, 480)
        assert image.data_url.startswith("data:image/jpeg;base64,")

    async def test_png(self) -> None:
        content = make_test_image(fmt="PNG").getvalue()

        image = await read_upload(create_upload_file(content, "a.png", "image/png"))

        assert image.content_type == "image/png"

    async def test_reject_invalid_content_type(self) -> None:
        with pytest.raises(InvalidImageError, match="지원하지 않는 파일 형식"):
            await read_upload(create_upload_file(b"text", "a.txt", "text/plain"))

    async def test_reject_none_content_type(self) -> None:
        file = UploadFile(file=BytesIO(b"content"), filename="test.jpg")

        with pytest.raises(InvalidImageError, match="알 수 없음"):
            await read_upload(file)

    async def test_reject_oversized_file(self) -> None:
        content = b"\xff\xd8\xff" + b"x" * Limits.MAX_UPLOAD_SIZE

        with pytest.raises(InvalidImageError, match="파일 크기 초과"):
            await read_upload(create_upload_file(content))

    async def test_reject_fake_image(self) -> None:
        with pytest.raises(InvalidImageError):
            await read_upload(create_upload_file(b"fake jpeg content"))


class TestValidateImage:
    def test_corrupt_body_with_valid_magic(self) -> None:
        with pytest.raises(InvalidImageError, match="디코딩 실패"):
            validate_image(b"\x89PNG garbage", "image/png", "a.png")


class TestDataUrl:
    def test_round_trip_content_type(self) -> None:
        content, content_type = from_data_url(to_data_url(b"abc", "image/png"))

        assert content == b"abc"
        assert content_type == "image/png"

    def test_bare_base64_defaults_to_jpeg(self) -> None:
        assert from_data_url("YWJj") == (b"abc", "image/jpeg")

    def test_invalid_base64_raises(self) -> None:
        with pytest.raises(InvalidImageError):
            from_data_url("data:image/png;base64,@@@")


def test_allowed_types() -> None:
    assert {"image/jpeg", "image/png"} <= ALLOWED_TYPES
