"""업로드 이미지 검증 및 디코딩

촬영/업로드된 이미지를 탐지 서비스로 보내기 전에 형식과 크기를 확인하고,
히스토리/리포트에 쓸 data URL과 실제 픽셀 크기를 함께 만든다.
"""

import base64
from dataclasses import dataclass
from io import BytesIO

from fastapi import UploadFile
from PIL import Image

from src.constants import Limits
from src.schemas.detection import ImageSize

ALLOWED_TYPES = {"image/jpeg", "image/png", "image/webp"}
CHUNK_SIZE = 1024 * 1024  # 1MB

MAGIC_BYTES = {
    b"\xff\xd8\xff": "image/jpeg",
    b"\x89PNG": "image/png",
}


class InvalidImageError(Exception):
    pass


@dataclass
class UploadedImage:
    content: bytes
    content_type: str
    filename: str
    size: ImageSize

    @property
    def data_url(self) -> str:
        return to_data_url(self.content, self.content_type)


def to_data_url(content: bytes, content_type: str) -> str:
    return f"data:{content_type};base64,{base64.b64encode(content).decode()}"


def from_data_url(data_url: str) -> tuple[bytes, str]:
    """data URL → (바이트, MIME). 헤더가 없으면 image/jpeg로 간주.

    Raises:
        InvalidImageError: base64 디코딩 실패
    """
    header, _, payload = data_url.partition(",")
    if not payload:
        header, payload = "", data_url

    content_type = "image/jpeg"
    if header.startswith("data:") and ";" in header:
        content_type = header[len("data:") : header.index(";")] or content_type

    try:
        return base64.b64decode(payload, validate=True), content_type
    except ValueError as e:
        raise InvalidImageError("이미지 data URL 디코딩 실패") from e


def _detect_image_type(content: bytes) -> str | None:
    for magic, mime in MAGIC_BYTES.items():
        if content.startswith(magic):
            return mime
    if content[:4] == b"RIFF" and content[8:12] == b"WEBP":
        return "image/webp"
    return None


def image_size_of(content: bytes) -> ImageSize:
    """이미지의 natural size (px)

    Raises:
        InvalidImageError: 디코딩 실패
    """
    try:
        with Image.open(BytesIO(content)) as img:
            width, height = img.size
    except Exception as e:
        raise InvalidImageError("이미지 디코딩 실패") from e
    return ImageSize(width=width, height=height)


def validate_image(content: bytes, declared_type: str | None, filename: str) -> UploadedImage:
    """
    Raises:
        InvalidImageError: 파일 형식, 크기 위반 시
    """
    if declared_type and declared_type not in ALLOWED_TYPES:
        raise InvalidImageError(f"지원하지 않는 파일 형식: {declared_type}")

    if len(content) > Limits.MAX_UPLOAD_SIZE:
        raise InvalidImageError(
            f"파일 크기 초과: {len(content)} bytes (최대 {Limits.MAX_UPLOAD_SIZE} bytes)"
        )

    detected = _detect_image_type(content)
    if detected is None:
        raise InvalidImageError("유효하지 않은 이미지 파일")

    return UploadedImage(
        content=content,
        content_type=detected,
        filename=filename,
        size=image_size_of(content),
    )


async def _read_with_size_limit(file: UploadFile) -> bytes:
    chunks: list[bytes] = []
    total_size = 0

    while chunk := await file.read(CHUNK_SIZE):
        total_size += len(chunk)
        if total_size > Limits.MAX_UPLOAD_SIZE:
            raise InvalidImageError(
                f"파일 크기 초과: {total_size}+ bytes (최대 {Limits.MAX_UPLOAD_SIZE} bytes)"
            )
        chunks.append(chunk)

    return b"".join(chunks)


async def read_upload(file: UploadFile) -> UploadedImage:
    """
    Raises:
        InvalidImageError: 파일 형식, 크기, 디코딩 실패 시
    """
    if file.content_type not in ALLOWED_TYPES:
        raise InvalidImageError(f"지원하지 않는 파일 형식: {file.content_type or '알 수 없음'}")

    content = await _read_with_size_limit(file)
    return validate_image(content, file.content_type, file.filename or "image.jpg")
