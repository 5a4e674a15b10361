"""탐지 결과 오버레이 이미지 렌더링 (내보내기용)"""

import logging
from functools import lru_cache
from io import BytesIO
from pathlib import Path
from typing import cast

from PIL import Image, ImageDraw, ImageFont

from src.schemas.detection import DetectionResult, ImageSize
from src.services.overlay import Overlay, project_all

logger = logging.getLogger(__name__)

FONT_PATHS = [
    "/System/Library/Fonts/Supplemental/Arial.ttf",
    "/System/Library/Fonts/Helvetica.ttc",
    "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf",
    "/usr/share/fonts/truetype/liberation/LiberationSans-Regular.ttf",
    "C:/Windows/Fonts/arial.ttf",
]

BUCKET_COLORS: dict[str, tuple[int, int, int]] = {
    "red": (239, 68, 68),
    "yellow": (234, 179, 8),
    "blue": (59, 130, 246),
    "purple": (168, 85, 247),
    "green": (34, 197, 94),
}
DEFAULT_COLOR = (107, 114, 128)


class RenderingError(Exception):
    pass


@lru_cache(maxsize=8)
def _get_font(size: int) -> ImageFont.FreeTypeFont:
    for font_path in FONT_PATHS:
        if Path(font_path).exists():
            try:
                return ImageFont.truetype(font_path, size)
            except Exception:
                continue
    return cast(ImageFont.FreeTypeFont, ImageFont.load_default())


def _pct_to_px(overlay: Overlay, width: int, height: int) -> tuple[int, int, int, int]:
    """퍼센트 배치 → (x1, y1, x2, y2) px

    음수 폭/높이 박스도 x1 <= x2, y1 <= y2가 되도록 모서리를 정렬한다.
    """
    left = round(overlay.left_pct / 100 * width)
    top = round(overlay.top_pct / 100 * height)
    right = round((overlay.left_pct + overlay.width_pct) / 100 * width)
    bottom = round((overlay.top_pct + overlay.height_pct) / 100 * height)
    return min(left, right), min(top, bottom), max(left, right), max(top, bottom)


def _draw_overlay(draw: ImageDraw.ImageDraw, overlay: Overlay, width: int, height: int) -> None:
    color = BUCKET_COLORS.get(overlay.bucket.color, DEFAULT_COLOR)
    x1, y1, x2, y2 = _pct_to_px(overlay, width, height)
    line_width = max(1, min(width, height) // 300)
    draw.rectangle((x1, y1, x2, y2), outline=color, width=line_width)

    font = _get_font(max(10, height // 50))
    text = f"{overlay.label} #{overlay.index}"
    text_bbox = draw.textbbox((0, 0), text, font=font)
    text_height = text_bbox[3] - text_bbox[1]

    label_y = round(overlay.label_top_pct / 100 * height)
    if overlay.label_anchor == "above":
        label_y -= text_height + 4
    draw.rectangle(
        (x1, label_y, x1 + text_bbox[2] + 8, label_y + text_height + 4), fill=(17, 24, 39)
    )
    draw.text((x1 + 4, label_y), text, font=font, fill=color)


def render_annotated(image: bytes, result: DetectionResult) -> bytes:
    """원본 이미지 위에 탐지 박스와 라벨을 그린 PNG 반환

    Raises:
        RenderingError: 이미지 디코딩 실패
    """
    try:
        with Image.open(BytesIO(image)) as source:
            canvas = source.convert("RGB")
    except Exception as e:
        raise RenderingError("유효하지 않은 이미지입니다") from e

    width, height = canvas.size
    overlays = project_all(result, ImageSize(width=width, height=height))

    draw = ImageDraw.Draw(canvas)
    for overlay in overlays:
        _draw_overlay(draw, overlay, width, height)

    buffer = BytesIO()
    canvas.save(buffer, format="PNG")
    logger.info(f"렌더링 완료: {len(overlays)}개 박스")
    return buffer.getvalue()
