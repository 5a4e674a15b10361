"""History API 라우트"""

from typing import Any

from fastapi import APIRouter, HTTPException, Query, Response, status

from src.constants import Limits
from src.schemas.base import BaseSchema
from src.schemas.detection import HistoryItem
from src.services.export import to_csv, to_report_html
from src.services.history import HistoryNotFoundError, get_history
from src.services.normalizer import normalize_result
from src.services.rendering import RenderingError, render_annotated
from src.services.upload import InvalidImageError, from_data_url

router = APIRouter(prefix="/history", tags=["history"])


class HistoryPage(BaseSchema):
    items: list[HistoryItem]
    page: int
    total_pages: int
    total: int


class HistorySaveRequest(BaseSchema):
    result: dict[str, Any]
    image_data: str
    filename: str


def _not_found(e: HistoryNotFoundError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"code": "HISTORY_NOT_FOUND", "message": str(e)},
    )


def _get_item(item_id: str) -> HistoryItem:
    try:
        return get_history().get(item_id)
    except HistoryNotFoundError as e:
        raise _not_found(e) from None


@router.get("", response_model=HistoryPage)
async def list_history(
    page: int = Query(0, ge=0),
    size: int = Query(Limits.HISTORY_PAGE_SIZE, ge=1, le=Limits.HISTORY_MAX_ITEMS),
) -> HistoryPage:
    store = get_history()
    return HistoryPage(
        items=store.page(page, size),
        page=page,
        total_pages=store.total_pages(size),
        total=len(store),
    )


@router.post("", response_model=HistoryItem, status_code=status.HTTP_201_CREATED)
async def save_history(request: HistorySaveRequest) -> HistoryItem:
    """클라이언트가 보낸 결과도 정규화를 거친 뒤 저장 (timestamp는 서버 시각)"""
    result = normalize_result(request.result)
    return get_history().append(result, request.image_data, request.filename)


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def clear_history() -> None:
    get_history().clear()


@router.get("/{item_id}", response_model=HistoryItem)
async def read_history(item_id: str) -> HistoryItem:
    return _get_item(item_id)


@router.delete("/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_history(item_id: str) -> None:
    """없는 id 삭제는 no-op"""
    get_history().remove(item_id)


@router.get("/{item_id}/export.csv")
async def export_csv(item_id: str) -> Response:
    item = _get_item(item_id)
    return Response(
        content=to_csv(item.result),
        media_type="text/csv",
        headers={
            "Content-Disposition": f'attachment; filename="microplastics_results_{item.id}.csv"'
        },
    )


@router.get("/{item_id}/report")
async def export_report(item_id: str) -> Response:
    item = _get_item(item_id)
    return Response(content=to_report_html(item.result, item.image_data), media_type="text/html")


@router.get("/{item_id}/annotated.png")
def export_annotated(item_id: str) -> Response:
    """동기 엔드포인트 - FastAPI가 threadpool에서 실행."""
    item = _get_item(item_id)
    try:
        content, _ = from_data_url(item.image_data)
        png = render_annotated(content, item.result)
    except (InvalidImageError, RenderingError) as e:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"code": "RENDERING_FAILED", "message": str(e)},
        ) from None
    return Response(content=png, media_type="image/png")
