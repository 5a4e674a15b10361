import csv
import io
from io import BytesIO

from fastapi.testclient import TestClient
from PIL import Image

from src.schemas.detection import HistoryItem
from src.services.history import HistoryStore
from src.services.normalizer import normalize_result
from src.services.upload import to_data_url
from tests.conftest import RAW_RESPONSE, MemoryPersistence, make_test_image


def _seed(history: HistoryStore, n: int = 1) -> list[HistoryItem]:
    image_data = to_data_url(make_test_image().getvalue(), "image/jpeg")
    for i in range(n):
        history.append(normalize_result(RAW_RESPONSE), image_data, f"sample_{i}.jpg")
    return history.items()


class TestHistoryList:
    def test_paginated(self, client: TestClient, history: HistoryStore) -> None:
        items = _seed(history, 6)

        response = client.get("/history", params={"page": 1})

        assert response.status_code == 200
        data = response.json()
        assert data["totalPages"] == 2
        assert data["total"] == 6
        assert [item["id"] for item in data["items"]] == [item.id for item in items[4:6]]

    def test_page_beyond_end(self, client: TestClient, history: HistoryStore) -> None:
        _seed(history, 2)

        response = client.get("/history", params={"page": 7})

        assert response.status_code == 200
        assert response.json()["items"] == []

    def test_negative_page_rejected(self, client: TestClient) -> None:
        assert client.get("/history", params={"page": -1}).status_code == 422


class TestHistoryMutations:
    def test_explicit_save(self, client: TestClient, history: HistoryStore) -> None:
        result = normalize_result(RAW_RESPONSE).model_dump(mode="json")

        response = client.post(
            "/history",
            json={"result": result, "imageData": "data:,", "filename": "manual.jpg"},
        )

        assert response.status_code == 201
        assert response.json()["filename"] == "manual.jpg"
        assert len(history) == 1

    def test_save_normalizes_non_finite_values(
        self, client: TestClient, history: HistoryStore, persistence: MemoryPersistence
    ) -> None:
        _seed(history, 2)
        body = (
            '{"result": {"count": -3, "detections": [{"confidence": NaN, '
            '"bbox": [NaN, 0, 1, Infinity]}], "timestamp": "1999"}, '
            '"imageData": "data:,", "filename": "bad.jpg"}'
        )

        response = client.post(
            "/history", content=body, headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 201
        saved = response.json()["result"]
        assert saved["count"] == 0
        assert saved["timestamp"] != "1999"
        assert saved["detections"][0]["confidence"] == 0
        assert saved["detections"][0]["bbox"] == [0, 0, 1, 0]

        # 저장된 blob으로 다시 hydrate해도 기존 항목이 남아 있어야 함
        assert len(HistoryStore(persistence)) == 3

    def test_delete(self, client: TestClient, history: HistoryStore) -> None:
        items = _seed(history, 2)

        response = client.delete(f"/history/{items[0].id}")

        assert response.status_code == 204
        assert [item.id for item in history.items()] == [items[1].id]

    def test_delete_nonexistent_is_noop(self, client: TestClient, history: HistoryStore) -> None:
        items = _seed(history, 2)

        response = client.delete("/history/unknown")

        assert response.status_code == 204
        assert history.items() == items

    def test_clear(self, client: TestClient, history: HistoryStore) -> None:
        _seed(history, 3)

        assert client.delete("/history").status_code == 204
        assert len(history) == 0


class TestHistoryRead:
    def test_read(self, client: TestClient, history: HistoryStore) -> None:
        item = _seed(history)[0]

        response = client.get(f"/history/{item.id}")

        assert response.status_code == 200
        assert response.json()["result"]["count"] == 2

    def test_not_found(self, client: TestClient) -> None:
        response = client.get("/history/unknown")

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "HISTORY_NOT_FOUND"


class TestHistoryExport:
    def test_csv(self, client: TestClient, history: HistoryStore) -> None:
        item = _seed(history)[0]

        response = client.get(f"/history/{item.id}/export.csv")

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        rows = list(csv.reader(io.StringIO(response.text)))
        assert rows[0] == ["Microplastic Detection Results"]

    def test_report(self, client: TestClient, history: HistoryStore) -> None:
        item = _seed(history)[0]

        response = client.get(f"/history/{item.id}/report")

        assert response.status_code == 200
        assert "Microplastic Screening Analysis Report" in response.text

    def test_annotated_png(self, client: TestClient, history: HistoryStore) -> None:
        item = _seed(history)[0]

        response = client.get(f"/history/{item.id}/annotated.png")

        assert response.status_code == 200
        assert Image.open(BytesIO(response.content)).size == (1000, 500)

    def test_annotated_png_negative_size_box(
        self, client: TestClient, history: HistoryStore
    ) -> None:
        image_data = to_data_url(make_test_image().getvalue(), "image/jpeg")
        result = normalize_result({"count": 1, "detections": [{"bbox": [500, 100, -50, 20]}]})
        item = history.append(result, image_data, "negative.jpg")

        response = client.get(f"/history/{item.id}/annotated.png")

        assert response.status_code == 200

    def test_export_not_found(self, client: TestClient) -> None:
        assert client.get("/history/unknown/export.csv").status_code == 404
