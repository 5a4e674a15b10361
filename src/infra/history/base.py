from typing import Protocol


class HistoryPersistence(Protocol):
    """히스토리 저장 슬롯 인터페이스. 직렬화된 배열 하나를 통째로 읽고 쓴다."""

    def load(self) -> str | None: ...
    def save(self, blob: str) -> None: ...
    def delete(self) -> None: ...
