from typing import cast

import redis


class RedisHistoryPersistence:
    """Redis 키 하나에 히스토리 JSON 배열을 저장하는 구현체"""

    def __init__(self, client: redis.Redis, key: str):
        self._client = client
        self.key = key

    def load(self) -> str | None:
        data = self._client.get(self.key)
        if data is None:
            return None
        return data.decode() if isinstance(data, bytes) else cast(str, data)

    def save(self, blob: str) -> None:
        self._client.set(self.key, blob)

    def delete(self) -> None:
        self._client.delete(self.key)
