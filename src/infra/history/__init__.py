from src.config import get_settings
from src.infra.redis import get_redis

from .base import HistoryPersistence
from .redis import RedisHistoryPersistence

__all__ = ["HistoryPersistence", "RedisHistoryPersistence", "create_persistence"]


def create_persistence() -> HistoryPersistence:
    return RedisHistoryPersistence(get_redis(), key=get_settings().history_key)
