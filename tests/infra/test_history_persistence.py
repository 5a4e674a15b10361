import fakeredis

from src.infra.history import RedisHistoryPersistence, create_persistence
from src.schemas.detection import DetectionResult
from src.services.history import HistoryStore

KEY = "microplasticsHistory"


class TestRedisHistoryPersistence:
    def test_load_missing_key(self, fake_redis: fakeredis.FakeRedis) -> None:
        assert RedisHistoryPersistence(fake_redis, KEY).load() is None

    def test_save_and_load(self, fake_redis: fakeredis.FakeRedis) -> None:
        persistence = RedisHistoryPersistence(fake_redis, KEY)

        persistence.save("[]")

        assert persistence.load() == "[]"
        assert fake_redis.get(KEY) == "[]"

    def test_delete(self, fake_redis: fakeredis.FakeRedis) -> None:
        persistence = RedisHistoryPersistence(fake_redis, KEY)
        persistence.save("[]")

        persistence.delete()

        assert fake_redis.exists(KEY) == 0

    def test_create_persistence_uses_configured_key(
        self, fake_redis: fakeredis.FakeRedis
    ) -> None:
        persistence = create_persistence()

        assert isinstance(persistence, RedisHistoryPersistence)
        assert persistence.key == KEY


class TestHistoryStoreWithRedis:
    def test_history_survives_restart(self, fake_redis: fakeredis.FakeRedis) -> None:
        store = HistoryStore(RedisHistoryPersistence(fake_redis, KEY))
        store.append(DetectionResult(count=4, timestamp="t"), "data:,", "a.jpg")

        restarted = HistoryStore(RedisHistoryPersistence(fake_redis, KEY))

        assert len(restarted) == 1
        assert restarted.items()[0].result.count == 4

    def test_corrupt_blob_hydrates_empty(self, fake_redis: fakeredis.FakeRedis) -> None:
        fake_redis.set(KEY, "not-json")

        store = HistoryStore(RedisHistoryPersistence(fake_redis, KEY))

        assert len(store) == 0

    def test_clear_removes_key(self, fake_redis: fakeredis.FakeRedis) -> None:
        store = HistoryStore(RedisHistoryPersistence(fake_redis, KEY))
        store.append(DetectionResult(timestamp="t"), "data:,", "a.jpg")

        store.clear()

        assert fake_redis.exists(KEY) == 0
