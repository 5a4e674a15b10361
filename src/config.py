from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Redis
    redis_host: str = "localhost"
    redis_port: int = 6379

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Detection
    detection_provider: str = "http"  # "http" | "hf_space"
    detection_url: str = "http://localhost:8000/detect"
    hf_space_url: str = ""
    detection_timeout: int = 120

    # History
    history_key: str = "microplasticsHistory"

    # 크기 분류 대상 라벨 (대소문자 무시)
    particle_label: str = "microplastic"


@lru_cache
def get_settings() -> Settings:
    return Settings()
