from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from src.config import get_settings
from src.infra.redis import close_redis
from src.routes.detect import router as detect_router
from src.routes.history import router as history_router
from src.routes.session import router as session_router
from src.services.history import get_history


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    # 히스토리는 시작 시 한 번만 로드
    get_history()
    yield
    close_redis()


app = FastAPI(lifespan=lifespan)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "DELETE"],
    allow_headers=["Content-Type"],
    max_age=600,
)

app.include_router(detect_router)
app.include_router(history_router)
app.include_router(session_router)


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}
