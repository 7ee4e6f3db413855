import logging
from contextlib import asynccontextmanager
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import Settings, load_settings, setup_logging
from database import Base, create_session_factory
from errors import register_error_handlers
from routers import health, auth, users, albums, media
from services.storage import CloudinaryStorage

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=app.state.engine)
    logger.info(f"Memories Album API started (env={app.state.settings.env_state})")
    yield
    app.state.engine.dispose()


def create_app(settings: Optional[Settings] = None, storage=None) -> FastAPI:
    """
    アプリケーションを生成する

    Args:
        settings: 設定。未指定の場合は .env と環境変数から読み込む
        storage: ストレージサービス。未指定の場合は CloudinaryStorage
    """
    if settings is None:
        load_dotenv()
        settings = load_settings()
    setup_logging(settings)

    app = FastAPI(
        title="Memories Album API",
        description="Memories Album Backend API",
        version="1.0.0",
        lifespan=lifespan,
    )

    engine, session_factory = create_session_factory(settings.database_url)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.storage = storage or CloudinaryStorage(settings)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    app.include_router(health.router)
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(albums.router)
    app.include_router(media.router)
    return app


if __name__ == "__main__":
    import uvicorn

    load_dotenv()
    _settings = load_settings()
    uvicorn.run(create_app(_settings), host="0.0.0.0", port=_settings.port)
