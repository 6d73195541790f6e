import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from relief import __version__
from relief.api import create_api_router
from relief.core.config import get_settings
from relief.core.container import get_container
from relief.infrastructure.database.session import dispose_engine, init_db

settings = get_settings()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    container = get_container()
    if container.settings.offline.backend == "database":
        await init_db()
    logger.info("服务启动: 账本 %s", container.settings.ledger.horizon_url)
    yield
    await container.close()
    await dispose_engine()


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )

    app = FastAPI(
        title=settings.project_name,
        description="人道援助资金发放与离线支付服务端",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(create_api_router(settings.api_prefix))

    @app.get("/health", summary="健康检查")
    async def health():
        return {"status": "ok", "version": __version__}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "relief.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.server.reload,
    )
