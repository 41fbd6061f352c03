import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wipecall.api.deps import set_wcl_factory
from wipecall.config import get_settings
from wipecall.wcl.factory import WCLFactory

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings = get_settings()

    # Shared WCL client factory (one auth + HTTP pool)
    wcl_factory = WCLFactory(settings)
    await wcl_factory.start()
    set_wcl_factory(wcl_factory)
    logger.info("WCL factory started: %s", settings.wcl.api_url)

    yield

    await wcl_factory.stop()
    set_wcl_factory(None)
    logger.info("WCL factory stopped")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Wipecall Raid Analyzer",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:5173"],
        allow_credentials=False,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )

    from wipecall.api.routes.analysis import router as analysis_router
    from wipecall.api.routes.health import router as health_router

    app.include_router(health_router)
    app.include_router(analysis_router)

    return app


def main() -> None:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)
    uvicorn.run(create_app(), host="0.0.0.0", port=8000, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
