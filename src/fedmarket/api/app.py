from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fedmarket.api.middleware import RequestLoggingMiddleware
from fedmarket.api.routes import (
    contributions,
    health,
    marketplace,
    metrics,
    models,
    simulation,
    tasks,
    train,
    users,
)
from fedmarket.config import settings
from fedmarket.db.engine import engine
from fedmarket.errors import FedMarketError

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("FastAPI starting up")
    yield
    await engine.dispose()
    logger.info("FastAPI shut down")


async def _fedmarket_error_handler(request: Request, exc: FedMarketError) -> JSONResponse:
    logger.info(
        "request_rejected",
        path=request.url.path,
        error=type(exc).__name__,
        detail=exc.message,
    )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def create_app() -> FastAPI:
    app = FastAPI(
        title="FedMarket",
        version="0.1.0",
        description="Federated learning marketplace: reward simulation and model training",
        lifespan=lifespan,
    )
    app.add_middleware(RequestLoggingMiddleware)

    if settings.api_key:
        from fedmarket.api.middleware import ApiKeyMiddleware

        app.add_middleware(ApiKeyMiddleware, api_key=settings.api_key)

    app.add_exception_handler(FedMarketError, _fedmarket_error_handler)

    app.include_router(health.router)
    app.include_router(metrics.router)
    app.include_router(users.router)
    app.include_router(tasks.router)
    app.include_router(contributions.router)
    app.include_router(simulation.router)
    app.include_router(train.router)
    app.include_router(models.router)
    app.include_router(marketplace.router)

    return app
