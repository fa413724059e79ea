"""Marketplace HTTP service.

    uvicorn src.main:app --port 8000
"""

# ruff: noqa: E402  -- the uvloop policy has to be set before asyncio is used
import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import settings
from src.mp_common.database import async_session_factory, create_tables, engine
from src.mp_common.errors import AppError
from src.mp_common.response import error_response
from src.mp_gateway.middleware.request_log import RequestLogMiddleware
from src.mp_marketplace.api.collection_router import router as collection_router
from src.mp_marketplace.api.router import router as marketplace_router
from src.mp_marketplace.application import service as svc
from src.mp_matching.application.service import get_contracts, get_marketplace

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # get_marketplace() validates the params: a bad config fails startup
    marketplace = get_marketplace()
    await create_tables(engine)
    async with async_session_factory() as db:
        if not await svc.load(marketplace, get_contracts(), db):
            logger.info("No stored marketplace state, starting empty")
    logger.info(
        "Marketplace %s up (admin=%s fee=%dbps)",
        marketplace.params.address, marketplace.params.admin, marketplace.params.trading_fee_bps,
    )
    try:
        yield
    finally:
        await engine.dispose()


app = FastAPI(title=settings.APP_NAME, version=API_VERSION, lifespan=lifespan)
app.add_middleware(RequestLogMiddleware)
app.include_router(marketplace_router, prefix="/api/v1")
app.include_router(collection_router, prefix="/api/v1")


@app.exception_handler(AppError)
async def marketplace_error_handler(request: Request, exc: AppError) -> JSONResponse:
    body = error_response(exc.code, exc.message)
    request_id = getattr(request.state, "request_id", None)
    if request_id is not None:
        body.request_id = request_id
    if exc.http_status >= 500:
        logger.error("AppError %d: %s", exc.code, exc.message)
    return JSONResponse(status_code=exc.http_status, content=body.model_dump())


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": API_VERSION, "marketplace": settings.MARKETPLACE_ADDRESS}
