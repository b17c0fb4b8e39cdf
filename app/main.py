from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import aiohttp
from fastapi import Depends, FastAPI, Query, Request, Response

from app.config import get_settings
from app.errors import GatewayError
from app.logging_config import configure_logging
from app.models import SearchResponse
from app.services.cache import build_cache_store
from app.services.gateway import GeocodeGateway
from app.services.nominatim import NominatimClient

settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    cache = build_cache_store(settings)
    session = aiohttp.ClientSession()
    app.state.gateway = GeocodeGateway(cache, NominatimClient(session, settings), settings)
    logger.info("Starting %s %s", settings.app_name, settings.version)
    try:
        yield
    finally:
        await session.close()
        await cache.close()
        logger.info("Stopped %s", settings.app_name)


app = FastAPI(
    title=settings.app_name,
    version=settings.version,
    description="Caching proxy for OpenStreetMap Nominatim search.",
    lifespan=lifespan,
)


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    logger.error("Unhandled error on %s", request.url.path, exc_info=exc)
    return Response(status_code=500)


def get_gateway(request: Request) -> GeocodeGateway:
    return request.app.state.gateway


@app.get("/", tags=["Root"])
async def root():
    return {"ok": True, "service": settings.app_name, "version": settings.version}


@app.get("/health", tags=["Healthcheck"])
async def health():
    return {"ok": True}


@app.get("/api", response_model=SearchResponse, tags=["Api Search"])
async def api_search(
    q: str = Query("", description="Free-text location query"),
    gateway: GeocodeGateway = Depends(get_gateway),
):
    try:
        result = await gateway.resolve(q)
    except GatewayError as e:
        logger.error("Error calling data source: %s", e, exc_info=True)
        return Response(status_code=500)

    return result.to_response()


def serve() -> None:
    import uvicorn

    uvicorn.run("app.main:app", host=settings.host, port=settings.port)
