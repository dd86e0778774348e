"""
FastAPI Application - Coin Price Sync API

Serves the coins table kept in sync with CoinGecko and cached coin prices.

Background jobs (started with the app):
    - Price refresh every 60s: CoinGecko spot prices -> cache + Airtable `currentprice`
    - Listing refresh every 600s: CoinGecko top 20 by market cap -> Airtable upsert

Usage:
    uvicorn app.main:app --reload --host 0.0.0.0 --port 8000

Docs:
    - Swagger: http://localhost:8000/docs
    - ReDoc: http://localhost:8000/redoc
"""

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from app.dependencies import (
    get_job_monitor,
    get_market_client,
    get_price_cache,
    get_record_store,
    get_sync_engine,
)
from core.config import settings, validate_configuration
from core.exceptions import NotFound, StoreUnavailable
from core.logging import logger
from core.record_store_interface import RecordStore
from core.schemas import ErrorResponse, PriceResponse
from services.job_monitor import JobMonitor
from services.price_lookup import lookup_price
from storage.price_cache import PriceCache


# ============================================
# Lifespan Management
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown."""
    logger.info("=== Application Starting ===")
    try:
        validate_configuration()
        await get_record_store().initialize()
        await get_market_client().initialize()
        await get_job_monitor().start()
        if settings.sync_enabled:
            try:
                await get_sync_engine().start()
            except Exception as svc_err:
                logger.error(f"Sync engine failed to start: {svc_err}")
        else:
            logger.info("Background sync disabled (SYNC_ENABLED=false)")
        logger.info("=== Started Successfully ===")
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise

    yield

    logger.info("=== Shutting Down ===")
    try:
        await get_sync_engine().stop()
        await get_job_monitor().stop()
        await get_market_client().shutdown()
        await get_record_store().shutdown()
        logger.info("=== Shutdown Complete ===")
    except Exception as e:
        logger.error(f"Shutdown error: {e}")


# ============================================
# FastAPI Application
# ============================================

app = FastAPI(
    title="Coin Price Sync API",
    description=(
        "Read API over a coins table kept in sync with CoinGecko.\n\n"
        "## REST Endpoints\n"
        "- `GET /coins` - All coin records (id, name, symbol, market_cap, currentprice)\n"
        "- `GET /coins/price/{id}` - Latest USD price of one coin (cache first)\n"
        "- `GET /health` - Cache size and latest sync job outcomes\n"
    ),
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_methods=["*"],
    allow_headers=["*"]
)


# ============================================
# System Endpoints
# ============================================

@app.get("/", tags=["System"])
async def root():
    """API information."""
    return {
        "name": "Coin Price Sync API",
        "version": "1.0.0",
        "status": "operational",
        "docs": "/docs",
    }


@app.get("/health", tags=["System"])
async def health_check(
    cache: PriceCache = Depends(get_price_cache),
    monitor: JobMonitor = Depends(get_job_monitor),
):
    """Cache size and the latest outcome of each sync job."""
    jobs = monitor.summary()
    failing = [job for job, info in jobs.items() if info["last"]["status"] == "failed"]
    return {
        "status": "degraded" if failing else "healthy",
        "cached_prices": len(cache),
        "jobs": jobs,
    }


# ============================================
# Coin Endpoints
# ============================================

@app.get(
    "/coins",
    tags=["Coins"],
    responses={500: {"model": ErrorResponse}},
)
async def list_coins(store: RecordStore = Depends(get_record_store)):
    """
    Every record of the coins table, as a list of field maps.

    Example:
        GET /coins
    """
    try:
        records = await store.list_all()
    except StoreUnavailable as e:
        logger.error(f"Error listing coins from airtable: {e}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    return [record.fields for record in records]


@app.get(
    "/coins/price/{coin_id}",
    response_model=PriceResponse,
    tags=["Coins"],
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_coin_price(
    coin_id: str,
    cache: PriceCache = Depends(get_price_cache),
    store: RecordStore = Depends(get_record_store),
):
    """
    Latest known USD price of a coin.

    Served from the in-memory cache when possible, otherwise read from the
    coins table and cached.

    Example:
        GET /coins/price/bitcoin
    """
    try:
        price = await lookup_price(coin_id, cache, store)
    except NotFound:
        return JSONResponse(status_code=404, content={"error": "Coin not found"})
    except StoreUnavailable as e:
        logger.error(f"Error fetching coin price from airtable: {e}")
        return JSONResponse(status_code=500, content={"error": "Internal Server Error"})

    return PriceResponse(id=coin_id, price=price)


# ============================================
# Error Handlers
# ============================================

@app.exception_handler(404)
async def not_found_handler(request, exc):
    """Handle 404 errors."""
    return JSONResponse(status_code=404, content={"error": "Not found"})


@app.exception_handler(500)
async def internal_error_handler(request, exc):
    """Handle 500 errors."""
    logger.error(f"Internal error: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})
