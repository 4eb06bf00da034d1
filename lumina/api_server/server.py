"""
FastAPI server — ledger writes and reputation reads, plus the discovery router.

The catalog client is opened in the lifespan handler and closed on shutdown.
Domain errors map to HTTP: CatalogNotFoundError -> 404, CatalogError -> 502,
InvalidActivityError -> 422.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from lumina.analysis_engine.reputation import compute_supporter_profile, rank_supporters
from lumina.api_server.discovery import router as discovery_router
from lumina.catalog.client import AudiusClient
from lumina.core.exceptions import CatalogError, CatalogNotFoundError, InvalidActivityError
from lumina.ledger import (
    get_recent_activity,
    init_db,
    read_all_ledgers,
    read_ledger,
    record_activity,
)
from lumina.lumina_logging import get_logger, short_wallet

logger = get_logger(__name__)


# -----------------------------------------------------------------------------
# Request / response models
# -----------------------------------------------------------------------------


class RecordActivityRequest(BaseModel):
    """POST /wallets/{wallet}/activities body."""

    action: str = Field(..., min_length=1, max_length=32, description="Reward action kind, e.g. FOLLOW_ARTIST")
    metadata: dict[str, Any] = Field(
        default_factory=dict,
        description="Action-specific fields: trackId, artistId, artistFollowerCount, noteLength",
    )


class RecordActivityResponse(BaseModel):
    wallet: str = Field(..., description="Wallet address")
    action: str = Field(..., description="Recorded action kind")
    total_points: int = Field(..., ge=0, description="Wallet total after this activity")


# -----------------------------------------------------------------------------
# Lifespan
# -----------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create ledger tables and open the catalog client; close it on shutdown."""
    init_db()
    app.state.catalog = AudiusClient()
    logger.info("api_started", catalog_url=app.state.catalog.api_url)
    try:
        yield
    finally:
        await app.state.catalog.aclose()
        logger.info("api_stopped")


app = FastAPI(title="Lumina", version="0.1.0", lifespan=lifespan)
app.include_router(discovery_router)


@app.exception_handler(CatalogNotFoundError)
async def _catalog_not_found(request: Request, exc: CatalogNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(CatalogError)
async def _catalog_error(request: Request, exc: CatalogError) -> JSONResponse:
    logger.warning("api_catalog_error", path=request.url.path, status_code=exc.status_code, error=str(exc))
    return JSONResponse(status_code=502, content={"detail": str(exc)})


@app.exception_handler(InvalidActivityError)
async def _invalid_activity(request: Request, exc: InvalidActivityError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


# -----------------------------------------------------------------------------
# Routes
# -----------------------------------------------------------------------------


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/wallets/{wallet}/activities", status_code=201, response_model=RecordActivityResponse)
def post_activity(wallet: str, body: RecordActivityRequest) -> RecordActivityResponse:
    total = record_activity(wallet, body.action, body.metadata)
    return RecordActivityResponse(wallet=wallet.strip(), action=body.action, total_points=total)


@app.get("/wallets/{wallet}/activities")
def list_activities(wallet: str, limit: int = Query(10, ge=1, le=500)) -> dict[str, Any]:
    activities = get_recent_activity(wallet, limit)
    return {"wallet": wallet, "activities": [a.to_dict() for a in activities]}


@app.get("/wallets/{wallet}/supporter")
def wallet_supporter(wallet: str) -> dict[str, Any]:
    ledger = read_ledger(wallet)
    profile = compute_supporter_profile(ledger.total_points, ledger.activities)
    logger.debug("api_supporter_served", wallet=short_wallet(wallet), score=profile.score, tier=profile.tier)
    return {"wallet": wallet, "total_points": ledger.total_points, **profile.to_dict()}


@app.get("/leaderboard")
def leaderboard(limit: int = Query(10, ge=1, le=100)) -> dict[str, Any]:
    ranked = rank_supporters(read_all_ledgers(), limit)
    return {"entries": [r.to_dict() for r in ranked]}
