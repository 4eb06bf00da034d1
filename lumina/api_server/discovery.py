"""
FastAPI router: catalog-backed discovery endpoints.

GET /signals, GET /wallets/{wallet}/rails, GET /artists/{artist_id}/community.
Catalog failures surface through the app's CatalogError handlers.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from lumina.analysis_engine.personalization import get_personalized_discovery_rails
from lumina.analysis_engine.reputation import compute_artist_community_snapshot
from lumina.analysis_engine.signals import DEFAULT_SIGNAL_LIMIT, get_undervalued_artist_signals
from lumina.catalog.client import CatalogSource
from lumina.ledger import read_all_ledgers, read_ledger
from lumina.lumina_logging import get_logger, short_wallet

logger = get_logger(__name__)

router = APIRouter(tags=["discovery"])


def get_catalog(request: Request) -> CatalogSource:
    """Dependency: catalog client created in the app lifespan."""
    catalog = getattr(request.app.state, "catalog", None)
    if catalog is None:
        raise HTTPException(status_code=503, detail="Catalog client not initialised")
    return catalog


@router.get("/signals")
async def list_signals(
    limit: int = Query(DEFAULT_SIGNAL_LIMIT, ge=1, le=100),
    catalog: CatalogSource = Depends(get_catalog),
) -> dict[str, Any]:
    signals = await get_undervalued_artist_signals(catalog, limit)
    logger.info("api_signals_served", limit=limit, returned=len(signals))
    return {"signals": [s.to_dict() for s in signals]}


@router.get("/wallets/{wallet}/rails")
async def wallet_rails(
    wallet: str,
    catalog: CatalogSource = Depends(get_catalog),
) -> dict[str, Any]:
    ledger = read_ledger(wallet)
    rails = await get_personalized_discovery_rails(catalog, ledger.activities)
    logger.info("api_rails_served", wallet=short_wallet(wallet), rails=len(rails))
    return {"wallet": wallet, "rails": [r.to_dict() for r in rails]}


@router.get("/artists/{artist_id}/community")
def artist_community(
    artist_id: str,
    track_ids: list[str] | None = Query(None),
    viewer: str | None = Query(None),
) -> dict[str, Any]:
    snapshot = compute_artist_community_snapshot(read_all_ledgers(), artist_id, track_ids or [], viewer)
    return {"artist_id": artist_id, **snapshot.to_dict()}
