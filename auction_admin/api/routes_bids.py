from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from auction_admin.db.database import get_db
from auction_admin.services.aggregator import parse_datetime
from auction_admin.services.datasets import load_enriched_bids

router = APIRouter(prefix="/api", tags=["bids"])


def _parse_bound(value: str | None, name: str) -> datetime | None:
    if not value:
        return None
    parsed = parse_datetime(value)
    if parsed is None:
        raise HTTPException(status_code=400, detail=f"Invalid {name} date: {value}")
    return parsed


@router.get("/bids")
async def list_bids(
    auction_id: str | None = Query(None, alias="auctionId"),
    user_id: str | None = Query(None, alias="userId"),
    start: str | None = None,
    end: str | None = None,
    role: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    bids = await load_enriched_bids(
        db,
        auction_id=auction_id,
        user_id=user_id,
        start=_parse_bound(start, "start"),
        end=_parse_bound(end, "end"),
        role=role,
    )
    return {"success": True, "data": {"bids": bids, "meta": {"total": len(bids)}}}
