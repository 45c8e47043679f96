from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from auction_admin.db.database import get_db
from auction_admin.db import crud
from auction_admin.services import exporter
from auction_admin.services.datasets import (
    load_buy_now_stats,
    load_enriched_bids,
    load_forward_report,
    load_reverse_report,
    load_winners,
)

router = APIRouter(prefix="/api/export", tags=["export"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


async def _load_dataset(db: AsyncSession, dataset: str):
    """Return (rows, columns, sheet title, summary stats) for an export dataset."""
    if dataset == "forward-auctions":
        report = await load_forward_report(db)
        stats = {k: report[k] for k in ("summary", "financials", "outcomes") if k in report}
        return report["auctions"], exporter.FORWARD_AUCTION_COLUMNS, "Forward Auctions", stats
    if dataset == "reverse-auctions":
        report = await load_reverse_report(db)
        stats = {k: report[k] for k in ("summary", "financials", "outcomes") if k in report}
        return report["auctions"], exporter.REVERSE_AUCTION_COLUMNS, "Reverse Auctions", stats
    if dataset == "winners":
        result = await load_winners(db)
        return result["winners"], exporter.WINNER_COLUMNS, "Winners", result["summary"]
    if dataset == "bids":
        bids = await load_enriched_bids(db)
        return bids, exporter.BID_COLUMNS, "Bids", None
    if dataset == "buynow":
        stats = await load_buy_now_stats(db)
        summary = {k: v for k, v in stats.items() if k not in ("purchases", "categoryPerformance")}
        return stats["purchases"], exporter.BUY_NOW_COLUMNS, "Buy Now Sales", summary
    if dataset == "bidders":
        profiles = await crud.list_profiles(db, roles=crud.BUYER_ROLES)
        return profiles, exporter.PROFILE_COLUMNS, "Buyers", None
    if dataset == "sellers":
        profiles = await crud.list_profiles(db, roles=crud.SELLER_ROLES, newest_first=True)
        return profiles, exporter.PROFILE_COLUMNS, "Sellers", None
    raise HTTPException(status_code=404, detail=f"Unknown export dataset: {dataset}")


@router.get("/{dataset}")
async def export_dataset(dataset: str, format: str = "xlsx", db: AsyncSession = Depends(get_db)):
    if format not in ("xlsx", "csv"):
        raise HTTPException(status_code=400, detail="format must be xlsx or csv")

    rows, columns, title, stats = await _load_dataset(db, dataset)

    if format == "csv":
        content = exporter.export_rows_to_csv(rows, columns)
        media_type = "text/csv"
    else:
        content = exporter.export_rows_to_excel(rows, columns, title, stats)
        media_type = XLSX_MEDIA_TYPE

    filename = f"{dataset.replace('-', '_')}.{format}"
    return StreamingResponse(
        content,
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )
