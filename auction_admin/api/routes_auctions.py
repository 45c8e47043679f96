import json
import logging
import time
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from auction_admin.auth import current_username
from auction_admin.config import settings
from auction_admin.db.database import get_db
from auction_admin.db import crud
from auction_admin.schemas.auction import AuctionCreateRequest, SectionsUpdate
from auction_admin.services.aggregator import compute_auction_type_stats
from auction_admin.services.datasets import (
    load_buy_now_stats,
    load_forward_report,
    load_reverse_report,
    utc_now,
)
from auction_admin.services.reports import build_calendar_entries
from auction_admin.services import supabase_client

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["auctions"])


@router.get("/auctions")
async def list_all_auctions(db: AsyncSession = Depends(get_db)):
    auctions = await crud.list_auctions(db)
    return {"success": True, "data": {"auctions": auctions}}


@router.get("/forward-auctions")
async def forward_auctions(db: AsyncSession = Depends(get_db)):
    return {"success": True, "data": await load_forward_report(db)}


@router.get("/reverse-auctions")
async def reverse_auctions(db: AsyncSession = Depends(get_db)):
    return {"success": True, "data": await load_reverse_report(db)}


@router.get("/auction-stats")
async def auction_stats(db: AsyncSession = Depends(get_db)):
    auctions = await crud.list_auctions(db)
    return {"success": True, "data": compute_auction_type_stats(auctions, utc_now())}


@router.get("/calendar")
async def calendar(db: AsyncSession = Depends(get_db)):
    auctions = await crud.list_calendar_auctions(db)
    return {"success": True, "data": build_calendar_entries(auctions, utc_now())}


@router.get("/buynow-stats")
async def buy_now_stats(db: AsyncSession = Depends(get_db)):
    return {"success": True, "data": await load_buy_now_stats(db)}


# --- Auction writes ---

def _required_documents(value):
    if isinstance(value, str):
        try:
            return json.loads(value)
        except ValueError:
            raise HTTPException(status_code=400, detail="requireddocuments must be valid JSON")
    return value


@router.post("/create-auction", status_code=201)
async def create_auction(
    payload: AuctionCreateRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    if not payload.product_name:
        raise HTTPException(status_code=400, detail="Product name is required")
    if not payload.auction_sub_type:
        raise HTTPException(status_code=400, detail="Auction subtype (English/Silent) is required")
    if not payload.start_price or payload.start_price <= 0:
        raise HTTPException(status_code=400, detail="Start price must be greater than 0")

    created_at = datetime.now(timezone.utc)
    if payload.launch_type == "immediate" or payload.scheduled_start is None:
        scheduled_start = created_at
    else:
        scheduled_start = payload.scheduled_start

    values = {
        "id": str(uuid.uuid4()),
        "auctiontype": "forward",
        "auctionsubtype": payload.auction_sub_type,
        "sale_type": 1,
        "ismultilot": payload.is_multi_lot,
        "productname": payload.product_name,
        "productdescription": payload.product_description,
        "product_heromsg": payload.product_heromsg,
        "remarks": payload.remarks,
        "categoryid": payload.category_id,
        "subcategoryid": payload.subcategoryid,
        "attributes": payload.attributes,
        "sku": payload.sku,
        "brand": payload.brand,
        "model": payload.model,
        "startprice": payload.start_price,
        "minimumincrement": payload.minimum_increment or 0,
        "reserveprice": payload.reserveprice,
        "currency": settings.NEW_AUCTION_CURRENCY,
        "launchtype": payload.launch_type,
        "scheduledstart": scheduled_start,
        "auctionduration": {
            "days": payload.days or 0,
            "hours": payload.hours or 0,
            "minutes": payload.minutes or 0,
        },
        "productimages": payload.product_images,
        "productdocuments": payload.product_documents,
        "requireddocuments": _required_documents(payload.requireddocuments),
        "createdby": current_username(request),
        "createdat": created_at,
        "seller": settings.DEFAULT_SELLER_ID,
        "status": "active" if payload.launch_type == "immediate" else "scheduled",
        "currentbid": None,
        "bidcount": 0,
        "participants": [],
        "approved": True,
        "ended": False,
        "editable": True,
        "approval_status": "pending",
        "wishlist_count": 0,
        "bidder_count": 0,
        "is_featured": payload.is_featured,
    }

    auction = await crud.create_auction(db, values)
    logger.info(f"Created forward auction {auction.id} ({auction.productname})")
    return {
        "success": True,
        "data": auction.to_dict(),
        "message": "Forward auction created successfully",
    }


@router.put("/create-auction")
async def update_auction(
    request: Request,
    id: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    if not id:
        raise HTTPException(status_code=400, detail="Auction ID is required")
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON body")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Invalid JSON body")

    body.pop("id", None)
    body["updatedat"] = datetime.now(timezone.utc)
    body["updatedby"] = current_username(request)

    try:
        auction = await crud.update_auction(db, id, body)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not auction:
        raise HTTPException(status_code=404, detail="Auction not found")
    return {"success": True, "data": auction.to_dict(), "message": "Auction updated successfully"}


# --- Detailed sections ---

@router.get("/get-auction-sections")
async def get_auction_sections(auction_id: str | None = None, db: AsyncSession = Depends(get_db)):
    if not auction_id:
        raise HTTPException(status_code=400, detail="Missing auction_id")
    auction = await crud.get_auction(db, auction_id)
    if not auction:
        raise HTTPException(status_code=404, detail="Auction not found")
    return {"success": True, "sections": auction.detailed_sections or []}


@router.post("/update-sections")
async def update_sections(request: Request, db: AsyncSession = Depends(get_db)):
    content_type = request.headers.get("content-type", "")

    if "multipart/form-data" in content_type:
        form = await request.form()
        upload = form.get("file")
        if upload is None or isinstance(upload, str):
            raise HTTPException(status_code=400, detail="No file uploaded")

        file_name = f"{int(time.time() * 1000)}-{upload.filename}"
        url = await supabase_client.upload_document(
            file_name, await upload.read(), upload.content_type
        )
        return {"success": True, "url": url, "fileName": file_name}

    try:
        payload = SectionsUpdate.model_validate(await request.json())
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid JSON body")
    if not payload.auction_id:
        raise HTTPException(status_code=400, detail="Missing auction_id")

    if not await crud.update_auction_sections(db, payload.auction_id, payload.sections):
        raise HTTPException(status_code=404, detail="Auction not found")
    return {"success": True}
