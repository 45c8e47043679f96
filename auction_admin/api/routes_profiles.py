from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from auction_admin.db.database import get_db
from auction_admin.db import crud
from auction_admin.services.datasets import load_winners, utc_now
from auction_admin.services.kpis import compute_bidder_kpis, compute_profile_stats, compute_seller_kpis
from auction_admin.services import supabase_client

router = APIRouter(prefix="/api", tags=["profiles"])

PROFILE_FIELDS = (
    "id", "fname", "lname", "email", "role", "location", "type", "avatar_url",
    "phone", "addressline1", "addressline2", "created_at",
)


@router.get("/bidders")
async def list_bidders(db: AsyncSession = Depends(get_db)):
    profiles = await crud.list_profiles(db, roles=crud.BUYER_ROLES)
    return {"success": True, "data": {"profiles": profiles}}


@router.get("/sellers")
async def list_sellers(db: AsyncSession = Depends(get_db)):
    profiles = await crud.list_profiles(db, roles=crud.SELLER_ROLES, newest_first=True)
    return {"success": True, "data": {"profiles": profiles}}


@router.get("/bidder-stats")
async def bidder_stats(db: AsyncSession = Depends(get_db)):
    now = utc_now()
    buyers = await crud.list_profiles(db, roles=crud.BUYER_ROLES)
    bids = await crud.list_bids(db)
    winners = await load_winners(db, now=now)
    winner_ids = {w["winner_id"] for w in winners["winners"] if w.get("winner_id")}
    return {"success": True, "data": compute_bidder_kpis(buyers, bids, winner_ids, now)}


@router.get("/seller-stats")
async def seller_stats(db: AsyncSession = Depends(get_db)):
    sellers = await crud.list_profiles(db, roles=crud.SELLER_ROLES, newest_first=True)
    auctions = await crud.list_auctions(db)
    bids = await crud.list_bids(db)
    return {"success": True, "data": compute_seller_kpis(sellers, auctions, bids, utc_now())}


@router.get("/profile-stats")
async def profile_stats(id: str | None = None, db: AsyncSession = Depends(get_db)):
    if not id:
        raise HTTPException(status_code=400, detail="User ID required")
    profile = await crud.get_profile(db, id)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")

    auctions = await crud.list_auctions(db)
    winners = await load_winners(db)
    stats = compute_profile_stats(profile.to_dict(), auctions, winners["winners"])
    return {"success": True, "data": stats}


@router.get("/profiles/{profile_id}")
async def get_profile(profile_id: str, db: AsyncSession = Depends(get_db)):
    profile = await crud.get_profile(db, profile_id)
    if not profile:
        raise HTTPException(status_code=404, detail="Profile not found")
    row = profile.to_dict()
    return {"success": True, "data": {k: row.get(k) for k in PROFILE_FIELDS}}


@router.delete("/profiles/{profile_id}")
async def delete_profile(profile_id: str, db: AsyncSession = Depends(get_db)):
    profile = await crud.get_profile(db, profile_id)
    if not profile:
        raise HTTPException(status_code=404, detail="User not found")

    await crud.delete_profile_cascade(db, profile)
    await supabase_client.delete_auth_user(profile_id)
    return {"success": True, "message": "User and associated data deleted successfully"}
