"""Load rows from the database and run them through the report builders.

Shared by the JSON routes and the spreadsheet export.
"""
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from auction_admin.db import crud
from auction_admin.services.reports import (
    build_forward_report,
    build_reverse_report,
    compute_buy_now_stats,
    enrich_bids,
)
from auction_admin.services.winners import resolve_winners


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


async def load_forward_report(db: AsyncSession, now: datetime | None = None) -> dict:
    auctions = await crud.list_auctions(db, auctiontype="forward")
    if not auctions:
        return build_forward_report([], [], [], [], now or utc_now())
    profiles = await crud.list_profiles(db)
    categories = await crud.list_categories(db)
    bids = await crud.list_bids(db)
    return build_forward_report(auctions, bids, profiles, categories, now or utc_now())


async def load_reverse_report(db: AsyncSession, now: datetime | None = None) -> dict:
    auctions = await crud.list_auctions(db, auctiontype="reverse")
    if not auctions:
        return build_reverse_report([], [], [], now or utc_now())
    profiles = await crud.list_profiles(db)
    bids = await crud.list_bids(db)
    return build_reverse_report(auctions, bids, profiles, now or utc_now())


async def load_winners(
    db: AsyncSession,
    filter_type: str | None = None,
    now: datetime | None = None,
) -> dict:
    auctions = await crud.list_auctions(db)
    bids = await crud.list_bids(db)
    profiles = await crud.list_profiles(db)
    return resolve_winners(auctions, bids, profiles, now or utc_now(), filter_type)


async def load_enriched_bids(
    db: AsyncSession,
    auction_id: str | None = None,
    user_id: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
    role: str | None = None,
) -> list[dict]:
    bids = await crud.list_bids(db, auction_id=auction_id, user_id=user_id, start=start, end=end)
    if not bids:
        return []

    user_ids = list({str(b["user_id"]) for b in bids if b.get("user_id")})
    auction_ids = list({str(b["auction_id"]) for b in bids if b.get("auction_id")})

    profiles = await crud.list_profiles_by_ids(db, user_ids)
    auctions = await crud.list_auctions_by_ids(db, auction_ids)
    creator_emails = list({a["createdby"] for a in auctions if a.get("createdby")})
    creators = await crud.list_profiles_by_emails(db, creator_emails)

    return enrich_bids(bids, profiles, auctions, creators, role=role)


async def load_buy_now_stats(db: AsyncSession) -> dict:
    auctions = await crud.list_auctions(db)
    buyers = await crud.list_profiles(db, roles=crud.BUYER_ROLES)
    return compute_buy_now_stats(auctions, buyers)

