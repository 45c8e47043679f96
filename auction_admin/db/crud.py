import logging
from datetime import datetime, timezone
from sqlalchemy import DateTime, select, delete, or_
from sqlalchemy.ext.asyncio import AsyncSession

from auction_admin.db.models import Auction, Bid, Profile, Category
from auction_admin.services.aggregator import parse_datetime, select_winning_bid

logger = logging.getLogger(__name__)

BUYER_ROLES = ("buyer", "bidder")
SELLER_ROLES = ("seller",)

CATEGORY_UPDATABLE = ("title", "short_desc", "long_desc", "image_url", "taxonomy", "is_active", "metadata")


def _rows(result) -> list[dict]:
    return [row.to_dict() for row in result.scalars().all()]


# --- Auctions ---

async def list_auctions(db: AsyncSession, auctiontype: str | None = None) -> list[dict]:
    query = select(Auction)
    if auctiontype:
        query = query.where(Auction.auctiontype == auctiontype)
    result = await db.execute(query)
    return _rows(result)


async def list_auctions_by_ids(db: AsyncSession, ids: list[str]) -> list[dict]:
    if not ids:
        return []
    result = await db.execute(select(Auction).where(Auction.id.in_(ids)))
    return _rows(result)


async def list_calendar_auctions(db: AsyncSession) -> list[dict]:
    """Approved forward and reverse auctions (sale types 1 and 3)."""
    result = await db.execute(
        select(Auction)
        .where(Auction.approved == True, Auction.sale_type.in_([1, 3]))  # noqa: E712
    )
    return _rows(result)


async def get_auction(db: AsyncSession, auction_id: str) -> Auction | None:
    return await db.get(Auction, auction_id)


def _coerce_auction_values(values: dict) -> dict:
    """Keep known auction columns (case-insensitive) and parse timestamps.

    Raises ValueError for a timestamp that cannot be parsed. Empty values clear the column.
    """
    columns = Auction.__table__.columns
    coerced = {}
    for key, value in values.items():
        name = str(key).lower()
        if name not in columns or name == "id":
            logger.debug(f"Ignoring unknown auction field: {key}")
            continue
        if isinstance(columns[name].type, DateTime):
            parsed = parse_datetime(value)
            if parsed is None and value not in (None, ""):
                raise ValueError(f"Invalid date for {name}: {value}")
            value = parsed
        coerced[name] = value
    return coerced


async def create_auction(db: AsyncSession, values: dict) -> Auction:
    auction = Auction(**_coerce_auction_values(values))
    if values.get("id"):
        auction.id = values["id"]
    db.add(auction)
    await db.commit()
    await db.refresh(auction)
    return auction


async def update_auction(db: AsyncSession, auction_id: str, values: dict) -> Auction | None:
    auction = await db.get(Auction, auction_id)
    if not auction:
        return None
    for name, value in _coerce_auction_values(values).items():
        setattr(auction, name, value)
    await db.commit()
    await db.refresh(auction)
    return auction


async def update_auction_sections(db: AsyncSession, auction_id: str, sections) -> bool:
    auction = await db.get(Auction, auction_id)
    if not auction:
        return False
    auction.detailed_sections = sections
    await db.commit()
    return True


# --- Bids ---

async def list_bids(
    db: AsyncSession,
    auction_id: str | None = None,
    user_id: str | None = None,
    start: datetime | None = None,
    end: datetime | None = None,
) -> list[dict]:
    query = select(Bid)
    if auction_id:
        query = query.where(Bid.auction_id == auction_id)
    if user_id:
        query = query.where(Bid.user_id == user_id)
    if start:
        query = query.where(Bid.created_at >= start)
    if end:
        query = query.where(Bid.created_at <= end)

    result = await db.execute(query.order_by(Bid.created_at.asc()))
    return _rows(result)


# --- Profiles ---

async def list_profiles(
    db: AsyncSession,
    roles: tuple[str, ...] | None = None,
    newest_first: bool = False,
) -> list[dict]:
    query = select(Profile)
    if roles:
        query = query.where(Profile.role.in_(roles))
    order = Profile.created_at.desc() if newest_first else Profile.created_at.asc()
    result = await db.execute(query.order_by(order))
    return _rows(result)


async def list_profiles_by_ids(db: AsyncSession, ids: list[str]) -> list[dict]:
    if not ids:
        return []
    result = await db.execute(select(Profile).where(Profile.id.in_(ids)))
    return _rows(result)


async def list_profiles_by_emails(db: AsyncSession, emails: list[str]) -> list[dict]:
    if not emails:
        return []
    result = await db.execute(select(Profile).where(Profile.email.in_(emails)))
    return _rows(result)


async def get_profile(db: AsyncSession, profile_id: str) -> Profile | None:
    return await db.get(Profile, profile_id)


async def delete_profile_cascade(db: AsyncSession, profile: Profile):
    """Delete a user with their listings and bids, and repair affected auctions.

    Sellers lose the auctions they created together with the bids on them.
    Buyers lose their bids; every auction they bid on gets its current bid,
    current bidder, participants and questions recomputed without them.
    """
    role = (profile.role or "").lower()

    if role in ("seller", "both"):
        result = await db.execute(select(Auction.id).where(Auction.createdby == profile.email))
        auction_ids = [row[0] for row in result.all()]
        if auction_ids:
            await db.execute(delete(Bid).where(Bid.auction_id.in_(auction_ids)))
        await db.execute(delete(Auction).where(Auction.createdby == profile.email))

    if role in ("buyer", "bidder", "both"):
        result = await db.execute(select(Bid.auction_id).where(Bid.user_id == profile.id))
        affected_ids = sorted({row[0] for row in result.all() if row[0]})

        if affected_ids:
            await db.execute(delete(Bid).where(Bid.user_id == profile.id))

            result = await db.execute(select(Auction).where(Auction.id.in_(affected_ids)))
            for auction in result.scalars().all():
                await _recompute_auction_after_removal(db, auction, profile)

    await db.delete(profile)
    await db.commit()
    logger.info(f"Deleted profile {profile.id} ({role or 'no role'})")


async def _recompute_auction_after_removal(db: AsyncSession, auction: Auction, profile: Profile):
    result = await db.execute(select(Bid).where(Bid.auction_id == auction.id).order_by(Bid.id))
    remaining = [b.to_dict() for b in result.scalars().all()]

    best = select_winning_bid(remaining, reverse=(auction.auctiontype == "reverse"))
    auction.currentbid = best["amount"] if best else None
    auction.currentbidder = None
    if best:
        bidder = await db.get(Profile, best["user_id"])
        auction.currentbidder = bidder.email if bidder else None

    auction.questions = [q for q in (auction.questions or []) if q.get("user") != profile.email]
    auction.participants = [p for p in (auction.participants or []) if p != profile.id]


# --- Categories ---

async def list_categories(
    db: AsyncSession,
    handle: str | None = None,
    q: str | None = None,
    active: bool | None = None,
) -> list[dict]:
    query = select(Category)
    if handle:
        query = query.where(Category.handle == handle)
    else:
        if q:
            like = f"%{q}%"
            query = query.where(or_(
                Category.title.ilike(like),
                Category.handle.ilike(like),
                Category.short_desc.ilike(like),
            ))
        if active is not None:
            query = query.where(Category.is_active == active)
        query = query.order_by(Category.created_at.desc())

    result = await db.execute(query)
    return _rows(result)


async def get_category_by_handle(db: AsyncSession, handle: str) -> Category | None:
    result = await db.execute(select(Category).where(Category.handle == handle))
    return result.scalar_one_or_none()


def _set_category_fields(category: Category, values: dict):
    for key, value in values.items():
        # "metadata" is reserved on declarative classes
        setattr(category, "meta" if key == "metadata" else key, value)


async def upsert_category(db: AsyncSession, values: dict) -> Category:
    category = await get_category_by_handle(db, values["handle"])
    if category is None:
        category = Category(handle=values["handle"], created_at=datetime.now(timezone.utc))
        db.add(category)
    _set_category_fields(category, {k: v for k, v in values.items() if k != "handle"})
    await db.commit()
    await db.refresh(category)
    return category


async def update_category(db: AsyncSession, handle: str, updates: dict) -> Category | None:
    category = await get_category_by_handle(db, handle)
    if category is None:
        return None
    _set_category_fields(category, updates)
    await db.commit()
    await db.refresh(category)
    return category


async def delete_category(db: AsyncSession, handle: str) -> int:
    result = await db.execute(delete(Category).where(Category.handle == handle))
    await db.commit()
    return result.rowcount
