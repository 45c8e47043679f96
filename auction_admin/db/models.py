import uuid
from datetime import datetime, timezone
from sqlalchemy import (
    Column, Integer, String, Float, DateTime, Text, Boolean, JSON, Index
)
from auction_admin.db.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class Auction(Base):
    __tablename__ = "auctions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    auctiontype = Column(String(20))  # "forward" or "reverse"
    auctionsubtype = Column(String(20))  # english, standard, silent, sealed, ranked
    sale_type = Column(Integer)  # 1 = forward, 2 = buy now, 3 = reverse
    ismultilot = Column(Boolean, default=False)

    productname = Column(String(500))
    auction_name = Column(String(500))
    productdescription = Column(Text)
    product_heromsg = Column(Text)
    remarks = Column(Text)
    categoryid = Column(String(100))
    subcategoryid = Column(String(100))
    attributes = Column(JSON)
    sku = Column(String(100))
    brand = Column(String(200))
    model = Column(String(200))

    startprice = Column(Float)
    minimumincrement = Column(Float)
    reserveprice = Column(Float)
    targetprice = Column(Float)
    buy_now_price = Column(Float)
    currency = Column(String(10))

    launchtype = Column(String(20))
    scheduledstart = Column(DateTime(timezone=True))
    auctionduration = Column(JSON)  # {"days": 0, "hours": 0, "minutes": 0}

    productimages = Column(JSON)
    productdocuments = Column(JSON)
    requireddocuments = Column(JSON)
    detailed_sections = Column(JSON)

    seller = Column(String(36))
    createdby = Column(String(320))
    createdat = Column(DateTime(timezone=True), default=_utcnow)
    updatedby = Column(String(320))
    updatedat = Column(DateTime(timezone=True))
    purchaser = Column(String(36))
    status = Column(String(20))
    currentbid = Column(Float)
    currentbidder = Column(String(320))
    bidcount = Column(Integer, default=0)
    bidder_count = Column(Integer, default=0)
    wishlist_count = Column(Integer, default=0)
    question_count = Column(Integer, default=0)
    participants = Column(JSON)
    questions = Column(JSON)
    approved = Column(Boolean, default=False)
    approval_status = Column(String(20))
    ended = Column(Boolean, default=False)
    editable = Column(Boolean, default=True)
    is_featured = Column(Boolean, default=False)

    __table_args__ = (
        Index("ix_auction_type", "auctiontype"),
        Index("ix_auction_sale_type", "sale_type"),
        Index("ix_auction_createdby", "createdby"),
    )


class Bid(Base):
    __tablename__ = "bids"

    id = Column(Integer, primary_key=True, autoincrement=True)
    auction_id = Column(String(36))
    user_id = Column(String(36))
    amount = Column(Float)
    location = Column(String(300))
    created_at = Column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        Index("ix_bid_auction_id", "auction_id"),
        Index("ix_bid_user_id", "user_id"),
    )


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    role = Column(String(20))  # buyer, bidder, seller, both, admin
    fname = Column(String(200))
    lname = Column(String(200))
    email = Column(String(320), index=True)
    location = Column(String(300))
    type = Column(String(50))
    avatar_url = Column(String(1000))
    phone = Column(String(50))
    addressline1 = Column(String(500))
    addressline2 = Column(String(500))
    verified = Column(Boolean, default=False)
    isadminapproved = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow)


class Category(Base):
    __tablename__ = "categories"

    id = Column(Integer, primary_key=True, autoincrement=True)
    handle = Column(String(200), unique=True, nullable=False)
    title = Column(String(300), nullable=False)
    short_desc = Column(Text)
    long_desc = Column(Text)
    image_url = Column(String(1000))
    taxonomy = Column(JSON)  # [{handle, title, attributes: [...]}, ...]
    meta = Column("metadata", JSON)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
