from datetime import datetime

from auction_admin.config import settings
from auction_admin.services.aggregator import (
    calc_end_date,
    full_name,
    parse_datetime,
    round_half_up,
    to_number,
)

SECONDS_PER_DAY = 24 * 60 * 60


def _first_categories(auctions: list[dict], limit: int = 2) -> list:
    seen = []
    for a in auctions:
        category = a.get("categoryid")
        if category and category not in seen:
            seen.append(category)
    return seen[:limit]


def _percent(part: int, whole: int) -> int:
    return round_half_up(part / whole * 100) if whole else 0


def _daily_counts(rows: list[dict], date_keys: tuple[str, ...], label: str) -> list[dict]:
    """Count rows per calendar day, only days that have rows."""
    counts: dict[str, int] = {}
    for row in rows:
        raw = next((row.get(k) for k in date_keys if row.get(k)), None)
        dt = parse_datetime(raw)
        if dt is None:
            continue
        key = dt.date().isoformat()
        counts[key] = counts.get(key, 0) + 1

    return [
        {"date": day, "label": datetime.fromisoformat(day).strftime("%b %d"), label: count}
        for day, count in sorted(counts.items())
    ]


def _average_tenure_days(profiles: list[dict], now: datetime) -> int:
    if not profiles:
        return 0
    total = 0.0
    for p in profiles:
        created = parse_datetime(p.get("created_at") or p.get("createdat"))
        if created is not None:
            total += (now - created).total_seconds() / SECONDS_PER_DAY
    return round_half_up(total / len(profiles))


def _verification_kpis(profiles: list[dict], now: datetime) -> dict:
    verified = sum(1 for p in profiles if p.get("verified"))
    return {
        "total": len(profiles),
        "pendingApproval": len(profiles) - verified,
        "verifiedRate": _percent(verified, len(profiles)),
        "avgTenureDays": _average_tenure_days(profiles, now),
    }


# --- Profile ---

def compute_profile_stats(
    profile: dict,
    auctions: list[dict],
    winners: list[dict],
) -> dict:
    """Buyer, seller and combined activity of a single user."""
    user_id = profile.get("id")

    buyer_wins = [w for w in winners if w.get("winner_id") == user_id]
    engaged = [
        a for a in auctions
        if user_id in (a.get("participants") or [])
        or a.get("purchaser") == user_id
        or a.get("seller") == user_id
    ]
    current_bids = [to_number(a.get("currentbid")) or 0 for a in engaged]

    buyer_stats = {
        "auctions": len(engaged),
        "wins": len(buyer_wins),
        "buys": sum(1 for a in auctions if a.get("sale_type") == 2 and a.get("purchaser") == user_id),
        "spend": sum(to_number(w.get("winning_bid")) or 0 for w in buyer_wins),
        "avgBid": round_half_up(sum(current_bids) / len(engaged)) if engaged else 0,
        "highBid": max(current_bids, default=0),
        "winRate": _percent(len(buyer_wins), len(engaged)),
        "categories": _first_categories(engaged),
        "messages": sum(a.get("question_count") or 0 for a in engaged),
    }

    listings = [a for a in auctions if a.get("seller") == user_id]
    sold = [a for a in listings if a.get("purchaser")]
    gmv_sold = sum(
        to_number(a.get("buy_now_price")) or to_number(a.get("currentbid")) or 0
        for a in sold
    )
    seller_stats = {
        "listings": len(listings),
        "active": sum(1 for a in listings if a.get("approved") and not a.get("purchaser")),
        "sold": len(sold),
        "gmvSold": gmv_sold,
        "avgSale": round_half_up(gmv_sold / len(sold)) if sold else 0,
        "pending": sum(1 for a in listings if not a.get("approved")),
        "categories": _first_categories(listings),
    }

    created = parse_datetime(profile.get("created_at"))
    combined = {
        "netGMV": buyer_stats["spend"] - seller_stats["gmvSold"],
        "transactions": buyer_stats["buys"] + seller_stats["sold"],
        "memberSince": created.strftime("%b %Y") if created else None,
    }

    return {
        "profile": profile,
        "buyerStats": buyer_stats,
        "sellerStats": seller_stats,
        "combined": combined,
        "totalAuctions": len(auctions),
    }


# --- Sellers ---

def _auction_end(auction: dict) -> datetime | None:
    start = auction.get("scheduledstart") or auction.get("createdat") or auction.get("created_at")
    return calc_end_date(start, auction.get("auctionduration"))


def compute_seller_kpis(
    sellers: list[dict],
    auctions: list[dict],
    bids: list[dict],
    now: datetime,
) -> dict:
    """Seller registrations, listing activity and auction performance."""
    approved = [a for a in auctions if a.get("approved") is True]
    ends = {id(a): _auction_end(a) for a in approved}
    active = [a for a in approved if ends[id(a)] and ends[id(a)] > now]
    closed = [a for a in approved if ends[id(a)] and ends[id(a)] < now]

    highest: dict[str, float] = {}
    for b in bids:
        auction_id = b.get("auction_id")
        if not auction_id:
            continue
        amount = to_number(b.get("amount")) or 0
        if amount > highest.get(str(auction_id), 0):
            highest[str(auction_id)] = amount

    successful = [a for a in closed if str(a.get("id")) in highest]
    revenue = sum(highest[str(a.get("id"))] for a in successful)

    listed: dict[str, int] = {}
    for a in auctions:
        if a.get("seller"):
            listed[a["seller"]] = listed.get(a["seller"], 0) + 1
    sellers_by_id = {p.get("id"): p for p in sellers}
    top_sellers = sorted(
        (
            {
                "id": seller_id,
                "name": full_name(sellers_by_id.get(seller_id)) or str(seller_id)[:8],
                "total": total,
            }
            for seller_id, total in listed.items()
        ),
        key=lambda s: s["total"],
        reverse=True,
    )[:5]

    return {
        **_verification_kpis(sellers, now),
        "dailyRegistrations": _daily_counts(sellers, ("created_at", "createdat"), "registrations"),
        "dailyAuctions": _daily_counts(
            auctions, ("createdat", "created_at", "scheduledstart"), "auctions"
        ),
        "performance": {
            "totalAuctions": len(approved),
            "activeAuctions": len(active),
            "closedAuctions": len(closed),
            "successfulAuctions": len(successful),
            "successRate": _percent(len(successful), len(approved)),
            "totalRevenue": round(revenue, 2),
            "avgAuctionValue": round_half_up(revenue / len(successful)) if successful else 0,
            "commission": round_half_up(revenue * settings.COMMISSION_RATE),
        },
        "topSellers": top_sellers,
    }


# --- Bidders ---

def compute_bidder_kpis(
    buyers: list[dict],
    bids: list[dict],
    winner_ids: set[str],
    now: datetime,
) -> dict:
    """Buyer registrations and bidding behaviour."""
    total_value = sum(to_number(b.get("amount")) or 0 for b in bids)

    auctions_per_user: dict[str, set] = {}
    value_per_user: dict[str, float] = {}
    for b in bids:
        user_id = b.get("user_id")
        if not user_id:
            continue
        auctions_per_user.setdefault(user_id, set()).add(b.get("auction_id"))
        value_per_user[user_id] = value_per_user.get(user_id, 0) + (to_number(b.get("amount")) or 0)

    unique_bidders = len(auctions_per_user)
    repeat_bidders = sum(1 for seen in auctions_per_user.values() if len(seen) > 1)
    winning_bidders = len({str(w) for w in winner_ids} & {str(u) for u in auctions_per_user})

    buyers_by_id = {p.get("id"): p for p in buyers}
    top_bidders = sorted(
        (
            {
                "id": user_id,
                "name": full_name(buyers_by_id.get(user_id)) or str(user_id)[:8],
                "total": round(total, 2),
            }
            for user_id, total in value_per_user.items()
        ),
        key=lambda b: b["total"],
        reverse=True,
    )[:5]

    return {
        **_verification_kpis(buyers, now),
        "dailyRegistrations": _daily_counts(buyers, ("created_at",), "registrations"),
        "dailyBids": _daily_counts(bids, ("created_at",), "bids"),
        "bidding": {
            "totalBids": len(bids),
            "totalBidValue": round(total_value, 2),
            "uniqueBidders": unique_bidders,
            "avgBidsPerBidder": round(len(bids) / unique_bidders, 2) if unique_bidders else 0,
            "repeatBidRate": _percent(repeat_bidders, unique_bidders),
            "bidSuccessRate": _percent(winning_bidders, unique_bidders),
        },
        "topBidders": top_bidders,
    }
