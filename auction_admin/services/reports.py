from datetime import datetime

from auction_admin.config import settings
from auction_admin.services.aggregator import (
    AuctionStatus,
    FORWARD_SUBTYPE_FAMILIES,
    REVERSE_SUBTYPE_FAMILIES,
    build_category_performance,
    build_over_time,
    build_status_summary,
    build_subtype_breakdown,
    calc_end_date,
    classify_status,
    compute_financials,
    compute_outcomes,
    full_name,
    group_bids_by_auction,
    parse_datetime,
    round_half_up,
    summarize_bids,
    to_number,
)


def build_profile_lookup(profiles: list[dict]) -> dict[str, dict]:
    """Index profiles by id and by lower-cased email."""
    lookup = {}
    for p in profiles:
        if p.get("email"):
            lookup[str(p["email"]).lower()] = p
        if p.get("id"):
            lookup[str(p["id"])] = p
    return lookup


def _find_creator(lookup: dict[str, dict], createdby) -> dict | None:
    if not createdby:
        return None
    return lookup.get(str(createdby)) or lookup.get(str(createdby).lower())


def empty_report() -> dict:
    return {
        "summary": build_status_summary([]),
        "subtypes": {},
        "auctions": [],
    }


def enrich_forward_auction(
    auction: dict,
    bids: list[dict],
    profiles: dict[str, dict],
    category_names: dict[str, str],
    now: datetime,
) -> dict:
    stats = summarize_bids(bids)
    seller = _find_creator(profiles, auction.get("createdby"))
    return {
        "id": auction.get("id"),
        "productname": auction.get("productname"),
        "auctionsubtype": auction.get("auctionsubtype"),
        "scheduledstart": auction.get("scheduledstart"),
        "auctionduration": auction.get("auctionduration"),
        "approved": auction.get("approved"),
        "categoryid": auction.get("categoryid"),
        "category_name": category_names.get(str(auction.get("categoryid")), "Uncategorized"),
        "subcategoryid": auction.get("subcategoryid"),
        "currentbidder": auction.get("currentbidder"),
        "targetprice": auction.get("targetprice"),
        "reserveprice": auction.get("reserveprice"),
        "currency": auction.get("currency") or settings.DEFAULT_CURRENCY,
        "startprice": auction.get("startprice"),
        "minimumincrement": auction.get("minimumincrement"),
        "seller_name": full_name(seller, fallback="-"),
        "seller_email": seller.get("email") if seller else None,
        "status": classify_status(auction, now).value,
        "total_bids": stats.count,
        "highest_bid": stats.best_amount,
        "last_bid_time": stats.last_bid_time,
        "bids": stats.bids,
    }


def enrich_reverse_auction(
    auction: dict,
    bids: list[dict],
    profiles: dict[str, dict],
    now: datetime,
) -> dict:
    # Reverse listings without an approval flag are treated as approved
    stats = summarize_bids(bids, reverse=True)
    buyer = _find_creator(profiles, auction.get("createdby"))
    approved = auction.get("approved")
    return {
        "id": auction.get("id"),
        "productname": auction.get("productname"),
        "auction_name": auction.get("auction_name") or auction.get("productname"),
        "auctiontype": auction.get("auctiontype"),
        "auctionsubtype": auction.get("auctionsubtype"),
        "scheduledstart": auction.get("scheduledstart"),
        "auctionduration": auction.get("auctionduration"),
        "approved": True if approved is None else approved,
        "categoryid": auction.get("categoryid"),
        "subcategoryid": auction.get("subcategoryid"),
        "targetprice": auction.get("targetprice"),
        "reserveprice": auction.get("reserveprice"),
        "currency": auction.get("currency") or settings.DEFAULT_CURRENCY,
        "startprice": auction.get("startprice"),
        "minimumincrement": auction.get("minimumincrement"),
        "buyer_name": full_name(buyer, fallback="-"),
        "buyer_email": buyer.get("email") if buyer else None,
        "status": classify_status(auction, now, approved_default=True).value,
        "total_bids": stats.count,
        "lowest_bid": stats.best_amount,
        "last_bid_time": stats.last_bid_time,
        "bids": stats.bids,
    }


def build_forward_report(
    auctions: list[dict],
    bids: list[dict],
    profiles: list[dict],
    categories: list[dict],
    now: datetime,
) -> dict:
    """Enriched forward auctions with status, financial and trend rollups."""
    if not auctions:
        return empty_report()

    lookup = build_profile_lookup(profiles)
    category_names = {
        str(c["id"]): c.get("title") or "Uncategorized"
        for c in categories if c.get("id") is not None
    }
    by_auction = group_bids_by_auction(bids)

    enriched = [
        enrich_forward_auction(a, by_auction.get(str(a.get("id")), []), lookup, category_names, now)
        for a in auctions
    ]
    return {
        "summary": build_status_summary(enriched),
        "subtypes": build_subtype_breakdown(enriched),
        "auctions": enriched,
        "financials": compute_financials(
            enriched, "highest_bid", settings.COMMISSION_RATE, settings.DEFAULT_CURRENCY
        ),
        "outcomes": compute_outcomes(enriched),
        "overTime": build_over_time(enriched, FORWARD_SUBTYPE_FAMILIES),
        "categoryPerformance": build_category_performance(enriched, "category_name"),
    }


def build_reverse_report(
    auctions: list[dict],
    bids: list[dict],
    profiles: list[dict],
    now: datetime,
) -> dict:
    """Enriched reverse auctions; the lowest bid is the best bid."""
    if not auctions:
        return empty_report()

    lookup = build_profile_lookup(profiles)
    by_auction = group_bids_by_auction(bids)

    enriched = [
        enrich_reverse_auction(a, by_auction.get(str(a.get("id")), []), lookup, now)
        for a in auctions
    ]
    return {
        "summary": build_status_summary(enriched),
        "subtypes": build_subtype_breakdown(enriched),
        "financials": compute_financials(
            enriched, "lowest_bid", settings.COMMISSION_RATE, settings.DEFAULT_CURRENCY
        ),
        "outcomes": compute_outcomes(enriched),
        "overTime": build_over_time(enriched, REVERSE_SUBTYPE_FAMILIES),
        "categoryPerformance": build_category_performance(enriched, "categoryid"),
        "auctions": enriched,
    }


def build_calendar_entries(auctions: list[dict], now: datetime) -> list[dict]:
    """Start/end window and live state of each scheduled auction."""
    entries = []
    for a in auctions:
        start = parse_datetime(a.get("scheduledstart"))
        if start is None:
            continue
        end = calc_end_date(start, a.get("auctionduration"))
        if end is None:
            continue

        if start <= now <= end:
            status = AuctionStatus.LIVE.value
        elif now < start:
            status = AuctionStatus.UPCOMING.value
        else:
            status = AuctionStatus.CLOSED.value

        entries.append({
            "auctionname": a.get("productname"),
            "auctiontype": a.get("auctiontype"),
            "startdate": start.isoformat(),
            "enddate": end.isoformat(),
            "bidcount": a.get("bidcount") or 0,
            "auctionstatus": status,
        })
    return entries


def _has_purchaser(auction: dict) -> bool:
    return bool(auction.get("purchaser") and str(auction["purchaser"]).strip())


def compute_buy_now_stats(auctions: list[dict], profiles: list[dict] | None = None) -> dict:
    """Sales and listing counts for fixed-price (sale_type 2) listings."""
    listings = [a for a in auctions if a.get("sale_type") == 2]
    approved = [a for a in listings if a.get("approved") is True]
    pending = [a for a in listings if a.get("approved") is False]
    purchases = [a for a in approved if _has_purchaser(a)]

    gmv = round(sum(to_number(a.get("buy_now_price")) or 0 for a in purchases), 2)
    lookup = build_profile_lookup(profiles or [])

    return {
        "total": len(listings),
        "approved": len(approved),
        "pending": len(pending),
        "sold": len(purchases),
        "active": len(approved) - len(purchases),
        "financials": {
            "totalGMV": gmv,
            "averageValue": round_half_up(gmv / len(purchases)) if purchases else 0,
            "commission": round_half_up(gmv * settings.COMMISSION_RATE),
        },
        "categoryPerformance": build_category_performance(listings, "categoryid"),
        "purchases": [
            {
                "id": a.get("id"),
                "productname": a.get("productname"),
                "categoryid": a.get("categoryid"),
                "buy_now_price": a.get("buy_now_price"),
                "currency": a.get("currency") or settings.DEFAULT_CURRENCY,
                "purchaser": a.get("purchaser"),
                "purchaser_name": full_name(lookup.get(str(a.get("purchaser"))), fallback="-"),
            }
            for a in purchases
        ],
    }


def is_reverse_listing(auction: dict) -> bool:
    return str(auction.get("auctiontype") or "").lower() == "reverse" or auction.get("sale_type") == 3


def is_forward_listing(auction: dict) -> bool:
    return str(auction.get("auctiontype") or "").lower() == "forward" or auction.get("sale_type") == 1


def enrich_bids(
    bids: list[dict],
    profiles: list[dict],
    auctions: list[dict],
    creators: list[dict],
    role: str | None = None,
) -> list[dict]:
    """Attach bidder, auction and auction-creator details to bid rows.

    Bids on reverse auctions sort lowest amount first, all others highest first.
    """
    profile_map = {str(p["id"]): p for p in profiles if p.get("id")}
    auction_map = {str(a["id"]): a for a in auctions if a.get("id")}
    creator_names = {c["email"]: full_name(c) for c in creators if c.get("email")}

    enriched = []
    for b in bids:
        profile = profile_map.get(str(b.get("user_id"))) or {}
        auction = auction_map.get(str(b.get("auction_id")))
        enriched.append({
            **b,
            "user_name": full_name(profile) or None,
            "location": profile.get("location") or None,
            "role": (profile.get("role") or "").lower() or None,
            "auction_title": auction.get("productname") or None if auction else None,
            "auction_type": (auction.get("auctiontype") or "forward").lower() if auction else None,
            "auction_subtype": (auction.get("auctionsubtype") or "").lower() or None if auction else None,
            "creator_name": creator_names.get(auction.get("createdby")) if auction else None,
        })

    if role:
        enriched = [b for b in enriched if str(b.get("role") or "").lower() == role.lower()]

    def sort_key(b):
        amount = to_number(b.get("amount")) or 0
        return amount if (b.get("auction_type") or "forward") == "reverse" else -amount

    enriched.sort(key=sort_key)
    return enriched
