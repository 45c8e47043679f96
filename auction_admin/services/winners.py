from datetime import datetime

from auction_admin.services.aggregator import (
    calc_end_date,
    full_name,
    group_bids_by_auction,
    is_approved,
    parse_datetime,
    select_winning_bid,
    to_number,
)
from auction_admin.services.reports import is_forward_listing, is_reverse_listing


def _matches_type(auction: dict, filter_type: str) -> bool:
    label = auction.get("auctiontype") or auction.get("sale_type") or ""
    return filter_type in str(label).lower()


def resolve_winners(
    auctions: list[dict],
    bids: list[dict],
    profiles: list[dict],
    now: datetime,
    filter_type: str | None = None,
) -> dict:
    """Winning bids of closed auctions plus an awarded/not-awarded summary.

    An auction takes part once it is approved, has a start and a duration,
    and its end lies in the past. Forward auctions are won by the highest
    bid, reverse auctions by the lowest. Auctions without bids, or whose
    best bid is zero, count as not awarded.
    """
    filter_type = (filter_type or "").lower()
    if filter_type:
        auctions = [a for a in auctions if _matches_type(a, filter_type)]

    profiles_by_id = {str(p["id"]): p for p in profiles if p.get("id")}
    by_auction = group_bids_by_auction(bids)

    summary = {
        "total_closed": 0,
        "Awarded": 0,
        "Not awarded": 0,
        "total_awarded_value": 0,
        "average_awarded_value": 0,
    }
    winners = []

    for auction in auctions:
        start = parse_datetime(auction.get("scheduledstart"))
        duration = auction.get("auctionduration")
        if not is_approved(auction.get("approved")) or start is None or duration is None:
            continue
        end = calc_end_date(start, duration)
        if end is None or end >= now:
            continue

        summary["total_closed"] += 1

        auction_bids = by_auction.get(str(auction.get("id")), [])
        if not auction_bids:
            summary["Not awarded"] += 1
            continue

        winner_bid = None
        if is_forward_listing(auction):
            winner_bid = select_winning_bid(auction_bids)
        elif is_reverse_listing(auction):
            winner_bid = select_winning_bid(auction_bids, reverse=True)

        amount = to_number(winner_bid.get("amount")) if winner_bid else None
        if not amount:
            summary["Not awarded"] += 1
            continue

        profile = profiles_by_id.get(str(winner_bid.get("user_id")))
        winners.append({
            "auction_id": auction.get("id"),
            "auction_name": auction.get("productname"),
            "auction_type": "Reverse" if is_reverse_listing(auction) else "Forward",
            "winner_id": winner_bid.get("user_id"),
            "winner_name": full_name(profile, fallback="Unknown"),
            "winner_location": profile.get("location") if profile else None,
            "winning_bid": amount,
            "currency": auction.get("currency"),
            "closed_at": end.isoformat(),
        })

        summary["Awarded"] += 1
        summary["total_awarded_value"] += amount

    if summary["Awarded"]:
        summary["average_awarded_value"] = round(
            summary["total_awarded_value"] / summary["Awarded"], 2
        )

    winners.sort(key=lambda w: parse_datetime(w["closed_at"]), reverse=True)

    return {
        "filter": filter_type or "all",
        "total_closed": summary["total_closed"],
        "summary": summary,
        "winners": winners,
    }
