import math
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum


class AuctionStatus(str, Enum):
    PENDING = "Pending"
    LIVE = "Live"
    UPCOMING = "Upcoming"
    CLOSED = "Closed"
    UNKNOWN = "Unknown"


# Key order of every status summary returned by the API
STATUS_ORDER = (
    AuctionStatus.LIVE.value,
    AuctionStatus.UPCOMING.value,
    AuctionStatus.CLOSED.value,
    AuctionStatus.PENDING.value,
    AuctionStatus.UNKNOWN.value,
)

FORWARD_SUBTYPE_FAMILIES = {
    "english": ("standard", "english"),
    "silent": ("silent",),
    "sealed": ("sealed",),
}

REVERSE_SUBTYPE_FAMILIES = {
    "standard": ("standard",),
    "ranked": ("ranked",),
    "sealed": ("sealed",),
}

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


# --- Value helpers ---

def parse_datetime(value) -> datetime | None:
    """Parse an ISO timestamp or datetime. Naive values are taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, str):
        try:
            dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def to_number(value) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def is_approved(value, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


def full_name(profile: dict | None, fallback: str = "") -> str:
    if not profile:
        return fallback
    return f"{profile.get('fname') or ''} {profile.get('lname') or ''}".strip()


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# --- Status classification ---

def _duration_part(duration: dict, key: str) -> float | None:
    number = to_number(duration.get(key))
    if number is None:
        return 0
    return number if math.isfinite(number) else None


def calc_end_date(start, duration) -> datetime | None:
    """Start plus {days, hours, minutes}. Missing fields count as zero.

    Returns None when the start is invalid or the duration is infinite or
    too large to represent.
    """
    start_dt = parse_datetime(start)
    if start_dt is None:
        return None
    if not isinstance(duration, dict):
        duration = {}
    parts = {key: _duration_part(duration, key) for key in ("days", "hours", "minutes")}
    if None in parts.values():
        return None
    try:
        return start_dt + timedelta(**parts)
    except OverflowError:
        return None


def classify_status(
    auction: dict,
    now: datetime | None = None,
    approved_default: bool = False,
) -> AuctionStatus:
    """Map an auction's approval and schedule to its lifecycle status."""
    now = parse_datetime(now) or _utc_now()

    if not is_approved(auction.get("approved"), approved_default):
        return AuctionStatus.PENDING

    start = parse_datetime(auction.get("scheduledstart"))
    if start is None:
        return AuctionStatus.UNKNOWN
    end = calc_end_date(start, auction.get("auctionduration"))
    if end is None:
        return AuctionStatus.UNKNOWN

    if start <= now <= end:
        return AuctionStatus.LIVE
    if start > now:
        return AuctionStatus.UPCOMING
    if end < now:
        return AuctionStatus.CLOSED
    return AuctionStatus.UNKNOWN


# --- Bids ---

@dataclass
class BidSummary:
    count: int = 0
    best_amount: float = 0
    last_bid_time: str | None = None
    bids: list[dict] = field(default_factory=list)


def group_bids_by_auction(bids: list[dict]) -> dict[str, list[dict]]:
    """Group flat bid rows by auction id, dropping rows without one."""
    grouped: dict[str, list[dict]] = defaultdict(list)
    for bid in bids:
        if not bid or not bid.get("auction_id"):
            continue
        grouped[str(bid["auction_id"])].append(bid)
    return dict(grouped)


def valid_bids(bids: list[dict]) -> list[dict]:
    return [b for b in bids if b and to_number(b.get("amount")) is not None]


def select_winning_bid(bids: list[dict], reverse: bool = False) -> dict | None:
    """Highest bid (lowest for reverse auctions). Ties go to the earliest row."""
    candidates = valid_bids(bids)
    if not candidates:
        return None
    pick = min if reverse else max
    return pick(candidates, key=lambda b: to_number(b["amount"]))


def summarize_bids(bids: list[dict], reverse: bool = False) -> BidSummary:
    """Count, best amount and most recent bid time for one auction."""
    candidates = valid_bids(bids)
    if not candidates:
        return BidSummary()

    amounts = [to_number(b["amount"]) for b in candidates]
    ordered = sorted(
        candidates,
        key=lambda b: parse_datetime(b.get("created_at")) or _EPOCH,
        reverse=True,
    )
    last = parse_datetime(ordered[0].get("created_at"))

    return BidSummary(
        count=len(candidates),
        best_amount=min(amounts) if reverse else max(amounts),
        last_bid_time=last.isoformat() if last else None,
        bids=ordered,
    )


# --- Rollups ---

def empty_status_counts() -> dict[str, int]:
    return {status: 0 for status in STATUS_ORDER}


def build_status_summary(auctions: list[dict]) -> dict:
    summary = {"total": len(auctions), **empty_status_counts()}
    for a in auctions:
        status = a.get("status") or AuctionStatus.UNKNOWN.value
        summary[status] = summary.get(status, 0) + 1
    return summary


def build_subtype_breakdown(auctions: list[dict]) -> dict:
    """Per-subtype totals and status counts, keyed by lower-cased subtype."""
    subtypes: dict[str, dict] = {}
    for a in auctions:
        subtype = str(a.get("auctionsubtype") or "unspecified").lower()
        entry = subtypes.setdefault(subtype, {"total": 0, "status": {}})
        entry["total"] += 1
        entry["status"][a["status"]] = entry["status"].get(a["status"], 0) + 1
    return subtypes


def compute_financials(
    auctions: list[dict],
    amount_key: str,
    commission_rate: float = 0.05,
    default_currency: str = "USD",
) -> dict:
    """GMV, average auction value and commission over a set of auctions."""
    total_gmv = 0.0
    by_currency: dict[str, float] = {}
    for a in auctions:
        amount = to_number(a.get(amount_key)) or 0
        total_gmv += amount
        currency = a.get("currency") or default_currency
        by_currency[currency] = round(by_currency.get(currency, 0) + amount, 2)

    total_gmv = round(total_gmv, 2)
    return {
        "totalGMV": total_gmv,
        "averageAuctionValue": round_half_up(total_gmv / len(auctions)) if auctions else 0,
        "commission": round_half_up(total_gmv * commission_rate),
        "gmvByCurrency": by_currency,
    }


def compute_outcomes(auctions: list[dict]) -> dict:
    closed = [a for a in auctions if a.get("status") == AuctionStatus.CLOSED.value]
    successful = sum(1 for a in closed if (a.get("total_bids") or 0) > 0)
    return {"successful": successful, "unsold": len(closed) - successful}


def build_over_time(auctions: list[dict], families: dict[str, tuple[str, ...]]) -> list[dict]:
    """Monthly auction counts by subtype family, oldest month first."""
    buckets: dict[str, dict] = {}
    for a in auctions:
        start = parse_datetime(a.get("scheduledstart"))
        if start is None:
            continue
        key = f"{start.strftime('%b')} {start.year}"
        if key not in buckets:
            buckets[key] = {
                **{family: 0 for family in families},
                "total": 0,
                "date": start.date().replace(day=1),
            }

        subtype = str(a.get("auctionsubtype") or "").lower()
        for family, members in families.items():
            if subtype in members:
                buckets[key][family] += 1
                break
        buckets[key]["total"] += 1

    rows = [{"month": month, **values} for month, values in buckets.items()]
    rows.sort(key=lambda r: r["date"])
    for row in rows:
        row["date"] = row["date"].isoformat()
    return rows


def build_category_performance(auctions: list[dict], key: str) -> list[dict]:
    counts: dict[str, int] = {}
    for a in auctions:
        name = a.get(key) or "Uncategorized"
        counts[name] = counts.get(name, 0) + 1
    return [{"name": name, "count": count} for name, count in counts.items()]


def compute_auction_type_stats(auctions: list[dict], now: datetime | None = None) -> dict:
    """Status counts for forward and reverse auctions, split by subtype family."""
    now = parse_datetime(now) or _utc_now()
    typed = [
        a for a in auctions
        if str(a.get("auctiontype") or "").lower() in ("forward", "reverse")
    ]

    summary = {**empty_status_counts(), "total": len(typed)}
    sides = {
        "forward": (FORWARD_SUBTYPE_FAMILIES, {"total": 0, "status": empty_status_counts()}),
        "reverse": (REVERSE_SUBTYPE_FAMILIES, {"total": 0, "status": empty_status_counts()}),
    }
    family_counts = {
        side: {family: {} for family in families}
        for side, (families, _) in sides.items()
    }

    for a in typed:
        status = classify_status(a, now).value
        side = str(a.get("auctiontype")).lower()
        subtype = str(a.get("auctionsubtype") or "").lower()
        families, stats = sides[side]

        summary[status] += 1
        stats["total"] += 1
        stats["status"][status] += 1
        for family, members in families.items():
            if subtype in members:
                counts = family_counts[side][family]
                counts[status] = counts.get(status, 0) + 1
                break

    result = {"summary": summary}
    for side, (_, stats) in sides.items():
        stats["subtypes"] = {
            family: {"total": sum(counts.values()), "status": counts}
            for family, counts in family_counts[side].items()
        }
        result[side] = stats
    return result
