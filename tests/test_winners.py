from datetime import datetime, timedelta, timezone

from auction_admin.services.winners import resolve_winners

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)
DAY = {"days": 1}

PROFILES = [
    {"id": "u1", "fname": "Ana", "lname": "Silva", "location": "Porto"},
    {"id": "u2", "fname": "Ben", "lname": "Okafor", "location": "Lagos"},
]


def _closed(auction_id, auctiontype, days_ago, **extra):
    return {
        "id": auction_id,
        "productname": f"Lot {auction_id}",
        "auctiontype": auctiontype,
        "approved": True,
        "scheduledstart": NOW - timedelta(days=days_ago),
        "auctionduration": DAY,
        **extra,
    }


class TestResolveWinners:

    def setup_method(self):
        self.auctions = [
            _closed("f1", "forward", 5, currency="EUR"),
            _closed("r1", "reverse", 3),
            _closed("f2", "forward", 4),
            _closed("f3", "forward", 6),
            _closed("pending", "forward", 10, approved=False),
            {"id": "live", "auctiontype": "forward", "approved": True,
             "scheduledstart": NOW - timedelta(hours=1), "auctionduration": DAY},
            {"id": "nodur", "auctiontype": "forward", "approved": True,
             "scheduledstart": NOW - timedelta(days=9), "auctionduration": None},
        ]
        self.bids = [
            {"auction_id": "f1", "user_id": "u1", "amount": 100},
            {"auction_id": "f1", "user_id": "u2", "amount": 400},
            {"auction_id": "r1", "user_id": "u1", "amount": 700},
            {"auction_id": "r1", "user_id": "u2", "amount": 900},
            {"auction_id": "f3", "user_id": "u1", "amount": 0},
            {"auction_id": "pending", "user_id": "u1", "amount": 50},
            {"auction_id": "live", "user_id": "u1", "amount": 60},
        ]

    def test_winners_and_summary(self):
        result = resolve_winners(self.auctions, self.bids, PROFILES, NOW)

        assert result["filter"] == "all"
        assert result["total_closed"] == 4
        summary = result["summary"]
        assert summary["Awarded"] == 2
        assert summary["Not awarded"] == 2
        assert summary["total_awarded_value"] == 1100
        assert summary["average_awarded_value"] == 550

        reverse_win, forward_win = result["winners"]
        assert reverse_win["auction_id"] == "r1"
        assert reverse_win["winner_id"] == "u1"
        assert reverse_win["winning_bid"] == 700
        assert reverse_win["auction_type"] == "Reverse"
        assert forward_win["winner_name"] == "Ben Okafor"
        assert forward_win["winner_location"] == "Lagos"
        assert forward_win["currency"] == "EUR"

    def test_filter_by_type(self):
        result = resolve_winners(self.auctions, self.bids, PROFILES, NOW, filter_type="Reverse")
        assert result["filter"] == "reverse"
        assert result["total_closed"] == 1
        assert [w["auction_id"] for w in result["winners"]] == ["r1"]

    def test_unknown_winner_profile(self):
        bids = [{"auction_id": "f1", "user_id": "ghost", "amount": 10}]
        result = resolve_winners(self.auctions[:1], bids, PROFILES, NOW)
        assert result["winners"][0]["winner_name"] == "Unknown"
        assert result["winners"][0]["winner_location"] is None

    def test_out_of_range_duration_is_not_closed(self):
        auctions = [_closed("f1", "forward", 5, auctionduration={"days": "Infinity"})]
        result = resolve_winners(auctions, self.bids, PROFILES, NOW)
        assert result["total_closed"] == 0
        assert result["winners"] == []

    def test_no_auctions(self):
        result = resolve_winners([], [], [], NOW)
        assert result["total_closed"] == 0
        assert result["winners"] == []
        assert result["summary"]["average_awarded_value"] == 0
