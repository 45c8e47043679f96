from datetime import datetime, timedelta, timezone

from auction_admin.services.reports import (
    build_calendar_entries,
    build_forward_report,
    build_reverse_report,
    compute_buy_now_stats,
    enrich_bids,
)

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)
DAY = {"days": 1, "hours": 0, "minutes": 0}

PROFILES = [
    {"id": "u-seller", "fname": "Sam", "lname": "Seller", "email": "Sam@Example.com", "role": "seller"},
    {"id": "u-buyer", "fname": "Bea", "lname": "Buyer", "email": "bea@example.com", "role": "buyer",
     "location": "Lisbon"},
    {"id": "u-bidder", "fname": "Bo", "lname": "Bidder", "email": "bo@example.com", "role": "bidder"},
]


class TestForwardReport:

    def setup_method(self):
        self.auctions = [
            {
                "id": "a1", "productname": "Tractor", "auctiontype": "forward",
                "auctionsubtype": "english", "approved": True, "categoryid": "1",
                "createdby": "sam@example.com", "currency": "EUR",
                "scheduledstart": NOW - timedelta(days=3), "auctionduration": DAY,
            },
            {
                "id": "a2", "productname": "Harvester", "auctiontype": "forward",
                "auctionsubtype": "silent", "approved": False, "categoryid": "99",
                "scheduledstart": NOW, "auctionduration": DAY,
            },
        ]
        self.bids = [
            {"id": 1, "auction_id": "a1", "user_id": "u-buyer", "amount": 100, "created_at": "2024-06-12T13:00:00Z"},
            {"id": 2, "auction_id": "a1", "user_id": "u-bidder", "amount": 150, "created_at": "2024-06-12T14:00:00Z"},
            {"id": 3, "auction_id": None, "user_id": "u-bidder", "amount": 999},
        ]
        self.categories = [{"id": 1, "title": "Machinery"}]

    def test_enriched_auctions(self):
        report = build_forward_report(self.auctions, self.bids, PROFILES, self.categories, NOW)
        tractor, harvester = report["auctions"]

        assert tractor["status"] == "Closed"
        assert tractor["highest_bid"] == 150
        assert tractor["total_bids"] == 2
        assert tractor["seller_name"] == "Sam Seller"
        assert tractor["category_name"] == "Machinery"
        assert [b["id"] for b in tractor["bids"]] == [2, 1]

        assert harvester["status"] == "Pending"
        assert harvester["highest_bid"] == 0
        assert harvester["seller_name"] == "-"
        assert harvester["category_name"] == "Uncategorized"
        assert harvester["currency"] == "USD"

    def test_rollups(self):
        report = build_forward_report(self.auctions, self.bids, PROFILES, self.categories, NOW)

        assert report["summary"]["total"] == 2
        assert report["summary"]["Closed"] == 1
        assert report["summary"]["Pending"] == 1
        assert report["subtypes"]["english"] == {"total": 1, "status": {"Closed": 1}}
        assert report["financials"]["totalGMV"] == 150
        assert report["financials"]["commission"] == 8
        assert report["outcomes"] == {"successful": 1, "unsold": 0}
        assert {"name": "Machinery", "count": 1} in report["categoryPerformance"]

    def test_out_of_range_duration_does_not_break_report(self):
        self.auctions[0]["auctionduration"] = {"days": "Infinity"}
        self.auctions[1]["approved"] = True
        self.auctions[1]["auctionduration"] = {"days": 1e10}
        report = build_forward_report(self.auctions, self.bids, PROFILES, self.categories, NOW)

        assert [a["status"] for a in report["auctions"]] == ["Unknown", "Unknown"]
        assert report["summary"]["Unknown"] == 2

    def test_empty_report(self):
        report = build_forward_report([], [], [], [], NOW)
        assert report["auctions"] == []
        assert report["subtypes"] == {}
        assert report["summary"]["total"] == 0
        assert "financials" not in report


class TestReverseReport:

    def test_lowest_bid_and_default_approval(self):
        auctions = [{
            "id": "r1", "productname": "Steel tender", "auctiontype": "reverse",
            "auctionsubtype": "ranked", "approved": None, "createdby": "u-buyer",
            "scheduledstart": NOW - timedelta(hours=2), "auctionduration": DAY,
        }]
        bids = [
            {"id": 1, "auction_id": "r1", "amount": 900},
            {"id": 2, "auction_id": "r1", "amount": 850},
            {"id": 3, "auction_id": "r1", "amount": 875},
        ]
        report = build_reverse_report(auctions, bids, PROFILES, NOW)
        auction = report["auctions"][0]

        assert auction["approved"] is True
        assert auction["status"] == "Live"
        assert auction["lowest_bid"] == 850
        assert auction["buyer_name"] == "Bea Buyer"
        assert auction["auction_name"] == "Steel tender"
        assert report["financials"]["totalGMV"] == 850
        assert report["summary"]["Live"] == 1


class TestCalendar:

    def test_entries_skip_auctions_without_start(self):
        auctions = [
            {"productname": "Live one", "auctiontype": "forward", "scheduledstart": NOW - timedelta(hours=1),
             "auctionduration": DAY, "bidcount": 4},
            {"productname": "Later", "auctiontype": "reverse", "scheduledstart": NOW + timedelta(days=2),
             "auctionduration": DAY},
            {"productname": "Done", "auctiontype": "forward", "scheduledstart": NOW - timedelta(days=9),
             "auctionduration": DAY},
            {"productname": "No date", "auctiontype": "forward", "scheduledstart": None},
        ]
        entries = build_calendar_entries(auctions, NOW)

        assert [e["auctionstatus"] for e in entries] == ["Live", "Upcoming", "Closed"]
        assert entries[0]["bidcount"] == 4
        assert entries[1]["bidcount"] == 0
        assert entries[0]["enddate"] == (NOW + timedelta(days=1, hours=-1)).isoformat()

    def test_entries_skip_out_of_range_duration(self):
        auctions = [
            {"productname": "Forever", "scheduledstart": NOW, "auctionduration": {"days": 1e10}},
            {"productname": "Normal", "scheduledstart": NOW, "auctionduration": DAY},
        ]
        entries = build_calendar_entries(auctions, NOW)
        assert [e["auctionname"] for e in entries] == ["Normal"]


class TestBuyNowStats:

    def test_counts_and_financials(self):
        auctions = [
            {"id": "b1", "sale_type": 2, "approved": True, "purchaser": "u-buyer",
             "buy_now_price": 250, "categoryid": "tools"},
            {"id": "b2", "sale_type": 2, "approved": True, "purchaser": "  ",
             "buy_now_price": 90, "categoryid": "tools"},
            {"id": "b3", "sale_type": 2, "approved": False, "buy_now_price": 40},
            {"id": "x", "sale_type": 1, "approved": True, "purchaser": "u-buyer"},
        ]
        stats = compute_buy_now_stats(auctions, PROFILES)

        assert stats["total"] == 3
        assert stats["approved"] == 2
        assert stats["pending"] == 1
        assert stats["sold"] == 1
        assert stats["active"] == 1
        assert stats["financials"] == {"totalGMV": 250, "averageValue": 250, "commission": 13}
        assert stats["purchases"][0]["purchaser_name"] == "Bea Buyer"
        assert {"name": "tools", "count": 2} in stats["categoryPerformance"]

    def test_no_listings(self):
        stats = compute_buy_now_stats([])
        assert stats["total"] == 0
        assert stats["financials"] == {"totalGMV": 0, "averageValue": 0, "commission": 0}


class TestEnrichBids:

    def setup_method(self):
        self.auctions = [
            {"id": "f1", "productname": "Tractor", "auctiontype": "forward", "auctionsubtype": "English",
             "createdby": "sam@example.com"},
            {"id": "r1", "productname": "Tender", "auctiontype": "reverse", "auctionsubtype": "ranked"},
        ]
        self.creators = [PROFILES[0] | {"email": "sam@example.com"}]

    def test_details_and_sorting(self):
        bids = [
            {"id": 1, "auction_id": "f1", "user_id": "u-buyer", "amount": 100},
            {"id": 2, "auction_id": "f1", "user_id": "u-bidder", "amount": 300},
        ]
        enriched = enrich_bids(bids, PROFILES, self.auctions, self.creators)

        assert [b["id"] for b in enriched] == [2, 1]
        assert enriched[1]["user_name"] == "Bea Buyer"
        assert enriched[1]["location"] == "Lisbon"
        assert enriched[1]["role"] == "buyer"
        assert enriched[0]["auction_title"] == "Tractor"
        assert enriched[0]["auction_subtype"] == "english"
        assert enriched[0]["creator_name"] == "Sam Seller"

    def test_reverse_bids_sort_ascending(self):
        bids = [
            {"id": 1, "auction_id": "r1", "user_id": "u-buyer", "amount": 700},
            {"id": 2, "auction_id": "r1", "user_id": "u-bidder", "amount": 650},
        ]
        enriched = enrich_bids(bids, PROFILES, self.auctions, [])
        assert [b["id"] for b in enriched] == [2, 1]
        assert enriched[0]["auction_type"] == "reverse"

    def test_role_filter(self):
        bids = [
            {"id": 1, "auction_id": "f1", "user_id": "u-buyer", "amount": 100},
            {"id": 2, "auction_id": "f1", "user_id": "u-bidder", "amount": 300},
        ]
        enriched = enrich_bids(bids, PROFILES, self.auctions, [], role="Bidder")
        assert [b["id"] for b in enriched] == [2]
