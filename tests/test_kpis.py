from datetime import datetime, timedelta, timezone

from auction_admin.services.kpis import compute_bidder_kpis, compute_profile_stats, compute_seller_kpis

NOW = datetime(2024, 6, 15, 12, 0, tzinfo=timezone.utc)


class TestBidderKpis:

    def setup_method(self):
        self.buyers = [
            {"id": "u1", "fname": "Ana", "lname": "Silva", "verified": True,
             "created_at": NOW - timedelta(days=10)},
            {"id": "u2", "fname": "Ben", "lname": "Okafor", "verified": False,
             "created_at": NOW - timedelta(days=20)},
        ]
        self.bids = [
            {"auction_id": "a1", "user_id": "u1", "amount": 100, "created_at": "2024-06-10T09:00:00Z"},
            {"auction_id": "a2", "user_id": "u1", "amount": 50, "created_at": "2024-06-10T18:00:00Z"},
            {"auction_id": "a1", "user_id": "u2", "amount": 120, "created_at": "2024-06-11T09:00:00Z"},
            {"auction_id": "a3", "user_id": "u3", "amount": None, "created_at": None},
        ]

    def test_bidding_metrics(self):
        kpis = compute_bidder_kpis(self.buyers, self.bids, {"u2"}, NOW)
        bidding = kpis["bidding"]

        assert bidding["totalBids"] == 4
        assert bidding["totalBidValue"] == 270
        assert bidding["uniqueBidders"] == 3
        assert bidding["avgBidsPerBidder"] == 1.33
        assert bidding["repeatBidRate"] == 33
        assert bidding["bidSuccessRate"] == 33

    def test_verification_and_daily_counts(self):
        kpis = compute_bidder_kpis(self.buyers, self.bids, set(), NOW)

        assert kpis["total"] == 2
        assert kpis["pendingApproval"] == 1
        assert kpis["verifiedRate"] == 50
        assert kpis["avgTenureDays"] == 15
        assert kpis["dailyBids"] == [
            {"date": "2024-06-10", "label": "Jun 10", "bids": 2},
            {"date": "2024-06-11", "label": "Jun 11", "bids": 1},
        ]
        assert kpis["topBidders"][0] == {"id": "u1", "name": "Ana Silva", "total": 150}

    def test_no_bids(self):
        kpis = compute_bidder_kpis([], [], set(), NOW)
        assert kpis["bidding"]["uniqueBidders"] == 0
        assert kpis["bidding"]["avgBidsPerBidder"] == 0
        assert kpis["bidding"]["bidSuccessRate"] == 0
        assert kpis["avgTenureDays"] == 0


class TestSellerKpis:

    def test_performance(self):
        sellers = [{"id": "s1", "fname": "Sam", "lname": "Seller", "verified": True,
                    "created_at": "2024-06-01T00:00:00Z"}]
        day = {"days": 1}
        auctions = [
            {"id": "a1", "seller": "s1", "approved": True, "auctionduration": day,
             "scheduledstart": NOW - timedelta(days=5)},
            {"id": "a2", "seller": "s1", "approved": True, "auctionduration": day,
             "scheduledstart": NOW - timedelta(days=4)},
            {"id": "a3", "seller": "s1", "approved": True, "auctionduration": day,
             "scheduledstart": NOW - timedelta(hours=2)},
            {"id": "a4", "seller": "s2", "approved": False, "auctionduration": day,
             "scheduledstart": NOW - timedelta(days=5)},
        ]
        bids = [
            {"auction_id": "a1", "amount": 300},
            {"auction_id": "a1", "amount": 500},
            {"auction_id": "a3", "amount": 80},
        ]
        kpis = compute_seller_kpis(sellers, auctions, bids, NOW)
        perf = kpis["performance"]

        assert perf["totalAuctions"] == 3
        assert perf["activeAuctions"] == 1
        assert perf["closedAuctions"] == 2
        assert perf["successfulAuctions"] == 1
        assert perf["successRate"] == 33
        assert perf["totalRevenue"] == 500
        assert perf["avgAuctionValue"] == 500
        assert perf["commission"] == 25
        assert kpis["topSellers"][0] == {"id": "s1", "name": "Sam Seller", "total": 3}
        assert kpis["topSellers"][1]["name"] == "s2"


class TestProfileStats:

    def test_buyer_and_seller_sides(self):
        profile = {"id": "u1", "fname": "Ana", "created_at": "2023-02-10T00:00:00Z"}
        auctions = [
            {"id": "a1", "participants": ["u1", "u2"], "currentbid": 200, "categoryid": "cars",
             "question_count": 2},
            {"id": "a2", "participants": ["u1"], "currentbid": 100, "categoryid": "boats"},
            {"id": "a3", "sale_type": 2, "purchaser": "u1", "buy_now_price": 40, "categoryid": "bikes"},
            {"id": "a4", "seller": "u1", "approved": True, "purchaser": "u9", "buy_now_price": 90},
            {"id": "a5", "seller": "u1", "approved": False},
        ]
        winners = [{"winner_id": "u1", "winning_bid": 200}, {"winner_id": "u2", "winning_bid": 10}]

        stats = compute_profile_stats(profile, auctions, winners)
        buyer = stats["buyerStats"]
        seller = stats["sellerStats"]

        assert buyer["auctions"] == 5
        assert buyer["wins"] == 1
        assert buyer["buys"] == 1
        assert buyer["spend"] == 200
        assert buyer["highBid"] == 200
        assert buyer["winRate"] == 20
        assert buyer["categories"] == ["cars", "boats"]
        assert buyer["messages"] == 2

        assert seller["listings"] == 2
        assert seller["sold"] == 1
        assert seller["gmvSold"] == 90
        assert seller["pending"] == 1
        assert seller["active"] == 0

        assert stats["combined"]["netGMV"] == 110
        assert stats["combined"]["transactions"] == 2
        assert stats["combined"]["memberSince"] == "Feb 2023"
        assert stats["totalAuctions"] == 5
