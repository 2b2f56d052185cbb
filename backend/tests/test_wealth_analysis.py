from __future__ import annotations

from datetime import date, datetime

from conftest import headers_for, mk_geo, mk_owner, mk_ownership, mk_property, mk_user
from plotbook.domain.wealth import (
    Holding,
    PortfolioAnalysis,
    analyze_portfolio,
    location_multiplier,
    net_worth_percentile,
    risk_assessment,
)


def _analysis(client, owner_id, uid):
    return client.get(f"/api/wealth-analysis/{owner_id}", headers=headers_for(uid))


def _holding(pid, value, *, kind="residential", city="Los Angeles", state="CA", percent=100.0):
    return Holding(
        property_id=pid,
        address=f"{pid} Main St",
        current_value=value,
        property_type=kind,
        city=city,
        state_code=state,
        ownership_percent=percent,
    )


def test_unknown_owner_is_404(client):
    uid = mk_user("u@x.com")
    r = _analysis(client, 9999, uid)
    assert r.status_code == 404
    assert r.json() == {"error": "Owner not found"}


def test_requires_session(client):
    oid = mk_owner(first_name="Ada", last_name="Lane")
    assert client.get(f"/api/wealth-analysis/{oid}").status_code == 401


def test_non_numeric_owner_id_is_400(client):
    uid = mk_user("u@x.com")
    assert _analysis(client, "abc", uid).status_code == 400


def test_lists_active_stakes_largest_first(client):
    uid = mk_user("u@x.com")
    geo = mk_geo()
    small = mk_property(geo, "1 Small St", property_type="residential", current_value=400000.0)
    large = mk_property(geo, "2 Large St", property_type="residential", current_value=600000.0)
    sold = mk_property(geo, "3 Sold St", property_type="residential", current_value=9000000.0)

    oid = mk_owner(first_name="Ada", last_name="Lane", estimated_net_worth=1_000_000.0, industry="Technology")
    mk_ownership(small, oid, percent=25.0)
    mk_ownership(large, oid, percent=75.0)
    mk_ownership(sold, oid, percent=100.0, active=False)

    r = _analysis(client, oid, uid)
    assert r.status_code == 200
    assert r.headers["cache-control"] == "private, max-age=300"
    body = r.json()

    assert body["owner"]["name"] == "Ada Lane"
    assert body["owner"]["estimatedNetWorth"] == 1_000_000
    assert [p["id"] for p in body["owner"]["properties"]] == [large, small]
    assert body["owner"]["properties"][0]["ownershipPercent"] == 75.0
    assert body["owner"]["properties"][0]["state"] == "CA"
    assert body["metadata"]["propertiesProcessed"] == 2

    pa = body["portfolioAnalysis"]
    assert pa["portfolioValue"] == 1_000_000
    assert pa["diversificationScore"] == 13
    assert pa["concentrationRisk"] == 100
    assert pa["liquidityRatio"] == 0.5
    assert pa["performanceScore"] == 13

    assert body["marketComparison"] == {"percentile": 50, "industryAverage": 769231, "localAverage": 714286}

    risk = body["riskAssessment"]
    assert risk["score"] == 55
    assert "Significantly below-average portfolio performance" in risk["factors"]


def test_owner_without_holdings(client):
    uid = mk_user("u@x.com")
    oid = mk_owner(entity_name="Lane Holdings LLC")

    body = _analysis(client, oid, uid).json()
    assert body["owner"]["name"] == "Lane Holdings LLC"
    assert body["owner"]["properties"] == []
    assert body["owner"]["estimatedNetWorth"] is None
    assert body["portfolioAnalysis"]["portfolioValue"] == 0
    assert body["portfolioAnalysis"]["concentrationRisk"] == 100
    assert body["marketComparison"]["percentile"] == 50


def test_empty_portfolio_shape():
    assert analyze_portfolio([]) == PortfolioAnalysis(0, 0.0, 0, 100, 0.0, 0.0, 0)


def test_diversified_portfolio_scores_higher():
    mixed = [
        _holding(1, 300000, kind="residential", city="Austin", state="TX"),
        _holding(2, 900000, kind="commercial", city="Dallas", state="TX"),
        _holding(3, 400000, kind="industrial", city="Denver", state="CO"),
        _holding(4, 200000, kind="land", city="Boise", state="ID"),
    ]
    pa = analyze_portfolio(mixed)
    assert pa.diversification_score == 88
    assert pa.concentration_risk == 25
    assert pa.liquidity_ratio == 0.25
    assert pa.portfolio_value == 1_800_000


def test_net_worth_percentile_is_bounded():
    assert net_worth_percentile(1_000_000) == 50
    assert net_worth_percentile(10_000_000) == 85
    assert net_worth_percentile(10**12) == 95
    assert net_worth_percentile(1_000) == 5
    assert net_worth_percentile(0) == 5


def test_location_multiplier_is_value_weighted():
    assert location_multiplier([]) == 1.0
    holdings = [_holding(1, 100000, state="CA"), _holding(2, 300000, state="WV")]
    assert abs(location_multiplier(holdings) - (100000 * 1.4 + 300000 * 0.65) / 400000) < 1e-9


def test_risk_reflects_owner_age():
    holdings = [_holding(1, 300000)]
    pa = analyze_portfolio(holdings)

    older = risk_assessment(
        owner_type="individual",
        date_of_birth=date(1950, 1, 1),
        estimated_net_worth=2_000_000,
        holdings=holdings,
        portfolio=pa,
        today=datetime(2026, 10, 17).date(),
    )
    entity = risk_assessment(
        owner_type="entity",
        date_of_birth=date(1950, 1, 1),
        estimated_net_worth=2_000_000,
        holdings=holdings,
        portfolio=pa,
        today=datetime(2026, 10, 17).date(),
    )
    assert "Advanced age requires more conservative investment approach" in older["factors"]
    assert older["score"] == entity["score"] + 12
    assert 5 <= entity["score"] <= 95
    assert len(older["recommendations"]) <= 8
