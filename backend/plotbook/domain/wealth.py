# backend/plotbook/domain/wealth.py
"""
Owner wealth analysis: portfolio shape, market comparison and a risk summary.

Pure functions over plain values. The service layer loads the rows and
Holding.from_ownership turns each active stake into a plain value.
"""
from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Any, Optional

from .owners import owner_display_name

BASE_APPRECIATION = 0.03
ASSUMED_LEVERAGE = 0.65
BASELINE_NET_WORTH = 1_000_000
AVERAGE_FLOOR = 50_000
LIQUID_VALUE_CEILING = 500_000
HIGH_VALUE_AVERAGE = 2_000_000
MAX_LISTED_HOLDINGS = 50
MAX_RISK_LINES = 8

INDUSTRY_MULTIPLIERS: dict[str, float] = {
    "technology": 1.3,
    "finance": 1.2,
    "healthcare": 1.1,
    "real estate": 1.4,
    "manufacturing": 0.9,
    "education": 0.8,
    "government": 0.7,
    "entertainment": 1.1,
    "consulting": 1.15,
    "law": 1.25,
    "energy": 1.1,
    "retail": 0.85,
    "hospitality": 0.8,
    "agriculture": 0.75,
}

# cost-of-living weight per state code; unlisted states weigh 1.0
STATE_MULTIPLIERS: dict[str, float] = {
    "CA": 1.4,
    "NY": 1.3,
    "MA": 1.25,
    "WA": 1.2,
    "CT": 1.2,
    "HI": 1.35,
    "NJ": 1.15,
    "MD": 1.1,
    "VA": 1.05,
    "CO": 1.05,
    "FL": 1.0,
    "TX": 0.95,
    "IL": 0.95,
    "NC": 0.9,
    "GA": 0.9,
    "OH": 0.85,
    "PA": 0.85,
    "MI": 0.8,
    "IN": 0.75,
    "TN": 0.75,
    "KY": 0.7,
    "AL": 0.7,
    "MS": 0.65,
    "WV": 0.65,
}

GENERAL_RECOMMENDATIONS = (
    "Conduct annual portfolio reviews and rebalancing",
    "Stay informed about market trends and economic indicators",
    "Maintain adequate insurance coverage for major assets",
)


def _round(x: float) -> int:
    # half-up
    return int(math.floor(x + 0.5))


def _clamp(x: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, x))


@dataclass(frozen=True)
class Holding:
    property_id: int
    address: str
    current_value: float
    property_type: str
    city: str
    state_code: str
    ownership_percent: float

    @classmethod
    def from_ownership(cls, o: Any) -> "Holding":
        p = o.property
        return cls(
            property_id=int(p.id),
            address=p.address or "Unknown Address",
            current_value=max(0.0, float(p.current_value or 0)),
            property_type=p.property_type or "unknown",
            city=p.city.name if p.city is not None else "Unknown City",
            state_code=p.state.code if p.state is not None else "Unknown State",
            ownership_percent=_clamp(float(o.ownership_percent or 0), 0.0, 100.0),
        )

    def to_json(self) -> dict[str, Any]:
        return {
            "id": self.property_id,
            "address": self.address,
            "currentValue": self.current_value,
            "propertyType": self.property_type,
            "city": self.city,
            "state": self.state_code,
            "ownershipPercent": self.ownership_percent,
        }


@dataclass(frozen=True)
class PortfolioAnalysis:
    portfolio_value: int
    portfolio_growth: float
    diversification_score: int
    concentration_risk: int
    leverage_ratio: float
    liquidity_ratio: float
    performance_score: int

    def to_json(self) -> dict[str, Any]:
        d = asdict(self)
        return {
            "portfolioValue": d["portfolio_value"],
            "portfolioGrowth": d["portfolio_growth"],
            "diversificationScore": d["diversification_score"],
            "concentrationRisk": d["concentration_risk"],
            "leverageRatio": d["leverage_ratio"],
            "liquidityRatio": d["liquidity_ratio"],
            "performanceScore": d["performance_score"],
        }


def _hhi(counts: dict[str, int], n: int) -> float:
    return sum((c / n) ** 2 for c in counts.values())


def _distribution(values: list[str]) -> dict[str, int]:
    out: dict[str, int] = {}
    for v in values:
        out[v] = out.get(v, 0) + 1
    return out


def analyze_portfolio(holdings: list[Holding]) -> PortfolioAnalysis:
    """
    Shape of an owner's holdings.

    - diversification: spread across property types (four types score full)
    - concentration: Herfindahl index of property types, 0-100
    - liquidity: share of residential holdings under $500k
    - performance: weighted blend of the above plus city spread and growth
    """
    n = len(holdings)
    if n == 0:
        return PortfolioAnalysis(0, 0.0, 0, 100, 0.0, 0.0, 0)

    value = sum(h.current_value for h in holdings)

    types = _distribution([h.property_type for h in holdings])
    max_share = max(types.values()) / n
    diversification = _round((len(types) / 4) * 50 + (1 - max_share) * 50)
    concentration = _round(_hhi(types, n) * 100)
    geo_hhi = _hhi(_distribution([h.city for h in holdings]), n)

    growth = BASE_APPRECIATION
    liquid = sum(1 for h in holdings if h.property_type == "residential" and h.current_value < LIQUID_VALUE_CEILING)

    performance = _round(
        diversification * 0.3
        + (100 - concentration) * 0.2
        + (100 - geo_hhi * 100) * 0.2
        + min(100.0, growth * 1000) * 0.3
    )

    return PortfolioAnalysis(
        portfolio_value=_round(value),
        portfolio_growth=round(growth, 2),
        diversification_score=int(_clamp(diversification, 0, 100)),
        concentration_risk=int(_clamp(concentration, 0, 100)),
        leverage_ratio=ASSUMED_LEVERAGE,
        liquidity_ratio=round(liquid / n, 2),
        performance_score=int(_clamp(performance, 0, 100)),
    )


def industry_multiplier(industry: Optional[str]) -> float:
    if not industry:
        return 1.0
    return INDUSTRY_MULTIPLIERS.get(industry.strip().lower(), 1.0)


def location_multiplier(holdings: list[Holding]) -> float:
    """Value-weighted state multiplier; 1.0 without valued holdings."""
    total = sum(h.current_value for h in holdings)
    if total <= 0:
        return 1.0
    weighted = sum(h.current_value * STATE_MULTIPLIERS.get(h.state_code, 1.0) for h in holdings)
    return weighted / total


def net_worth_percentile(net_worth: float) -> int:
    """Log-scaled position against a $1M baseline, bounded to 5..95."""
    if net_worth <= 0:
        return 5
    base = _clamp(50 + math.log(net_worth / BASELINE_NET_WORTH) * 15, 5, 95)
    return _round(base)


def market_comparison(
    estimated_net_worth: Optional[float], industry: Optional[str], holdings: list[Holding]
) -> dict[str, int]:
    nw = max(0.0, float(estimated_net_worth or BASELINE_NET_WORTH))
    return {
        "percentile": net_worth_percentile(nw),
        "industryAverage": _round(max(AVERAGE_FLOOR, nw / industry_multiplier(industry))),
        "localAverage": _round(max(AVERAGE_FLOOR, nw / location_multiplier(holdings))),
    }


def _age(dob: Optional[date], today: date) -> Optional[int]:
    if dob is None:
        return None
    return today.year - dob.year


def risk_assessment(
    *,
    owner_type: str,
    date_of_birth: Optional[date],
    estimated_net_worth: Optional[float],
    holdings: list[Holding],
    portfolio: PortfolioAnalysis,
    today: date,
) -> dict[str, Any]:
    """
    Score 5..95 (lower is safer) with the factors that raised it and
    recommendations. Starts from 25 and moves per rule.
    """
    score = 25
    factors: list[str] = []
    recs: list[str] = []

    if portfolio.concentration_risk > 80:
        score += 20
        factors.append("Very high concentration in single asset type - significant diversification risk")
        recs.append("Urgently diversify across multiple property types and asset classes")
    elif portfolio.concentration_risk > 60:
        score += 12
        factors.append("High concentration in limited asset types")
        recs.append("Consider diversifying across different property types and markets")
    elif portfolio.concentration_risk < 30:
        score -= 5
        recs.append("Excellent diversification - maintain current portfolio balance")

    n = len(holdings)
    if n:
        states = len({h.state_code for h in holdings})
        if states == 1 and n > 3:
            score += 15
            factors.append("Complete geographic concentration in single state")
            recs.append("Diversify investments across multiple states and regions")
        elif states <= 2 and n > 5:
            score += 10
            factors.append("Limited geographic diversification across states")
            recs.append("Expand to additional geographic markets for better risk distribution")
        elif states >= min(5, n // 2):
            score -= 5
            recs.append("Good geographic diversification - continue expanding thoughtfully")

    if portfolio.liquidity_ratio < 0.2:
        score += 15
        factors.append("Very low portfolio liquidity - difficulty accessing cash quickly")
        recs.append("Increase allocation to more liquid assets and maintain emergency reserves")
    elif portfolio.liquidity_ratio < 0.4:
        score += 8
        factors.append("Below-average portfolio liquidity")
        recs.append("Consider increasing liquid asset allocation for financial flexibility")
    elif portfolio.liquidity_ratio > 0.7:
        score -= 3
        recs.append("Strong liquidity position - well-positioned for opportunities")

    age = _age(date_of_birth, today) if owner_type == "individual" else None
    if age is not None:
        if age > 70:
            score += 12
            factors.append("Advanced age requires more conservative investment approach")
            recs.append("Focus on income-generating assets and capital preservation strategies")
        elif age > 60:
            score += 6
            factors.append("Pre-retirement age suggests need for risk assessment")
            recs.append("Begin transitioning to more conservative investment strategy")
        elif age < 35:
            score -= 5
            recs.append("Young age allows for higher risk tolerance and growth focus")

    nw = float(estimated_net_worth or 0)
    if nw > 50_000_000:
        score += 8
        factors.append("Ultra-high net worth requires sophisticated wealth management")
        recs.append("Engage specialized wealth management and tax planning professionals")
    elif nw > 10_000_000:
        score += 5
        factors.append("High net worth complexity requires professional oversight")
        recs.append("Consider comprehensive wealth management and estate planning services")
    elif nw < 500_000:
        score += 3
        factors.append("Limited wealth base requires careful growth strategy")
        recs.append("Focus on building diversified wealth foundation")

    if portfolio.performance_score < 40:
        score += 15
        factors.append("Significantly below-average portfolio performance")
        recs.append("Comprehensive portfolio review and strategy overhaul recommended")
    elif portfolio.performance_score < 60:
        score += 8
        factors.append("Below-average portfolio performance")
        recs.append("Review investment strategy and consider professional portfolio management")
    elif portfolio.performance_score > 80:
        score -= 8
        recs.append("Excellent portfolio performance - maintain successful strategies")

    if n and sum(h.current_value for h in holdings) / n > HIGH_VALUE_AVERAGE:
        score += 5
        factors.append("High-value properties may be more sensitive to market cycles")
        recs.append("Monitor market conditions and consider hedging strategies")

    if portfolio.diversification_score > 75:
        score -= 8
        recs.append("Excellent diversification strategy - continue maintaining balance")

    if len(recs) < 3:
        recs.extend(GENERAL_RECOMMENDATIONS)
    if not factors:
        factors.append("Portfolio shows balanced risk characteristics")

    return {
        "score": int(_clamp(score, 5, 95)),
        "factors": factors[:MAX_RISK_LINES],
        "recommendations": recs[:MAX_RISK_LINES],
    }


def wealth_analysis(owner: Any, ownerships: list[Any], *, now: Optional[datetime] = None) -> dict[str, Any]:
    """
    Full analysis payload for one owner.

    `ownerships` are the owner's active stakes, already ordered largest first.
    The listing is capped; the analysis covers every stake.
    """
    now = now or datetime.utcnow()
    holdings = [Holding.from_ownership(o) for o in ownerships if o.property is not None]
    portfolio = analyze_portfolio(holdings)

    return {
        "owner": {
            "id": owner.id,
            "name": owner_display_name(owner),
            "type": owner.type,
            "estimatedNetWorth": None if owner.estimated_net_worth is None else _round(owner.estimated_net_worth),
            "occupation": (owner.occupation or "").strip(),
            "employer": (owner.employer or "").strip(),
            "industry": (owner.industry or "").strip(),
            "properties": [h.to_json() for h in holdings[:MAX_LISTED_HOLDINGS]],
        },
        "portfolioAnalysis": portfolio.to_json(),
        "marketComparison": market_comparison(owner.estimated_net_worth, owner.industry, holdings),
        "riskAssessment": risk_assessment(
            owner_type=owner.type,
            date_of_birth=owner.date_of_birth,
            estimated_net_worth=owner.estimated_net_worth,
            holdings=holdings,
            portfolio=portfolio,
            today=now.date(),
        ),
        "metadata": {
            "generatedAt": now.isoformat(),
            "propertiesProcessed": len(holdings),
        },
    }
