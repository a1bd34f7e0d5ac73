from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from .base import BaseAgent
from .models import (
    BidAdjustment,
    BidMetricStatus,
    BidPerformanceAnalysis,
    BidRecommendations,
    BidResult,
    BidSummary,
    KeywordEntry,
    PerformanceMetrics,
    ReasonCount,
    utcnow,
)

HISTORY_LIMIT = 100
DEFAULT_CAMPAIGN_BID = 1.50
DEFAULT_KEYWORD_BID = 1.20
MIN_VIABLE_BID = 0.20
MAX_TOTAL_ADJUSTMENT = 0.5

STATUS_SCORES = {"excellent": 100, "good": 75, "poor": 40, "critical": 10}


@dataclass
class BidRule:
    condition: Callable[[Dict[str, float]], bool]
    adjustment: float
    reason: str


@dataclass
class BidHistoryEntry:
    campaign_id: str
    adjustments: List[BidAdjustment]
    metrics: PerformanceMetrics
    timestamp: datetime = field(default_factory=utcnow)


def bid_status(current: float, target: float, lower_is_better: bool) -> str:
    if not current:
        return "no_data"
    ratio = current / target
    if lower_is_better:
        if ratio <= 0.8:
            return "excellent"
        if ratio <= 1.0:
            return "good"
        if ratio <= 1.2:
            return "poor"
        return "critical"
    if ratio >= 1.5:
        return "excellent"
    if ratio >= 1.0:
        return "good"
    if ratio >= 0.8:
        return "poor"
    return "critical"


class BidOptimizerAgent(BaseAgent):
    """Proposes campaign or keyword bid changes from performance data.

    CTR and conversion rate are handled as ratios here (0.035 rather than
    3.5%), matching the KPI thresholds in the configuration.
    """

    name = "Bid Optimizer Agent"

    def __init__(
        self, *args, clock: Callable[[], datetime] = datetime.now, **kwargs
    ) -> None:
        super().__init__(*args, **kwargs)
        self.clock = clock
        self.bid_history: List[BidHistoryEntry] = []
        self.rules = self._build_rules()

    async def adjust_bids(
        self,
        campaign_id: str,
        metrics: PerformanceMetrics,
        keywords: Optional[Sequence[KeywordEntry]] = None,
    ) -> BidResult:
        self._begin(f"Starting bid optimization for campaign {campaign_id}")
        try:
            await self._simulate_latency()
            analysis = self.analyze(metrics)
            proposed = self.calculate_adjustments(analysis, metrics, keywords or [])
            capped = [self.apply_business_rules(adj) for adj in proposed]
            validated = [adj for adj in capped if self.is_acceptable(adj)]
        except Exception as e:
            self._fail(e)
            raise

        self._record(campaign_id, validated, metrics)
        average = self.average_change(validated)
        self._succeed(
            f"Optimized {len(validated)} bids based on performance data "
            f"(average change {average}%)"
        )
        return BidResult(
            bid_adjustments=validated,
            performance_analysis=analysis,
            summary=BidSummary(
                total_adjustments=len(validated),
                average_change=average,
                reasoning=self.reasoning_summary(validated),
            ),
        )

    def recommend_bids(
        self,
        metrics: PerformanceMetrics,
        keywords: Optional[Sequence[KeywordEntry]] = None,
    ) -> BidRecommendations:
        """Propose bid changes without applying or recording them.

        Business rules and the acceptance filter are not applied, and the
        agent status and bid history are left untouched.
        """
        analysis = self.analyze(metrics)
        proposed = self.calculate_adjustments(analysis, metrics, keywords or [])
        return BidRecommendations(
            recommendations=proposed,
            performance_analysis=analysis,
            summary=f"{len(proposed)} bid optimization opportunities identified",
        )

    def _build_rules(self) -> List[BidRule]:
        kpi = self.config.kpi
        return [
            BidRule(
                lambda m: m["cpa"] < kpi.max_cpa * 0.7,
                0.15,
                "CPA well below target - increasing bid to capture more volume",
            ),
            BidRule(
                lambda m: m["cpa"] > kpi.max_cpa,
                -0.20,
                "CPA above target - decreasing bid to improve efficiency",
            ),
            BidRule(
                lambda m: m["ctr"] > kpi.min_ctr * 2,
                0.10,
                "High CTR indicates strong relevance - increasing bid",
            ),
            BidRule(
                lambda m: m["ctr"] < kpi.min_ctr,
                -0.15,
                "Low CTR indicates poor relevance - decreasing bid",
            ),
            BidRule(
                lambda m: m["roas"] > kpi.min_roas * 1.5,
                0.12,
                "Excellent ROAS - increasing bid to maximize profitable traffic",
            ),
            BidRule(
                lambda m: m["roas"] < kpi.min_roas,
                -0.18,
                "Poor ROAS - decreasing bid to improve profitability",
            ),
            BidRule(
                lambda m: m["quality_score"] >= 8,
                0.08,
                "High quality score - can afford higher bids",
            ),
            BidRule(
                lambda m: m["quality_score"] <= 4,
                -0.12,
                "Low quality score - reducing bid until improved",
            ),
            BidRule(
                lambda m: m["conversion_rate"] > 0.05,
                0.10,
                "High conversion rate - increasing bid for more traffic",
            ),
            BidRule(
                lambda m: m["conversion_rate"] < 0.01,
                -0.15,
                "Low conversion rate - decreasing bid",
            ),
        ]

    def analyze(self, metrics: PerformanceMetrics) -> BidPerformanceAnalysis:
        kpi = self.config.kpi
        entries = {
            "cpa": (metrics.cpa, kpi.max_cpa, True),
            "ctr": (metrics.ctr / 100, kpi.min_ctr, False),
            "roas": (metrics.roas, kpi.min_roas, False),
            "cpc": (metrics.cpc, kpi.max_cpc, True),
        }
        statuses = {}
        for key, (current, target, lower_is_better) in entries.items():
            variance = (current - target) / target * 100 if current and target else 0.0
            statuses[key] = BidMetricStatus(
                current=current,
                target=target,
                status=bid_status(current, target, lower_is_better),
                variance=variance,
            )
        score = round(
            sum(STATUS_SCORES.get(s.status, 50) for s in statuses.values())
            / len(statuses)
        )
        return BidPerformanceAnalysis(**statuses, overall_score=score)

    def calculate_adjustments(
        self,
        analysis: BidPerformanceAnalysis,
        metrics: PerformanceMetrics,
        keywords: Sequence[KeywordEntry],
    ) -> List[BidAdjustment]:
        if not keywords:
            adjustment = self.campaign_adjustment(analysis, metrics)
            return [adjustment] if adjustment else []
        adjustments = []
        for keyword in keywords:
            adjustment = self.keyword_adjustment(keyword, analysis)
            if adjustment:
                adjustments.append(adjustment)
        return adjustments

    def campaign_adjustment(
        self, analysis: BidPerformanceAnalysis, metrics: PerformanceMetrics
    ) -> Optional[BidAdjustment]:
        values = {
            "cpa": analysis.cpa.current,
            "ctr": analysis.ctr.current,
            "roas": analysis.roas.current,
            "cpc": analysis.cpc.current,
            "quality_score": metrics.quality_score or 7,
            "conversion_rate": metrics.conversion_rate / 100 or 0.025,
        }
        total = 0.0
        reasons = []
        for rule in self.rules:
            if rule.condition(values):
                total += rule.adjustment
                reasons.append(rule.reason)

        total = max(-MAX_TOTAL_ADJUSTMENT, min(MAX_TOTAL_ADJUSTMENT, total))
        if abs(total) < 0.05:
            return None
        return self._adjustment("campaign", "campaign_level", DEFAULT_CAMPAIGN_BID, total, reasons)

    def keyword_adjustment(
        self, keyword: KeywordEntry, analysis: BidPerformanceAnalysis
    ) -> Optional[BidAdjustment]:
        # Campaign-level figures with some per-keyword jitter.
        ctr = (analysis.ctr.current or 0.02) * (0.8 + self.rng.random() * 0.4)
        conversions = self.rng.randrange(5)
        clicks = self.rng.randrange(10, 110)

        current_bid = keyword.suggested_bid or keyword.estimated_cpc or DEFAULT_KEYWORD_BID
        adjustment = 0.0
        reasons = []
        if conversions > 0:
            conversion_rate = conversions / clicks
            if conversion_rate > 0.05:
                adjustment += 0.15
                reasons.append("High conversion rate")
            elif conversion_rate < 0.01:
                adjustment -= 0.10
                reasons.append("Low conversion rate")
        if ctr > 0.03:
            adjustment += 0.10
            reasons.append("Above average CTR")
        elif ctr < 0.015:
            adjustment -= 0.08
            reasons.append("Below average CTR")
        if keyword.competition == "HIGH":
            adjustment += 0.05
            reasons.append("High competition keyword")
        elif keyword.competition == "LOW":
            adjustment -= 0.03
            reasons.append("Low competition keyword")

        if abs(adjustment) < 0.05:
            return None
        return self._adjustment("keyword", keyword.keyword, current_bid, adjustment, reasons)

    @staticmethod
    def _adjustment(
        kind: str, target: str, current_bid: float, adjustment: float, reasons: List[str]
    ) -> BidAdjustment:
        new_bid = max(0.10, current_bid * (1 + adjustment))
        return BidAdjustment(
            type=kind,
            target=target,
            current_bid=current_bid,
            new_bid=round(new_bid, 2),
            adjustment=adjustment,
            adjustment_percent=round(adjustment * 100),
            reasons=reasons,
        )

    def apply_business_rules(self, adjustment: BidAdjustment) -> BidAdjustment:
        max_cpc = self.config.kpi.max_cpc
        new_bid = adjustment.new_bid
        reasons = list(adjustment.reasons)
        if new_bid > max_cpc:
            new_bid = max_cpc
            reasons.append(f"Capped at max CPC (£{max_cpc})")
        if new_bid < MIN_VIABLE_BID:
            new_bid = MIN_VIABLE_BID
            reasons.append("Set to minimum viable bid")

        now = self.clock()
        if 9 <= now.hour <= 17:
            new_bid *= 1.1
            reasons.append("Business hours boost")
        if now.isoweekday() <= 5:
            new_bid *= 1.05
            reasons.append("Weekday boost")

        return adjustment.model_copy(
            update={"new_bid": round(new_bid, 2), "reasons": reasons}
        )

    @staticmethod
    def is_acceptable(adjustment: BidAdjustment) -> bool:
        if abs(adjustment.adjustment_percent) < 5:
            return False
        if not 0.10 <= adjustment.new_bid <= 10.00:
            return False
        return abs(adjustment.adjustment) <= 1.0

    def _record(
        self, campaign_id: str, adjustments: List[BidAdjustment], metrics: PerformanceMetrics
    ) -> None:
        self.bid_history.append(
            BidHistoryEntry(campaign_id=campaign_id, adjustments=adjustments, metrics=metrics)
        )
        del self.bid_history[:-HISTORY_LIMIT]

    @staticmethod
    def average_change(adjustments: Sequence[BidAdjustment]) -> int:
        if not adjustments:
            return 0
        total = sum(abs(adj.adjustment_percent) for adj in adjustments)
        return round(total / len(adjustments))

    @staticmethod
    def reasoning_summary(adjustments: Sequence[BidAdjustment]) -> List[ReasonCount]:
        counts = Counter(reason for adj in adjustments for reason in adj.reasons)
        return [
            ReasonCount(reason=reason, count=count)
            for reason, count in counts.most_common(5)
        ]

    def status_details(self) -> Dict[str, Any]:
        last = self.bid_history[-1].timestamp.isoformat() if self.bid_history else None
        return {
            "bid_history_entries": len(self.bid_history),
            "last_optimization": last,
        }
