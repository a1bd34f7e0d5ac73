from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional

from .base import BaseAgent
from .metrics import MetricsSource, SimulatedMetricsSource
from .models import (
    Alert,
    AutomatedAction,
    MetricAnalysis,
    MetricStatus,
    PerformanceAnalysis,
    PerformanceIssue,
    PerformanceMetrics,
    PerformanceResult,
    Recommendation,
    Severity,
    utcnow,
)

HISTORY_LIMIT = 100

SEVERITY_BY_STATUS: Dict[str, Severity] = {
    "excellent": "low",
    "good": "low",
    "acceptable": "medium",
    "poor": "high",
    "critical": "critical",
    "no_data": "medium",
}

SCORE_BY_STATUS = {
    "excellent": 100,
    "good": 80,
    "acceptable": 60,
    "poor": 30,
    "critical": 10,
    "no_data": 50,
}

SCORE_WEIGHTS = {
    "ctr": 0.2,
    "cpc": 0.15,
    "cpa": 0.25,
    "roas": 0.25,
    "quality_score": 0.1,
    "conversion_rate": 0.05,
}

SEVERITY_ORDER = {"critical": 3, "high": 2, "medium": 1, "low": 0}

SUGGESTIONS = {
    "CTR": {
        "poor": "Improve ad relevance, test new ad copy, refine keyword targeting",
        "critical": "Urgent: Review ad copy quality, pause low-performing keywords, check landing page relevance",
    },
    "CPC": {
        "poor": "Optimize bids, improve quality scores, add negative keywords",
        "critical": "Urgent: Reduce bids, pause expensive keywords, improve ad relevance",
    },
    "CPA": {
        "poor": "Optimize conversion tracking, improve landing pages, refine targeting",
        "critical": "Urgent: Pause high-cost keywords, review conversion funnel, adjust bids",
    },
    "ROAS": {
        "poor": "Focus on high-value keywords, improve conversion rates, optimize bids",
        "critical": "Urgent: Pause unprofitable campaigns, review pricing strategy, improve targeting",
    },
    "Quality Score": {
        "poor": "Improve ad relevance, optimize landing pages, refine keyword groups",
        "critical": "Urgent: Rewrite ads, improve landing page experience, restructure campaigns",
    },
}
DEFAULT_SUGGESTION = "Monitor performance and optimize as needed"

TRENDED_METRICS = ("ctr", "cpc", "cpa", "roas", "conversions")


@dataclass
class HistoryEntry:
    campaign_id: str
    timestamp: datetime
    metrics: PerformanceMetrics
    overall_score: int


def metric_status(current: float, target: float, lower_is_better: bool) -> MetricStatus:
    if not current:
        return "no_data"
    ratio = current / target
    if lower_is_better:
        if ratio <= 0.7:
            return "excellent"
        if ratio <= 0.9:
            return "good"
        if ratio <= 1.1:
            return "acceptable"
        if ratio <= 1.3:
            return "poor"
        return "critical"
    if ratio >= 1.5:
        return "excellent"
    if ratio >= 1.1:
        return "good"
    if ratio >= 0.9:
        return "acceptable"
    if ratio >= 0.7:
        return "poor"
    return "critical"


def grade(score: int) -> str:
    for threshold, letter in ((90, "A+"), (80, "A"), (70, "B"), (60, "C"), (50, "D")):
        if score >= threshold:
            return letter
    return "F"


def trend_direction(values: List[float]) -> str:
    recent, older = values[-3:], values[:-3]
    if not older:
        return "stable"
    recent_avg = sum(recent) / len(recent)
    older_avg = sum(older) / len(older)
    change = (recent_avg - older_avg) / older_avg
    if change > 0.1:
        return "improving"
    if change < -0.1:
        return "declining"
    return "stable"


class PerformanceMonitorAgent(BaseAgent):
    """Analyses campaign KPIs against thresholds and raises alerts."""

    name = "Performance Monitor Agent"

    def __init__(
        self, *args, metrics_source: Optional[MetricsSource] = None, **kwargs
    ) -> None:
        super().__init__(*args, **kwargs)
        self.metrics_source = metrics_source or SimulatedMetricsSource(self.rng)
        self.history: List[HistoryEntry] = []
        self.alerts: List[Alert] = []

    async def monitor(self, campaign_id: str) -> PerformanceResult:
        self._begin(f"Starting performance monitoring for campaign {campaign_id}")
        try:
            await self._simulate_latency()
            metrics = self.metrics_source.fetch(campaign_id)
            analysis = self.analyze(metrics)
            alerts = self.check_alerts(analysis, campaign_id)
            actions = self.automated_actions(analysis, campaign_id)
        except Exception as e:
            self._fail(e)
            raise

        self._record(campaign_id, metrics, analysis)
        self._succeed(
            f"Monitored campaign {campaign_id} - {len(alerts)} alerts, "
            f"{len(actions)} actions taken",
            status="monitoring",
        )
        return PerformanceResult(
            campaign_id=campaign_id,
            status=self.overall_status(analysis.overall_score),
            metrics=metrics,
            analysis=analysis,
            alerts=alerts,
            actions=actions,
            recommendations=self.recommendations(analysis),
        )

    # ------------------------------------------------------------------
    def analyze(self, metrics: PerformanceMetrics) -> PerformanceAnalysis:
        kpi = self.config.kpi
        per_metric = {
            "ctr": self._analyze_metric("CTR", metrics.ctr, kpi.min_ctr * 100, False),
            "cpc": self._analyze_metric("CPC", metrics.cpc, kpi.max_cpc, True),
            "cpa": self._analyze_metric("CPA", metrics.cpa, kpi.max_cpa, True),
            "roas": self._analyze_metric("ROAS", metrics.roas, kpi.min_roas, False),
            "quality_score": self._analyze_metric(
                "Quality Score", metrics.quality_score, kpi.quality_score_min, False
            ),
            "conversion_rate": self._analyze_metric(
                "Conversion Rate", metrics.conversion_rate, 2.0, False
            ),
            "search_impression_share": self._analyze_metric(
                "Search Impression Share", metrics.search_impression_share, 50, False
            ),
        }
        score = self._overall_score(per_metric)
        return PerformanceAnalysis(
            **per_metric,
            overall_score=score,
            performance_grade=grade(score),
            top_issues=self._top_issues(per_metric),
            trends=self._trends(),
        )

    @staticmethod
    def _analyze_metric(
        name: str, current: float, target: float, lower_is_better: bool
    ) -> MetricAnalysis:
        status = metric_status(current, target, lower_is_better)
        variance = round((current - target) / target * 100) if current and target else 0
        return MetricAnalysis(
            metric_name=name,
            current=current,
            target=target,
            variance=variance,
            status=status,
            direction="lower_better" if lower_is_better else "higher_better",
            severity=SEVERITY_BY_STATUS[status],
            suggestion=SUGGESTIONS.get(name, {}).get(status, DEFAULT_SUGGESTION),
        )

    @staticmethod
    def _overall_score(per_metric: Dict[str, MetricAnalysis]) -> int:
        total = weight_sum = 0.0
        for name, weight in SCORE_WEIGHTS.items():
            analysis = per_metric[name]
            if analysis.status == "no_data":
                continue
            total += SCORE_BY_STATUS[analysis.status] * weight
            weight_sum += weight
        return round(total / weight_sum) if weight_sum else 50

    @staticmethod
    def _top_issues(per_metric: Dict[str, MetricAnalysis]) -> List[PerformanceIssue]:
        issues = [
            PerformanceIssue(
                metric=a.metric_name,
                severity=a.severity,
                status=a.status,
                current=a.current,
                target=a.target,
                suggestion=a.suggestion,
            )
            for a in per_metric.values()
            if a.severity in ("critical", "high")
        ]
        return sorted(issues, key=lambda i: SEVERITY_ORDER[i.severity], reverse=True)

    def _trends(self) -> Dict[str, str]:
        recent = self.history[-5:]
        if len(recent) < 2:
            return {}
        trends = {}
        for name in TRENDED_METRICS:
            values = [
                getattr(entry.metrics, name)
                for entry in recent
                if getattr(entry.metrics, name) > 0
            ]
            if len(values) >= 2:
                trends[name] = trend_direction(values)
        return trends

    # ------------------------------------------------------------------
    def check_alerts(self, analysis: PerformanceAnalysis, campaign_id: str) -> List[Alert]:
        alerts = []
        for key, metric in analysis.metric_analyses().items():
            if metric.severity != "critical":
                continue
            alerts.append(
                Alert(
                    id=f"alert_{uuid.uuid4().hex[:8]}_{key}",
                    type="critical_performance",
                    metric=metric.metric_name,
                    message=(
                        f"Critical: {metric.metric_name} is {metric.status} "
                        f"({metric.current} vs target {metric.target})"
                    ),
                    severity="critical",
                    campaign_id=campaign_id,
                    suggestion=metric.suggestion,
                )
            )

        max_cpc = self.config.kpi.max_cpc
        if analysis.cpc.current > max_cpc * 0.9:
            alerts.append(
                Alert(
                    id=f"alert_{uuid.uuid4().hex[:8]}_budget",
                    type="budget_warning",
                    message=(
                        f"CPC approaching maximum threshold "
                        f"({analysis.cpc.current} vs {max_cpc})"
                    ),
                    severity="high",
                    campaign_id=campaign_id,
                )
            )

        if analysis.quality_score.current and analysis.quality_score.current < 5:
            alerts.append(
                Alert(
                    id=f"alert_{uuid.uuid4().hex[:8]}_quality",
                    type="quality_score",
                    message=f"Low quality score detected ({analysis.quality_score.current}/10)",
                    severity="high",
                    campaign_id=campaign_id,
                    suggestion="Improve ad relevance and landing page experience",
                )
            )

        self.alerts.extend(alerts)
        return alerts

    @staticmethod
    def automated_actions(
        analysis: PerformanceAnalysis, campaign_id: str
    ) -> List[AutomatedAction]:
        actions = []
        critical = [
            key
            for key, metric in analysis.metric_analyses().items()
            if metric.severity == "critical"
        ]
        if len(critical) >= 2:
            actions.append(
                AutomatedAction(
                    type="pause_campaign",
                    campaign_id=campaign_id,
                    reason=f"Multiple critical performance issues: {', '.join(critical)}",
                )
            )
        if analysis.cpa.severity == "critical":
            actions.append(
                AutomatedAction(
                    type="reduce_bids",
                    campaign_id=campaign_id,
                    reason=f"CPA too high ({analysis.cpa.current} vs target {analysis.cpa.target})",
                    adjustment=-0.20,
                )
            )
        if analysis.overall_score > 85 and analysis.cpa.status == "excellent":
            actions.append(
                AutomatedAction(
                    type="increase_bids",
                    campaign_id=campaign_id,
                    reason="Excellent performance with low CPA - opportunity to scale",
                    adjustment=0.15,
                )
            )
        return actions

    @staticmethod
    def recommendations(analysis: PerformanceAnalysis) -> List[Recommendation]:
        recs = []
        if analysis.top_issues:
            recs.append(
                Recommendation(
                    priority="high",
                    category="performance_issues",
                    title="Address Critical Performance Issues",
                    description="Focus on improving: "
                    + ", ".join(issue.metric for issue in analysis.top_issues),
                    actions=[issue.suggestion for issue in analysis.top_issues],
                )
            )
        if analysis.overall_score < 70:
            recs.append(
                Recommendation(
                    priority="medium",
                    category="optimization",
                    title="Campaign Optimization Needed",
                    description="Overall performance below target - comprehensive optimization required",
                    actions=[
                        "Review and optimize keyword targeting",
                        "Test new ad copy variations",
                        "Improve landing page experience",
                        "Adjust bid strategy",
                    ],
                )
            )
        if analysis.overall_score > 80 and analysis.roas.status == "excellent":
            recs.append(
                Recommendation(
                    priority="low",
                    category="scaling",
                    title="Scaling Opportunity",
                    description="Strong performance indicates potential for increased investment",
                    actions=[
                        "Consider increasing daily budget",
                        "Expand keyword targeting",
                        "Test additional ad groups",
                    ],
                )
            )
        return recs

    @staticmethod
    def overall_status(score: int) -> str:
        if score >= 80:
            return "excellent"
        if score >= 60:
            return "good"
        if score >= 40:
            return "needs_attention"
        return "critical"

    def _record(
        self, campaign_id: str, metrics: PerformanceMetrics, analysis: PerformanceAnalysis
    ) -> None:
        self.history.append(
            HistoryEntry(
                campaign_id=campaign_id,
                timestamp=utcnow(),
                metrics=metrics,
                overall_score=analysis.overall_score,
            )
        )
        del self.history[:-HISTORY_LIMIT]

    def recent_alerts(self, hours: int = 24) -> List[Alert]:
        cutoff = utcnow() - timedelta(hours=hours)
        return [alert for alert in self.alerts if alert.timestamp > cutoff]

    def status_details(self) -> Dict[str, Any]:
        return {
            "performance_history_entries": len(self.history),
            "active_alerts": len(self.recent_alerts()),
        }
