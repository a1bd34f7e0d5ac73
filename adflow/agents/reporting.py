from __future__ import annotations

import csv
import io
import uuid
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from .base import BaseAgent
from .models import (
    AgentDetail,
    AgentStatus,
    AgentStatusSummary,
    BudgetUtilization,
    CampaignHealth,
    DashboardSnapshot,
    ExecutiveSummary,
    Highlight,
    Insight,
    InsightsReport,
    NextAction,
    PerformanceAnalysis,
    PerformanceMetrics,
    PerformanceResult,
    ReportPeriod,
    ReportRecommendation,
    ReportResult,
    RecommendationsReport,
    utcnow,
)

REPORT_LIMIT = 50
CORE_KPIS = ("ctr", "cpc", "cpa", "roas")

INDUSTRY_BENCHMARKS = {"ctr": 2.1, "cpc": 1.85, "cpa": 55.0, "roas": 2.8}
EXPECTED_IMPROVEMENT = {
    "CTR": "+0.5-1.0%",
    "CPC": "-10-20%",
    "CPA": "-15-25%",
    "ROAS": "+0.3-0.8x",
}
IMPACT_SCORES = {"high": 3, "medium": 2, "low": 1}


def campaign_health(overall_score: Optional[int]) -> CampaignHealth:
    if not overall_score:
        return CampaignHealth(status="unknown", color="gray", message="Insufficient data")
    if overall_score >= 85:
        return CampaignHealth(
            status="excellent", color="green", message="Campaign performing excellently"
        )
    if overall_score >= 70:
        return CampaignHealth(status="good", color="blue", message="Campaign performing well")
    if overall_score >= 50:
        return CampaignHealth(
            status="needs_attention", color="orange", message="Campaign needs optimization"
        )
    return CampaignHealth(
        status="critical", color="red", message="Campaign requires immediate attention"
    )


def budget_status(daily_utilization: float, monthly_pace: float) -> str:
    if daily_utilization > 120 or monthly_pace > 120:
        return "overspend"
    if daily_utilization > 90 or monthly_pace > 90:
        return "on_track_high"
    if daily_utilization > 70 or monthly_pace > 70:
        return "on_track"
    return "underspend"


def compare_to_benchmark(current: Optional[float], benchmark: float) -> str:
    if not current:
        return "no_data"
    ratio = current / benchmark
    if ratio > 1.1:
        return "above_benchmark"
    if ratio < 0.9:
        return "below_benchmark"
    return "at_benchmark"


class ReportingAgent(BaseAgent):
    """Compiles reports from campaign, performance and agent data.

    The latest report also refreshes a compact dashboard snapshot, which
    holds placeholder values until the first report is generated.
    """

    name = "Reporting Agent"

    def __init__(
        self, *args, clock: Callable[[], datetime] = utcnow, **kwargs
    ) -> None:
        super().__init__(*args, **kwargs)
        self.clock = clock
        self.reports: List[ReportResult] = []
        self.dashboard = DashboardSnapshot()

    async def generate_report(
        self,
        campaign: Mapping[str, Any],
        performance: Optional[PerformanceResult],
        agent_statuses: Mapping[str, AgentStatus],
    ) -> ReportResult:
        campaign_id = campaign.get("id") or "unknown"
        self._begin(f"Generating comprehensive report for campaign {campaign_id}")
        try:
            await self._simulate_latency()
            metrics = performance.metrics if performance else PerformanceMetrics()
            analysis = performance.analysis if performance else None
            budget = self.budget_utilization(metrics.cost)
            report = ReportResult(
                id=f"report_{uuid.uuid4().hex[:12]}",
                campaign_id=campaign_id,
                report_period=self.report_period(),
                executive_summary=self.executive_summary(
                    metrics, analysis, agent_statuses, budget
                ),
                performance_overview=self.performance_overview(campaign, metrics, analysis),
                kpi_analysis=self.kpi_analysis(analysis),
                agent_activity=self.agent_activity(agent_statuses),
                insights=self.insights(metrics, analysis),
                recommendations=self.recommendations(analysis, budget),
                raw_data={
                    "campaign": dict(campaign),
                    "performance": performance.model_dump(mode="json") if performance else None,
                    "agent_statuses": {
                        key: status.model_dump(mode="json")
                        for key, status in agent_statuses.items()
                    },
                },
            )
        except Exception as e:
            self._fail(e)
            raise

        self._update_dashboard(report, analysis)
        self.reports.append(report)
        del self.reports[:-REPORT_LIMIT]
        self._succeed(f"Generated comprehensive report for campaign {campaign_id}")
        return report

    # ------------------------------------------------------------------
    # Executive summary

    def executive_summary(
        self,
        metrics: PerformanceMetrics,
        analysis: Optional[PerformanceAnalysis],
        agent_statuses: Mapping[str, AgentStatus],
        budget: BudgetUtilization,
    ) -> ExecutiveSummary:
        return ExecutiveSummary(
            campaign_health=campaign_health(analysis.overall_score if analysis else None),
            key_metrics=self.key_metrics(metrics),
            performance_highlights=self.highlights(analysis),
            critical_issues=list(analysis.top_issues) if analysis else [],
            agent_status=self.agent_status_summary(agent_statuses),
            budget_utilization=budget,
            next_actions=self.next_actions(analysis, agent_statuses),
        )

    @staticmethod
    def key_metrics(metrics: PerformanceMetrics) -> Dict[str, Any]:
        return {
            "total_impressions": round(metrics.impressions),
            "total_clicks": metrics.clicks,
            "total_cost": f"£{metrics.cost:.2f}",
            "total_conversions": metrics.conversions,
            "current_ctr": f"{metrics.ctr:.2f}%",
            "current_cpc": f"£{metrics.cpc:.2f}",
            "current_cpa": f"£{metrics.cpa:.2f}",
            "current_roas": f"{metrics.roas:.2f}x",
        }

    @staticmethod
    def highlights(analysis: Optional[PerformanceAnalysis]) -> List[Highlight]:
        if analysis is None:
            return []
        highlights = []
        for metric in analysis.metric_analyses().values():
            if metric.status == "excellent":
                highlights.append(
                    Highlight(
                        type="positive",
                        metric=metric.metric_name,
                        message=f"{metric.metric_name} performing excellently at {metric.current}",
                    )
                )
            elif metric.status == "critical":
                highlights.append(
                    Highlight(
                        type="negative",
                        metric=metric.metric_name,
                        message=(
                            f"{metric.metric_name} needs immediate attention: "
                            f"{metric.current} vs target {metric.target}"
                        ),
                    )
                )
        return highlights[:5]

    @staticmethod
    def agent_status_summary(agent_statuses: Mapping[str, AgentStatus]) -> AgentStatusSummary:
        summary = AgentStatusSummary(total_agents=len(agent_statuses))
        for key, status in agent_statuses.items():
            summary.agent_details.append(
                AgentDetail(
                    name=key,
                    status=status.status,
                    last_action=status.last_action,
                    timestamp=status.timestamp,
                )
            )
            if status.status in ("working", "monitoring"):
                summary.active_agents += 1
            elif status.status == "completed":
                summary.completed_agents += 1
            elif status.status == "error":
                summary.error_agents += 1
        return summary

    def budget_utilization(self, spend: float) -> BudgetUtilization:
        daily_budget = self.config.campaign.budget_daily
        monthly_budget = self.config.campaign.budget_monthly
        daily_utilization = spend / daily_budget * 100 if daily_budget > 0 else 0.0
        estimated_monthly = spend / self.clock().day * 30
        monthly_pace = estimated_monthly / monthly_budget * 100 if monthly_budget > 0 else 0.0
        return BudgetUtilization(
            daily_spend=f"£{spend:.2f}",
            daily_budget=f"£{daily_budget:g}",
            daily_utilization=f"{daily_utilization:.1f}%",
            estimated_monthly_spend=f"£{estimated_monthly:.2f}",
            monthly_budget=f"£{monthly_budget:g}",
            monthly_pace=f"{monthly_pace:.1f}%",
            status=budget_status(daily_utilization, monthly_pace),
        )

    @staticmethod
    def next_actions(
        analysis: Optional[PerformanceAnalysis], agent_statuses: Mapping[str, AgentStatus]
    ) -> List[NextAction]:
        actions = []
        if analysis and analysis.top_issues:
            actions.append(
                NextAction(
                    priority="high",
                    action="Address Critical Performance Issues",
                    description="Focus on: "
                    + ", ".join(issue.metric for issue in analysis.top_issues),
                    assigned_agent="Performance Monitor Agent",
                )
            )
        for status in agent_statuses.values():
            if status.status == "error":
                actions.append(
                    NextAction(
                        priority="high",
                        action=f"Resolve {status.agent} Error",
                        description=status.last_action or "Agent encountered an error",
                        assigned_agent=status.agent,
                    )
                )
        if analysis and analysis.overall_score < 60:
            actions.append(
                NextAction(
                    priority="medium",
                    action="Campaign Optimization Required",
                    description="Overall performance below acceptable threshold",
                    assigned_agent="All Agents",
                )
            )
        return actions[:5]

    # ------------------------------------------------------------------
    # Report sections

    def performance_overview(
        self,
        campaign: Mapping[str, Any],
        metrics: PerformanceMetrics,
        analysis: Optional[PerformanceAnalysis],
    ) -> Dict[str, Any]:
        kpi = self.config.kpi

        def status_of(name: str) -> str:
            return getattr(analysis, name).status if analysis else "unknown"

        return {
            "campaign_overview": {
                "campaign_id": campaign.get("id"),
                "campaign_name": campaign.get("name"),
                "campaign_type": campaign.get("campaign_type"),
                "status": campaign.get("status"),
                "budget": campaign.get("budget"),
                "created": campaign.get("created"),
            },
            "current_metrics": {
                "impressions": {"value": round(metrics.impressions), "status": "neutral"},
                "clicks": {"value": metrics.clicks, "status": "neutral"},
                "ctr": {
                    "value": f"{metrics.ctr:.2f}%",
                    "status": status_of("ctr"),
                    "target": f"{kpi.min_ctr * 100:.2f}%",
                },
                "cpc": {
                    "value": f"£{metrics.cpc:.2f}",
                    "status": status_of("cpc"),
                    "target": f"£{kpi.max_cpc:g}",
                },
                "cpa": {
                    "value": f"£{metrics.cpa:.2f}",
                    "status": status_of("cpa"),
                    "target": f"£{kpi.max_cpa:g}",
                },
                "roas": {
                    "value": f"{metrics.roas:.2f}x",
                    "status": status_of("roas"),
                    "target": f"{kpi.min_roas:g}x",
                },
                "conversions": {"value": metrics.conversions, "status": "neutral"},
                "cost": {"value": f"£{metrics.cost:.2f}", "status": "neutral"},
            },
            "overall_score": analysis.overall_score if analysis else None,
            "comparison": {
                "industry": "Security Services",
                "benchmarks": {
                    "ctr": {"industry": 2.1, "campaign": metrics.ctr},
                    "cpc": {"industry": 1.85, "campaign": metrics.cpc},
                    "cpa": {"industry": 55, "campaign": metrics.cpa},
                    "conversion_rate": {"industry": 2.3, "campaign": metrics.conversion_rate},
                },
            },
        }

    def kpi_analysis(self, analysis: Optional[PerformanceAnalysis]) -> Dict[str, Any]:
        kpi = self.config.kpi
        rows = [
            ("Click-Through Rate (CTR)", "ctr", kpi.min_ctr * 100, "%", "high"),
            ("Cost Per Click (CPC)", "cpc", kpi.max_cpc, "£", "medium"),
            ("Cost Per Acquisition (CPA)", "cpa", kpi.max_cpa, "£", "critical"),
            ("Return on Ad Spend (ROAS)", "roas", kpi.min_roas, "x", "critical"),
        ]
        details = []
        for title, key, target, unit, importance in rows:
            metric = getattr(analysis, key) if analysis else None
            details.append(
                {
                    "name": title,
                    "current": metric.current if metric else 0,
                    "target": target,
                    "unit": unit,
                    "status": metric.status if metric else "unknown",
                    "variance": metric.variance if metric else 0,
                    "trend": analysis.trends.get(key, "stable") if analysis else "stable",
                    "importance": importance,
                }
            )
        statuses = [getattr(analysis, key).status for key in CORE_KPIS] if analysis else []
        return {
            "kpi_summary": {
                "total_kpis": len(CORE_KPIS),
                "meeting_targets": sum(
                    s in ("excellent", "good", "acceptable") for s in statuses
                ),
                "critical_kpis": statuses.count("critical"),
                "overall_grade": analysis.performance_grade if analysis else "N/A",
            },
            "kpi_details": details,
            "performance_vs_benchmark": {
                key: compare_to_benchmark(
                    getattr(analysis, key).current if analysis else None, benchmark
                )
                for key, benchmark in INDUSTRY_BENCHMARKS.items()
            },
        }

    def agent_activity(self, agent_statuses: Mapping[str, AgentStatus]) -> Dict[str, Any]:
        total = len(agent_statuses)
        statuses = [s.status for s in agent_statuses.values()]
        working = sum(s in ("working", "monitoring") for s in statuses)
        completed = statuses.count("completed")
        errors = statuses.count("error")
        return {
            "agent_summary": self.agent_status_summary(agent_statuses).model_dump(mode="json"),
            "workflow_status": {
                "status": "active" if working else "idle",
                "progress": round(completed / total * 100) if total else 0,
                "active_agents": working,
                "total_agents": total,
            },
            "automation_metrics": {
                "success_rate": round((total - errors) / total * 100) if total else 100,
                "time_saved": f"{total * 2.5:g} hours/week",
            },
        }

    def insights(
        self, metrics: PerformanceMetrics, analysis: Optional[PerformanceAnalysis]
    ) -> InsightsReport:
        insights = []
        score = analysis.overall_score if analysis else 0
        if score > 80:
            insights.append(
                Insight(
                    type="positive",
                    category="performance",
                    title="Strong Campaign Performance",
                    description=f"Campaign is performing well with an overall score of {score}/100",
                    impact="high",
                    actionable=False,
                )
            )
        elif 0 < score < 50:
            insights.append(
                Insight(
                    type="negative",
                    category="performance",
                    title="Performance Below Expectations",
                    description=f"Campaign performance needs improvement (score: {score}/100)",
                    impact="high",
                    actionable=True,
                    suggested_actions=["Review targeting", "Optimize ad copy", "Adjust bids"],
                )
            )

        max_cpa = self.config.kpi.max_cpa
        if metrics.cpa and metrics.cpa > max_cpa:
            insights.append(
                Insight(
                    type="warning",
                    category="cost_efficiency",
                    title="High Cost Per Acquisition",
                    description=f"CPA of £{metrics.cpa:.2f} exceeds target of £{max_cpa:g}",
                    impact="high",
                    actionable=True,
                    suggested_actions=[
                        "Optimize targeting",
                        "Improve landing pages",
                        "Reduce bids on low-performing keywords",
                    ],
                )
            )
        if metrics.quality_score and metrics.quality_score < 6:
            insights.append(
                Insight(
                    type="warning",
                    category="quality",
                    title="Low Quality Score",
                    description=(
                        f"Quality score of {metrics.quality_score}/10 "
                        "may be limiting ad performance"
                    ),
                    impact="medium",
                    actionable=True,
                    suggested_actions=[
                        "Improve ad relevance",
                        "Optimize landing pages",
                        "Refine keyword targeting",
                    ],
                )
            )
        if metrics.search_impression_share and metrics.search_impression_share < 50:
            insights.append(
                Insight(
                    type="opportunity",
                    category="growth",
                    title="Low Search Impression Share",
                    description=(
                        f"Only capturing {metrics.search_impression_share:g}% "
                        "of available impressions"
                    ),
                    impact="medium",
                    actionable=True,
                    suggested_actions=[
                        "Increase bids",
                        "Expand keyword targeting",
                        "Increase budget",
                    ],
                )
            )
        return InsightsReport(
            total_insights=len(insights),
            insights=insights,
            actionable_insights=sum(i.actionable for i in insights),
        )

    @staticmethod
    def recommendations(
        analysis: Optional[PerformanceAnalysis], budget: BudgetUtilization
    ) -> RecommendationsReport:
        recs = []
        if analysis and analysis.top_issues:
            recs.append(
                ReportRecommendation(
                    priority="critical",
                    category="performance_optimization",
                    title="Address Critical Performance Issues",
                    description="Multiple KPIs are underperforming and require immediate attention",
                    estimated_impact="high",
                    time_to_implement="immediate",
                    actions=[
                        {
                            "action": issue.suggestion,
                            "metric": issue.metric,
                            "expected_improvement": EXPECTED_IMPROVEMENT.get(
                                issue.metric, "+5-15%"
                            ),
                        }
                        for issue in analysis.top_issues
                    ],
                )
            )
        if budget.status == "underspend" and analysis and analysis.overall_score > 70:
            recs.append(
                ReportRecommendation(
                    priority="medium",
                    category="budget_optimization",
                    title="Increase Budget for Better Performance",
                    description="Campaign is performing well but underspending budget",
                    estimated_impact="medium",
                    time_to_implement="1-2 days",
                    actions=[
                        {
                            "action": "Increase daily budget by 20%",
                            "expected_improvement": "More conversions",
                        },
                        {
                            "action": "Expand keyword targeting",
                            "expected_improvement": "Increased reach",
                        },
                    ],
                )
            )
        recs.append(
            ReportRecommendation(
                priority="low",
                category="automation",
                title="Enhance Automation Rules",
                description="Implement additional automated optimizations",
                estimated_impact="medium",
                time_to_implement="3-5 days",
                actions=[
                    {
                        "action": "Set up automated bid adjustments",
                        "expected_improvement": "Better CPA management",
                    },
                    {
                        "action": "Implement dayparting optimization",
                        "expected_improvement": "Improved efficiency",
                    },
                    {
                        "action": "Add negative keyword automation",
                        "expected_improvement": "Reduced wasted spend",
                    },
                ],
            )
        )
        total_score = sum(IMPACT_SCORES.get(r.estimated_impact, 1) for r in recs)
        return RecommendationsReport(
            total_recommendations=len(recs),
            recommendations=recs,
            estimated_total_impact=round(total_score / (len(recs) * 3) * 100),
        )

    def report_period(self) -> ReportPeriod:
        now = self.clock()
        return ReportPeriod(
            start=(now - timedelta(days=1)).date().isoformat(),
            end=now.date().isoformat(),
        )

    # ------------------------------------------------------------------
    # Dashboard and stored reports

    def _update_dashboard(
        self, report: ReportResult, analysis: Optional[PerformanceAnalysis]
    ) -> None:
        summary = report.executive_summary
        key_metrics = summary.key_metrics
        self.dashboard = DashboardSnapshot(
            last_updated=utcnow(),
            campaign_status=summary.campaign_health.status,
            kpis={
                "CTR": key_metrics["current_ctr"],
                "CPC": key_metrics["current_cpc"],
                "CPA": key_metrics["current_cpa"],
                "ROAS": key_metrics["current_roas"],
            },
            alerts=len(summary.critical_issues),
            agent_status=summary.agent_status,
            budget_utilization=summary.budget_utilization,
            overall_score=analysis.overall_score if analysis else None,
        )

    def get_dashboard_data(self) -> DashboardSnapshot:
        return self.dashboard

    def recent_reports(self, limit: int = 10) -> List[ReportResult]:
        return list(reversed(self.reports[-limit:]))

    def get_report(self, report_id: str) -> Optional[ReportResult]:
        return next((r for r in self.reports if r.id == report_id), None)

    def export_report(
        self, report_id: str, fmt: str = "json"
    ) -> Union[str, ReportResult, None]:
        """Serialise a stored report.

        ``json`` gives the whole report, ``csv`` only the current metrics table.
        Unknown formats return the report model unchanged.
        """
        report = self.get_report(report_id)
        if report is None:
            return None
        if fmt == "json":
            return report.model_dump_json(indent=2)
        if fmt == "csv":
            buffer = io.StringIO()
            writer = csv.writer(buffer, lineterminator="\n")
            writer.writerow(["Metric", "Value", "Status", "Target"])
            for key, metric in report.performance_overview["current_metrics"].items():
                writer.writerow(
                    [key, metric["value"], metric.get("status", "N/A"), metric.get("target", "N/A")]
                )
            return buffer.getvalue()
        return report

    def status_details(self) -> Dict[str, Any]:
        last = self.reports[-1].generated_at.isoformat() if self.reports else None
        updated = self.dashboard.last_updated
        return {
            "reports_generated": len(self.reports),
            "last_report_generated": last,
            "dashboard_last_updated": updated.isoformat() if updated else None,
        }
