"""Typed inputs and outputs of the campaign agents."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

Competition = Literal["LOW", "MEDIUM", "HIGH"]
MetricStatus = Literal["excellent", "good", "acceptable", "poor", "critical", "no_data"]
Severity = Literal["low", "medium", "high", "critical"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AgentStatus(BaseModel):
    """Point-in-time status snapshot reported by an agent."""

    agent: str
    status: str
    last_action: Optional[str] = None
    details: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=utcnow)


# ---------------------------------------------------------------------------
# Campaign setup


class Targeting(BaseModel):
    location: str
    radius: int = 25
    keywords: List[str] = Field(default_factory=list)
    negative_keywords: List[str] = Field(default_factory=list)
    age_range: Optional[str] = None
    interests: List[str] = Field(default_factory=list)


class CampaignRequest(BaseModel):
    budget: float
    campaign_type: str = "Search"
    targeting: Targeting


class DaySchedule(BaseModel):
    start: str
    end: str


class CampaignMetrics(BaseModel):
    impressions: int = 0
    clicks: int = 0
    cost: float = 0.0
    conversions: int = 0


class CampaignResult(BaseModel):
    id: str
    name: str
    status: str
    budget: float
    campaign_type: str
    targeting: Targeting
    created: datetime = Field(default_factory=utcnow)
    metrics: CampaignMetrics = CampaignMetrics()
    ad_schedule: Dict[str, DaySchedule] = Field(default_factory=dict)
    bid_strategy: str = "TARGET_CPA"
    target_cpa: Optional[float] = None


# ---------------------------------------------------------------------------
# Keywords


class KeywordEntry(BaseModel):
    keyword: str
    estimated_cpc: float
    competition: Competition
    suggested_bid: float


class KeywordBuckets(BaseModel):
    exact: List[KeywordEntry] = Field(default_factory=list)
    phrase: List[KeywordEntry] = Field(default_factory=list)
    broad: List[KeywordEntry] = Field(default_factory=list)


class KeywordSummary(BaseModel):
    total_keywords: int
    negative_keywords: int
    categories: Dict[str, List[str]] = Field(default_factory=dict)


class KeywordResult(BaseModel):
    keywords: KeywordBuckets
    negative_keywords: List[str] = Field(default_factory=list)
    summary: KeywordSummary


# ---------------------------------------------------------------------------
# Ad copy


class AdPerformance(BaseModel):
    impressions: int = 0
    clicks: int = 0
    ctr: float = 0.0
    cost: float = 0.0
    conversions: int = 0


class AdVariation(BaseModel):
    headline1: Optional[str] = None
    headline2: Optional[str] = None
    headline3: Optional[str] = None
    description1: Optional[str] = None
    description2: Optional[str] = None
    path1: Optional[str] = None
    path2: Optional[str] = None
    call_to_action: Optional[str] = None
    type: str
    source: str = "template"
    keywords: List[str] = Field(default_factory=list)
    id: Optional[str] = None
    created: Optional[datetime] = None
    status: str = "draft"
    performance: AdPerformance = Field(default_factory=AdPerformance)
    pause_reason: Optional[str] = None
    paused_at: Optional[datetime] = None
    last_updated: Optional[datetime] = None


class AdTestGroup(BaseModel):
    id: str
    name: str
    type: str
    ads: List[AdVariation]
    traffic_split: int
    status: str = "active"
    created: datetime = Field(default_factory=utcnow)


class AdCopySummary(BaseModel):
    total_ads: int
    test_groups: int
    ad_types: Dict[str, int] = Field(default_factory=dict)


class AdCopyResult(BaseModel):
    ads: List[AdVariation]
    test_groups: List[AdTestGroup]
    summary: AdCopySummary


# ---------------------------------------------------------------------------
# Performance monitoring


class PerformanceMetrics(BaseModel):
    impressions: float = 0
    clicks: int = 0
    cost: float = 0.0
    conversions: int = 0
    ctr: float = 0.0
    cpc: float = 0.0
    cpa: float = 0.0
    roas: float = 0.0
    quality_score: int = 0
    search_impression_share: float = 0.0
    avg_position: float = 0.0
    conversion_rate: float = 0.0


class MetricAnalysis(BaseModel):
    metric_name: str
    current: float
    target: float
    variance: int
    status: MetricStatus
    direction: Literal["higher_better", "lower_better"]
    severity: Severity
    suggestion: str


class PerformanceIssue(BaseModel):
    metric: str
    severity: Severity
    status: MetricStatus
    current: float
    target: float
    suggestion: str


class PerformanceAnalysis(BaseModel):
    ctr: MetricAnalysis
    cpc: MetricAnalysis
    cpa: MetricAnalysis
    roas: MetricAnalysis
    quality_score: MetricAnalysis
    conversion_rate: MetricAnalysis
    search_impression_share: MetricAnalysis
    overall_score: int
    performance_grade: str
    top_issues: List[PerformanceIssue] = Field(default_factory=list)
    trends: Dict[str, str] = Field(default_factory=dict)

    def metric_analyses(self) -> Dict[str, MetricAnalysis]:
        return {
            name: getattr(self, name)
            for name in (
                "ctr",
                "cpc",
                "cpa",
                "roas",
                "quality_score",
                "conversion_rate",
                "search_impression_share",
            )
        }


class Alert(BaseModel):
    id: str
    type: str
    message: str
    severity: Severity
    campaign_id: str
    metric: Optional[str] = None
    suggestion: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow)


class AutomatedAction(BaseModel):
    type: Literal["pause_campaign", "reduce_bids", "increase_bids"]
    campaign_id: str
    reason: str
    adjustment: Optional[float] = None
    executed: bool = False
    timestamp: datetime = Field(default_factory=utcnow)


class Recommendation(BaseModel):
    priority: Literal["critical", "high", "medium", "low"]
    category: str
    title: str
    description: str
    actions: List[str] = Field(default_factory=list)


class PerformanceResult(BaseModel):
    campaign_id: str
    status: Literal["excellent", "good", "needs_attention", "critical"]
    metrics: PerformanceMetrics
    analysis: PerformanceAnalysis
    alerts: List[Alert] = Field(default_factory=list)
    actions: List[AutomatedAction] = Field(default_factory=list)
    recommendations: List[Recommendation] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utcnow)


# ---------------------------------------------------------------------------
# Bid optimization


class BidMetricStatus(BaseModel):
    current: float
    target: float
    status: Literal["excellent", "good", "poor", "critical", "no_data"]
    variance: float


class BidPerformanceAnalysis(BaseModel):
    cpa: BidMetricStatus
    ctr: BidMetricStatus
    roas: BidMetricStatus
    cpc: BidMetricStatus
    overall_score: int


class BidAdjustment(BaseModel):
    type: Literal["campaign", "keyword"]
    target: str
    current_bid: float
    new_bid: float
    adjustment: float
    adjustment_percent: int
    reasons: List[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=utcnow)


class ReasonCount(BaseModel):
    reason: str
    count: int


class BidSummary(BaseModel):
    total_adjustments: int
    average_change: int
    reasoning: List[ReasonCount] = Field(default_factory=list)


class BidResult(BaseModel):
    bid_adjustments: List[BidAdjustment]
    performance_analysis: BidPerformanceAnalysis
    summary: BidSummary


class BidRecommendations(BaseModel):
    """Proposed adjustments that have not been applied."""

    recommendations: List[BidAdjustment]
    performance_analysis: BidPerformanceAnalysis
    summary: str


# ---------------------------------------------------------------------------
# Reporting


class CampaignHealth(BaseModel):
    status: Literal["excellent", "good", "needs_attention", "critical", "unknown"]
    color: str
    message: str


class AgentDetail(BaseModel):
    name: str
    status: str
    last_action: Optional[str] = None
    timestamp: Optional[datetime] = None


class AgentStatusSummary(BaseModel):
    total_agents: int = 0
    active_agents: int = 0
    completed_agents: int = 0
    error_agents: int = 0
    agent_details: List[AgentDetail] = Field(default_factory=list)


class BudgetUtilization(BaseModel):
    daily_spend: str
    daily_budget: str
    daily_utilization: str
    estimated_monthly_spend: str
    monthly_budget: str
    monthly_pace: str
    status: Literal["overspend", "on_track_high", "on_track", "underspend"]


class NextAction(BaseModel):
    priority: str
    action: str
    description: str
    assigned_agent: str


class Highlight(BaseModel):
    type: Literal["positive", "negative"]
    metric: str
    message: str


class ExecutiveSummary(BaseModel):
    campaign_health: CampaignHealth
    key_metrics: Dict[str, Any] = Field(default_factory=dict)
    performance_highlights: List[Highlight] = Field(default_factory=list)
    critical_issues: List[PerformanceIssue] = Field(default_factory=list)
    agent_status: AgentStatusSummary = AgentStatusSummary()
    budget_utilization: BudgetUtilization
    next_actions: List[NextAction] = Field(default_factory=list)


class Insight(BaseModel):
    type: Literal["positive", "negative", "warning", "opportunity"]
    category: str
    title: str
    description: str
    impact: str
    actionable: bool
    suggested_actions: List[str] = Field(default_factory=list)


class InsightsReport(BaseModel):
    total_insights: int
    insights: List[Insight] = Field(default_factory=list)
    actionable_insights: int = 0


class ReportRecommendation(BaseModel):
    priority: str
    category: str
    title: str
    description: str
    estimated_impact: str
    time_to_implement: str
    actions: List[Dict[str, str]] = Field(default_factory=list)


class RecommendationsReport(BaseModel):
    total_recommendations: int
    recommendations: List[ReportRecommendation] = Field(default_factory=list)
    estimated_total_impact: int = 0


class ReportPeriod(BaseModel):
    start: str
    end: str
    type: str = "daily"


class ReportResult(BaseModel):
    id: str
    campaign_id: str
    report_type: str = "comprehensive"
    generated_at: datetime = Field(default_factory=utcnow)
    report_period: ReportPeriod
    executive_summary: ExecutiveSummary
    performance_overview: Dict[str, Any] = Field(default_factory=dict)
    kpi_analysis: Dict[str, Any] = Field(default_factory=dict)
    agent_activity: Dict[str, Any] = Field(default_factory=dict)
    insights: InsightsReport
    recommendations: RecommendationsReport
    raw_data: Dict[str, Any] = Field(default_factory=dict)


class DashboardSnapshot(BaseModel):
    """Cached view of the latest report, with sentinels before any report."""

    last_updated: Optional[datetime] = None
    campaign_status: str = "unknown"
    kpis: Dict[str, str] = Field(
        default_factory=lambda: {"CTR": "N/A", "CPC": "N/A", "CPA": "N/A", "ROAS": "N/A"}
    )
    alerts: int = 0
    agent_status: Optional[AgentStatusSummary] = None
    budget_utilization: Optional[BudgetUtilization] = None
    overall_score: Optional[int] = None
