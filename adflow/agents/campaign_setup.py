from __future__ import annotations

import uuid
from typing import Any, Dict

from ..errors import CampaignValidationError
from .base import BaseAgent
from .models import CampaignRequest, CampaignResult, DaySchedule, Targeting

DEFAULT_KEYWORDS = [
    "security services london",
    "security guards london",
    "manned guarding london",
    "construction site security",
    "residential security services",
    "commercial security london",
    "reception security",
    "front of house security",
    "empty property security",
    "key holding services",
    "mobile security patrols",
    "london security company",
    "sia licensed security",
    "certified security guards",
    "professional security services",
    "office security services",
    "retail security london",
    "warehouse security",
    "event security london",
]

DEFAULT_NEGATIVE_KEYWORDS = [
    "free",
    "cheap",
    "diy",
    "volunteer",
    "part time",
    "jobs",
    "careers",
    "recruitment",
    "training",
    "course",
    "alarm systems",
    "cctv only",
    "software",
    "app",
]

TARGET_INTERESTS = [
    "Home Security",
    "Business Security",
    "Construction",
    "Property Management",
    "Commercial Services",
]

WEEKDAY_HOURS = ("08:00", "18:00")
AD_SCHEDULE = {
    "monday": WEEKDAY_HOURS,
    "tuesday": WEEKDAY_HOURS,
    "wednesday": WEEKDAY_HOURS,
    "thursday": WEEKDAY_HOURS,
    "friday": WEEKDAY_HOURS,
    "saturday": ("09:00", "17:00"),
    "sunday": ("10:00", "16:00"),
}


def build_ad_schedule() -> Dict[str, DaySchedule]:
    """Build a campaign ad schedule with its own day entries."""
    return {
        day: DaySchedule(start=start, end=end)
        for day, (start, end) in AD_SCHEDULE.items()
    }


class CampaignSetupAgent(BaseAgent):
    """Creates the search campaign on the (simulated) ads platform."""

    name = "Campaign Setup Agent"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.campaigns: list[CampaignResult] = []

    async def setup(self, request: CampaignRequest) -> CampaignResult:
        self._begin("Starting campaign setup")
        try:
            self._validate(request)
            campaign = self._prepare_campaign(request)
            await self._simulate_latency()
        except Exception as e:
            self._fail(e)
            raise

        self.campaigns.append(campaign)
        self._succeed(f"Campaign created: {campaign.id}")
        return campaign

    @staticmethod
    def _validate(request: CampaignRequest) -> None:
        if request.budget <= 0:
            raise CampaignValidationError("Budget must be greater than 0")
        if not request.campaign_type:
            raise CampaignValidationError("Missing required campaign data: campaign_type")

    def _prepare_campaign(self, request: CampaignRequest) -> CampaignResult:
        settings = self.config.campaign
        targeting = Targeting(
            location=request.targeting.location or settings.region,
            radius=request.targeting.radius or 25,
            keywords=request.targeting.keywords or list(DEFAULT_KEYWORDS),
            negative_keywords=list(DEFAULT_NEGATIVE_KEYWORDS),
            age_range="25-65",
            interests=list(TARGET_INTERESTS),
        )
        return CampaignResult(
            id=f"campaign_{uuid.uuid4().hex[:12]}",
            name=f"{settings.business_info.name} - {request.campaign_type} Campaign",
            status="ENABLED",
            budget=request.budget,
            campaign_type=request.campaign_type,
            targeting=targeting,
            ad_schedule=build_ad_schedule(),
            target_cpa=self.config.kpi.max_cpa,
        )

    def status_details(self) -> Dict[str, Any]:
        return {"campaigns_created": len(self.campaigns)}
