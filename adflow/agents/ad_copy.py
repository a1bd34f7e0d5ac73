from __future__ import annotations

import uuid
from collections import Counter
from typing import Any, Dict, List, Mapping, Sequence

from .base import BaseAgent
from .models import (
    AdCopyResult,
    AdCopySummary,
    AdPerformance,
    AdTestGroup,
    AdVariation,
    KeywordEntry,
    utcnow,
)

HEADLINE_LIMIT = 30
DESCRIPTION_LIMIT = 90
PATH_LIMIT = 15
PROHIBITED_TERMS = ("guaranteed", "best", "cheapest", "free money")

AD_TEMPLATES: List[Dict[str, str]] = [
    {
        "type": "trust_focused",
        "headline1": "Security Services London",
        "headline2": "SIA Licensed Guards 24/7",
        "headline3": "Trusted Since 2015",
        "description1": "Security for homes and businesses. SIA-licensed staff with 10+ years of experience.",
        "description2": "Manned guarding, mobile patrols and site security. Get a free quote today.",
        "path1": "Security",
        "path2": "London",
        "call_to_action": "Get Free Quote",
    },
    {
        "type": "urgency_focused",
        "headline1": "24/7 Security Guards London",
        "headline2": "Rapid Response Security",
        "headline3": "Call 0800 112 3232",
        "description1": "Immediate security response. Manned guarding, mobile patrols and key holding.",
        "description2": "Protect your property with SIA certified guards. Commercial and residential cover.",
        "path1": "24-7-Security",
        "path2": "London",
        "call_to_action": "Call Now",
    },
    {
        "type": "service_focused",
        "headline1": "London Security Company",
        "headline2": "Manned Guarding Services",
        "headline3": "Free Security Assessment",
        "description1": "Reception security, empty property protection and mobile patrols across London.",
        "description2": "SIA licensed since 2015. Book your free security consultation today.",
        "path1": "Manned-Guarding",
        "path2": "London",
        "call_to_action": "Free Assessment",
    },
    {
        "type": "local_focused",
        "headline1": "Chingford Security Services",
        "headline2": "Local London Security Team",
        "headline3": "Professional & Reliable",
        "description1": "Your local security specialists serving London businesses and residents.",
        "description2": "From our Chingford base we protect sites across London with SIA licensed guards.",
        "path1": "Local-Security",
        "path2": "Chingford",
        "call_to_action": "Contact Us",
    },
    {
        "type": "service_focused",
        "headline1": "Commercial Security London",
        "headline2": "Office & Retail Protection",
        "headline3": "Professional Guards",
        "description1": "Commercial security: reception staff, manned guarding and access control.",
        "description2": "Protect your business with SIA licensed, insured security professionals.",
        "path1": "Commercial",
        "path2": "London",
        "call_to_action": "Get Quote",
    },
    {
        "type": "service_focused",
        "headline1": "Residential Security Services",
        "headline2": "Home Protection London",
        "headline3": "Peace of Mind Guaranteed",
        "description1": "Keep your family safe with mobile patrols, key holding and property checks.",
        "description2": "Trusted by London homeowners. SIA certified guards and 24/7 monitoring.",
        "path1": "Home-Security",
        "path2": "London",
        "call_to_action": "Protect Home",
    },
]


def is_compliant(ad: AdVariation) -> bool:
    """Check an ad against the platform's length limits and content policy."""
    if not ad.headline1 or not ad.description1:
        return False
    limits = (
        (HEADLINE_LIMIT, (ad.headline1, ad.headline2, ad.headline3)),
        (DESCRIPTION_LIMIT, (ad.description1, ad.description2)),
        (PATH_LIMIT, (ad.path1, ad.path2)),
    )
    for limit, fields in limits:
        if any(value and len(value) > limit for value in fields):
            return False
    text = " ".join(
        value or ""
        for value in (
            ad.headline1,
            ad.headline2,
            ad.headline3,
            ad.description1,
            ad.description2,
        )
    ).lower()
    return not any(term in text for term in PROHIBITED_TERMS)


class AdCopyAgent(BaseAgent):
    """Builds ad variations and groups them for A/B testing."""

    name = "Ad Copy Agent"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.generated_ads: List[AdVariation] = []

    async def generate(
        self, campaign: Mapping[str, Any], keywords: Sequence[KeywordEntry]
    ) -> AdCopyResult:
        self._begin(
            f"Starting ad copy generation for {campaign.get('id', 'unknown campaign')}"
        )
        try:
            await self._simulate_latency()
            variations = self.create_variations(keywords)
            ads = self.validate(variations)
            groups = self.create_test_groups(ads)
        except Exception as e:
            self._fail(e)
            raise

        self.generated_ads = ads
        self._succeed(
            f"Generated {len(ads)} ad variations across {len(groups)} test groups"
        )
        return AdCopyResult(
            ads=ads,
            test_groups=groups,
            summary=AdCopySummary(
                total_ads=len(ads),
                test_groups=len(groups),
                ad_types=dict(Counter(ad.type for ad in ads)),
            ),
        )

    @staticmethod
    def create_variations(keywords: Sequence[KeywordEntry]) -> List[AdVariation]:
        associated = [entry.keyword for entry in keywords[:10]]
        return [
            AdVariation(**template, keywords=list(associated))
            for template in AD_TEMPLATES
        ]

    @staticmethod
    def validate(variations: Sequence[AdVariation]) -> List[AdVariation]:
        validated = []
        for ad in variations:
            if not is_compliant(ad):
                continue
            validated.append(
                ad.model_copy(
                    update={
                        "id": f"ad_{uuid.uuid4().hex[:9]}",
                        "created": utcnow(),
                        "status": "active",
                    }
                )
            )
        return validated

    @staticmethod
    def create_test_groups(ads: Sequence[AdVariation]) -> List[AdTestGroup]:
        by_type: Dict[str, List[AdVariation]] = {}
        for ad in ads:
            by_type.setdefault(ad.type, []).append(ad)
        if not by_type:
            return []
        split = 100 // len(by_type)
        return [
            AdTestGroup(
                id=f"test_group_{ad_type}_{uuid.uuid4().hex[:6]}",
                name=f"{ad_type.replace('_', ' ').upper()} Test Group",
                type=ad_type,
                ads=group,
                traffic_split=split,
            )
            for ad_type, group in by_type.items()
        ]

    def update_ad_performance(self, ad_id: str, data: Mapping[str, Any]) -> bool:
        """Merge fresh performance figures into a generated ad."""
        for ad in self.generated_ads:
            if ad.id == ad_id:
                merged = {**ad.performance.model_dump(), **data}
                ad.performance = AdPerformance(**merged)
                ad.last_updated = utcnow()
                return True
        return False

    def pause_ad(self, ad_id: str, reason: str) -> bool:
        for ad in self.generated_ads:
            if ad.id == ad_id:
                ad.status = "paused"
                ad.pause_reason = reason
                ad.paused_at = utcnow()
                return True
        return False

    def status_details(self) -> Dict[str, Any]:
        return {
            "ads_generated": len(self.generated_ads),
            "active_ads": sum(ad.status == "active" for ad in self.generated_ads),
            "paused_ads": sum(ad.status == "paused" for ad in self.generated_ads),
        }
