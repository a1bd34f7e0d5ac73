from __future__ import annotations

from typing import Any, Dict, Iterable, List, Sequence

from .base import BaseAgent
from .models import (
    Competition,
    KeywordBuckets,
    KeywordEntry,
    KeywordResult,
    KeywordSummary,
)

LOCATION_VARIATIONS = [
    "london",
    "central london",
    "east london",
    "north london",
    "south london",
    "west london",
    "greater london",
    "chingford",
    "waltham forest",
    "hackney",
    "islington",
    "tower hamlets",
]

SERVICE_MODIFIERS = [
    "professional",
    "certified",
    "licensed",
    "experienced",
    "reliable",
    "trusted",
    "24 hour",
    "24/7",
    "emergency",
    "mobile",
    "static",
]

BUSINESS_TYPES = [
    "commercial",
    "residential",
    "industrial",
    "retail",
    "office",
    "construction site",
    "warehouse",
    "hospital",
    "school",
    "hotel",
]

LONG_TAIL_KEYWORDS = [
    "sia licensed security guards london",
    "construction site security services london",
    "empty property security monitoring",
    "key holding services london",
    "mobile security patrol services",
    "reception security staff london",
    "front of house security personnel",
    "commercial property security guards",
    "residential security services london",
    "professional security company london",
    "certified security guards hire",
    "business security solutions london",
    "property protection services",
    "security risk assessment london",
    "manned guarding services london",
    "security consultation services",
    "event security personnel london",
    "retail security guards london",
    "office building security services",
    "warehouse security monitoring",
]

ACCEPTABLE_SINGLE_WORDS = {
    "security",
    "guards",
    "protection",
    "surveillance",
    "monitoring",
    "patrol",
    "guarding",
}

IRRELEVANT_TERMS = [
    "free",
    "cheap",
    "discount",
    "sale",
    "offer",
    "deal",
    "job",
    "career",
    "recruitment",
    "training",
    "course",
    "diy",
    "self",
    "home alarm",
    "cctv camera",
    "software",
]

NEGATIVE_KEYWORDS = [
    # job seekers
    "jobs", "careers", "employment", "hiring", "recruitment", "vacancy",
    "cv", "resume", "interview", "salary", "wage",
    # training
    "training", "course", "certification", "exam", "study", "learn",
    "school", "college", "university", "qualification",
    # diy
    "diy", "self", "yourself", "own", "personal", "home alarm",
    "install", "installation", "setup",
    # technology only
    "software", "app", "system", "camera", "cctv", "alarm",
    "technology", "digital", "smart", "automated",
    # unrelated trades
    "cleaning", "maintenance", "repair", "construction work",
    "building", "renovation", "plumbing", "electrical",
    # price shoppers
    "free", "cheap", "discount", "sale", "offer", "deal",
    "budget", "affordable", "low cost", "inexpensive",
    # competitors
    "g4s", "securitas", "mitie", "churchill", "chubb",
    # outside the service area
    "manchester", "birmingham", "liverpool", "leeds", "glasgow",
    "edinburgh", "cardiff", "belfast", "bristol", "sheffield",
]


def _dedupe(keywords: Iterable[str]) -> List[str]:
    seen: set[str] = set()
    ordered: List[str] = []
    for keyword in keywords:
        cleaned = keyword.lower().strip()
        if not cleaned or cleaned in seen:
            continue
        seen.add(cleaned)
        ordered.append(cleaned)
    return ordered


class KeywordManagerAgent(BaseAgent):
    """Expands seed phrases, filters them and sorts them into match types."""

    name = "Keyword Manager Agent"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.discovered_keywords: List[str] = []
        self.negative_keywords: List[str] = []

    async def optimize(self, seed_keywords: Sequence[str]) -> KeywordResult:
        self._begin("Starting keyword optimization")
        try:
            await self._simulate_latency()
            expanded = self.expand_keywords(seed_keywords)
            optimized = self.filter_keywords(expanded)
            buckets = self.organize(optimized)
        except Exception as e:
            self._fail(e)
            raise

        self.discovered_keywords = optimized
        self.negative_keywords = list(NEGATIVE_KEYWORDS)
        self._succeed(
            f"Optimized {len(optimized)} keywords, "
            f"added {len(self.negative_keywords)} negative keywords"
        )
        return KeywordResult(
            keywords=buckets,
            negative_keywords=list(self.negative_keywords),
            summary=KeywordSummary(
                total_keywords=len(optimized),
                negative_keywords=len(self.negative_keywords),
                categories=self.categorize(optimized),
            ),
        )

    def expand_keywords(self, seed_keywords: Sequence[str]) -> List[str]:
        expanded = list(seed_keywords)
        for service in self.config.campaign.services:
            expanded += [
                service,
                f"{service} london",
                f"professional {service}",
                f"certified {service}",
            ]
        for keyword in seed_keywords:
            expanded += [
                f"{keyword} {location}"
                for location in LOCATION_VARIATIONS
                if location not in keyword.lower()
            ]
        for keyword in seed_keywords:
            expanded += [f"{modifier} {keyword}" for modifier in SERVICE_MODIFIERS]
        for business in BUSINESS_TYPES:
            expanded += [
                f"{business} security",
                f"{business} security services",
                f"{business} security london",
            ]
        expanded += LONG_TAIL_KEYWORDS
        return _dedupe(expanded)

    def filter_keywords(self, keywords: Sequence[str]) -> List[str]:
        kept = []
        for keyword in keywords:
            if len(keyword.split()) < 2 and keyword not in ACCEPTABLE_SINGLE_WORDS:
                continue
            if len(keyword) > 80:
                continue
            if any(term in keyword for term in IRRELEVANT_TERMS):
                continue
            kept.append(keyword)
        # sorted() is stable, so equal scores keep expansion order
        ranked = sorted(kept, key=self.score, reverse=True)
        return ranked[: self.config.automation.keyword_expansion_limit]

    def score(self, keyword: str) -> int:
        score = 0
        score += 10 * sum(
            term in keyword
            for term in ("security", "guard", "protection", "patrol", "monitoring")
        )
        score += 15 * sum(term in keyword for term in ("london", "chingford", "e4"))
        score += 20 * sum(
            service.lower() in keyword for service in self.config.campaign.services
        )
        score += 8 * sum(
            term in keyword
            for term in ("professional", "certified", "licensed", "sia", "qualified")
        )
        score += 5 * sum(
            term in keyword
            for term in ("hire", "services", "company", "solutions", "consultation")
        )
        return score

    @staticmethod
    def estimate_cpc(keyword: str) -> float:
        cpc = 1.20
        if "london" in keyword:
            cpc *= 1.3
        if "commercial" in keyword or "business" in keyword:
            cpc *= 1.2
        if "emergency" in keyword or "24" in keyword:
            cpc *= 1.4
        if "construction" in keyword:
            cpc *= 1.1
        if len(keyword.split()) > 4:
            cpc *= 0.8
        return round(cpc, 2)

    @staticmethod
    def estimate_competition(keyword: str) -> Competition:
        hits = sum(term in keyword for term in ("security", "london", "guards", "services"))
        if hits >= 3:
            return "HIGH"
        if hits >= 2:
            return "MEDIUM"
        return "LOW"

    def organize(self, keywords: Sequence[str]) -> KeywordBuckets:
        buckets = KeywordBuckets()
        region = self.config.campaign.region.lower()
        for keyword in keywords:
            cpc = self.estimate_cpc(keyword)
            competition = self.estimate_competition(keyword)
            entry = KeywordEntry(
                keyword=keyword,
                estimated_cpc=cpc,
                competition=competition,
                suggested_bid=round(min(cpc * 1.2, self.config.kpi.max_cpc), 2),
            )
            word_count = len(keyword.split())
            if word_count >= 4 or region in keyword:
                buckets.exact.append(entry)
            elif word_count == 3 or competition == "MEDIUM":
                buckets.phrase.append(entry)
            else:
                buckets.broad.append(entry)
        return buckets

    @staticmethod
    def categorize(keywords: Sequence[str]) -> Dict[str, List[str]]:
        categories: Dict[str, List[str]] = {
            "Core Services": [],
            "Location-Based": [],
            "Industry-Specific": [],
            "Service Types": [],
            "Commercial Intent": [],
        }
        for keyword in keywords:
            if "london" in keyword or "chingford" in keyword:
                categories["Location-Based"].append(keyword)
            elif any(t in keyword for t in ("commercial", "business", "office")):
                categories["Industry-Specific"].append(keyword)
            elif any(t in keyword for t in ("hire", "services", "company")):
                categories["Commercial Intent"].append(keyword)
            elif any(t in keyword for t in ("manned", "mobile", "reception")):
                categories["Service Types"].append(keyword)
            else:
                categories["Core Services"].append(keyword)
        return categories

    def status_details(self) -> Dict[str, Any]:
        return {
            "keywords_discovered": len(self.discovered_keywords),
            "negative_keywords": len(self.negative_keywords),
        }
