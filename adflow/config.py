from __future__ import annotations

import logging
import os
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

PLACEHOLDER_MARKERS = ("INSERT_", "HERE")


class AdsPlatformConfig(BaseModel):
    """Credentials for the advertising platform account."""

    developer_token: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    refresh_token: Optional[str] = None
    customer_id: Optional[str] = None


class AIProviderConfig(BaseModel):
    """Settings for the copy-writing model provider."""

    endpoint: str = "https://openrouter.ai/api/v1/chat/completions"
    model: str = "anthropic/claude-3-sonnet-20240229"
    api_key: Optional[str] = None


class BusinessInfo(BaseModel):
    name: str = "2015 Security Services Ltd"
    address: str = "480 Larkshall Road, 1st Floor, E4 9HH London, United Kingdom"
    phone: List[str] = Field(default_factory=lambda: ["+4408001123232"])
    website: str = "https://2015security.co.uk"
    established: str = "2015"
    certifications: List[str] = Field(
        default_factory=lambda: ["SIA-licensed", "ISO certified"]
    )


class CampaignSettings(BaseModel):
    """Business and budget settings for the managed campaign."""

    budget_monthly: float = 600.0
    budget_daily: float = 20.0
    region: str = "London"
    business_type: str = "Security Services"
    services: List[str] = Field(
        default_factory=lambda: [
            "residential security",
            "commercial security",
            "construction site security",
            "reception security",
            "front-of-house security",
            "empty property security",
            "mobile patrols",
            "key holding services",
        ]
    )
    business_info: BusinessInfo = BusinessInfo()


class KpiThresholds(BaseModel):
    min_ctr: float = 0.02
    max_cpc: float = 2.50
    max_cpa: float = 60.0
    min_roas: float = 2.0
    quality_score_min: int = 6


class AutomationSettings(BaseModel):
    bid_adjustment_percent: float = 0.15
    keyword_expansion_limit: int = 50
    # Awaited inside every agent operation to emulate the remote platform call.
    simulated_latency: float = 0.0


class WorkflowSettings(BaseModel):
    """Seed data fed into the fixed workflow stages."""

    setup_keywords: List[str] = Field(
        default_factory=lambda: [
            "security services london",
            "security guards london",
            "manned guarding london",
            "construction site security",
            "residential security services",
        ]
    )
    seed_keywords: List[str] = Field(
        default_factory=lambda: [
            "security services",
            "security guards",
            "manned guarding",
            "construction security",
            "residential security",
            "commercial security",
            "london security",
        ]
    )
    campaign_type: str = "Search"
    targeting_radius: int = 25


class AdflowConfig(BaseModel):
    """Top-level configuration model."""

    ads_platform: AdsPlatformConfig = AdsPlatformConfig()
    ai_provider: AIProviderConfig = AIProviderConfig()
    campaign: CampaignSettings = CampaignSettings()
    kpi: KpiThresholds = KpiThresholds()
    automation: AutomationSettings = AutomationSettings()
    workflow: WorkflowSettings = WorkflowSettings()


_ENV_OVERRIDES = {
    "ADFLOW_ADS_DEVELOPER_TOKEN": ("ads_platform", "developer_token"),
    "ADFLOW_ADS_CLIENT_ID": ("ads_platform", "client_id"),
    "ADFLOW_ADS_CLIENT_SECRET": ("ads_platform", "client_secret"),
    "ADFLOW_ADS_REFRESH_TOKEN": ("ads_platform", "refresh_token"),
    "ADFLOW_ADS_CUSTOMER_ID": ("ads_platform", "customer_id"),
    "ADFLOW_AI_API_KEY": ("ai_provider", "api_key"),
}

REQUIRED_SETTINGS = (
    "ads_platform.developer_token",
    "ads_platform.client_id",
    "ads_platform.client_secret",
    "ads_platform.refresh_token",
    "ai_provider.api_key",
)


def load_config(path: Optional[str] = None) -> AdflowConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to ADFLOW_CONFIG env
            variable or 'config.yaml' in the current directory.
    """

    config_path = path or os.getenv("ADFLOW_CONFIG", "config.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = AdflowConfig(**data)
    else:
        config = AdflowConfig()

    for env_name, (section, field) in _ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            setattr(getattr(config, section), field, value)
    return config


def validate_config(config: AdflowConfig) -> list[str]:
    """Return the dotted names of credentials that are unset or placeholders."""

    missing = []
    for dotted in REQUIRED_SETTINGS:
        section, field = dotted.split(".")
        value = getattr(getattr(config, section), field)
        if not value or any(marker in value for marker in PLACEHOLDER_MARKERS):
            missing.append(dotted)
    if missing:
        logger.warning(f"Missing configuration for: {', '.join(missing)}")
    return missing
