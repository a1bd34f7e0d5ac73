"""adflow: simulated multi-agent search campaign automation."""

from .agents import AgentSet, build_agents
from .config import AdflowConfig, load_config
from .contracts import DashboardStatus, StageOutcome, WorkflowRecord, WorkflowSummary
from .engine import WorkflowEngine
from .errors import AdflowError, CampaignValidationError, WorkflowBusyError
from .history import get_history
from .monitoring import ContinuousMonitor, MonitoringHandle

__version__ = "0.1.0"
__all__ = [
    "AdflowConfig",
    "AdflowError",
    "AgentSet",
    "CampaignValidationError",
    "ContinuousMonitor",
    "DashboardStatus",
    "MonitoringHandle",
    "StageOutcome",
    "WorkflowBusyError",
    "WorkflowEngine",
    "WorkflowRecord",
    "WorkflowSummary",
    "build_agents",
    "get_history",
    "load_config",
]
