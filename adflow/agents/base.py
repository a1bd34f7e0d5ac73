from __future__ import annotations

import abc
import asyncio
import logging
import random
from typing import Any, Dict, Optional

from ..config import AdflowConfig
from .models import AgentStatus

logger = logging.getLogger(__name__)


class BaseAgent(metaclass=abc.ABCMeta):
    """Common state and status reporting for campaign agents.

    Subclasses implement one primary coroutine and wrap its body with
    :meth:`_begin`, :meth:`_succeed` and :meth:`_fail` so the status fields
    always describe the latest invocation.
    """

    name: str = "Agent"

    def __init__(
        self, config: AdflowConfig, rng: Optional[random.Random] = None
    ) -> None:
        self.config = config
        self.rng = rng or random.Random()
        self.status = "idle"
        self.last_action: Optional[str] = None

    async def _simulate_latency(self) -> None:
        await asyncio.sleep(self.config.automation.simulated_latency)

    def _begin(self, message: str) -> None:
        self.status = "working"
        logger.info(f"[{self.name}] {message}")

    def _succeed(self, action: str, status: str = "completed") -> None:
        self.status = status
        self.last_action = action
        logger.info(f"[{self.name}] {action}")

    def _fail(self, error: Exception) -> None:
        self.status = "error"
        self.last_action = f"Error: {error}"
        logger.error(f"[{self.name}] {error}")

    def status_details(self) -> Dict[str, Any]:
        """Agent-specific counters included in :meth:`get_status`."""
        return {}

    def get_status(self) -> AgentStatus:
        return AgentStatus(
            agent=self.name,
            status=self.status,
            last_action=self.last_action,
            details=self.status_details(),
        )
