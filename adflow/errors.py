"""Exception types raised by adflow."""

from __future__ import annotations


class AdflowError(Exception):
    """Base class for adflow errors."""


class WorkflowBusyError(AdflowError):
    """Raised when a workflow is started while another one is running."""

    def __init__(self, workflow_id: str | None) -> None:
        self.workflow_id = workflow_id
        super().__init__(
            f"Workflow {workflow_id} is still running; wait for it to finish"
        )


class CampaignValidationError(AdflowError):
    """Raised when a campaign request cannot be turned into a campaign."""
