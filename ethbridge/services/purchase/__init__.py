"""Purchase workflow package."""

from ethbridge.services.purchase.agent_client import AgentClient
from ethbridge.services.purchase.models import (
    AgentAcceptance,
    AgentCallback,
    PurchasePayload,
    PurchaseResult,
)
from ethbridge.services.purchase.workflow import PurchaseWorkflowService

__all__ = [
    "AgentAcceptance",
    "AgentCallback",
    "AgentClient",
    "PurchasePayload",
    "PurchaseResult",
    "PurchaseWorkflowService",
]
