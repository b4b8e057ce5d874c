from .orchestrator import (
    SettlementOrchestrator,
    SettlementPlan,
    SettlementResult,
    build_approval_request,
    build_swap_request,
)

__all__ = [
    "SettlementOrchestrator",
    "SettlementPlan",
    "SettlementResult",
    "build_approval_request",
    "build_swap_request",
]
