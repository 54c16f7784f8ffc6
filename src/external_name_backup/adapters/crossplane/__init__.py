"""Public interface for the function-runner payload adapter."""

from __future__ import annotations

from .schema import (
    Condition,
    ConditionStatus,
    Credentials,
    Resource,
    Result,
    RunFunctionRequest,
    RunFunctionResponse,
    Severity,
    State,
    Target,
)
from .translator import (
    SUCCESS_CONDITION,
    fatal_response,
    graph_to_state,
    request_to_graphs,
    success_response,
)

__all__ = [
    "SUCCESS_CONDITION",
    "Condition",
    "ConditionStatus",
    "Credentials",
    "Resource",
    "Result",
    "RunFunctionRequest",
    "RunFunctionResponse",
    "Severity",
    "State",
    "Target",
    "fatal_response",
    "graph_to_state",
    "request_to_graphs",
    "success_response",
]
