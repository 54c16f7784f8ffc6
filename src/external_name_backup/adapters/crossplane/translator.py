"""Translate between runner payloads and reconciliation graphs."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from external_name_backup.domain.reconciliation import GraphPair, ResourceGraph

from .schema import (
    Condition,
    ConditionStatus,
    Resource,
    ResponseMeta,
    Result,
    RunFunctionRequest,
    RunFunctionResponse,
    Severity,
    State,
    Target,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

log = getLogger(__name__)

SUCCESS_CONDITION = "FunctionSuccess"


def _state_to_graph(state: State) -> ResourceGraph:
    return ResourceGraph.from_documents(
        state.composite.resource if state.composite is not None else None,
        {name: member.resource for name, member in state.resources.items()},
    )


def request_to_graphs(request: RunFunctionRequest) -> GraphPair:
    """Wrap the request's documents; the graphs share the request's dicts."""

    return GraphPair(
        desired=_state_to_graph(request.desired),
        observed=_state_to_graph(request.observed),
    )


def graph_to_state(graph: ResourceGraph, template: State) -> State:
    """Rebuild a desired ``State`` from ``graph``, keeping per-member fields of ``template``."""

    def wrap(name: str | None, document: Mapping[str, object]) -> Resource:
        base = template.composite if name is None else template.resources.get(name)
        if base is None:
            return Resource(resource=dict(document))
        return base.model_copy(update={"resource": dict(document)})

    composite = wrap(None, graph.composite.data) if graph.composite is not None else None
    return State(
        composite=composite,
        resources={name: wrap(name, doc.data) for name, doc in graph.resources.items()},
    )


def success_response(
    request: RunFunctionRequest,
    desired: ResourceGraph,
    message: str,
) -> RunFunctionResponse:
    return RunFunctionResponse(
        meta=ResponseMeta(tag=request.meta.tag),
        desired=graph_to_state(desired, request.desired),
        results=[Result(severity=Severity.NORMAL, message=message)],
        conditions=[
            Condition(
                type=SUCCESS_CONDITION,
                status=ConditionStatus.TRUE,
                reason="Success",
                target=Target.COMPOSITE_AND_CLAIM,
            )
        ],
    )


def fatal_response(request: RunFunctionRequest, message: str) -> RunFunctionResponse:
    """Fatal result carrying the request's desired state untouched."""

    log.error(message)
    return RunFunctionResponse(
        meta=ResponseMeta(tag=request.meta.tag),
        desired=request.desired.model_copy(deep=True),
        results=[Result(severity=Severity.FATAL, message=message)],
    )
