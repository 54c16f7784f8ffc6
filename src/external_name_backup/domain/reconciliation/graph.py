"""Desired/observed resource graphs handled by one invocation."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field

from .documents import Document, ResourceDocument


@dataclass(slots=True)
class ResourceGraph:
    """A composite plus its named members, keyed by the pipeline's resource name."""

    composite: ResourceDocument | None = None
    resources: dict[str, ResourceDocument] = field(default_factory=dict)

    @classmethod
    def from_documents(
        cls,
        composite: Document | None,
        resources: dict[str, Document] | None = None,
    ) -> ResourceGraph:
        return cls(
            composite=ResourceDocument(composite) if composite is not None else None,
            resources={
                name: ResourceDocument(doc) for name, doc in (resources or {}).items()
            },
        )

    def member(self, name: str) -> ResourceDocument | None:
        return self.resources.get(name)

    def deep_copy(self) -> ResourceGraph:
        return ResourceGraph(
            composite=(
                ResourceDocument(copy.deepcopy(self.composite.data))
                if self.composite is not None
                else None
            ),
            resources={
                name: ResourceDocument(copy.deepcopy(doc.data))
                for name, doc in self.resources.items()
            },
        )


@dataclass(slots=True)
class GraphPair:
    """The desired graph (mutated and returned) alongside the observed graph."""

    desired: ResourceGraph
    observed: ResourceGraph

    def deep_copy(self) -> GraphPair:
        return GraphPair(desired=self.desired.deep_copy(), observed=self.observed.deep_copy())
