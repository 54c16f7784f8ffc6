"""Durable lookup keys for compositions and their members."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Final

type ResourceKey = str

UNSCOPED: Final[str] = "none"


@dataclass(frozen=True, slots=True)
class CompositionKey:
    """Identifies one top-level composite instance across invocations.

    Rendered as ``{namespace}/{claim_name}/{api_version}/{kind}/{name}``. The
    namespace and kind segments can be swapped out to point a composite at
    records stored under a previous shape (see ``with_overrides``).
    """

    namespace: str
    claim_name: str
    api_version: str
    kind: str
    name: str

    def __str__(self) -> str:
        return "/".join(
            (self.namespace, self.claim_name, self.api_version, self.kind, self.name)
        )

    def with_overrides(
        self,
        *,
        namespace: str | None = None,
        kind: str | None = None,
    ) -> CompositionKey:
        return replace(
            self,
            namespace=namespace or self.namespace,
            kind=kind or self.kind,
        )
