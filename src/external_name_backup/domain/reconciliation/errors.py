"""Errors raised by the reconciliation engine."""

from __future__ import annotations


class ReconciliationError(RuntimeError):
    """Base class for failures that abort one invocation."""


class RestoreRequiredError(ReconciliationError):
    """Raised in require-restore mode when no stored identity can be found."""

    def __init__(self, composition_key: str, resource_key: str | None = None) -> None:
        self.composition_key = composition_key
        self.resource_key = resource_key
        if resource_key is None:
            message = (
                f"restore required but no stored identities found for composition "
                f"{composition_key!r}; check the override-kind/override-namespace annotations"
            )
        else:
            message = (
                f"restore required but no stored identity found for resource "
                f"{resource_key!r} in composition {composition_key!r}"
            )
        super().__init__(message)
