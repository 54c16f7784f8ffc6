"""Deletion-policy checks deciding which members are backed up, restored or retired."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from external_name_backup.domain.model import (
    DELETING_MANAGEMENT_POLICIES,
    BackupScope,
    DeletionPolicy,
)

if TYPE_CHECKING:
    from collections.abc import Mapping
    from typing import Any

    from .documents import ResourceDocument

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MemberPolicy:
    """Deletion-related fields read from a member's ``spec``.

    ``management_policies`` is ``None`` when the field is absent, which is distinct
    from an explicitly empty list.
    """

    deletion_policy: DeletionPolicy | None = None
    management_policies: frozenset[str] | None = None

    @classmethod
    def from_spec(cls, spec: Mapping[str, Any]) -> MemberPolicy:
        raw_policy = spec.get("deletionPolicy")
        try:
            deletion_policy = DeletionPolicy(raw_policy) if isinstance(raw_policy, str) else None
        except ValueError:
            deletion_policy = None

        raw_management = spec.get("managementPolicies")
        management_policies = (
            frozenset(item for item in raw_management if isinstance(item, str))
            if isinstance(raw_management, list)
            else None
        )
        return cls(deletion_policy=deletion_policy, management_policies=management_policies)

    @property
    def allows_deletion(self) -> bool:
        return self.management_policies is not None and bool(
            self.management_policies & DELETING_MANAGEMENT_POLICIES
        )

    @property
    def excludes_deletion(self) -> bool:
        return self.management_policies is not None and not (
            self.management_policies & DELETING_MANAGEMENT_POLICIES
        )

    @property
    def will_delete(self) -> bool:
        """The backing resource is removed together with this member."""

        return self.deletion_policy is DeletionPolicy.DELETE and self.allows_deletion

    @property
    def will_survive(self) -> bool:
        """The backing resource outlives this member (inclusive OR of both signals)."""

        return self.deletion_policy is DeletionPolicy.ORPHAN or self.excludes_deletion


def member_policy(
    desired: ResourceDocument | None,
    observed: ResourceDocument | None = None,
) -> MemberPolicy | None:
    """Read the member policy from the desired spec, falling back to the observed spec."""

    for document in (desired, observed):
        if document is not None and document.spec is not None:
            return MemberPolicy.from_spec(document.spec)
    return None


def is_retirement_due(
    name: str,
    desired: ResourceDocument | None,
    observed: ResourceDocument | None,
) -> bool:
    policy = member_policy(desired, observed)
    due = policy is not None and policy.will_delete
    log.debug("Retirement check for %s: policy=%s, due=%s", name, policy, due)
    return due


def is_in_scope(
    name: str,
    scope: BackupScope,
    desired: ResourceDocument | None,
    observed: ResourceDocument | None = None,
) -> bool:
    """Whether the member's external name takes part in backup under ``scope``."""

    match scope:
        case BackupScope.ALL:
            return True
        case BackupScope.ORPHANED:
            policy = member_policy(desired, observed)
            eligible = policy is not None and policy.will_survive
            log.debug("Scope check for %s: policy=%s, eligible=%s", name, policy, eligible)
            return eligible
