"""Pydantic models for the function-runner request and response documents."""

from __future__ import annotations

import base64
import binascii
from collections.abc import Mapping
from enum import StrEnum
from typing import Any, Final

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_TTL: Final[str] = "60s"


class CrossplaneBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Severity(StrEnum):
    NORMAL = "SEVERITY_NORMAL"
    WARNING = "SEVERITY_WARNING"
    FATAL = "SEVERITY_FATAL"


class ConditionStatus(StrEnum):
    TRUE = "STATUS_CONDITION_TRUE"
    FALSE = "STATUS_CONDITION_FALSE"
    UNKNOWN = "STATUS_CONDITION_UNKNOWN"


class Target(StrEnum):
    COMPOSITE = "TARGET_COMPOSITE"
    COMPOSITE_AND_CLAIM = "TARGET_COMPOSITE_AND_CLAIM"


class RequestMeta(CrossplaneBaseModel):
    tag: str = ""


class Resource(CrossplaneBaseModel):
    resource: dict[str, Any] = Field(default_factory=dict)
    connection_details: dict[str, str] | None = Field(default=None, alias="connectionDetails")
    ready: str | None = None


class State(CrossplaneBaseModel):
    composite: Resource | None = None
    resources: dict[str, Resource] = Field(default_factory=dict)

    @field_validator("resources", mode="before")
    @classmethod
    def _none_to_empty(cls, value: object) -> object:
        return {} if value is None else value


class CredentialData(CrossplaneBaseModel):
    """Secret material; values arrive base64-encoded and are kept decoded."""

    data: dict[str, bytes] = Field(default_factory=dict)

    @field_validator("data", mode="before")
    @classmethod
    def _decode(cls, value: object) -> object:
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            return value
        decoded: dict[str, bytes] = {}
        for key, raw in value.items():
            if isinstance(raw, bytes):
                decoded[key] = raw
                continue
            try:
                decoded[key] = base64.b64decode(str(raw), validate=True)
            except binascii.Error as exc:
                raise ValueError(f"credential key {key!r} is not valid base64") from exc
        return decoded


class Credentials(CrossplaneBaseModel):
    credential_data: CredentialData = Field(
        default_factory=CredentialData, alias="credentialData"
    )


class RunFunctionRequest(CrossplaneBaseModel):
    meta: RequestMeta = Field(default_factory=RequestMeta)
    observed: State = Field(default_factory=State)
    desired: State = Field(default_factory=State)
    input: dict[str, Any] | None = None
    credentials: dict[str, Credentials] = Field(default_factory=dict)

    def credential_data(self) -> dict[str, dict[str, bytes]]:
        return {name: dict(cred.credential_data.data) for name, cred in self.credentials.items()}


class ResponseMeta(CrossplaneBaseModel):
    tag: str = ""
    ttl: str = DEFAULT_TTL


class Result(CrossplaneBaseModel):
    severity: Severity
    message: str
    target: Target | None = None


class Condition(CrossplaneBaseModel):
    type: str
    status: ConditionStatus
    reason: str
    message: str | None = None
    target: Target | None = None


class RunFunctionResponse(CrossplaneBaseModel):
    meta: ResponseMeta = Field(default_factory=ResponseMeta)
    desired: State = Field(default_factory=State)
    results: list[Result] = Field(default_factory=list)
    conditions: list[Condition] = Field(default_factory=list)

    @property
    def is_fatal(self) -> bool:
        return any(result.severity is Severity.FATAL for result in self.results)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
