"""AWS credential material supplied with the invocation."""

from __future__ import annotations

import configparser
import json
from logging import getLogger
from typing import TYPE_CHECKING, Final

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import CredentialsError

if TYPE_CHECKING:
    from collections.abc import Mapping

log = getLogger(__name__)

AWS_CREDENTIALS_NAME: Final[str] = "aws-creds"
AWS_CREDENTIALS_KEY: Final[str] = "credentials"

_INI_KEYS: Final[dict[str, str]] = {
    "aws_access_key_id": "accessKeyId",
    "aws_secret_access_key": "secretAccessKey",
    "aws_session_token": "sessionToken",
}


class AwsCredentials(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    access_key_id: str = Field(alias="accessKeyId")
    secret_access_key: str = Field(alias="secretAccessKey")
    session_token: str | None = Field(default=None, alias="sessionToken")

    @field_validator("access_key_id", "secret_access_key")
    @classmethod
    def _require_value(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("session_token", mode="before")
    @classmethod
    def _blank_to_none(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value


def parse_ini_credentials(content: str) -> AwsCredentials:
    """Parse the ``[default]`` profile of an AWS CLI credentials file."""

    parser = configparser.ConfigParser(interpolation=None)
    try:
        parser.read_string(content)
    except configparser.Error as exc:
        raise CredentialsError(f"cannot parse AWS CLI credentials: {exc}") from exc

    if not parser.has_section("default"):
        raise CredentialsError("AWS CLI credentials have no [default] profile")

    values = {
        alias: parser.get("default", key)
        for key, alias in _INI_KEYS.items()
        if parser.has_option("default", key)
    }
    try:
        return AwsCredentials.model_validate(values)
    except ValidationError as exc:
        raise CredentialsError(
            "missing required AWS credentials (accessKeyId and secretAccessKey)"
        ) from exc


def parse_aws_credentials(raw: bytes) -> AwsCredentials:
    """Parse credentials given either as JSON or in AWS CLI INI format."""

    text = raw.decode("utf-8", errors="replace")
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        payload = None

    if isinstance(payload, dict):
        try:
            return AwsCredentials.model_validate(payload)
        except ValidationError as exc:
            raise CredentialsError(
                "missing required AWS credentials (accessKeyId and secretAccessKey)"
            ) from exc

    return parse_ini_credentials(text)


def get_aws_credentials(
    credentials: Mapping[str, Mapping[str, bytes]],
) -> AwsCredentials | None:
    """Return parsed ``aws-creds`` credentials, or ``None`` to use the default chain."""

    data = credentials.get(AWS_CREDENTIALS_NAME)
    if data is None or AWS_CREDENTIALS_KEY not in data:
        log.info("No AWS credentials supplied, using the default credential chain")
        return None
    return parse_aws_credentials(data[AWS_CREDENTIALS_KEY])
