"""In-cluster Kubernetes API access settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import require_env_vars
from .errors import MissingConfigurationError

SERVICE_ACCOUNT_DIR: Final[Path] = Path("/var/run/secrets/kubernetes.io/serviceaccount")
KUBERNETES_TIMEOUT_SECONDS: Final[float] = 10.0


@dataclass(frozen=True, slots=True)
class KubernetesConfig:
    """Endpoint and service-account material for talking to the API server."""

    base_url: str
    token: str
    ca_path: Path | None
    timeout_seconds: float = KUBERNETES_TIMEOUT_SECONDS


def get_kubernetes_config(*, service_account_dir: Path | None = None) -> KubernetesConfig:
    """Build the in-cluster configuration from the environment and mounted token."""

    values = require_env_vars(("KUBERNETES_SERVICE_HOST", "KUBERNETES_SERVICE_PORT"))
    host = values["KUBERNETES_SERVICE_HOST"]
    if ":" in host:
        host = f"[{host}]"

    sa_dir = service_account_dir or Path(
        os.getenv("EXTERNAL_NAME_BACKUP_SERVICE_ACCOUNT_DIR", str(SERVICE_ACCOUNT_DIR))
    )
    token_path = sa_dir / "token"
    try:
        token = token_path.read_text().strip()
    except OSError as exc:
        raise MissingConfigurationError(
            f"Missing service account token at {token_path}"
        ) from exc

    ca_path = sa_dir / "ca.crt"
    return KubernetesConfig(
        base_url=f"https://{host}:{values['KUBERNETES_SERVICE_PORT']}",
        token=token,
        ca_path=ca_path if ca_path.exists() else None,
    )
