from __future__ import annotations

import os
from typing import List, Literal, Optional

import yaml
from pydantic import BaseModel, SecretStr

from .constants import (
    BLOB_HOST_SUFFIX,
    DEFAULT_API_VERSION,
    DEFAULT_LOGIN_HOST,
    DEFAULT_PERMISSIONS,
    DEFAULT_PROTOCOL,
    DEFAULT_SCOPE,
    DEFAULT_USER_AGENT,
)
from .errors import ConfigurationError

_ENV_OVERRIDES = {
    "SASDELEGATE_TENANT_ID": "tenant_id",
    "SASDELEGATE_CLIENT_ID": "client_id",
    "SASDELEGATE_CLIENT_SECRET": "client_secret",
    "SASDELEGATE_ACCOUNT": "account",
    "SASDELEGATE_CONTAINER": "container",
}


class StorageConfig(BaseModel):
    """Service principal and storage account settings."""

    tenant_id: str = ""
    client_id: str = ""
    client_secret: SecretStr = SecretStr("")
    account: str = ""
    container: str = ""
    scope: str = DEFAULT_SCOPE
    login_host: str = DEFAULT_LOGIN_HOST
    blob_host: Optional[str] = None
    api_version: str = DEFAULT_API_VERSION
    permissions: str = DEFAULT_PERMISSIONS
    signed_ip: str = ""
    signed_protocol: str = DEFAULT_PROTOCOL
    user_agent: str = DEFAULT_USER_AGENT

    def get_blob_host(self) -> str:
        """Return the configured blob host or the account's default one."""
        if self.blob_host:
            return self.blob_host
        if not self.account:
            raise ConfigurationError("Storage account is not configured")
        return f"{self.account}.{BLOB_HOST_SUFFIX}"

    def missing_settings(self) -> List[str]:
        missing = [
            name
            for name in ("tenant_id", "client_id", "account", "container")
            if not getattr(self, name)
        ]
        if not self.client_secret.get_secret_value():
            missing.append("client_secret")
        return missing

    def require_credentials(self) -> None:
        """Raise ``ConfigurationError`` unless every required setting is present."""
        missing = self.missing_settings()
        if missing:
            raise ConfigurationError(
                f"Missing storage settings: {', '.join(missing)}"
            )


class TransportConfig(BaseModel):
    """Transport configuration settings."""

    backend: Literal["https", "inmemory"] = "https"
    timeout: float = 30.0


class SasDelegateConfig(BaseModel):
    """Top-level configuration model."""

    storage: StorageConfig = StorageConfig()
    transport: TransportConfig = TransportConfig()


def load_config(path: Optional[str] = None) -> SasDelegateConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to SASDELEGATE_CONFIG env
            variable or 'config.yaml' in the current directory.

    Credentials may also be supplied through ``SASDELEGATE_*`` environment
    variables, which take precedence over the file.
    """

    config_path = path or os.getenv("SASDELEGATE_CONFIG", "config.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = SasDelegateConfig(**data)
    else:
        config = SasDelegateConfig()

    overrides = {
        field: os.environ[env_name]
        for env_name, field in _ENV_OVERRIDES.items()
        if os.getenv(env_name)
    }
    if overrides:
        storage = config.storage.model_dump()
        storage.update(overrides)
        config.storage = StorageConfig(**storage)
    return config
