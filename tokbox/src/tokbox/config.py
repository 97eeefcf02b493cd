"""
Runtime configuration.

Settings are read through a secrets manager so that the API secret can come
from a mounted file instead of the environment.  The following keys are
recognised:

``TOKBOX_API_KEY`` / ``TOKBOX_API_SECRET``
    Project credentials.  Required.  Either may be supplied through the
    matching ``*_FILE`` variable.

``TOKBOX_API_URL``
    Control-plane base URL.  Defaults to ``https://api.opentok.com``; set
    it to target a beta endpoint.

``TOKBOX_AUTH_TTL``
    Lifetime in seconds of the service-auth assertion (default 300).

``TOKBOX_REQUEST_TIMEOUT``
    Total timeout in seconds of one control-plane request (default 30).

``TOKBOX_BULK_WORKERS``
    Worker pool size for concurrent bulk issuance (default 8).
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field, SecretStr, ValidationError

from .bulk import DEFAULT_MAX_WORKERS
from .errors import ConfigurationError
from .secrets_manager import BaseSecretsManager, get_default_secrets_manager
from .service_auth import DEFAULT_ASSERTION_LIFETIME

API_HOST = "https://api.opentok.com"


class TokboxSettings(BaseModel):
    api_key: str = Field(..., min_length=1)
    api_secret: SecretStr
    api_url: str = API_HOST
    auth_ttl: int = Field(default=DEFAULT_ASSERTION_LIFETIME, gt=0)
    request_timeout: float = Field(default=30.0, gt=0)
    bulk_workers: int = Field(default=DEFAULT_MAX_WORKERS, ge=1)


_ENV_KEYS = {
    "api_key": "TOKBOX_API_KEY",
    "api_secret": "TOKBOX_API_SECRET",
    "api_url": "TOKBOX_API_URL",
    "auth_ttl": "TOKBOX_AUTH_TTL",
    "request_timeout": "TOKBOX_REQUEST_TIMEOUT",
    "bulk_workers": "TOKBOX_BULK_WORKERS",
}


def load_settings(secrets: Optional[BaseSecretsManager] = None) -> TokboxSettings:
    """Build ``TokboxSettings`` from the environment.

    Raises:
        ConfigurationError: credentials are missing or a value is invalid.
    """
    secrets = secrets or get_default_secrets_manager()
    values = {}
    for field_name, env_name in _ENV_KEYS.items():
        value = secrets.get_secret(env_name)
        if value:
            values[field_name] = value
    missing = [_ENV_KEYS[name] for name in ("api_key", "api_secret") if name not in values]
    if missing:
        raise ConfigurationError(f"missing required settings: {', '.join(missing)}")
    try:
        return TokboxSettings(**values)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid settings: {exc}") from exc


__all__ = ["API_HOST", "TokboxSettings", "load_settings"]
