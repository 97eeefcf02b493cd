"""
secrets_manager
================

Loading of the project API key and partner secret.

Secrets are read from environment variables, or from a file when the
corresponding ``*_FILE`` environment variable is set.  This lets operators
mount the partner secret into a container (Docker or Kubernetes secrets)
without leaking it into the environment.  To integrate with a real secrets
manager, subclass ``BaseSecretsManager`` and override ``get_secret``.

Example usage::

    from tokbox.secrets_manager import get_default_secrets_manager

    secrets = get_default_secrets_manager()
    api_key = secrets.get_secret("TOKBOX_API_KEY")
    api_secret = secrets.get_secret("TOKBOX_API_SECRET")
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)


class BaseSecretsManager:
    """Abstract base class for secrets managers."""

    def get_secret(self, name: str) -> Optional[str]:  # pragma: no cover - override
        """Return the secret value for ``name`` or ``None`` if unavailable."""
        raise NotImplementedError


class EnvFileSecretsManager(BaseSecretsManager):
    """
    Loads secrets from environment variables and optional ``*_FILE`` paths.

    If both ``{name}`` and ``{name}_FILE`` are set, the file takes
    precedence.  Relative file paths are resolved against ``base_path``
    when one is given.
    """

    def __init__(self, base_path: Optional[Path] = None) -> None:
        self.base_path = base_path
        self._cache: Dict[str, Optional[str]] = {}

    def get_secret(self, name: str) -> Optional[str]:
        if name in self._cache:
            return self._cache[name]

        file_path = os.getenv(f"{name}_FILE")
        if file_path:
            path = Path(file_path)
            if not path.is_absolute() and self.base_path is not None:
                path = self.base_path / path
            try:
                value: Optional[str] = path.read_text(encoding="utf-8").strip()
            except OSError as exc:
                logger.warning("Failed to read %s_FILE at %s: %s", name, path, exc)
                value = None
        else:
            value = os.getenv(name)

        self._cache[name] = value
        return value


def get_default_secrets_manager() -> BaseSecretsManager:
    """Return the environment/file secrets manager.

    ``TOKBOX_SECRETS_BASE_PATH`` sets the directory relative ``*_FILE``
    paths are resolved against.
    """
    base_path = os.getenv("TOKBOX_SECRETS_BASE_PATH")
    return EnvFileSecretsManager(base_path=Path(base_path) if base_path else None)


__all__ = [
    "BaseSecretsManager",
    "EnvFileSecretsManager",
    "get_default_secrets_manager",
]
