"""
Domain models for the TokBox control plane using Pydantic.

These models validate what comes back from the REST API (sessions) and
what we send to it (archive layouts), and hold the API credentials.  All
of them are frozen: a session descriptor or a set of credentials never
changes after construction.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator, model_validator


# Token lifetimes in seconds
DAYS_30 = 2592000  # 30 * 24 * 60 * 60
WEEKS_1 = 604800  # 7 * 24 * 60 * 60
HOURS_24 = 86400  # 24 * 60 * 60
HOURS_2 = 7200  # 60 * 60 * 2
HOURS_1 = 3600  # 60 * 60


class MediaMode(str, Enum):
    """Value sent as ``p2p.preference`` when creating a session."""

    #: Streams go through the OpenTok Media Router.
    ROUTED = "disabled"
    #: Clients try to stream directly to each other, relaying over TURN
    #: when a firewall gets in the way.
    RELAYED = "enabled"


class ArchiveMode(str, Enum):
    MANUAL = "manual"
    ALWAYS = "always"
    DISABLED = "disabled"


class Role(str, Enum):
    """Capability granted by an access token.

    A publisher can publish, subscribe and signal.  A subscriber can only
    subscribe.  A moderator can additionally force other clients to
    unpublish or disconnect.  The server enforces these; the client does
    not.
    """

    PUBLISHER = "publisher"
    SUBSCRIBER = "subscriber"
    MODERATOR = "moderator"


class LayoutType(str, Enum):
    BEST_FIT = "bestFit"
    CUSTOM = "custom"
    HORIZONTAL_PRESENTATION = "horizontalPresentation"
    PIP = "pip"
    VERTICAL_PRESENTATION = "verticalPresentation"


class OutputMode(str, Enum):
    COMPOSED = "composed"
    INDIVIDUAL = "individual"


class Credentials(BaseModel):
    """API key and partner secret of a project.

    The secret is a ``SecretStr`` so it never shows up in ``repr`` or in
    ``model_dump`` output.
    """

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., min_length=1, description="Project API key")
    secret: SecretStr = Field(..., description="Project partner secret")

    @model_validator(mode="after")
    def _secret_not_empty(self) -> "Credentials":
        if not self.secret.get_secret_value():
            raise ValueError("secret must not be empty")
        return self

    @property
    def secret_bytes(self) -> bytes:
        return self.secret.get_secret_value().encode("utf-8")


class Session(BaseModel):
    """A session as returned by ``POST /session/create``.

    Only ``session_id`` is required; the remaining fields are informational
    and default to an empty string when the server omits them.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    session_id: str = Field(..., min_length=1)
    project_id: str = ""
    partner_id: str = ""
    create_dt: str = ""
    session_status: str = ""
    media_server_url: str = ""

    @field_validator(
        "project_id", "partner_id", "create_dt", "session_status", "media_server_url", mode="before"
    )
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        # The create endpoint sends null for fields it has no value for
        return "" if value is None else value


class ArchiveLayout(BaseModel):
    """Layout of a composed archive.

    See https://tokbox.com/developer/guides/archiving/layout-control.html
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    type: LayoutType = LayoutType.BEST_FIT
    stylesheet: Optional[str] = None
    screenshare_type: Optional[LayoutType] = Field(default=None, alias="screenshareType")

    @field_validator("stylesheet", mode="before")
    @classmethod
    def _empty_stylesheet_as_unset(cls, value: Any) -> Any:
        return value or None

    @model_validator(mode="after")
    def _check_layout_options(self) -> "ArchiveLayout":
        if self.stylesheet and self.type is not LayoutType.CUSTOM:
            raise ValueError("stylesheet is only allowed with the custom layout type")
        if self.screenshare_type is not None and self.type is not LayoutType.BEST_FIT:
            raise ValueError("screenshareType requires the bestFit layout type")
        return self

    def to_payload(self) -> Dict[str, Any]:
        """Return the JSON body fragment, omitting unset options."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


__all__ = [
    "DAYS_30",
    "WEEKS_1",
    "HOURS_24",
    "HOURS_2",
    "HOURS_1",
    "MediaMode",
    "ArchiveMode",
    "Role",
    "LayoutType",
    "OutputMode",
    "Credentials",
    "Session",
    "ArchiveLayout",
]
