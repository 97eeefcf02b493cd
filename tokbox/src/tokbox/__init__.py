"""
Client library for the TokBox (OpenTok) video platform control plane.

The package creates sessions over HTTP, starts archives, and issues signed
participant access tokens that the media server verifies offline.  Token
issuance lives in ``tokens`` and ``bulk``; control-plane requests are
authenticated by ``service_auth`` and sent by ``client``.
"""

from .bulk import BulkIssuer, IssueResult  # noqa: F401
from .client import TokboxClient  # noqa: F401
from .config import TokboxSettings, load_settings  # noqa: F401
from .errors import (  # noqa: F401
    ConfigurationError,
    PartialBulkFailure,
    ProtocolError,
    SigningError,
    TokboxError,
    TransportError,
)
from .models import (  # noqa: F401
    DAYS_30,
    HOURS_1,
    HOURS_2,
    HOURS_24,
    WEEKS_1,
    ArchiveLayout,
    ArchiveMode,
    Credentials,
    LayoutType,
    MediaMode,
    OutputMode,
    Role,
    Session,
)
from .service_auth import ServiceAuthSigner  # noqa: F401
from .tokens import TokenIssuer, parse_token  # noqa: F401

__version__ = "0.1.0"
