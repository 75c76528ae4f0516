"""authgate - 認証プロバイダ/レルムのレジストリとセッションストア"""

__version__ = "0.1.0"

from authgate.bootstrap import SecurityContext, create_security_context
from authgate.core.loader import Loader
from authgate.core.registry import ProviderRegistry, RealmRegistry
from authgate.session.models import Session, SessionId
from authgate.session.store import InMemorySessionStore, SessionStore

__all__ = [
    "InMemorySessionStore",
    "Loader",
    "ProviderRegistry",
    "RealmRegistry",
    "SecurityContext",
    "Session",
    "SessionId",
    "SessionStore",
    "__version__",
    "create_security_context",
]
