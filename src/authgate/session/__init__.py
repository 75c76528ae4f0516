"""セッション管理"""

from authgate.session.models import Session, SessionId
from authgate.session.store import (
    AbstractSessionStore,
    InMemorySessionStore,
    LifecycleState,
    SessionStore,
)

__all__ = [
    "AbstractSessionStore",
    "InMemorySessionStore",
    "LifecycleState",
    "Session",
    "SessionId",
    "SessionStore",
]
