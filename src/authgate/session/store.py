"""
SessionStoreの実装
"""

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from enum import Enum
from typing import Dict, Iterator, Optional

from authgate.errors import (
    ErrorCode,
    SessionCapacityException,
    SessionStoreStateException,
    create_session_error,
)
from authgate.session.models import Session, SessionId

logger = logging.getLogger(__name__)


class LifecycleState(Enum):
    """セッションストアのライフサイクル状態"""
    STOPPED = "stopped"
    STARTED = "started"
    STOPPING = "stopping"


class SessionStore(ABC):
    """SessionId → Session の対応を保持するストア

    load/store/update/remove は start() 後、stop() 前のみ有効。
    """

    @abstractmethod
    def start(self) -> None: ...

    @abstractmethod
    def stop(self) -> None: ...

    @abstractmethod
    def load(self, session_id: SessionId) -> Optional[Session]: ...

    @abstractmethod
    def store(self, session: Session) -> None: ...

    @abstractmethod
    def update(self, session: Session) -> None: ...

    @abstractmethod
    def remove(self, session_id: SessionId) -> None: ...


class AbstractSessionStore(SessionStore):
    """ライフサイクル、実行中操作の追跡、キー単位の排他を担う基底クラス

    バックエンドは _do_load/_do_store/_do_remove/_do_clear/_do_size を実装する。
    """

    def __init__(self, lock_stripes: int = 64, stop_timeout: Optional[float] = None) -> None:
        if lock_stripes < 1:
            raise ValueError("lock_stripes は 1 以上である必要があります")
        self._state = LifecycleState.STOPPED
        self._condition = threading.Condition()
        self._in_flight = 0
        self._stop_timeout = stop_timeout
        self._stripes = [threading.Lock() for _ in range(lock_stripes)]

    @property
    def state(self) -> LifecycleState:
        return self._state

    def start(self) -> None:
        """新しい空の世代で利用を開始する"""
        with self._condition:
            if self._state is not LifecycleState.STOPPED:
                raise SessionStoreStateException(
                    create_session_error(
                        ErrorCode.SESSION_STORE_ALREADY_STARTED,
                        f"{type(self).__name__} is already {self._state.value}",
                        details={"state": self._state.value},
                    )
                )
            self._do_start()
            self._state = LifecycleState.STARTED
        logger.info("session_store.started store=%s", type(self).__name__)

    def stop(self) -> None:
        """新規操作を拒否し、実行中の操作を待ってから全セッションを破棄する"""
        with self._condition:
            if self._state is LifecycleState.STOPPING:
                # 他スレッドによる停止の完了を待つ
                self._condition.wait_for(lambda: self._state is not LifecycleState.STOPPING)
            if self._state is LifecycleState.STOPPED:
                logger.debug("session_store.stop.ignored state=stopped")
                return

            self._state = LifecycleState.STOPPING
            drained = self._condition.wait_for(
                lambda: self._in_flight == 0,
                timeout=self._stop_timeout,
            )
            if not drained:
                in_flight = self._in_flight
                self._state = LifecycleState.STARTED
                self._condition.notify_all()
                error = create_session_error(
                    ErrorCode.SESSION_STOP_TIMEOUT,
                    f"Timed out waiting for {in_flight} in-flight session operations",
                    details={"state": LifecycleState.STARTED.value, "in_flight": in_flight},
                )
                logger.log(error.log_level, "session_store.stop.timeout in_flight=%d", in_flight)
                raise SessionStoreStateException(error)

            cleared = self._do_size()
            self._do_clear()
            self._state = LifecycleState.STOPPED
            self._condition.notify_all()
        logger.info("session_store.stopped store=%s cleared=%d", type(self).__name__, cleared)

    def load(self, session_id: SessionId) -> Optional[Session]:
        """セッションを返す。存在しない場合は None"""
        with self._operation():
            return self._do_load(session_id)

    def store(self, session: Session) -> None:
        """session.id をキーに挿入または上書きする"""
        self._write(session)

    def update(self, session: Session) -> None:
        """store と同じ。変更済みのセッション全体を渡すこと"""
        self._write(session)

    def remove(self, session_id: SessionId) -> None:
        """セッションを削除する。存在しない場合は何もしない"""
        with self._operation(), self._key_lock(session_id):
            self._do_remove(session_id)

    def size(self) -> int:
        with self._operation():
            return self._do_size()

    def __len__(self) -> int:
        return self.size()

    def __contains__(self, session_id: object) -> bool:
        if not isinstance(session_id, SessionId):
            return False
        return self.load(session_id) is not None

    def __enter__(self) -> "AbstractSessionStore":
        self.start()
        return self

    def __exit__(self, *_exc) -> None:
        self.stop()

    def _write(self, session: Session) -> None:
        if not isinstance(session.id, SessionId):
            raise TypeError(f"session.id must be a SessionId, got {type(session.id).__name__}")
        with self._operation(), self._key_lock(session.id):
            self._do_store(session)

    @contextmanager
    def _operation(self) -> Iterator[None]:
        with self._condition:
            if self._state is not LifecycleState.STARTED:
                raise SessionStoreStateException(
                    create_session_error(
                        ErrorCode.SESSION_STORE_NOT_STARTED,
                        f"{type(self).__name__} is not started (state={self._state.value})",
                        details={"state": self._state.value},
                    )
                )
            self._in_flight += 1
        try:
            yield
        finally:
            with self._condition:
                self._in_flight -= 1
                if self._in_flight == 0:
                    self._condition.notify_all()

    def _key_lock(self, session_id: SessionId) -> threading.Lock:
        return self._stripes[hash(session_id) % len(self._stripes)]

    def _do_start(self) -> None:
        """開始フック（既定では何もしない）"""

    @abstractmethod
    def _do_load(self, session_id: SessionId) -> Optional[Session]: ...

    @abstractmethod
    def _do_store(self, session: Session) -> None: ...

    @abstractmethod
    def _do_remove(self, session_id: SessionId) -> None: ...

    @abstractmethod
    def _do_clear(self) -> None: ...

    @abstractmethod
    def _do_size(self) -> int: ...


class InMemorySessionStore(AbstractSessionStore):
    """メモリ上にセッションのスナップショットを保持するストア

    load() が返すのはコピーのため、変更は update()/store() で反映する。
    """

    def __init__(
        self,
        max_sessions: Optional[int] = None,
        lock_stripes: int = 64,
        stop_timeout: Optional[float] = None,
    ) -> None:
        super().__init__(lock_stripes=lock_stripes, stop_timeout=stop_timeout)
        if max_sessions is not None and max_sessions < 1:
            raise ValueError("max_sessions は 1 以上である必要があります")
        self.max_sessions = max_sessions
        self._sessions: Dict[SessionId, Session] = {}
        self._mapping_lock = threading.Lock()

    def _do_start(self) -> None:
        self._sessions = {}

    def _do_load(self, session_id: SessionId) -> Optional[Session]:
        session = self._sessions.get(session_id)
        return session.snapshot() if session is not None else None

    def _do_store(self, session: Session) -> None:
        snapshot = session.snapshot()
        with self._mapping_lock:
            if (
                self.max_sessions is not None
                and session.id not in self._sessions
                and len(self._sessions) >= self.max_sessions
            ):
                error = create_session_error(
                    ErrorCode.SESSION_CAPACITY_EXCEEDED,
                    f"Session capacity of {self.max_sessions} reached",
                    details={"max_sessions": self.max_sessions, "session_id": str(session.id)},
                )
                logger.log(
                    error.log_level, "session_store.capacity_exceeded max_sessions=%d", self.max_sessions
                )
                raise SessionCapacityException(error)
            self._sessions[session.id] = snapshot

    def _do_remove(self, session_id: SessionId) -> None:
        with self._mapping_lock:
            self._sessions.pop(session_id, None)

    def _do_clear(self) -> None:
        with self._mapping_lock:
            self._sessions.clear()

    def _do_size(self) -> int:
        return len(self._sessions)
