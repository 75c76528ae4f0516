"""
アプリケーション起動時の組み立て

カタログ、ローダー、レジストリ、セッションストアを一つのコンテキストにまとめる。
プロセス全体のシングルトンは持たず、所有者がコンテキストの寿命を管理する。
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from authgate.config.catalog import BUILTIN_CATALOG, ProviderCatalog, YamlProviderCatalog
from authgate.config.settings import AuthGateSettings, load_settings
from authgate.core.loader import Loader
from authgate.core.registry import ProviderRegistry, RealmRegistry
from authgate.session.store import InMemorySessionStore, SessionStore

logger = logging.getLogger(__name__)


@dataclass
class SecurityContext:
    """レジストリとセッションストアを保持するコンテキスト"""

    catalog: ProviderCatalog
    loader: Loader
    providers: ProviderRegistry
    realms: RealmRegistry
    sessions: SessionStore

    def start(self) -> None:
        self.sessions.start()

    def stop(self) -> None:
        self.sessions.stop()

    def __enter__(self) -> "SecurityContext":
        self.start()
        return self

    def __exit__(self, *_exc: Any) -> None:
        self.stop()


def create_security_context(
    settings: Optional[AuthGateSettings] = None,
    *,
    catalog: Optional[ProviderCatalog] = None,
    loader: Optional[Loader] = None,
    session_store: Optional[SessionStore] = None,
) -> SecurityContext:
    """設定からコンテキストを組み立てる

    Args:
        settings: 設定。None の場合は環境変数などから読み込む
        catalog: カタログ（指定時は settings.catalog_path より優先）
        loader: ローダー（テスト差し替え用）
        session_store: セッションストア（永続化バックエンドの差し替え用）

    Returns:
        SecurityContext: 未開始のセッションストアを持つコンテキスト

    Raises:
        ConfigException: settings 省略時に環境の設定値が不正な場合
    """
    settings = settings or load_settings()

    if catalog is None:
        if settings.catalog_path is not None:
            catalog = YamlProviderCatalog(settings.catalog_path)
        else:
            catalog = BUILTIN_CATALOG

    loader = loader or Loader(allow_import=settings.allow_import)
    session_store = session_store or InMemorySessionStore(
        max_sessions=settings.max_sessions,
        lock_stripes=settings.session_lock_stripes,
        stop_timeout=settings.stop_timeout,
    )

    logger.info("bootstrap.context.created settings=%s", settings.dump_safe())
    return SecurityContext(
        catalog=catalog,
        loader=loader,
        providers=ProviderRegistry(catalog, loader),
        realms=RealmRegistry(catalog, loader),
        sessions=session_store,
    )
