"""
プロバイダ/レルムのレジストリ

カタログで名前を実装識別子に解決し、ローダーで生成したインスタンスをキャッシュする。
"""

import logging
import threading
import time
from typing import Callable, Dict, Generic, List, Optional, TypeVar

from authgate.auth.base import AuthenticationProvider
from authgate.auth.realm import SecurityRealm
from authgate.config.catalog import DEFAULT_REALM_NAME, ProviderCatalog
from authgate.core.loader import Loader
from authgate.errors import (
    ErrorCode,
    UnknownProviderException,
    UnknownRealmException,
    create_registry_error,
)

T = TypeVar("T")

logger = logging.getLogger(__name__)


class InstanceCache(Generic[T]):
    """名前ごとに一度だけ生成するキャッシュ

    名前単位のロックで二重生成を防ぐ。異なる名前の生成は互いをブロックしない。
    """

    def __init__(self) -> None:
        self._instances: Dict[str, T] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def get(self, name: str) -> Optional[T]:
        return self._instances.get(name)

    def names(self) -> List[str]:
        with self._guard:
            return list(self._instances)

    def __contains__(self, name: object) -> bool:
        return name in self._instances

    def get_or_create(self, name: str, factory: Callable[[], T]) -> T:
        """キャッシュ済みならそれを返し、なければ factory で生成して登録する

        factory が例外を送出した場合は何も登録しない。
        """
        instance = self._instances.get(name)
        if instance is not None:
            return instance

        with self._lock_for(name):
            instance = self._instances.get(name)
            if instance is None:
                instance = factory()
                # factory 完了後に公開する
                self._instances[name] = instance
            return instance

    def _lock_for(self, name: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(name)
            if lock is None:
                lock = self._locks[name] = threading.Lock()
            return lock


class ProviderRegistry:
    """認証プロバイダの解決とキャッシュ"""

    def __init__(self, catalog: ProviderCatalog, loader: Optional[Loader] = None) -> None:
        self.catalog = catalog
        self.loader = loader or Loader()
        self._cache: InstanceCache[AuthenticationProvider] = InstanceCache()

    def list_provider_names(self) -> List[str]:
        """カタログに登録されたプロバイダ名の一覧"""
        return list(self.catalog.all_providers().keys())

    def supports(self, name: str) -> bool:
        """プロバイダ名がカタログに登録されているか"""
        return name in self.catalog.all_providers()

    def is_cached(self, name: str) -> bool:
        return name in self._cache

    def cached_names(self) -> List[str]:
        return self._cache.names()

    def get_provider(self, name: str) -> AuthenticationProvider:
        """名前からプロバイダを返す

        初回はカタログとローダーで生成し、initialize() を済ませてからキャッシュする。

        Raises:
            UnknownProviderException: カタログに名前が存在しない場合
            InstantiationFailureException: 生成に失敗した場合
            CapabilityMismatchException: 生成物が AuthenticationProvider でない場合
        """
        cached = self._cache.get(name)
        if cached is not None:
            return cached

        if not self.supports(name):
            known = self.list_provider_names()
            error = create_registry_error(
                ErrorCode.REGISTRY_UNKNOWN_PROVIDER,
                f"No provider found for '{name}'. Possible providers are: {', '.join(known)}",
                details={"provider": name, "known_providers": known},
            )
            logger.log(error.log_level, "registry.provider.unknown name=%s known=%s", name, known)
            raise UnknownProviderException(error)

        return self._cache.get_or_create(name, lambda: self._create(name))

    def _create(self, name: str) -> AuthenticationProvider:
        identifier = self.catalog.all_providers()[name]
        start = time.monotonic()
        provider = self.loader.instantiate(identifier, AuthenticationProvider)
        provider.initialize()
        logger.info(
            "registry.provider.resolved name=%s identifier=%s duration=%.3f",
            name,
            identifier,
            time.monotonic() - start,
        )
        return provider


class RealmRegistry:
    """セキュリティレルムの解決とキャッシュ

    プロバイダと異なり initialize() は呼ばない。
    """

    def __init__(self, catalog: ProviderCatalog, loader: Optional[Loader] = None) -> None:
        self.catalog = catalog
        self.loader = loader or Loader()
        self._cache: InstanceCache[SecurityRealm] = InstanceCache()

    def is_cached(self, name: str) -> bool:
        return name in self._cache

    def get_realm(self, name: str) -> SecurityRealm:
        """名前からレルムを返す

        Raises:
            UnknownRealmException: カタログに名前が存在しない場合
        """
        cached = self._cache.get(name)
        if cached is not None:
            return cached

        realms = self.catalog.all_realms()
        if name not in realms:
            known = list(realms.keys())
            error = create_registry_error(
                ErrorCode.REGISTRY_UNKNOWN_REALM,
                f"No realm found for '{name}'. Possible realms are: {', '.join(known)}",
                details={"realm": name, "known_realms": known},
            )
            logger.log(error.log_level, "registry.realm.unknown name=%s known=%s", name, known)
            raise UnknownRealmException(error)

        return self._cache.get_or_create(name, lambda: self._create(name))

    def get_default_realm(self) -> SecurityRealm:
        return self.get_realm(DEFAULT_REALM_NAME)

    def _create(self, name: str) -> SecurityRealm:
        identifier = self.catalog.all_realms()[name]
        realm = self.loader.instantiate(identifier, SecurityRealm)
        logger.info("registry.realm.resolved name=%s identifier=%s", name, identifier)
        return realm
