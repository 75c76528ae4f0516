"""
実装識別子からのインスタンス生成

登録テーブル（識別子 → ファクトリ）を優先し、見つからない場合のみ
ドット区切りのインポートパスで型を解決する。
"""

import contextlib
import contextvars
import importlib
import logging
import threading
import time
from typing import Any, Callable, ContextManager, Dict, List, Optional, Tuple, Type, TypeVar

from authgate.auth.password import PasswordAuthenticationProvider
from authgate.auth.realm import DefaultSecurityRealm
from authgate.errors import (
    CapabilityMismatchException,
    ErrorCode,
    InstantiationFailureException,
    create_loader_error,
)

T = TypeVar("T")
Factory = Callable[[], Any]
ScopeFactory = Callable[[], ContextManager[Any]]

LOGGER = logging.getLogger(__name__)

BUILTIN_FACTORIES: Dict[str, Factory] = {
    "PasswordProvider": PasswordAuthenticationProvider,
    "DefaultRealm": DefaultSecurityRealm,
}


class Loader:
    """識別子とケイパビリティからインスタンスを生成する"""

    def __init__(
        self,
        factories: Optional[Dict[str, Factory]] = None,
        *,
        allow_import: bool = True,
        scope_factory: Optional[ScopeFactory] = None,
        include_builtins: bool = True,
    ) -> None:
        """初期化

        Args:
            factories: 追加で登録する識別子 → ファクトリ
            allow_import: 登録テーブルにない識別子をインポートで解決するか
            scope_factory: 生成処理を囲むホスト提供のスコープ (権限制限など)
            include_builtins: 組み込みプロバイダ/レルムを登録するか
        """
        self.allow_import = allow_import
        self._scope_factory: ScopeFactory = scope_factory or contextlib.nullcontext
        self._lock = threading.Lock()
        self._factories: Dict[str, Factory] = dict(BUILTIN_FACTORIES) if include_builtins else {}
        if factories:
            self._factories.update(factories)

    def register(self, identifier: str, factory: Factory) -> None:
        """識別子にファクトリを登録する（既存の登録は上書き）"""
        if not identifier or not identifier.strip():
            raise ValueError("identifier must be a non-empty string")
        if not callable(factory):
            raise TypeError(f"factory for '{identifier}' must be callable")
        with self._lock:
            self._factories[identifier] = factory
        LOGGER.debug("loader.register identifier=%s", identifier)

    def unregister(self, identifier: str) -> None:
        with self._lock:
            self._factories.pop(identifier, None)

    def registered_identifiers(self) -> List[str]:
        with self._lock:
            return sorted(self._factories)

    def instantiate(self, identifier: str, expected_capability: Type[T]) -> T:
        """識別子を解決してインスタンスを生成し、ケイパビリティを検証する

        Raises:
            InstantiationFailureException: 型に解決できない、またはコンストラクタが失敗した場合
            CapabilityMismatchException: 生成物が expected_capability を満たさない場合
        """
        capability_name = expected_capability.__name__
        start = time.monotonic()
        try:
            factory = self._resolve(identifier, capability_name)
        except InstantiationFailureException as exc:
            LOGGER.log(exc.log_level, "loader.resolve.failed identifier=%s error=%s", identifier, exc)
            raise

        try:
            instance = self._run_confined(factory)
        except Exception as e:
            error = create_loader_error(
                ErrorCode.LOADER_INSTANTIATION_FAILED,
                f"Unable to instantiate '{identifier}': {e}",
                details={"identifier": identifier, "capability": capability_name},
            )
            LOGGER.log(
                error.log_level,
                "loader.instantiate.failed identifier=%s capability=%s",
                identifier,
                capability_name,
                exc_info=True,
            )
            raise InstantiationFailureException(error) from e

        if not isinstance(instance, expected_capability):
            error = create_loader_error(
                ErrorCode.LOADER_CAPABILITY_MISMATCH,
                f"Instance of '{identifier}' is not a type of {capability_name}.",
                details={
                    "identifier": identifier,
                    "capability": capability_name,
                    "actual_type": type(instance).__name__,
                },
            )
            LOGGER.log(
                error.log_level,
                "loader.instantiate.capability_mismatch identifier=%s expected=%s actual=%s",
                identifier,
                capability_name,
                type(instance).__name__,
            )
            raise CapabilityMismatchException(error)

        LOGGER.info(
            "loader.instantiate.completed identifier=%s capability=%s duration=%.3f",
            identifier,
            capability_name,
            time.monotonic() - start,
        )
        return instance

    def _run_confined(self, factory: Factory) -> Any:
        # コンストラクタによる contextvars の変更を呼び出し元へ漏らさない
        context = contextvars.copy_context()
        with self._scope_factory():
            return context.run(factory)

    def _resolve(self, identifier: str, capability_name: str) -> Factory:
        with self._lock:
            factory = self._factories.get(identifier)
        if factory is not None:
            return factory

        if not self.allow_import:
            raise InstantiationFailureException(
                create_loader_error(
                    ErrorCode.LOADER_INSTANTIATION_FAILED,
                    f"Unable to load '{identifier}': not registered and imports are disabled",
                    details={"identifier": identifier, "capability": capability_name},
                )
            )

        module_name, attr_name = self._split_identifier(identifier)
        if not module_name:
            raise InstantiationFailureException(
                create_loader_error(
                    ErrorCode.LOADER_INSTANTIATION_FAILED,
                    f"Unable to load '{identifier}': not registered and not an import path",
                    details={"identifier": identifier, "capability": capability_name},
                )
            )

        try:
            module = importlib.import_module(module_name)
            target = getattr(module, attr_name)
        except Exception as e:
            raise InstantiationFailureException(
                create_loader_error(
                    ErrorCode.LOADER_INSTANTIATION_FAILED,
                    f"Unable to load class '{identifier}': {e}",
                    details={"identifier": identifier, "capability": capability_name},
                )
            ) from e

        if not callable(target):
            raise InstantiationFailureException(
                create_loader_error(
                    ErrorCode.LOADER_INSTANTIATION_FAILED,
                    f"'{identifier}' does not name a constructible type",
                    details={"identifier": identifier, "capability": capability_name},
                )
            )
        return target

    @staticmethod
    def _split_identifier(identifier: str) -> Tuple[str, str]:
        """'pkg.mod:Class' または 'pkg.mod.Class' を (モジュール, 属性) に分割"""
        if ":" in identifier:
            module_name, _, attr_name = identifier.partition(":")
            return module_name.strip(), attr_name.strip()
        module_name, _, attr_name = identifier.rpartition(".")
        return module_name, attr_name
