"""
エラー定義

authgate で使用されるエラーコードと例外クラス
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class ErrorCode(Enum):
    """エラーコード

    カテゴリ別にエラーコードを定義:
    - CONFIG_xxx: 設定エラー
    - CATALOG_xxx: カタログエラー
    - REGISTRY_xxx: レジストリ解決エラー
    - LOADER_xxx: インスタンス生成エラー
    - SESSION_xxx: セッションストアエラー
    """
    # 設定エラー
    CONFIG_INVALID_VALUE = "CONFIG_001"

    # カタログエラー
    CATALOG_PARSE_ERROR = "CATALOG_001"
    CATALOG_INVALID = "CATALOG_002"

    # レジストリエラー
    REGISTRY_UNKNOWN_PROVIDER = "REGISTRY_001"
    REGISTRY_UNKNOWN_REALM = "REGISTRY_002"

    # ローダーエラー
    LOADER_INSTANTIATION_FAILED = "LOADER_001"
    LOADER_CAPABILITY_MISMATCH = "LOADER_002"

    # セッションストアエラー
    SESSION_STORE_NOT_STARTED = "SESSION_001"
    SESSION_STORE_ALREADY_STARTED = "SESSION_002"
    SESSION_CAPACITY_EXCEEDED = "SESSION_003"
    SESSION_STOP_TIMEOUT = "SESSION_004"


@dataclass
class AuthGateError:
    """authgate エラー情報

    Attributes:
        code: エラーコード文字列
        message: エラーメッセージ
        details: 追加のエラー詳細情報
        recoverable: 呼び出し側で復旧可能かどうか
    """
    code: str
    message: str
    details: Optional[Dict[str, Any]] = None
    recoverable: bool = False
    log_level: int = logging.ERROR


class AuthGateException(Exception):
    """authgate 例外クラス

    AuthGateErrorをラップする例外クラス
    """

    def __init__(self, error: AuthGateError):
        """AuthGateExceptionを初期化

        Args:
            error: AuthGateErrorインスタンス
        """
        self.error = error
        self.log_level = error.log_level
        super().__init__(f"[{error.code}] {error.message}")

    def _detail(self, key: str, default: Any = None) -> Any:
        return (self.error.details or {}).get(key, default)


class ConfigException(AuthGateException):
    """設定値の検証エラー"""


class CatalogException(AuthGateException):
    """カタログの読み込み・検証エラー"""


class RegistryException(AuthGateException):
    """名前解決に関するエラー"""


class UnknownProviderException(RegistryException):
    """カタログに存在しないプロバイダ名が要求された"""

    @property
    def requested_name(self) -> Optional[str]:
        return self._detail("provider")

    @property
    def known_names(self) -> List[str]:
        return list(self._detail("known_providers", []))


class UnknownRealmException(RegistryException):
    """カタログに存在しないレルム名が要求された"""

    @property
    def requested_name(self) -> Optional[str]:
        return self._detail("realm")

    @property
    def known_names(self) -> List[str]:
        return list(self._detail("known_realms", []))


class LoaderException(AuthGateException):
    """実装識別子からのインスタンス生成エラー"""

    @property
    def identifier(self) -> Optional[str]:
        return self._detail("identifier")


class InstantiationFailureException(LoaderException):
    """識別子を型に解決できない、またはコンストラクタが失敗した"""


class CapabilityMismatchException(LoaderException):
    """生成されたオブジェクトが要求されたケイパビリティを満たさない"""


class SessionStoreException(AuthGateException):
    """セッションストアのエラー"""


class SessionStoreStateException(SessionStoreException):
    """ライフサイクル外での操作（停止中のストアへのアクセスなど）"""


class SessionCapacityException(SessionStoreException):
    """セッション数が上限に達した"""


ERROR_CODE_LOG_LEVEL: Dict[ErrorCode, int] = {
    ErrorCode.REGISTRY_UNKNOWN_PROVIDER: logging.WARNING,
    ErrorCode.REGISTRY_UNKNOWN_REALM: logging.WARNING,
    ErrorCode.LOADER_INSTANTIATION_FAILED: logging.ERROR,
    ErrorCode.LOADER_CAPABILITY_MISMATCH: logging.ERROR,
    ErrorCode.CATALOG_PARSE_ERROR: logging.ERROR,
    ErrorCode.CATALOG_INVALID: logging.ERROR,
    ErrorCode.SESSION_CAPACITY_EXCEEDED: logging.ERROR,
}


# よく使用されるエラーのファクトリ関数
def create_config_error(message: str, details: Optional[Dict[str, Any]] = None) -> AuthGateError:
    """設定エラーを作成

    Args:
        message: エラーメッセージ
        details: 追加詳細

    Returns:
        AuthGateError: 設定エラー
    """
    return AuthGateError(
        code=ErrorCode.CONFIG_INVALID_VALUE.value,
        message=message,
        details=details,
        recoverable=False,
        log_level=logging.ERROR,
    )


def create_catalog_error(
    code: ErrorCode,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> AuthGateError:
    """カタログエラーを作成"""
    return AuthGateError(
        code=code.value,
        message=message,
        details=details,
        recoverable=False,
        log_level=ERROR_CODE_LOG_LEVEL.get(code, logging.ERROR),
    )


def create_registry_error(
    code: ErrorCode,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> AuthGateError:
    """レジストリエラーを作成

    未登録名の要求は呼び出し側でフォールバック可能なため recoverable とする。

    Args:
        code: エラーコード
        message: エラーメッセージ
        details: 要求された名前と既知の名前一覧

    Returns:
        AuthGateError: レジストリエラー
    """
    return AuthGateError(
        code=code.value,
        message=message,
        details=details,
        recoverable=True,
        log_level=ERROR_CODE_LOG_LEVEL.get(code, logging.WARNING),
    )


def create_loader_error(
    code: ErrorCode,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    log_level: Optional[int] = None,
) -> AuthGateError:
    """ローダーエラーを作成

    同じ入力で再試行しても成功しないため recoverable=False とする。

    Args:
        code: エラーコード
        message: エラーメッセージ
        details: 識別子や期待されたケイパビリティ

    Returns:
        AuthGateError: ローダーエラー
    """
    return AuthGateError(
        code=code.value,
        message=message,
        details=details,
        recoverable=False,
        log_level=log_level or ERROR_CODE_LOG_LEVEL.get(code, logging.ERROR),
    )


def create_session_error(
    code: ErrorCode,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> AuthGateError:
    """セッションストアエラーを作成"""
    return AuthGateError(
        code=code.value,
        message=message,
        details=details,
        recoverable=False,
        log_level=ERROR_CODE_LOG_LEVEL.get(code, logging.ERROR),
    )
