"""認証プロバイダ基盤。

認証プロバイダが共通で実装すべきインターフェースを定義する。
資格情報そのものの検証は AuthenticationManager に委譲する。
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class Credential:
    """資格情報のマーカー基底クラス"""


@dataclass(frozen=True)
class UsernamePasswordCredential(Credential):
    """ユーザー名とパスワードによる資格情報

    repr ではパスワードの長さも内容も出さない。
    """

    username: str
    password: str = field(repr=False)

    def __repr__(self) -> str:
        return f"UsernamePasswordCredential(username={self.username}, password=***)"


@dataclass(frozen=True)
class Principal:
    """認証済みの主体"""

    name: str


@dataclass(frozen=True)
class AuthenticationInfo:
    """プロバイダが提供する認証方式の説明

    Attributes:
        name: 人間向けの名称
        description: 説明文
        credential_type: 受け付ける資格情報の型
    """

    name: str
    description: str
    credential_type: type


class AuthenticationStatus(Enum):
    """認証結果のステータス"""
    SUCCESS = "success"
    FAILED = "failed"
    INVALID_CREDENTIAL = "invalid_credential"


@dataclass
class AuthenticationResult:
    """認証結果"""

    status: AuthenticationStatus
    principal: Optional[Principal] = None
    messages: list[str] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return self.status is AuthenticationStatus.SUCCESS


class AuthenticationManager(Protocol):
    """資格情報の検証を担う外部コラボレータ"""

    def authenticate(self, username: str, password: str) -> Optional[Principal]: ...


class AuthenticationProvider(ABC):
    """認証プロバイダの抽象基底クラス。

    レジストリはインスタンス生成後、利用前に一度だけ initialize() を呼び出す。
    """

    @abstractmethod
    def initialize(self) -> None:
        """プロバイダを利用可能な状態にする。"""

    @abstractmethod
    def get_authentication_info(self) -> list[AuthenticationInfo]:
        """提供する認証方式の一覧を返す。"""

    def supports(self, credential: Credential) -> bool:
        """資格情報の型を扱えるかどうか"""
        return any(
            isinstance(credential, info.credential_type)
            for info in self.get_authentication_info()
        )

    @abstractmethod
    def authenticate(
        self,
        manager: AuthenticationManager,
        credential: Credential,
    ) -> AuthenticationResult:
        """資格情報を manager に委譲して認証する。"""


class AbstractAuthenticationProvider(AuthenticationProvider):
    """AuthenticationProvider の共通実装

    サブクラスは get_authentication_info() と _do_authenticate() を実装する。
    """

    def __init__(self) -> None:
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> None:
        self._do_initialize()
        self._initialized = True
        logger.debug("provider.initialized type=%s", type(self).__name__)

    def _do_initialize(self) -> None:
        """初期化フック（既定では何もしない）"""

    def authenticate(
        self,
        manager: AuthenticationManager,
        credential: Credential,
    ) -> AuthenticationResult:
        if not self._initialized:
            raise RuntimeError(f"{type(self).__name__} is not initialized")

        if not self.supports(credential):
            return AuthenticationResult(
                status=AuthenticationStatus.INVALID_CREDENTIAL,
                messages=[f"Unsupported credential type: {type(credential).__name__}"],
            )

        principal = self._do_authenticate(manager, credential)
        if principal is None:
            return AuthenticationResult(
                status=AuthenticationStatus.FAILED,
                messages=["Authentication failed."],
            )
        return AuthenticationResult(status=AuthenticationStatus.SUCCESS, principal=principal)

    @abstractmethod
    def _do_authenticate(
        self,
        manager: AuthenticationManager,
        credential: Credential,
    ) -> Optional[Principal]:
        """資格情報を検証し、成功時は Principal を返す"""
