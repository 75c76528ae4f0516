"""セキュリティレルム

レルムは生成時点で利用可能とみなし、initialize() の段階を持たない。
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from authgate.config.catalog import DEFAULT_REALM_NAME


class SecurityRealm(ABC):
    """セキュリティレルムの抽象基底クラス"""

    @property
    @abstractmethod
    def name(self) -> str:
        """レルム名"""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name})"


class DefaultSecurityRealm(SecurityRealm):
    """既定レルム

    名前は常に "DEFAULT"。カタログ上で別名に登録されても name は変わらない。
    独自の名前が必要な場合は SecurityRealm を実装したクラスを登録する。
    """

    @property
    def name(self) -> str:
        return DEFAULT_REALM_NAME
