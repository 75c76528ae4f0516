"""認証プロバイダとレルムの公開API。"""

from __future__ import annotations

from authgate.auth.base import (
    AbstractAuthenticationProvider,
    AuthenticationInfo,
    AuthenticationManager,
    AuthenticationProvider,
    AuthenticationResult,
    AuthenticationStatus,
    Credential,
    Principal,
    UsernamePasswordCredential,
)
from authgate.auth.password import PasswordAuthenticationProvider
from authgate.auth.realm import DefaultSecurityRealm, SecurityRealm

__all__ = [
    "AbstractAuthenticationProvider",
    "AuthenticationInfo",
    "AuthenticationManager",
    "AuthenticationProvider",
    "AuthenticationResult",
    "AuthenticationStatus",
    "Credential",
    "DefaultSecurityRealm",
    "PasswordAuthenticationProvider",
    "Principal",
    "SecurityRealm",
    "UsernamePasswordCredential",
]
