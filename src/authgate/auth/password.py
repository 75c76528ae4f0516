"""ユーザー名/パスワード認証プロバイダ"""

from __future__ import annotations

from typing import Optional, cast

from authgate.auth.base import (
    AbstractAuthenticationProvider,
    AuthenticationInfo,
    AuthenticationManager,
    Credential,
    Principal,
    UsernamePasswordCredential,
)


class PasswordAuthenticationProvider(AbstractAuthenticationProvider):
    """ユーザー名とパスワードを AuthenticationManager で検証する"""

    def get_authentication_info(self) -> list[AuthenticationInfo]:
        return [
            AuthenticationInfo(
                name="Username and Password authentication service.",
                description=(
                    "A simple authentication service using a username and password "
                    "as credentials."
                ),
                credential_type=UsernamePasswordCredential,
            )
        ]

    def _do_authenticate(
        self,
        manager: AuthenticationManager,
        credential: Credential,
    ) -> Optional[Principal]:
        user_credential = cast(UsernamePasswordCredential, credential)
        return manager.authenticate(user_credential.username, user_credential.password)
