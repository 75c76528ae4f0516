"""
ProviderRegistry/RealmRegistry のユニットテスト
"""

import unittest
from typing import List

from authgate.auth.base import (
    AbstractAuthenticationProvider,
    AuthenticationInfo,
    AuthenticationProvider,
    UsernamePasswordCredential,
)
from authgate.auth.password import PasswordAuthenticationProvider
from authgate.auth.realm import DefaultSecurityRealm, SecurityRealm
from authgate.config.catalog import StaticProviderCatalog
from authgate.core.loader import Loader
from authgate.core.registry import ProviderRegistry, RealmRegistry
from authgate.errors import (
    CapabilityMismatchException,
    ErrorCode,
    InstantiationFailureException,
    UnknownProviderException,
    UnknownRealmException,
)


class RecordingProvider(AbstractAuthenticationProvider):
    """initialize() の呼び出し回数を記録する"""

    instances: List["RecordingProvider"] = []

    def __init__(self) -> None:
        super().__init__()
        self.initialize_calls = 0
        RecordingProvider.instances.append(self)

    def initialize(self) -> None:
        self.initialize_calls += 1
        super().initialize()

    def get_authentication_info(self) -> List[AuthenticationInfo]:
        return [AuthenticationInfo("recording", "records calls", UsernamePasswordCredential)]

    def _do_authenticate(self, manager, credential):
        return None


class FailingInitializeProvider(RecordingProvider):
    def initialize(self) -> None:
        raise RuntimeError("initialize failed")


class TestProviderRegistry(unittest.TestCase):
    """ProviderRegistry の挙動を検証"""

    def setUp(self):
        RecordingProvider.instances = []
        self.loader = Loader(
            {"RecordingProvider": RecordingProvider, "FailingProvider": FailingInitializeProvider}
        )
        self.catalog = StaticProviderCatalog(
            providers={
                "password": "PasswordProvider",
                "recording": "RecordingProvider",
                "failing": "FailingProvider",
                "broken": "no_such_module_xyz:Provider",
                "realm-as-provider": "DefaultRealm",
            }
        )
        self.registry = ProviderRegistry(self.catalog, self.loader)

    def test_list_provider_names(self):
        self.assertEqual(
            set(self.registry.list_provider_names()),
            {"password", "recording", "failing", "broken", "realm-as-provider"},
        )

    def test_supports(self):
        self.assertTrue(self.registry.supports("password"))
        self.assertFalse(self.registry.supports("kerberos"))

    def test_get_provider_returns_initialized_provider(self):
        """解決したプロバイダは initialize 済み"""
        provider = self.registry.get_provider("password")

        self.assertIsInstance(provider, PasswordAuthenticationProvider)
        self.assertTrue(provider.initialized)
        info = provider.get_authentication_info()
        self.assertEqual(info[0].credential_type, UsernamePasswordCredential)
        self.assertIn("Username and Password", info[0].name)

    def test_get_provider_is_cached(self):
        """2回目以降は同一インスタンスで initialize は一度だけ"""
        first = self.registry.get_provider("recording")
        second = self.registry.get_provider("recording")
        third = self.registry.get_provider("recording")

        self.assertIs(first, second)
        self.assertIs(second, third)
        self.assertEqual(len(RecordingProvider.instances), 1)
        self.assertEqual(first.initialize_calls, 1)
        self.assertTrue(self.registry.is_cached("recording"))
        self.assertEqual(self.registry.cached_names(), ["recording"])

    def test_unknown_provider(self):
        """未登録名は UnknownProviderException で既知の名前を含む"""
        with self.assertRaises(UnknownProviderException) as ctx:
            self.registry.get_provider("kerberos")

        exc = ctx.exception
        self.assertEqual(exc.error.code, ErrorCode.REGISTRY_UNKNOWN_PROVIDER.value)
        self.assertTrue(exc.error.recoverable)
        self.assertEqual(exc.requested_name, "kerberos")
        self.assertIn("password", exc.known_names)
        self.assertIn("password", exc.error.message)
        self.assertFalse(self.registry.is_cached("kerberos"))

    def test_initialize_failure_is_not_cached(self):
        """initialize が失敗したプロバイダはキャッシュされない"""
        with self.assertRaises(RuntimeError):
            self.registry.get_provider("failing")
        self.assertFalse(self.registry.is_cached("failing"))

    def test_instantiation_failure_propagates(self):
        with self.assertRaises(InstantiationFailureException) as ctx:
            self.registry.get_provider("broken")
        self.assertEqual(ctx.exception.identifier, "no_such_module_xyz:Provider")
        self.assertFalse(self.registry.is_cached("broken"))

    def test_capability_mismatch_propagates(self):
        with self.assertRaises(CapabilityMismatchException):
            self.registry.get_provider("realm-as-provider")

    def test_default_loader(self):
        registry = ProviderRegistry(StaticProviderCatalog(providers={"password": "PasswordProvider"}))
        self.assertIsInstance(registry.get_provider("password"), AuthenticationProvider)


class CountingRealm(DefaultSecurityRealm):
    created = 0

    def __init__(self) -> None:
        CountingRealm.created += 1

    def initialize(self) -> None:
        raise AssertionError("realms must not be initialized")


class TestRealmRegistry(unittest.TestCase):
    """RealmRegistry の挙動を検証"""

    def setUp(self):
        CountingRealm.created = 0
        self.loader = Loader({"CountingRealm": CountingRealm})
        self.catalog = StaticProviderCatalog(
            realms={"DEFAULT": "DefaultRealm", "counting": "CountingRealm"}
        )
        self.registry = RealmRegistry(self.catalog, self.loader)

    def test_get_realm_is_cached(self):
        first = self.registry.get_realm("counting")
        second = self.registry.get_realm("counting")

        self.assertIs(first, second)
        self.assertEqual(CountingRealm.created, 1)
        self.assertTrue(self.registry.is_cached("counting"))

    def test_realm_is_not_initialized(self):
        """レルムには initialize() を呼ばない"""
        realm = self.registry.get_realm("counting")
        self.assertIsInstance(realm, CountingRealm)

    def test_default_realm(self):
        """get_default_realm は get_realm('DEFAULT') と同一"""
        default = self.registry.get_default_realm()
        self.assertIs(default, self.registry.get_realm("DEFAULT"))
        self.assertIsInstance(default, SecurityRealm)
        self.assertEqual(default.name, "DEFAULT")

    def test_unknown_realm(self):
        with self.assertRaises(UnknownRealmException) as ctx:
            self.registry.get_realm("corporate")
        exc = ctx.exception
        self.assertEqual(exc.error.code, ErrorCode.REGISTRY_UNKNOWN_REALM.value)
        self.assertEqual(exc.requested_name, "corporate")
        self.assertEqual(set(exc.known_names), {"DEFAULT", "counting"})
        self.assertFalse(self.registry.is_cached("corporate"))

    def test_unknown_realm_leaves_no_cache_state(self):
        """未登録名の要求でキャッシュ内部のロックが増えない"""
        for i in range(200):
            with self.assertRaises(UnknownRealmException):
                self.registry.get_realm(f"missing-{i}")

        self.assertEqual(len(self.registry._cache._locks), 0)
        self.registry.get_realm("counting")
        self.assertEqual(len(self.registry._cache._locks), 1)

    def test_unknown_names_logged_at_error_level(self):
        """未登録名はエラー情報のログレベルで記録される"""
        with self.assertLogs("authgate.core.registry", level="DEBUG") as logs:
            with self.assertRaises(UnknownRealmException) as ctx:
                self.registry.get_realm("corporate")

        self.assertEqual(logs.records[0].levelno, ctx.exception.log_level)
        self.assertIn("registry.realm.unknown", logs.records[0].getMessage())

    def test_default_realm_missing_fails_like_get_realm(self):
        """DEFAULT が未登録なら両者とも同じ失敗"""
        registry = RealmRegistry(StaticProviderCatalog(realms={"other": "DefaultRealm"}), self.loader)

        with self.assertRaises(UnknownRealmException) as default_ctx:
            registry.get_default_realm()
        with self.assertRaises(UnknownRealmException) as named_ctx:
            registry.get_realm("DEFAULT")

        self.assertEqual(default_ctx.exception.error, named_ctx.exception.error)

    def test_default_realm_keeps_its_name_under_alias(self):
        """DefaultRealm を別名で登録しても name は DEFAULT のまま"""
        registry = RealmRegistry(StaticProviderCatalog(realms={"corporate": "DefaultRealm"}))

        realm = registry.get_realm("corporate")
        self.assertIsInstance(realm, DefaultSecurityRealm)
        self.assertEqual(realm.name, "DEFAULT")

    def test_realm_capability_mismatch(self):
        registry = RealmRegistry(StaticProviderCatalog(realms={"bad": "PasswordProvider"}))
        with self.assertRaises(CapabilityMismatchException):
            registry.get_realm("bad")


if __name__ == "__main__":
    unittest.main()
