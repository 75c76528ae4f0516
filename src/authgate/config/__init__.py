"""設定管理 - 設定とカタログの読み込み"""

from authgate.config.catalog import (
    BUILTIN_CATALOG,
    DEFAULT_REALM_NAME,
    CatalogModel,
    ProviderCatalog,
    StaticProviderCatalog,
    YamlProviderCatalog,
)
from authgate.config.settings import AuthGateSettings, load_settings

__all__ = [
    "AuthGateSettings",
    "BUILTIN_CATALOG",
    "CatalogModel",
    "DEFAULT_REALM_NAME",
    "ProviderCatalog",
    "StaticProviderCatalog",
    "YamlProviderCatalog",
    "load_settings",
]
