"""
プロバイダカタログの定義と読み込み

名前から実装識別子への対応表を提供する。レジストリからは読み取り専用として扱われる。
"""

import logging
import threading
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Protocol

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from authgate.config.settings import format_validation_errors
from authgate.errors import CatalogException, ErrorCode, create_catalog_error

DEFAULT_REALM_NAME = "DEFAULT"

logger = logging.getLogger(__name__)


class ProviderCatalog(Protocol):
    """名前 → 実装識別子の対応表"""

    def all_providers(self) -> Mapping[str, str]: ...

    def all_realms(self) -> Mapping[str, str]: ...


class CatalogModel(BaseModel):
    """カタログYAMLのスキーマ"""

    model_config = ConfigDict(extra="forbid")

    providers: Dict[str, str] = Field(default_factory=dict)
    realms: Dict[str, str] = Field(default_factory=dict)

    @field_validator("providers", "realms")
    @classmethod
    def validate_entries(cls, value: Dict[str, str]) -> Dict[str, str]:
        for name, identifier in value.items():
            if not name.strip():
                raise ValueError("name must be a non-empty string")
            if not identifier.strip():
                raise ValueError(f"identifier for '{name}' must be a non-empty string")
        return value


class StaticProviderCatalog:
    """メモリ上の対応表を保持するカタログ"""

    def __init__(
        self,
        providers: Optional[Mapping[str, str]] = None,
        realms: Optional[Mapping[str, str]] = None,
    ) -> None:
        # 呼び出し元の辞書を後から書き換えられても影響しないようコピーする
        self._providers = MappingProxyType(dict(providers or {}))
        self._realms = MappingProxyType(dict(realms or {}))

    def all_providers(self) -> Mapping[str, str]:
        return self._providers

    def all_realms(self) -> Mapping[str, str]:
        return self._realms

    def __repr__(self) -> str:
        return (
            f"StaticProviderCatalog(providers={sorted(self._providers)}, "
            f"realms={sorted(self._realms)})"
        )


class YamlProviderCatalog:
    """YAMLファイルから一度だけ読み込むカタログ"""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self._cache: Optional[StaticProviderCatalog] = None

    def all_providers(self) -> Mapping[str, str]:
        return self._load().all_providers()

    def all_realms(self) -> Mapping[str, str]:
        return self._load().all_realms()

    def _load(self) -> StaticProviderCatalog:
        cached = self._cache
        if cached is not None:
            return cached

        with self._lock:
            if self._cache is None:
                try:
                    self._cache = self._read()
                except CatalogException as exc:
                    logger.log(exc.log_level, "catalog.load.failed path=%s error=%s", self.path, exc)
                    raise
            return self._cache

    def _read(self) -> StaticProviderCatalog:
        try:
            content = self.path.read_text(encoding="utf-8")
            data = yaml.safe_load(content)
        except (OSError, yaml.YAMLError) as e:
            raise CatalogException(
                create_catalog_error(
                    ErrorCode.CATALOG_PARSE_ERROR,
                    f"Failed to read catalog from {self.path}: {e}",
                    details={"path": str(self.path)},
                )
            ) from e

        model = self._validate_or_raise(data or {})
        logger.info(
            "catalog.loaded path=%s providers=%d realms=%d",
            self.path,
            len(model.providers),
            len(model.realms),
        )
        return StaticProviderCatalog(providers=model.providers, realms=model.realms)

    def _validate_or_raise(self, data: Any) -> CatalogModel:
        if not isinstance(data, dict):
            raise CatalogException(
                create_catalog_error(
                    ErrorCode.CATALOG_INVALID,
                    f"Catalog {self.path} must be a mapping",
                    details={"path": str(self.path)},
                )
            )
        try:
            return CatalogModel.model_validate(data)
        except ValidationError as exc:
            errors = format_validation_errors(exc)
            raise CatalogException(
                create_catalog_error(
                    ErrorCode.CATALOG_INVALID,
                    f"Invalid catalog {self.path}: {'; '.join(errors)}",
                    details={"path": str(self.path), "errors": errors},
                )
            ) from exc


BUILTIN_CATALOG = StaticProviderCatalog(
    providers={"password": "PasswordProvider"},
    realms={DEFAULT_REALM_NAME: "DefaultRealm"},
)
