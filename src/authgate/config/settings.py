"""Pydantic V2 ベースの統合設定モデル"""

import logging
from pathlib import Path
from typing import Any, List, Optional, Tuple

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from authgate.errors import ConfigException, create_config_error

logger = logging.getLogger(__name__)


class AuthGateSettings(BaseSettings):
    """authgate の統合設定"""

    model_config = SettingsConfigDict(
        env_prefix="AUTHGATE_",
        env_file=".env",
        extra="forbid",
    )

    # カタログ設定
    catalog_path: Optional[Path] = None

    # ローダー設定
    allow_import: bool = True

    # セッションストア設定
    max_sessions: Optional[int] = Field(default=None, ge=1)
    session_lock_stripes: int = Field(default=64, ge=1, le=4096)
    stop_timeout: Optional[float] = Field(default=None, gt=0)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ) -> Tuple[Any, ...]:
        """設定ソースの優先順位をカスタマイズ（env > dotenv > init）"""
        return (
            env_settings,
            dotenv_settings,
            init_settings,
            file_secret_settings,
        )

    @field_validator("catalog_path")
    @classmethod
    def validate_catalog_path(cls, value: Optional[Path]) -> Optional[Path]:
        """カタログファイルが指定された場合は存在を必須化"""
        if value is not None and not value.is_file():
            raise ValueError(f"catalog_path にファイルが存在しません: {value}")
        return value

    def dump_safe(self) -> dict:
        """ログ出力用に設定を辞書化する"""
        data = self.model_dump()
        if data.get("catalog_path") is not None:
            data["catalog_path"] = str(data["catalog_path"])
        return data


def format_validation_errors(exc: ValidationError) -> List[str]:
    """pydantic の検証エラーを "field: message" 形式に整形"""
    return [
        f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
        for err in exc.errors()
    ]


def load_settings(**values: Any) -> AuthGateSettings:
    """設定を読み込む

    Raises:
        ConfigException: 環境変数・.env・引数のいずれかが不正な場合
    """
    try:
        return AuthGateSettings(**values)
    except ValidationError as exc:
        errors = format_validation_errors(exc)
        error = create_config_error(
            f"Invalid authgate settings: {'; '.join(errors)}",
            details={"errors": errors},
        )
        logger.log(error.log_level, "config.settings.invalid errors=%s", errors)
        raise ConfigException(error) from exc
