"""
セッションのデータモデル
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Generic, Hashable, Optional, TypeVar

K = TypeVar("K", bound=Hashable)


@dataclass(frozen=True)
class SessionId(Generic[K]):
    """セッション識別子

    値は検索キーとしてのみ使用する。
    """

    value: K

    @classmethod
    def generate(cls) -> "SessionId[str]":
        return SessionId(uuid.uuid4().hex)

    def __str__(self) -> str:
        return str(self.value)


@dataclass
class Session:
    """セッション

    Attributes:
        id: セッション識別子
        attributes: 任意の属性
        created_at: 作成時刻
        last_accessed_at: 最終アクセス時刻
        valid: 無効化されていないか
    """

    id: SessionId
    attributes: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=datetime.now)
    last_accessed_at: datetime = field(default_factory=datetime.now)
    valid: bool = True

    @classmethod
    def create(cls, attributes: Optional[Dict[str, Any]] = None) -> "Session":
        """ランダムな識別子で新規セッションを作成"""
        return cls(id=SessionId.generate(), attributes=dict(attributes or {}))

    @property
    def is_valid(self) -> bool:
        return self.valid

    def touch(self) -> None:
        self.last_accessed_at = datetime.now()

    def get_attribute(self, key: str, default: Any = None) -> Any:
        return self.attributes.get(key, default)

    def set_attribute(self, key: str, value: Any) -> None:
        self.attributes[key] = value

    def remove_attribute(self, key: str) -> None:
        self.attributes.pop(key, None)

    def invalidate(self) -> None:
        """属性を破棄してセッションを無効化する"""
        self.attributes.clear()
        self.valid = False

    def snapshot(self) -> "Session":
        """属性辞書だけを複製したコピー

        属性値そのものは共有する。値がコピー不能なオブジェクトでもよい。
        """
        return replace(self, attributes=dict(self.attributes))
