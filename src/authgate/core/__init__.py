"""レジストリとローダー"""

from authgate.core.loader import BUILTIN_FACTORIES, Loader
from authgate.core.registry import InstanceCache, ProviderRegistry, RealmRegistry

__all__ = [
    "BUILTIN_FACTORIES",
    "InstanceCache",
    "Loader",
    "ProviderRegistry",
    "RealmRegistry",
]
