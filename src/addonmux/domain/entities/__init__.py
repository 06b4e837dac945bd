from .addon import (
    BUILTIN_SUBTITLE_ADDON_ID,
    BUILTIN_SUBTITLE_ADDON_NAME,
    BUILTIN_SUBTITLE_ADDON_URL,
    Addon,
    AddonBehaviorHints,
    AddonCatalog,
    AddonCatalogExtra,
    AddonManifest,
    AddonResource,
    AddonType,
    CatalogPage,
)
from .stream import (
    AnimeHints,
    CachedStreamResult,
    ContentType,
    ProxyHeaders,
    StreamBehaviorHints,
    StreamRequest,
    StreamResult,
    StreamSource,
    Subtitle,
)

__all__ = [
    "BUILTIN_SUBTITLE_ADDON_ID",
    "BUILTIN_SUBTITLE_ADDON_NAME",
    "BUILTIN_SUBTITLE_ADDON_URL",
    "Addon",
    "AddonBehaviorHints",
    "AddonCatalog",
    "AddonCatalogExtra",
    "AddonManifest",
    "AddonResource",
    "AddonType",
    "AnimeHints",
    "CachedStreamResult",
    "CatalogPage",
    "ContentType",
    "ProxyHeaders",
    "StreamBehaviorHints",
    "StreamRequest",
    "StreamResult",
    "StreamSource",
    "Subtitle",
]
