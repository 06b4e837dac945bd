from .anime_mapper import AnimeMapperPort
from .preference_store import PreferenceStorePort
from .result_cache import StreamResultCachePort
from .vod_lookup import VodLookupPort

__all__ = [
    "AnimeMapperPort",
    "PreferenceStorePort",
    "StreamResultCachePort",
    "VodLookupPort",
]
