from app.client.cache import BoardCache, CacheEntry, EntryStatus
from app.client.mutations import BoardClient

__all__ = ["BoardCache", "BoardClient", "CacheEntry", "EntryStatus"]
