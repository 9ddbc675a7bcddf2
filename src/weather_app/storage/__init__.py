from .cache import CacheEntry, WeatherCache
from .db import initialize_database
from .favorites import FavoritesRepository
from .history import SearchHistoryStore
from .preferences import PreferencesStore

__all__ = [
    "CacheEntry",
    "FavoritesRepository",
    "PreferencesStore",
    "SearchHistoryStore",
    "WeatherCache",
    "initialize_database",
]
