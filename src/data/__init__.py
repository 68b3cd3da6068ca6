from .character_cache import CharacterCache, normalize_cache_key

__all__ = [
    "CharacterCache",
    "normalize_cache_key",
]
