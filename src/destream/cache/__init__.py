"""
Session cache for destream.
"""

from destream.cache.token_cache import TokenCache, token_expiry

__all__ = ["TokenCache", "token_expiry"]
