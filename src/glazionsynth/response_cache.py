"""
Response Cache - Short-TTL map from request fingerprint to synthesized answer
"""

import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Any

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    content: str
    expires_at: float


def fingerprint(question: str, top_k: Optional[int] = None,
                user_id: Optional[str] = None) -> str:
    """Stable cache key for (question, top_k, user_id)"""
    raw = f"{question}::{top_k if top_k is not None else '-'}::{user_id or 'anon'}"
    return hashlib.sha256(raw.encode("utf-8", errors="surrogatepass")).hexdigest()


class ResponseCache:
    """TTL cache with lazy expiry.
    
    Entries past ``expires_at`` are treated as absent and removed on read.
    With ``max_entries`` set, the oldest inserted entry is dropped to make
    room. ``max_entries=0`` leaves growth bounded by the TTL alone.
    """
    
    def __init__(self, max_entries: int = 1000,
                 clock: Callable[[], float] = time.monotonic):
        self.max_entries = max_entries
        self.clock = clock
        self.entries: Dict[str, CacheEntry] = {}
        self.hits = 0
        self.misses = 0
    
    def get(self, key: str) -> Optional[str]:
        """Return cached content, or None on miss or expiry"""
        entry = self.entries.get(key)
        if entry is None:
            self.misses += 1
            return None
        if self.clock() > entry.expires_at:
            del self.entries[key]
            self.misses += 1
            return None
        self.hits += 1
        return entry.content
    
    def set(self, key: str, content: str, ttl_seconds: float):
        """Store content unconditionally; a non-positive TTL stores nothing"""
        if ttl_seconds <= 0:
            return
        if key in self.entries:
            del self.entries[key]
        elif self.max_entries and len(self.entries) >= self.max_entries:
            oldest = next(iter(self.entries))
            del self.entries[oldest]
        self.entries[key] = CacheEntry(content, self.clock() + ttl_seconds)
    
    def clear(self):
        self.entries.clear()
    
    def get_stats(self) -> Dict[str, Any]:
        return {
            "entries": len(self.entries),
            "hits": self.hits,
            "misses": self.misses,
            "max_entries": self.max_entries,
        }
