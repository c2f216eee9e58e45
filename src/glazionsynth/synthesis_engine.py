"""
Synthesis Engine - Answers one question from the KB and conversational upstreams
"""

import asyncio
import logging
import re
import time
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, Any, Optional

from .circuit_breaker import BreakerRegistry
from .merge import (
    CONVERSATION, KB, BRANCH_FALLBACK, UpstreamAnswer, synthesize,
)
from .monitors import SynthesisMonitor
from .response_cache import ResponseCache, fingerprint
from .sanitizer import Sanitizer
from .secure_config import is_configured_url
from .settings import Settings
from .upstream_client import UpstreamClient, UpstreamError

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")

COMPLEXITY_TERMS = [" and ", " or ", " vs ", "compare", "list", "step by step",
                    "why", "how to", "fix", "troubleshoot"]
COMPREHENSIVE_TERMS = ["all", "everything", "complete", "detailed", "step by step"]


@dataclass
class SynthesisResult:
    """Reply for the caller plus internal bookkeeping for logs and metrics"""
    content: str
    branch: str
    primary: Optional[str] = None
    kb_strong: bool = False
    conv_strong: bool = False
    cached: bool = False


def normalize_message(message: str) -> str:
    return _WHITESPACE.sub(" ", (message or "").strip())


def resolve_top_k(message: str, requested: Optional[int] = None, max_top_k: int = 12) -> int:
    """Retrieval depth for the KB upstream.

    An explicit positive request is clamped to ``1..max_top_k``; otherwise
    short questions get 3, comprehensive ones 10, complex ones 8 and the
    rest 5.
    """
    if isinstance(requested, int) and not isinstance(requested, bool) and requested > 0:
        return min(max(1, requested), max_top_k)

    msg = message.lower()
    words = msg.split()
    is_short = len(words) <= 5 and len(msg) < 50
    is_complex = any(t in msg for t in COMPLEXITY_TERMS) or len(words) > 15
    is_comprehensive = any(t in msg for t in COMPREHENSIVE_TERMS)

    if is_short:
        return 3
    if is_comprehensive:
        return 10
    if is_complex:
        return 8
    return 5


class SynthesisEngine:
    """Process-wide request handler owning the cache, breakers and HTTP client.

    Cache and breaker state are mutated without locks; this relies on all
    requests running on one event loop in one process. Nothing is persisted,
    so a restart (or a second process) starts with empty state.
    """

    def __init__(self, settings: Settings,
                 client: Optional[UpstreamClient] = None,
                 clock: Callable[[], float] = time.monotonic,
                 monitor: Optional[SynthesisMonitor] = None):
        self.settings = settings
        self.client = client or UpstreamClient()
        self.clock = clock
        self.monitor = monitor or SynthesisMonitor()
        self.cache = ResponseCache(max_entries=settings.max_cache_entries, clock=clock)
        self.breakers = BreakerRegistry(
            threshold=settings.circuit_breaker_threshold,
            cooldown_ms=settings.circuit_breaker_cooldown_ms,
            clock=clock,
        )
        self.sanitizer = Sanitizer(settings.blocked_domains)
        self.query_count = 0

    async def answer(self, message: str, top_k: Optional[int] = None,
                     user_id: Optional[str] = None,
                     request_id: Optional[str] = None) -> SynthesisResult:
        """Answer one question; always produces some content"""
        request_id = request_id or str(uuid.uuid4())
        start_time = time.time()
        self.query_count += 1

        question = normalize_message(message)
        resolved_top_k = resolve_top_k(question, top_k, self.settings.max_top_k)
        cache_key = fingerprint(question, resolved_top_k, user_id)

        cached = self.cache.get(cache_key)
        if cached is not None:
            latency = time.time() - start_time
            logger.info(f"[{request_id}] branch=cache_hit topK={resolved_top_k}")
            self.monitor.record_request("cache_hit", latency, cached=True)
            return SynthesisResult(content=cached, branch="cache_hit", cached=True)

        kb_payload, conv_payload = await asyncio.gather(
            self._guarded_call(
                KB, self.settings.kb_url,
                {"question": question, "topK": resolved_top_k},
                self.settings.kb_timeout_ms, request_id,
            ),
            self._guarded_call(
                CONVERSATION, self.settings.conv_url,
                {"question": question, "userId": user_id},
                self.settings.conv_timeout_ms, request_id,
            ),
        )

        kb = UpstreamAnswer.from_payload(kb_payload) if kb_payload is not None else None
        conv = UpstreamAnswer.from_payload(conv_payload) if conv_payload is not None else None

        outcome = synthesize(question, kb, conv, self.sanitizer, self.settings)
        result = SynthesisResult(**outcome)

        # Weak answers and the fallback text are never cached
        if result.kb_strong or result.conv_strong:
            self.cache.set(cache_key, result.content, self.settings.cache_ttl_seconds)

        latency = time.time() - start_time
        self.monitor.record_request(result.branch, latency)
        log = logger.warning if result.branch == BRANCH_FALLBACK else logger.info
        log(
            f"[{request_id}] branch={result.branch} primary={result.primary} "
            f"kb_strong={result.kb_strong} conv_strong={result.conv_strong} "
            f"topK={resolved_top_k} answer_len={len(result.content)} "
            f"latency={latency:.3f}s"
        )
        return result

    async def _guarded_call(self, name: str, url: Optional[str], params: Dict[str, Any],
                            timeout_ms: int, request_id: str) -> Optional[Dict[str, Any]]:
        """Call one upstream behind its breaker; any failure degrades to None"""
        breaker = self.breakers.get(name)
        if breaker.is_open():
            breaker.record_skip()
            logger.info(f"[{request_id}] {name} skipped: circuit breaker open")
            return None

        if not is_configured_url(url):
            breaker.record_failure()
            self.monitor.record_upstream_failure(name, "not_configured")
            logger.error(f"[{request_id}] {name} upstream URL is not configured")
            return None

        try:
            payload = await self.client.get_json(name, url, params, timeout_ms)
        except UpstreamError as e:
            breaker.record_failure()
            self.monitor.record_upstream_failure(name, e.reason)
            logger.warning(f"[{request_id}] {name} upstream failed: {e.reason} {e.detail}".rstrip())
            return None
        except Exception as e:
            # Contained here so the other upstream and the merge still run
            breaker.record_failure()
            self.monitor.record_upstream_failure(name, "unexpected")
            logger.error(
                f"[{request_id}] {name} upstream call raised {type(e).__name__}",
                exc_info=True
            )
            return None

        breaker.record_success()
        return payload

    def get_status(self) -> Dict[str, Any]:
        """Breaker, cache and client state (no URLs)"""
        return {
            "query_count": self.query_count,
            "breakers": self.breakers.get_status(),
            "cache": self.cache.get_stats(),
            "client": self.client.get_stats(),
        }

    async def close(self):
        await self.client.close()
