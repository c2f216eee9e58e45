"""
Upstream Client - Timed HTTP lookups against the answer services
"""

import asyncio
import logging
import time
from typing import Dict, Any, Optional

import httpx

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """An upstream call failed (timeout, network, status or body)"""
    
    def __init__(self, upstream: str, reason: str, detail: str = ""):
        self.upstream = upstream
        self.reason = reason
        self.detail = detail
        super().__init__(f"{upstream} upstream {reason}" + (f": {detail}" if detail else ""))
    
    @property
    def is_timeout(self) -> bool:
        return self.reason == "timeout"


class UpstreamClient:
    """Issues GET lookups with a hard per-call timeout.
    
    The request runs under ``asyncio.wait_for`` so an expired call is
    cancelled rather than left running. Every failure surfaces as
    ``UpstreamError``.
    """
    
    def __init__(self, http_client: Optional[httpx.AsyncClient] = None):
        # No client-level timeout: each call carries its own budget
        self._client = http_client or httpx.AsyncClient(
            headers={"Accept": "application/json"},
            timeout=None,
        )
        self.total_requests = 0
        self.error_count = 0
        self.last_latency: Dict[str, float] = {}
    
    async def get_json(self, upstream: str, url: str, params: Dict[str, Any],
                       timeout_ms: int) -> Dict[str, Any]:
        """GET ``url`` and return the decoded JSON object"""
        query = {k: v for k, v in params.items() if v is not None}
        timeout = timeout_ms / 1000.0
        start = time.monotonic()
        self.total_requests += 1
        
        try:
            response = await asyncio.wait_for(
                self._client.get(url, params=query, timeout=timeout),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, httpx.TimeoutException):
            self.error_count += 1
            raise UpstreamError(upstream, "timeout", f"after {timeout_ms}ms")
        except httpx.HTTPError as e:
            self.error_count += 1
            raise UpstreamError(upstream, "network", type(e).__name__)
        finally:
            self.last_latency[upstream] = time.monotonic() - start
        
        if response.status_code >= 400:
            self.error_count += 1
            raise UpstreamError(upstream, "http_status", f"HTTP {response.status_code}")
        
        try:
            body = response.json()
        except ValueError:
            self.error_count += 1
            raise UpstreamError(upstream, "bad_body", "response is not JSON")
        
        if not isinstance(body, dict):
            self.error_count += 1
            raise UpstreamError(upstream, "bad_body", "response is not a JSON object")

        logger.debug(
            f"{upstream} responded HTTP {response.status_code} "
            f"in {self.last_latency[upstream]:.3f}s"
        )
        return body
    
    async def close(self):
        """Release pooled connections"""
        await self._client.aclose()
    
    def get_stats(self) -> Dict[str, Any]:
        return {
            "total_requests": self.total_requests,
            "error_count": self.error_count,
            "last_latency_seconds": {
                k: round(v, 3) for k, v in self.last_latency.items()
            },
        }
