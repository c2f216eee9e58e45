"""
System Monitors - Request metrics for the synthesis endpoint
"""

import logging
import time
from typing import Dict, Any, Optional
from collections import deque, defaultdict

logger = logging.getLogger(__name__)


class SynthesisMonitor:
    """In-memory request metrics: latency, branches, cache hits, upstream failures"""
    
    def __init__(self, max_history: int = 1000, window_seconds: int = 300):
        self.max_history = max_history
        self.window_seconds = window_seconds
        self.metrics_history = deque(maxlen=max_history)
        self.branch_counts = defaultdict(int)
        self.upstream_failures = defaultdict(int)
        self.error_count = 0
        self.start_time = time.time()
    
    def record_request(self, branch: str, latency: float, cached: bool = False):
        """Record one answered request"""
        self.branch_counts["cache_hit" if cached else branch] += 1
        self.metrics_history.append({
            "name": "latency_seconds",
            "value": latency,
            "tags": {"branch": branch, "cached": cached},
            "timestamp": time.time()
        })
    
    def record_upstream_failure(self, upstream: str, reason: str):
        self.upstream_failures[f"{upstream}:{reason}"] += 1
    
    def record_error(self):
        self.error_count += 1
    
    def get_metrics(self) -> Dict[str, Any]:
        """Get current system metrics"""
        current_time = time.time()
        uptime = current_time - self.start_time
        
        recent_cutoff = current_time - self.window_seconds
        recent = [
            m["value"] for m in self.metrics_history
            if m["timestamp"] > recent_cutoff
        ]
        
        latency: Optional[Dict[str, float]] = None
        if recent:
            latency = {
                "count": len(recent),
                "average": sum(recent) / len(recent),
                "min": min(recent),
                "max": max(recent),
                "latest": recent[-1]
            }
        
        return {
            "uptime": uptime,
            "total_requests": sum(self.branch_counts.values()),
            "branches": dict(self.branch_counts),
            "upstream_failures": dict(self.upstream_failures),
            "errors": self.error_count,
            "recent_latency": latency
        }
    
    def cleanup(self):
        """Reset monitor state"""
        self.metrics_history.clear()
        self.branch_counts.clear()
        self.upstream_failures.clear()
        self.error_count = 0
