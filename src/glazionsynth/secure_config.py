"""
Secure Configuration Manager for Glazion Synthesis
Loads layered .env files and reports configuration without leaking upstream URLs
"""

import os
import logging
from typing import Optional, Dict, Any, List
from urllib.parse import urlparse
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Priority order for config loading (highest to lowest priority)
CONFIG_PATHS = [
    # 1. Local secrets (highest priority - never committed)
    "config/secrets/.env.local",
    # 2. User home directory (for personal configs)
    os.path.expanduser("~/.glazion/.env"),
    # 3. Project root (for development)
    ".env",
    # 4. Template (lowest priority - safe to commit)
    "config/templates/.env.template",
]

PLACEHOLDER_VALUES = [
    "your_kb_url_here",
    "your_conv_url_here",
    "http://...",
    "https://...",
    "...",
]


def load_env_files(paths: Optional[List[str]] = None) -> List[str]:
    """Load .env files without overriding variables that are already set"""
    loaded_configs = []
    
    for config_path in paths or CONFIG_PATHS:
        if os.path.exists(config_path):
            try:
                load_dotenv(config_path, override=False)  # Don't override existing values
                loaded_configs.append(config_path)
                logger.info(f"Loaded config from: {config_path}")
            except Exception as e:
                logger.warning(f"Failed to load {config_path}: {e}")
    
    if not loaded_configs:
        logger.debug("No configuration files found, using environment and defaults")
    
    return loaded_configs


def is_configured_url(url: Optional[str]) -> bool:
    """True for a usable http(s) URL; empty and placeholder values are not"""
    if not url or url in PLACEHOLDER_VALUES:
        return False
    return url.startswith(("http://", "https://"))


def mask_url(url: Optional[str]) -> str:
    """Reduce an upstream URL to scheme and host for safe display"""
    if not url:
        return "Not set"
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        return "***"
    return f"{parsed.scheme}://{parsed.netloc}/***"


class SecureConfig:
    """Validates upstream configuration and produces log-safe summaries"""
    
    def __init__(self, settings):
        self.settings = settings
    
    def validate_upstreams(self) -> Dict[str, bool]:
        """Warn about missing or placeholder upstream URLs"""
        upstreams = {
            "kb": self.settings.kb_url,
            "conversation": self.settings.conv_url,
        }
        status = {}
        
        for name, url in upstreams.items():
            if not url:
                logger.warning(f"No URL configured for {name} upstream; it will be treated as failed")
                status[name] = False
            elif url in PLACEHOLDER_VALUES:
                logger.warning(f"{name} upstream URL appears to be a placeholder")
                status[name] = False
            elif not url.startswith(("http://", "https://")):
                logger.warning(f"{name} upstream URL must start with http:// or https://")
                status[name] = False
            else:
                logger.info(f"{name} upstream configured: {mask_url(url)}")
                status[name] = True
        
        return status
    
    def is_secure_mode(self) -> bool:
        """Check if running in secure mode (local secrets loaded)"""
        return os.path.exists("config/secrets/.env.local")
    
    def get_config_summary(self) -> Dict[str, Any]:
        """Get configuration summary (safe for logging)"""
        s = self.settings
        return {
            "server": {
                "host": s.server_host,
                "port": s.server_port,
                "log_level": s.log_level,
            },
            "upstreams": {
                "kb": "***" if s.kb_url else "Not set",
                "conversation": "***" if s.conv_url else "Not set",
                "kb_timeout_ms": s.kb_timeout_ms,
                "conv_timeout_ms": s.conv_timeout_ms,
            },
            "synthesis": {
                "confidence_min": s.confidence_min,
                "keep_markdown": s.keep_markdown,
                "dedup_semantic": s.dedup_semantic,
                "max_output_chars": s.max_output_chars,
                "blocked_domains": len(s.blocked_domains),
            },
            "resilience": {
                "cache_ttl_seconds": s.cache_ttl_seconds,
                "circuit_breaker_threshold": s.circuit_breaker_threshold,
                "circuit_breaker_cooldown_ms": s.circuit_breaker_cooldown_ms,
            },
            "security": {
                "secure_mode": self.is_secure_mode(),
            },
        }
