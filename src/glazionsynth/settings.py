"""
Configuration settings for Glazion Synthesis
"""

from pydantic_settings import BaseSettings
from typing import List, Optional

from .secure_config import load_env_files


class Settings(BaseSettings):
    """Glazion Synthesis configuration settings"""
    
    # Server Configuration
    server_port: int = 3001
    server_host: str = "0.0.0.0"
    log_level: str = "INFO"
    
    # Upstream Endpoints
    kb_url: Optional[str] = None
    conv_url: Optional[str] = None
    
    # Upstream Timeouts
    kb_timeout_ms: int = 10_000
    conv_timeout_ms: int = 10_000
    
    # Answer Strength
    confidence_min: float = 0.6
    kb_min_chars: int = 20
    definitive_response_type: int = 1
    max_top_k: int = 12
    
    # Output Shaping
    keep_markdown: bool = True
    dedup_semantic: bool = True
    max_output_chars: int = 4000
    link_blocklist: str = "digitalfire.com"  # comma-separated domains
    
    # Response Cache
    cache_ttl_seconds: int = 60
    max_cache_entries: int = 1000  # 0 = bounded by TTL only
    
    # Circuit Breaker
    circuit_breaker_threshold: int = 3
    circuit_breaker_cooldown_ms: int = 60_000
    
    # User-facing Messages
    generic_error_message: str = "Something went wrong. Please try again."
    fallback_message: str = (
        "I couldn't find a good answer to that right now. "
        "Please try rephrasing your question."
    )
    
    class Config:
        env_prefix = "GLAZION_"
        case_sensitive = False
        env_file = "config/secrets/.env.local"
        env_file_encoding = "utf-8"
    
    @property
    def blocked_domains(self) -> List[str]:
        """Blocklisted link domains, lowercased"""
        return [
            d.strip().lower()
            for d in self.link_blocklist.split(",")
            if d.strip()
        ]


# Layered .env files are loaded before the environment is read
load_env_files()

# Global settings instance
settings = Settings()
