"""
Glazion Synthesis - Response synthesis engine for the Glazion pottery assistant

Answers a question by querying a knowledge-base service and a conversational
service concurrently, then picks or merges their answers with block- and
sentence-level deduplication, output sanitization, per-upstream circuit
breakers and a short-lived response cache.
"""

__version__ = "1.0.0"
__author__ = "Glazion Studio"

from .server import app
from .settings import Settings
from .synthesis_engine import SynthesisEngine

__all__ = ["app", "Settings", "SynthesisEngine"]
