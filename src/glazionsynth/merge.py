"""
Merge Orchestrator - Classifies upstream answers and merges them into one reply
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .block_splitter import Block, join_blocks, split_blocks, BLOCK_SEPARATOR
from .dedup import dedup_blocks, dedup_paragraphs
from .sanitizer import Sanitizer, is_no_info, strip_markdown

logger = logging.getLogger(__name__)

KB = "kb"
CONVERSATION = "conversation"

# Branch names reported to logs and metrics
BRANCH_MERGED = "merged"
BRANCH_KB_ONLY = "kb_only"
BRANCH_CONVERSATION_ONLY = "conversation_only"
BRANCH_FALLBACK = "fallback"

PROCEDURAL_INTENT = re.compile(
    r"\b(?:how|why|should\s+i|can\s+i|troubleshoot\w*|recommend\w*|fix\w*|"
    r"prevent\w*|avoid\w*|solve|best\s+way|step[-\s]by[-\s]step|what\s+should)\b",
    re.IGNORECASE,
)


@dataclass
class UpstreamAnswer:
    """Answer from one upstream, with defaults applied once at the boundary"""
    answer: str = ""
    success: Optional[bool] = None
    response_type: Optional[int] = None
    confidence: Optional[float] = None

    @classmethod
    def from_payload(cls, payload: Any) -> "UpstreamAnswer":
        """Parse a loosely-typed upstream body; bad fields degrade, never raise"""
        if not isinstance(payload, dict):
            return cls()

        answer = payload.get("answer")
        if not isinstance(answer, str):
            answer = ""

        success = payload.get("success")
        if not isinstance(success, bool):
            success = None

        response_type = payload.get("responseType")
        if isinstance(response_type, bool):
            response_type = None
        elif isinstance(response_type, (int, float)):
            response_type = int(response_type)
        elif isinstance(response_type, str) and response_type.strip().lstrip("-").isdigit():
            response_type = int(response_type.strip())
        else:
            response_type = None

        confidence = payload.get("confidence")
        if isinstance(confidence, bool):
            confidence = None
        elif isinstance(confidence, (int, float)):
            confidence = float(confidence)
        elif isinstance(confidence, str):
            try:
                confidence = float(confidence)
            except ValueError:
                confidence = None
        else:
            confidence = None

        return cls(answer, success, response_type, confidence)


def _usable(text: str) -> bool:
    return bool(text) and not is_no_info(text)


def is_strong_kb(answer: Optional[UpstreamAnswer], sanitized: str,
                 min_chars: int = 20) -> bool:
    """A KB answer is strong when non-trivial and not a "nothing found" notice"""
    if answer is None or answer.success is False:
        return False
    return _usable(sanitized) and len(sanitized) >= min_chars


def is_strong_conversation(answer: Optional[UpstreamAnswer], sanitized: str,
                           confidence_min: float = 0.6,
                           definitive_type: int = 1) -> bool:
    """A conversational answer is strong when definitive or confident enough"""
    if answer is None or answer.success is False:
        return False
    if not _usable(sanitized):
        return False
    if answer.response_type is not None and answer.response_type == definitive_type:
        return True
    return answer.confidence is not None and answer.confidence >= confidence_min


def is_procedural(message: str) -> bool:
    """How/why/troubleshooting questions favour the conversational source"""
    return bool(PROCEDURAL_INTENT.search(message or ""))


def select_primary(message: str, kb_strong: bool, conv_strong: bool) -> str:
    """Pick the primary source; the other one becomes secondary"""
    if kb_strong and conv_strong:
        return CONVERSATION if is_procedural(message) else KB
    if kb_strong:
        return KB
    # Conversational source also wins when neither answer is strong
    return CONVERSATION


def apply_soft_cap(text: str, max_chars: int) -> str:
    """Keep whole blocks in order until the next one would exceed the cap.

    The first block is always kept, so an oversized opening block is
    returned intact rather than cut or dropped. That is the only case in
    which the result is longer than ``max_chars``.
    """
    if max_chars <= 0 or len(text) <= max_chars:
        return text

    kept: List[Block] = []
    length = 0
    for block in split_blocks(text):
        extra = len(block.text) + (len(BLOCK_SEPARATOR) if kept else 0)
        if kept and length + extra > max_chars:
            break
        kept.append(block)
        length += extra
    return join_blocks(kept)


def merge_answers(primary: str, secondary: str, sanitizer: Sanitizer,
                  dedup_semantic: bool = True, max_chars: int = 4000) -> str:
    """Merge two sanitized answers, primary content first"""
    primary_blocks = split_blocks(primary)
    secondary_blocks = split_blocks(secondary)

    if dedup_semantic:
        blocks = dedup_blocks(primary_blocks, secondary_blocks)
        blocks = dedup_paragraphs(blocks)
    else:
        blocks = primary_blocks + secondary_blocks

    merged = sanitizer.sanitize(join_blocks(blocks))
    return apply_soft_cap(merged, max_chars)


def synthesize(message: str,
               kb: Optional[UpstreamAnswer],
               conv: Optional[UpstreamAnswer],
               sanitizer: Sanitizer,
               settings) -> Dict[str, Any]:
    """Choose a branch for the two upstream results and build the reply.

    Returns the content plus the branch taken, the primary source and both
    strength flags (for logging and caching decisions only).
    """
    kb_text = sanitizer.sanitize(kb.answer) if kb else ""
    conv_text = sanitizer.sanitize(conv.answer) if conv else ""

    kb_strong = is_strong_kb(kb, kb_text, settings.kb_min_chars)
    conv_strong = is_strong_conversation(
        conv, conv_text, settings.confidence_min, settings.definitive_response_type
    )
    primary = select_primary(message, kb_strong, conv_strong)

    if kb_strong and conv_strong:
        first, second = (kb_text, conv_text) if primary == KB else (conv_text, kb_text)
        content = merge_answers(
            first, second, sanitizer,
            dedup_semantic=settings.dedup_semantic,
            max_chars=settings.max_output_chars,
        )
        branch = BRANCH_MERGED
    elif kb_strong:
        content, branch = kb_text, BRANCH_KB_ONLY
    elif conv_strong:
        content, branch = conv_text, BRANCH_CONVERSATION_ONLY
    else:
        branch = BRANCH_FALLBACK
        if _usable(conv_text):
            content = conv_text
        elif _usable(kb_text):
            content = kb_text
        else:
            content = settings.fallback_message

    if not settings.keep_markdown and content != settings.fallback_message:
        content = strip_markdown(content)

    return {
        "content": content,
        "branch": branch,
        "primary": primary,
        "kb_strong": kb_strong,
        "conv_strong": conv_strong,
    }
