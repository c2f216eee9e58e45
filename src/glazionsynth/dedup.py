"""
Deduplication Engine - Drops semantically repeated blocks and sentences
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from .block_splitter import Block, BlockKind
from .similarity import density, normalize, similar_normalized

logger = logging.getLogger(__name__)

_SENTENCE_BOUNDARY = re.compile(r"(?<=[.!?])\s+")
_WHITESPACE = re.compile(r"\s+")


@dataclass
class _Kept:
    text: str
    normalized: str
    density: float
    from_primary: bool
    ref: Any = None


def _candidate(text: str, from_primary: bool, ref: Any = None) -> _Kept:
    norm = normalize(text)
    return _Kept(text, norm, density(norm), from_primary, ref)


def _is_duplicate(a: _Kept, b: _Kept) -> bool:
    # Text with no comparable content (code, bare punctuation) only matches itself
    if not a.normalized or not b.normalized:
        return a.text.strip() == b.text.strip()
    return similar_normalized(a.normalized, b.normalized)


def _prefer(existing: _Kept, candidate: _Kept) -> bool:
    """True when the candidate should replace the already kept item"""
    if candidate.density != existing.density:
        return candidate.density > existing.density
    # Equal density: the primary source wins, otherwise first seen stays
    return candidate.from_primary and not existing.from_primary


def _find_duplicate(kept: List[_Kept], candidate: _Kept) -> Optional[int]:
    for i, existing in enumerate(kept):
        if _is_duplicate(existing, candidate):
            return i
    return None


def dedup_blocks(primary: List[Block], secondary: List[Block]) -> List[Block]:
    """Block-level dedup across two answers.

    Primary blocks are visited first, then secondary. A block similar to
    one already kept replaces it in place only when denser in domain terms
    (ties go to the primary source); otherwise new blocks are appended, so
    first-seen order is kept and genuinely new secondary content survives.
    """
    kept: List[_Kept] = []
    for from_primary, blocks in ((True, primary), (False, secondary)):
        for block in blocks:
            candidate = _candidate(block.text, from_primary, block)
            i = _find_duplicate(kept, candidate)
            if i is None:
                kept.append(candidate)
            elif _prefer(kept[i], candidate):
                kept[i] = candidate

    dropped = len(primary) + len(secondary) - len(kept)
    if dropped:
        logger.debug(f"Block dedup dropped {dropped} of {len(primary) + len(secondary)} blocks")
    return [k.ref for k in kept]


def split_sentences(text: str) -> List[str]:
    """Whitespace-normalized split on sentence punctuation"""
    flat = _WHITESPACE.sub(" ", text or "").strip()
    if not flat:
        return []
    return [s for s in _SENTENCE_BOUNDARY.split(flat) if s]


def dedup_paragraphs(blocks: List[Block]) -> List[Block]:
    """Sentence-level dedup inside paragraph blocks.

    Kept sentences are shared across all paragraphs, so a sentence repeated
    in a later paragraph is dropped (or swapped in at the earlier position
    when it is the denser variant). Non-paragraph blocks pass through, and
    a paragraph left without sentences disappears.
    """
    kept: List[_Kept] = []
    sentences: Dict[int, List[str]] = {}

    for bi, block in enumerate(blocks):
        if block.kind != BlockKind.PARAGRAPH:
            continue
        sentences[bi] = []
        for sentence in split_sentences(block.text):
            candidate = _candidate(sentence, True, (bi, len(sentences[bi])))
            i = _find_duplicate(kept, candidate)
            if i is None:
                kept.append(candidate)
                sentences[bi].append(sentence)
            elif _prefer(kept[i], candidate):
                slot_block, slot_index = kept[i].ref
                sentences[slot_block][slot_index] = sentence
                candidate.ref = kept[i].ref
                kept[i] = candidate

    result = []
    for bi, block in enumerate(blocks):
        if bi not in sentences:
            result.append(block)
        elif sentences[bi]:
            result.append(Block(" ".join(sentences[bi]), BlockKind.PARAGRAPH))
    return result


def dedup_sentences(text: str) -> str:
    """Drop repeated sentences inside one paragraph, keeping the denser variant"""
    deduped = dedup_paragraphs([Block(text, BlockKind.PARAGRAPH)])
    return deduped[0].text if deduped else ""
