"""
Sanitizer - Cleans untrusted upstream text before it reaches the user
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineRule:
    """Drop any line matching ``pattern``"""
    name: str
    pattern: Pattern


# Whole-answer "nothing found" notices returned by the upstreams
NO_INFO_SENTENCE = (
    r"(?:(?:i'?m\s+)?sorry,?\s+)?"
    r"(?:i\s+(?:could\s+not|couldn't|did\s+not|didn't|was\s+unable\s+to)\s+find"
    r"|there\s+(?:is|was)\s+no"
    r"|no)"
    r"\s+(?:any\s+)?relevant\s+information\b[^.!?\n]*[.!?]?"
)

NO_INFO_PATTERNS: List[Pattern] = [
    re.compile(rf"^\s*{NO_INFO_SENTENCE}\s*$", re.IGNORECASE),
    re.compile(r"^\s*(?:no\s+(?:answer|results?)\s+found|not\s+found)[.!]?\s*$", re.IGNORECASE),
    re.compile(r"^\s*i\s+don'?t\s+know[.!]?\s*$", re.IGNORECASE),
]

_REPEATED_NO_INFO = re.compile(
    rf"({NO_INFO_SENTENCE})(?:\s*{NO_INFO_SENTENCE})+", re.IGNORECASE
)

BOILERPLATE_LINE_RULES: List[LineRule] = [
    LineRule("promo", re.compile(
        r"(?i)\b(?:subscribe\s+to\s+our|sign\s+up\s+for\s+our|join\s+our\s+newsletter"
        r"|visit\s+our\s+(?:shop|store)|use\s+(?:promo|discount)\s+code|limited[-\s]time\s+offer)")),
    LineRule("rights_footer", re.compile(
        r"(?i)(?:all\s+rights\s+reserved|^\s*(?:©|\(c\))\s*\d{4}|copyright\s+©?\s*\d{4})")),
    LineRule("privacy_footer", re.compile(
        r"(?i)^\s*(?:[-*•]\s*)?(?:privacy\s+policy|terms\s+(?:of\s+(?:use|service)|and\s+conditions)|cookie\s+policy)\b")),
    LineRule("related_to", re.compile(r"(?i)^\s*(?:[-*•]\s*)?(?:\*\*)?related\s+to\s*:")),
]

_CHAR_MAP = str.maketrans({
    "“": '"', "”": '"', "„": '"', "«": '"', "»": '"',
    "‘": "'", "’": "'", "‚": "'",
    "\u00a0": " ", "\u202f": " ", "\u2009": " ",
})

_EXTRA_STARS = re.compile(r"\*{3,}")
_WRAPPED_QUOTES = re.compile(r'^"([^"]*)"$', re.DOTALL)
_WRAPPED_BOLD = re.compile(r"^\*\*((?:(?!\*\*).)*)\*\*$", re.DOTALL)
_EMPTY_BULLET = re.compile(r"(?m)^[ \t]*(?:[-*+•]|\d+[.)])[ \t]*$\n?")
_BLANK_LINE = re.compile(r"(?m)^[ \t]+$")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")
_LINK_LEFTOVER = re.compile(r"^[\s\-*+•:;,.()\[\]|]*$")

# Plain-text rendering when structural formatting is switched off
_MD_HEADING = re.compile(r"(?m)^\s{0,3}#{1,6}\s+")
_MD_FENCE = re.compile(r"(?m)^\s*(?:```|~~~)[^\n]*\n?")
_MD_LINK = re.compile(r"\[([^\]]+)\]\([^)\s]+\)")
_MD_EMPHASIS = re.compile(r"(\*\*|__)(.+?)\1")
_MD_INLINE_CODE = re.compile(r"`([^`]+)`")

MAX_PASSES = 10


def is_no_info(text: Optional[str]) -> bool:
    """True for "no relevant information found" style boilerplate"""
    if not text:
        return False
    return any(p.match(text) for p in NO_INFO_PATTERNS)


class Sanitizer:
    """Ordered, data-driven cleanup of upstream answers.

    ``sanitize`` is idempotent: the rule pass is repeated until the text
    stops changing, so rules that expose new matches for each other (for
    example a footer removal revealing wrapping quotes) still settle.
    """

    def __init__(self, blocked_domains: Optional[List[str]] = None,
                 line_rules: Optional[List[LineRule]] = None):
        self.blocked_domains = [d.lower() for d in (blocked_domains or [])]
        self.line_rules = BOILERPLATE_LINE_RULES if line_rules is None else line_rules
        self._link_patterns: List[Tuple[str, Pattern, Pattern]] = []
        for domain in self.blocked_domains:
            esc = re.escape(domain)
            md_link = re.compile(
                rf"\[([^\]]*)\]\(\s*(?:https?://)?(?:[\w-]+\.)*{esc}(?![\w-])[^)\s]*\s*\)",
                re.IGNORECASE,
            )
            raw_url = re.compile(
                rf"(?:https?://|www\.)(?:[\w-]+\.)*{esc}(?![\w-])[^\s)\]>]*"
                rf"|\b(?:[\w-]+\.)*{esc}/[^\s)\]>]*",
                re.IGNORECASE,
            )
            self._link_patterns.append((domain, md_link, raw_url))

    def sanitize(self, text: Optional[str]) -> str:
        """Return cleaned text; empty input yields an empty string"""
        current = text or ""
        for _ in range(MAX_PASSES):
            cleaned = self._single_pass(current)
            if cleaned == current:
                break
            current = cleaned
        return current

    def _single_pass(self, text: str) -> str:
        s = self._normalize_characters(text)
        s = self._unwrap(s)
        s = _REPEATED_NO_INFO.sub(r"\1", s)
        s, _, _ = self.strip_blocked_links(s)
        s = self._drop_boilerplate_lines(s)
        s = self._tidy(s)
        return s

    @staticmethod
    def _normalize_characters(text: str) -> str:
        s = text.translate(_CHAR_MAP)
        s = _EXTRA_STARS.sub("**", s)
        return s.strip()

    @staticmethod
    def _unwrap(text: str) -> str:
        """Strip one layer of wrapping quotes and one of wrapping bold"""
        s = text
        m = _WRAPPED_QUOTES.match(s)
        if m:
            s = m.group(1).strip()
        m = _WRAPPED_BOLD.match(s)
        if m:
            s = m.group(1).strip()
        return s

    def strip_blocked_links(self, text: str) -> Tuple[str, int, List[str]]:
        """Remove links to blocklisted domains.

        Markdown links keep their label, bare URLs vanish, and a line left
        with nothing but punctuation or a bullet is dropped entirely.
        Returns the cleaned text, the number of links removed and the
        domains that were hit.
        """
        if not text or not self._link_patterns:
            return text or "", 0, []

        count = 0
        touched: List[str] = []
        out_lines = []

        for line in text.split("\n"):
            new_line = line
            for domain, md_link, raw_url in self._link_patterns:
                new_line, n_md = md_link.subn(lambda m: m.group(1), new_line)
                new_line, n_raw = raw_url.subn("", new_line)
                if n_md or n_raw:
                    count += n_md + n_raw
                    if domain not in touched:
                        touched.append(domain)
            if new_line != line:
                if _LINK_LEFTOVER.match(new_line):
                    continue
                # Collapse gaps left behind by removed URLs
                new_line = re.sub(r"[ \t]{2,}", " ", new_line).rstrip()
            out_lines.append(new_line)

        if count:
            logger.info(f"Removed {count} blocked link(s) to {', '.join(touched)}")
        return "\n".join(out_lines), count, touched

    def _drop_boilerplate_lines(self, text: str) -> str:
        kept = []
        for line in text.split("\n"):
            rule = next((r for r in self.line_rules if r.pattern.search(line)), None)
            if rule is not None:
                logger.debug(f"Dropped {rule.name} line")
                continue
            kept.append(line)
        return "\n".join(kept)

    @staticmethod
    def _tidy(text: str) -> str:
        s = _EMPTY_BULLET.sub("", text)
        s = _BLANK_LINE.sub("", s)
        s = _EXCESS_NEWLINES.sub("\n\n", s)
        return s.strip()


def strip_markdown(text: str) -> str:
    """Render markdown answers as plain text"""
    s = _MD_FENCE.sub("", text or "")
    s = _MD_HEADING.sub("", s)
    s = _MD_LINK.sub(r"\1", s)
    s = _MD_EMPHASIS.sub(r"\2", s)
    s = _MD_INLINE_CODE.sub(r"\1", s)
    return _EXCESS_NEWLINES.sub("\n\n", s).strip()
