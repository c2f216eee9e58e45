"""
Similarity Engine - Token and trigram Jaccard similarity for short QA answers
"""

import re
from typing import Iterable, List, Set

# Empirical duplicate thresholds
TOKEN_THRESHOLD = 0.80
TRIGRAM_THRESHOLD = 0.85

# Ceramics and firing terminology, used only to break ties between duplicates
DOMAIN_KEYWORDS = frozenset([
    "glaze", "glazes", "glazing", "clay", "clays", "kiln", "kilns", "cone",
    "cones", "fire", "firing", "fired", "bisque", "slip", "slips", "engobe",
    "feldspar", "feldspars", "silica", "quartz", "flint", "kaolin", "ball",
    "frit", "frits", "oxide", "oxides", "flux", "fluxes", "alumina",
    "crazing", "crawling", "pinholing", "pinholes", "shivering", "blistering",
    "stoneware", "porcelain", "earthenware", "terracotta", "raku",
    "underglaze", "overglaze", "reduction", "oxidation", "wedging", "wheel",
    "throwing", "trimming", "greenware", "leatherhard", "vitrification",
    "vitrified", "matte", "gloss", "glossy", "satin", "celadon", "shino",
    "tenmoku", "temmoku", "ash", "rutile", "cobalt", "iron", "copper",
    "chrome", "manganese", "titanium", "zinc", "tin", "zircopax", "whiting",
    "dolomite", "talc", "wollastonite", "nepheline", "syenite", "spodumene",
    "lithium", "boron", "gerstley", "borate", "bentonite", "grog",
    "thermal", "expansion", "cte", "umf", "coe", "cooling", "ramp", "soak",
    "pyrometric", "pyrometer", "witness", "stain", "stains", "colorant",
    "colorants", "opacifier", "sieve", "specific", "gravity", "slurry",
])

_FENCED_CODE = re.compile(r"```.*?(?:```|$)|~~~.*?(?:~~~|$)", re.DOTALL)
_MARKDOWN_MARKERS = re.compile(r"(?m)^\s{0,3}(?:#{1,6}|>|[-*+•]|\d+[.)])\s+|[*_`~|]+")
_BRACKETS_QUOTES = re.compile(r"[\[\](){}<>\"'“”‘’«»]")
_WHITESPACE = re.compile(r"\s+")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize(text: str) -> str:
    """Comparison form of a text; the original is never modified"""
    s = (text or "").lower()
    s = _FENCED_CODE.sub(" ", s)
    s = _MARKDOWN_MARKERS.sub(" ", s)
    s = _BRACKETS_QUOTES.sub(" ", s)
    return _WHITESPACE.sub(" ", s).strip()


def tokenize(normalized: str) -> List[str]:
    """Alphanumeric tokens longer than two characters"""
    return [t for t in _NON_ALNUM.split(normalized) if len(t) > 2]


def trigrams(normalized: str) -> Set[str]:
    """All length-3 substrings (raw sliding window)"""
    return {normalized[i:i + 3] for i in range(len(normalized) - 2)}


def jaccard(a: Iterable, b: Iterable) -> float:
    """Intersection over union; two empty sets are identical"""
    set_a, set_b = set(a), set(b)
    if not set_a and not set_b:
        return 1.0
    inter = len(set_a & set_b)
    return inter / (len(set_a) + len(set_b) - inter)


def density(normalized: str) -> float:
    """Fraction of tokens that are domain keywords"""
    tokens = tokenize(normalized)
    if not tokens:
        return 0.0
    return sum(1 for t in tokens if t in DOMAIN_KEYWORDS) / len(tokens)


def similar_normalized(a: str, b: str) -> bool:
    """Duplicate predicate over already-normalized texts"""
    if jaccard(tokenize(a), tokenize(b)) >= TOKEN_THRESHOLD:
        return True
    return jaccard(trigrams(a), trigrams(b)) >= TRIGRAM_THRESHOLD


def similar(a: str, b: str) -> bool:
    """True when two texts say the same thing closely enough to drop one"""
    return similar_normalized(normalize(a), normalize(b))
