"""
Tests for the similarity engine
"""

import pytest
from glazionsynth.similarity import (
    density, jaccard, normalize, similar, tokenize, trigrams,
    TOKEN_THRESHOLD, TRIGRAM_THRESHOLD,
)


def test_jaccard_identical_sets():
    assert jaccard({"glaze", "kiln"}, {"glaze", "kiln"}) == 1.0


def test_jaccard_empty_sets():
    assert jaccard(set(), set()) == 1.0


def test_jaccard_one_empty_set():
    assert jaccard({"glaze"}, set()) == 0.0


def test_jaccard_partial_overlap():
    assert jaccard({"a", "b"}, {"b", "c"}) == pytest.approx(1 / 3)


def test_jaccard_is_symmetric():
    a, b = {"cone", "six", "glaze"}, {"cone", "ten"}
    assert jaccard(a, b) == jaccard(b, a)


def test_normalize_strips_markdown_and_code():
    text = "## **Cone 6** Glazes\n```\nprint(1)\n```"
    assert normalize(text) == "cone 6 glazes"


def test_normalize_strips_brackets_and_quotes():
    assert normalize('Use "Custer" [feldspar] (potash)') == "use custer feldspar potash"


def test_normalize_leaves_original_untouched():
    text = "**Bold** text"
    normalize(text)
    assert text == "**Bold** text"


def test_tokenize_drops_short_tokens():
    assert tokenize("cone 6 glazes and a kiln") == ["cone", "glazes", "and", "kiln"]


def test_trigrams_sliding_window():
    assert trigrams("abcd") == {"abc", "bcd"}
    assert trigrams("ab") == set()


def test_density_counts_domain_keywords():
    assert density("kiln cone the") == pytest.approx(2 / 3)
    assert density("") == 0.0


def test_similar_identical_text():
    text = "Slow cooling through 1000C reduces crazing in most glazes."
    assert similar(text, text) is True


def test_similar_ignores_formatting():
    assert similar("**Wedge the clay** well.", "Wedge the clay well") is True


def test_similar_near_duplicate_by_tokens():
    a = "Bisque firing to cone 04 makes the clay porous and easier to glaze."
    b = "Bisque firing to cone 04 makes the clay porous and easy to glaze."
    assert similar(a, b) is True


def test_not_similar_unrelated_text():
    a = "Feldspar is the main flux in stoneware glazes."
    b = "Trim pots when they are leather hard."
    assert similar(a, b) is False


def test_thresholds():
    assert TOKEN_THRESHOLD == 0.80
    assert TRIGRAM_THRESHOLD == 0.85
