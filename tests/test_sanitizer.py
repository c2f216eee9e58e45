"""
Tests for the sanitizer
"""

import pytest
from glazionsynth.sanitizer import Sanitizer, is_no_info, strip_markdown


@pytest.fixture
def sanitizer():
    return Sanitizer(["digitalfire.com"])


def test_normalizes_curly_quotes_and_nbsp(sanitizer):
    text = "He said “cone 6” isn’t hot\u00a0enough"
    assert sanitizer.sanitize(text) == 'He said "cone 6" isn\'t hot enough'


def test_collapses_extra_bold_markers(sanitizer):
    assert sanitizer.sanitize("Use ***slow*** cooling") == "Use **slow** cooling"


def test_strips_wrapping_quotes(sanitizer):
    assert sanitizer.sanitize('"Use a slow cool."') == "Use a slow cool."


def test_strips_wrapping_bold(sanitizer):
    assert sanitizer.sanitize("**Use a slow cool.**") == "Use a slow cool."


def test_keeps_inner_bold(sanitizer):
    text = "**Tip:** glaze thin, then **fire slow**"
    assert sanitizer.sanitize(text) == text


def test_collapses_repeated_no_info_notice(sanitizer):
    text = "No relevant information found. No relevant information found."
    assert sanitizer.sanitize(text) == "No relevant information found."


def test_markdown_link_to_blocked_domain_keeps_label(sanitizer):
    text = "See [Digitalfire glossary](https://digitalfire.com/glossary/crazing) for more."
    assert sanitizer.sanitize(text) == "See Digitalfire glossary for more."


def test_raw_blocked_url_removed_inline(sanitizer):
    text = "More at https://www.digitalfire.com/article/x today"
    assert sanitizer.sanitize(text) == "More at today"


def test_blocked_domain_match_is_case_insensitive(sanitizer):
    text = "Crazing notes\nHTTPS://DigitalFire.COM/glossary/crazing"
    assert sanitizer.sanitize(text) == "Crazing notes"


def test_line_with_only_blocked_link_removed(sanitizer):
    text = (
        "Crazing is caused by high expansion.\n"
        "- https://digitalfire.com/glossary/crazing\n"
        "Use more silica."
    )
    assert sanitizer.sanitize(text) == (
        "Crazing is caused by high expansion.\nUse more silica."
    )


def test_other_domains_untouched(sanitizer):
    text = "Read https://ceramicartsnetwork.org/crazing first."
    assert sanitizer.sanitize(text) == text


def test_strip_blocked_links_reports_counts(sanitizer):
    out, count, domains = sanitizer.strip_blocked_links(
        "[a](https://digitalfire.com/a) and https://digitalfire.com/b"
    )
    assert out == "a and"
    assert count == 2
    assert domains == ["digitalfire.com"]


def test_removes_boilerplate_lines(sanitizer):
    text = (
        "Answer text here.\n"
        "\n"
        "All rights reserved 2024\n"
        "Privacy Policy | Terms of Use\n"
        "Related to: glazes, kilns\n"
        "Subscribe to our newsletter for weekly tips!"
    )
    assert sanitizer.sanitize(text) == "Answer text here."


def test_removes_empty_bullets_and_collapses_blank_lines(sanitizer):
    text = "Line one\n\n\n\n-\n\nLine two"
    assert sanitizer.sanitize(text) == "Line one\n\nLine two"


def test_empty_input(sanitizer):
    assert sanitizer.sanitize("") == ""
    assert sanitizer.sanitize(None) == ""


@pytest.mark.parametrize("text", [
    '"**Wrapped twice**"',
    '**"Bold then quotes"**',
    '"Quoted answer"\nAll rights reserved',
    "No relevant information found. No relevant information found.",
    "- item\n-\n\n\n\n* \nText ***very*** bold\u00a0here",
    "[x](https://digitalfire.com/x)\n\n\n\nhttps://digitalfire.com\n- \nDone.",
    "```\ncode\n```\n\n# Heading\n\nBody",
])
def test_sanitize_is_idempotent(sanitizer, text):
    once = sanitizer.sanitize(text)
    assert sanitizer.sanitize(once) == once


def test_is_no_info():
    assert is_no_info("I couldn't find any relevant information about that.")
    assert is_no_info("No relevant information found.")
    assert is_no_info("Sorry, I did not find relevant information in the knowledge base.")
    assert not is_no_info("Feldspar is a flux.")
    assert not is_no_info("")


def test_strip_markdown():
    text = "## Tips\n\n**Slow** cooling helps. See [docs](http://example.com).\n\n```\nramp 100\n```"
    assert strip_markdown(text) == "Tips\n\nSlow cooling helps. See docs.\n\nramp 100"
