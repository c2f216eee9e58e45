"""
Tests for the structural block splitter
"""

from glazionsynth.block_splitter import Block, BlockKind, join_blocks, split_blocks


SAMPLE = (
    "# Glaze Basics\n"
    "Intro line one.\n"
    "Intro line two.\n"
    "\n"
    "- item a\n"
    "- item b\n"
    "1. step\n"
    "\n"
    "```\n"
    "code line\n"
    "\n"
    "more code\n"
    "```\n"
    "After code."
)


def test_split_mixed_document():
    blocks = split_blocks(SAMPLE)
    
    assert [b.kind for b in blocks] == [
        BlockKind.HEADING,
        BlockKind.PARAGRAPH,
        BlockKind.LIST,
        BlockKind.CODE,
        BlockKind.PARAGRAPH,
    ]
    assert blocks[0].text == "# Glaze Basics"
    assert blocks[1].text == "Intro line one.\nIntro line two."
    assert blocks[2].text == "- item a\n- item b\n1. step"
    assert blocks[3].text == "```\ncode line\n\nmore code\n```"
    assert blocks[4].text == "After code."


def test_heading_is_its_own_block():
    blocks = split_blocks("Some text\n## Firing\nMore text")
    assert [b.kind for b in blocks] == [
        BlockKind.PARAGRAPH, BlockKind.HEADING, BlockKind.PARAGRAPH
    ]


def test_hash_without_space_is_not_heading():
    blocks = split_blocks("#cone6 glazes are popular")
    assert blocks == [Block("#cone6 glazes are popular", BlockKind.PARAGRAPH)]


def test_unterminated_fence_runs_to_end():
    blocks = split_blocks("Intro\n```python\nx = 1\n\ny = 2")
    assert blocks[-1] == Block("```python\nx = 1\n\ny = 2", BlockKind.CODE)


def test_list_then_paragraph_without_blank_line():
    blocks = split_blocks("- one\n- two\nNot a list item")
    assert [b.kind for b in blocks] == [BlockKind.LIST, BlockKind.PARAGRAPH]


def test_blank_lines_are_not_emitted():
    assert split_blocks("\n\n   \n") == []
    assert split_blocks("") == []


def test_join_preserves_verbatim_text():
    text = "# Title\n\nParagraph with **bold**.\n\n- a\n- b"
    assert join_blocks(split_blocks(text)) == text
