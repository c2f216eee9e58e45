"""
Structural Block Splitter - Splits markdown answers into typed blocks
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import List


class BlockKind(str, Enum):
    CODE = "code"
    LIST = "list"
    HEADING = "heading"
    PARAGRAPH = "paragraph"


@dataclass(frozen=True)
class Block:
    """One structural run of text, kept verbatim"""
    text: str
    kind: BlockKind


FENCE = re.compile(r"^\s*(```|~~~)")
HEADING = re.compile(r"^\s{0,3}#{1,6}\s")
LIST_ITEM = re.compile(r"^\s*(?:[-*+•]|\d+[.)])\s+")

BLOCK_SEPARATOR = "\n\n"


def split_blocks(text: str) -> List[Block]:
    """Scan text line by line and emit one block per structural run.

    Fenced code runs to the closing fence (inclusive) or end of input,
    headings stand alone, consecutive list items form one list, blank
    lines separate blocks and everything else is grouped into paragraphs.
    """
    blocks: List[Block] = []
    lines = (text or "").replace("\r\n", "\n").split("\n")
    run: List[str] = []
    run_kind = None

    def flush():
        nonlocal run, run_kind
        if run:
            blocks.append(Block("\n".join(run), run_kind))
        run = []
        run_kind = None

    i = 0
    while i < len(lines):
        line = lines[i]

        if FENCE.match(line):
            flush()
            code = [line]
            i += 1
            while i < len(lines):
                code.append(lines[i])
                if FENCE.match(lines[i]):
                    i += 1
                    break
                i += 1
            blocks.append(Block("\n".join(code), BlockKind.CODE))
            continue

        if not line.strip():
            flush()
        elif HEADING.match(line):
            flush()
            blocks.append(Block(line, BlockKind.HEADING))
        elif LIST_ITEM.match(line):
            if run_kind != BlockKind.LIST:
                flush()
                run_kind = BlockKind.LIST
            run.append(line)
        else:
            if run_kind != BlockKind.PARAGRAPH:
                flush()
                run_kind = BlockKind.PARAGRAPH
            run.append(line)
        i += 1

    flush()
    return blocks


def join_blocks(blocks: List[Block]) -> str:
    """Rejoin blocks with blank-line separators"""
    return BLOCK_SEPARATOR.join(b.text for b in blocks)
