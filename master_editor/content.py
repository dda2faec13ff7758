"""
Structural model of chapter markdown: paragraphs made of plain, bold and italic spans.

Only `**bold**` and `*italic*` are recognised. Emphasis never nests and never
crosses a line break; anything else (headers, links, lists, stray markers) stays
literal text, so every input parses.
"""
import math
import re
from enum import Enum
from typing import List, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

_BLOCK_SPLIT_RE = re.compile(r"\n\s*\n")
_HEADER_RE = re.compile(r"^#+\s", re.MULTILINE)
_LINK_RE = re.compile(r"\[([^\]]+)\]\([^\)]+\)")

MARKER = "*"


class SpanKind(str, Enum):
    PLAIN = "plain"
    BOLD = "bold"
    ITALIC = "italic"


class Span(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: SpanKind
    text: str


class Block(BaseModel):
    model_config = ConfigDict(frozen=True)

    spans: Tuple[Span, ...]

    def plain_text(self) -> str:
        """Block text without emphasis markers or literal header/link/code syntax."""
        return _strip_syntax("".join(span.text for span in self.spans))


def parse(markdown: str) -> Tuple[Block, ...]:
    blocks = []
    for raw in _BLOCK_SPLIT_RE.split(markdown or ""):
        raw = raw.strip()
        if raw:
            blocks.append(Block(spans=tuple(_parse_spans(raw))))
    return tuple(blocks)


def _closing(text: str, start: int, marker: str) -> int:
    """Index of the closing marker on the same line, or -1 when the run is empty or unclosed."""
    end = text.find(marker, start)
    if end <= start or "\n" in text[start:end]:
        return -1
    return end


def _parse_spans(text: str) -> List[Span]:
    spans: List[Span] = []
    literal: List[str] = []

    def flush():
        if literal:
            spans.append(Span(kind=SpanKind.PLAIN, text="".join(literal)))
            literal.clear()

    i = 0
    while i < len(text):
        if text[i] != MARKER:
            literal.append(text[i])
            i += 1
            continue

        # the bold reading wins over two italic runs
        if text.startswith(MARKER * 2, i):
            end = _closing(text, i + 2, MARKER * 2)
            if end != -1:
                flush()
                spans.append(Span(kind=SpanKind.BOLD, text=text[i + 2:end]))
                i = end + 2
                continue

        end = _closing(text, i + 1, MARKER)
        if end != -1:
            flush()
            spans.append(Span(kind=SpanKind.ITALIC, text=text[i + 1:end]))
            i = end + 1
            continue

        literal.append(MARKER)
        i += 1

    flush()
    return spans


def strip_markdown(text: str) -> str:
    """Remove emphasis markers plus header, link and code-tick syntax."""
    return _strip_syntax("".join(span.text for span in _parse_spans(text)))


def _strip_syntax(text: str) -> str:
    text = _HEADER_RE.sub("", text)
    text = _LINK_RE.sub(r"\1", text)
    return text.replace("`", "")


def to_plain_text(blocks: Sequence[Block]) -> str:
    return "\n\n".join(block.plain_text() for block in blocks)


def word_count(markdown: str) -> int:
    return len(to_plain_text(parse(markdown)).split())


def reading_time(markdown: str, words_per_minute: int = 200) -> int:
    """Estimated reading time in whole minutes."""
    return math.ceil(word_count(markdown) / words_per_minute)
