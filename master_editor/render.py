"""
HTML rendering of the content model for the screen and for printing.

Text is always escaped; markup only ever comes from span kinds.
"""
from html import escape
from typing import Optional, Sequence

from master_editor.content import Block, SpanKind, parse, reading_time, word_count

_TAGS = {
    SpanKind.BOLD: "strong",
    SpanKind.ITALIC: "em",
}

PRINT_CSS = """
body { font-family: 'Merriweather', Georgia, serif; color: #000; background: #fff;
       max-width: 42rem; margin: 2rem auto; line-height: 1.5; }
h1 { text-align: center; font-size: 2em; line-height: 1.2; }
.chapter-meta { text-align: center; font-style: italic; color: #555; font-size: 0.85em; }
.chapter-content p { text-align: justify; margin: 0 0 1em 0; }
@media print {
  body { margin: 0; max-width: none; }
  .no-print { display: none; }
}
"""


def render_blocks(blocks: Sequence[Block]) -> str:
    paragraphs = []
    for block in blocks:
        parts = []
        for span in block.spans:
            text = escape(span.text)
            tag = _TAGS.get(span.kind)
            parts.append(f"<{tag}>{text}</{tag}>" if tag else text)
        paragraphs.append(f"<p>{''.join(parts)}</p>")
    return "\n".join(paragraphs)


def render_chapter(title: str, content: str, image_url: Optional[str] = None) -> str:
    """Chapter as shown on screen: optional illustration, title, reading stats and body."""
    words = word_count(content)
    minutes = reading_time(content)
    html = []
    if image_url:
        html.append(f'<img class="chapter-art no-print" src="{escape(image_url)}" alt="Chapter art">')
    html.append(f"<h1>{escape(title)}</h1>")
    html.append(f'<div class="chapter-meta">{words} words &bull; ~{minutes} min read</div>')
    html.append(f'<div class="chapter-content">\n{render_blocks(parse(content))}\n</div>')
    return "\n".join(html)


def print_page(title: str, content: str) -> str:
    """Standalone print-ready page that opens the print dialog once loaded."""
    body = render_chapter(title, content)
    return (
        "<!DOCTYPE html>\n"
        '<html><head><meta charset="utf-8">'
        f"<title>{escape(title)}</title>"
        f"<style>{PRINT_CSS}</style></head>\n"
        f'<body onload="window.print()">\n{body}\n</body></html>\n'
    )
