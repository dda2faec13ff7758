import unittest

from master_editor.content import (
    Block,
    Span,
    SpanKind,
    parse,
    reading_time,
    strip_markdown,
    to_plain_text,
    word_count,
)


def kinds(block: Block):
    return [(span.kind, span.text) for span in block.spans]


class TestParse(unittest.TestCase):
    def test_blank_lines_separate_blocks(self) -> None:
        blocks = parse("First paragraph.\n\nSecond paragraph.\n   \nThird.")
        self.assertEqual([block.plain_text() for block in blocks],
                         ["First paragraph.", "Second paragraph.", "Third."])

    def test_empty_blocks_are_dropped(self) -> None:
        self.assertEqual(parse("\n\n\n\nOnly one\n\n\n"), (Block(spans=(Span(kind=SpanKind.PLAIN, text="Only one"),)),))
        self.assertEqual(parse(""), ())

    def test_single_newline_stays_inside_block(self) -> None:
        blocks = parse("line one\nline two")
        self.assertEqual(len(blocks), 1)
        self.assertEqual(blocks[0].plain_text(), "line one\nline two")

    def test_bold_and_italic_spans(self) -> None:
        (block,) = parse("**Hello** *world* again")
        self.assertEqual(kinds(block), [
            (SpanKind.BOLD, "Hello"),
            (SpanKind.PLAIN, " "),
            (SpanKind.ITALIC, "world"),
            (SpanKind.PLAIN, " again"),
        ])

    def test_unclosed_marker_is_literal(self) -> None:
        (block,) = parse("a * b")
        self.assertEqual(kinds(block), [(SpanKind.PLAIN, "a * b")])
        (block,) = parse("and **c")
        self.assertEqual(kinds(block), [(SpanKind.PLAIN, "and **c")])

    def test_empty_emphasis_is_literal(self) -> None:
        (block,) = parse("nothing ** here")
        self.assertEqual(block.plain_text(), "nothing ** here")

    def test_emphasis_does_not_cross_lines(self) -> None:
        (block,) = parse("*start\nend*")
        self.assertEqual(kinds(block), [(SpanKind.PLAIN, "*start\nend*")])

    def test_headers_and_links_are_kept_as_text(self) -> None:
        (block,) = parse("## Scene [door](http://example.com) `code`")
        self.assertEqual(kinds(block), [(SpanKind.PLAIN, "## Scene [door](http://example.com) `code`")])
        self.assertEqual(block.plain_text(), "Scene door code")


class TestPlainText(unittest.TestCase):
    def test_strip_markdown(self) -> None:
        self.assertEqual(strip_markdown("**Hello** *world*"), "Hello world")
        self.assertEqual(strip_markdown("# Title"), "Title")

    def test_to_plain_text_joins_blocks(self) -> None:
        self.assertEqual(to_plain_text(parse("*One*\n\n**Two**")), "One\n\nTwo")

    def test_word_count_ignores_markers(self) -> None:
        self.assertEqual(word_count("**Hello** *brave* new world\n\nagain"), 5)
        self.assertEqual(word_count(""), 0)

    def test_reading_time_rounds_up(self) -> None:
        self.assertEqual(reading_time(" ".join(["word"] * 200)), 1)
        self.assertEqual(reading_time(" ".join(["word"] * 201)), 2)
        self.assertEqual(reading_time(""), 0)


if __name__ == "__main__":
    unittest.main()
