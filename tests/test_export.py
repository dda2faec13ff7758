import base64
import unittest
from io import BytesIO
from pathlib import Path
from tempfile import TemporaryDirectory

from docx import Document

from master_editor.errors import ExportError
from master_editor.export import (
    DOCX_MIME,
    ExportFormat,
    export,
    export_filename,
    image_artifact,
    safe_filename,
    write_artifact,
)

CONTENT = "**Hello** *world*\n\nThe rain fell on the *quiet* city."


class TestFilenames(unittest.TestCase):
    def test_safe_filename_strips_punctuation(self) -> None:
        self.assertEqual(safe_filename("Chapter 1: The Fall?"), "Chapter 1 The Fall")

    def test_safe_filename_keeps_accented_letters(self) -> None:
        self.assertEqual(safe_filename("Capítulo Único!"), "Capítulo Único")

    def test_safe_filename_falls_back_when_empty(self) -> None:
        self.assertEqual(safe_filename("?!"), "Untitled")
        self.assertEqual(safe_filename(""), "Untitled")

    def test_export_filename_extensions(self) -> None:
        self.assertEqual(export_filename("My Book", ExportFormat.TXT), "My Book.txt")
        self.assertEqual(export_filename("My Book", ExportFormat.MARKDOWN), "My Book.md")
        self.assertEqual(export_filename("My Book", ExportFormat.DOCX), "My Book.docx")
        self.assertEqual(export_filename("My Book", ExportFormat.PRINT), "My Book.html")


class TestExport(unittest.TestCase):
    def test_txt_is_uppercase_title_and_plain_body(self) -> None:
        artifact = export(ExportFormat.TXT, "The Fall", "**Hello** *world*")
        self.assertEqual(artifact.mime_type, "text/plain")
        self.assertEqual(artifact.data.decode("utf-8"), "THE FALL\n\nHello world")

    def test_markdown_keeps_body_verbatim(self) -> None:
        artifact = export(ExportFormat.MARKDOWN, "The Fall", CONTENT)
        self.assertEqual(artifact.mime_type, "text/markdown")
        self.assertEqual(artifact.data, f"# The Fall\n\n{CONTENT}".encode("utf-8"))

    def test_docx_has_title_and_formatted_runs(self) -> None:
        artifact = export(ExportFormat.DOCX, "The Fall", CONTENT)
        self.assertEqual(artifact.mime_type, DOCX_MIME)
        self.assertEqual(artifact.filename, "The Fall.docx")

        doc = Document(BytesIO(artifact.data))
        paragraphs = doc.paragraphs
        self.assertEqual(paragraphs[0].text, "The Fall")
        self.assertEqual([p.text for p in paragraphs[1:]],
                         ["Hello world", "The rain fell on the quiet city."])

        runs = paragraphs[1].runs
        self.assertEqual(runs[0].text, "Hello")
        self.assertTrue(runs[0].bold)
        self.assertEqual(runs[2].text, "world")
        self.assertTrue(runs[2].italic)
        self.assertFalse(runs[1].bold)

    def test_print_page_opens_print_dialog(self) -> None:
        artifact = export(ExportFormat.PRINT, "The <Fall>", CONTENT)
        html = artifact.data.decode("utf-8")
        self.assertEqual(artifact.mime_type, "text/html")
        self.assertIn('onload="window.print()"', html)
        self.assertIn("<h1>The &lt;Fall&gt;</h1>", html)
        self.assertIn("<strong>Hello</strong>", html)
        self.assertIn("<em>quiet</em>", html)
        self.assertIn("@media print", html)

    def test_format_accepts_string_value(self) -> None:
        self.assertEqual(export("md", "T", "body").filename, "T.md")


class TestImageArtifact(unittest.TestCase):
    def test_data_uri_is_decoded(self) -> None:
        payload = base64.b64encode(b"\x89PNG fake").decode("ascii")
        artifact = image_artifact("Chapter 1: The Fall?", f"data:image/png;base64,{payload}")
        self.assertEqual(artifact.filename, "Chapter 1 The Fall_Art.png")
        self.assertEqual(artifact.mime_type, "image/png")
        self.assertEqual(artifact.data, b"\x89PNG fake")

    def test_remote_url_is_rejected(self) -> None:
        with self.assertRaises(ExportError):
            image_artifact("T", "https://example.com/art.png")

    def test_corrupt_payload_is_rejected(self) -> None:
        with self.assertRaises(ExportError):
            image_artifact("T", "data:image/png;base64,@@@")


class TestWriteArtifact(unittest.TestCase):
    def test_writes_into_new_directory(self) -> None:
        artifact = export(ExportFormat.TXT, "Notes", "body")
        with TemporaryDirectory() as tmp:
            path = write_artifact(artifact, Path(tmp) / "out")
            self.assertEqual(path.name, "Notes.txt")
            self.assertEqual(path.read_bytes(), artifact.data)


if __name__ == "__main__":
    unittest.main()
