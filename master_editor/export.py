"""
Export of a chapter (title + markdown body) into downloadable artifacts.

Everything here is a pure function of title and content, apart from write_artifact.
"""
import base64
import binascii
import re
from enum import Enum
from io import BytesIO
from pathlib import Path

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Pt
from pydantic import BaseModel, ConfigDict

from master_editor.content import SpanKind, parse, to_plain_text
from master_editor.errors import ExportError
from master_editor.log_config import loggers
from master_editor.render import print_page

logger = loggers['export']

FALLBACK_FILENAME = "Untitled"

# ASCII letters and digits, Latin letters with diacritics (minus × and ÷) and spaces survive
_UNSAFE_FILENAME_RE = re.compile(r"[^0-9A-Za-zÀ-ÖØ-öø-ɏ ]")
_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.+)$", re.DOTALL)

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
IMAGE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
}


class ExportFormat(str, Enum):
    TXT = "txt"
    MARKDOWN = "md"
    DOCX = "docx"
    PRINT = "print"


_EXTENSIONS = {
    ExportFormat.TXT: "txt",
    ExportFormat.MARKDOWN: "md",
    ExportFormat.DOCX: "docx",
    ExportFormat.PRINT: "html",
}

_MIME_TYPES = {
    ExportFormat.TXT: "text/plain",
    ExportFormat.MARKDOWN: "text/markdown",
    ExportFormat.DOCX: DOCX_MIME,
    ExportFormat.PRINT: "text/html",
}


class Artifact(BaseModel):
    model_config = ConfigDict(frozen=True)

    filename: str
    mime_type: str
    data: bytes


def safe_filename(title: str) -> str:
    """Base filename for a title, never empty."""
    cleaned = _UNSAFE_FILENAME_RE.sub("", title or "").strip()
    return cleaned or FALLBACK_FILENAME


def export_filename(title: str, fmt: ExportFormat) -> str:
    return f"{safe_filename(title)}.{_EXTENSIONS[fmt]}"


def plain_text(title: str, content: str) -> str:
    return f"{title.upper()}\n\n{to_plain_text(parse(content))}"


def markdown_source(title: str, content: str) -> str:
    # the body is kept byte for byte
    return f"# {title}\n\n{content}"


def build_docx(title: str, content: str) -> bytes:
    doc = Document()

    normal = doc.styles["Normal"]
    normal.font.name = "Merriweather"
    normal.font.size = Pt(12)
    normal.paragraph_format.line_spacing = 1.5

    heading = doc.add_heading(title, level=0)
    heading.alignment = WD_ALIGN_PARAGRAPH.CENTER
    heading.paragraph_format.space_after = Pt(20)

    for block in parse(content):
        paragraph = doc.add_paragraph()
        paragraph.alignment = WD_ALIGN_PARAGRAPH.JUSTIFY
        paragraph.paragraph_format.space_after = Pt(12)
        for span in block.spans:
            run = paragraph.add_run(span.text)
            if span.kind == SpanKind.BOLD:
                run.bold = True
            elif span.kind == SpanKind.ITALIC:
                run.italic = True

    buffer = BytesIO()
    doc.save(buffer)
    return buffer.getvalue()


def export(fmt: ExportFormat, title: str, content: str) -> Artifact:
    fmt = ExportFormat(fmt)
    try:
        if fmt == ExportFormat.TXT:
            data = plain_text(title, content).encode("utf-8")
        elif fmt == ExportFormat.MARKDOWN:
            data = markdown_source(title, content).encode("utf-8")
        elif fmt == ExportFormat.DOCX:
            data = build_docx(title, content)
        else:
            data = print_page(title, content).encode("utf-8")
    except Exception as e:
        logger.error(f"Failed to build {fmt.value} export for '{title}': {e}")
        raise ExportError(f"Could not generate the {fmt.value} file: {e}") from e

    artifact = Artifact(
        filename=export_filename(title, fmt),
        mime_type=_MIME_TYPES[fmt],
        data=data,
    )
    logger.info(f"Exported '{title}' as {artifact.filename} ({len(data)} bytes)")
    return artifact


def image_artifact(title: str, image_url: str) -> Artifact:
    """Decode a data: URI illustration into a downloadable file."""
    match = _DATA_URI_RE.match(image_url or "")
    if not match:
        raise ExportError("The illustration is not an embedded image and cannot be downloaded.")
    mime_type = match.group("mime")
    try:
        data = base64.b64decode(match.group("data"), validate=True)
    except binascii.Error as e:
        raise ExportError(f"The illustration data is corrupt: {e}") from e
    extension = IMAGE_EXTENSIONS.get(mime_type, "img")
    return Artifact(
        filename=f"{safe_filename(title)}_Art.{extension}",
        mime_type=mime_type,
        data=data,
    )


def write_artifact(artifact: Artifact, directory) -> Path:
    directory = Path(directory)
    try:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / artifact.filename
        with open(path, "wb") as f:
            f.write(artifact.data)
    except OSError as e:
        raise ExportError(f"Could not write {artifact.filename}: {e}") from e
    return path
