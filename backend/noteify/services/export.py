"""Download a note as plain text, PDF or Word document."""

from __future__ import annotations

import io
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Literal

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.shared import Pt
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer

from ..models.note import Note

logger = logging.getLogger(__name__)

ExportFormat = Literal["txt", "pdf", "docx"]

_INLINE_RE = re.compile(r"(\*\*.+?\*\*|_.+?_|`.+?`)")
_UNSAFE_FILENAME_RE = re.compile(r'[\\/:*?"<>|\x00-\x1f]+')
# Word documents are XML 1.0, which has no C0 controls besides tab and newlines
_XML_INVALID_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")


class ExportError(Exception):
    """Raised when a note cannot be converted to the requested format."""


@dataclass
class Segment:
    text: str
    bold: bool = False
    italic: bool = False
    code: bool = False


@dataclass
class Block:
    """One line of note content. ``kind`` is h1, h2, li, p or br."""

    kind: str
    text: str = ""
    segments: List[Segment] = field(default_factory=list)


def parse_segments(line: str) -> List[Segment]:
    segments: List[Segment] = []
    last = 0
    for match in _INLINE_RE.finditer(line):
        if match.start() > last:
            segments.append(Segment(line[last : match.start()]))
        token = match.group(0)
        if token.startswith("**"):
            segments.append(Segment(token[2:-2], bold=True))
        elif token.startswith("_"):
            segments.append(Segment(token[1:-1], italic=True))
        else:
            segments.append(Segment(token[1:-1], code=True))
        last = match.end()
    if last < len(line):
        segments.append(Segment(line[last:]))
    return segments


def parse_for_export(content: str) -> List[Block]:
    """Split note content into blocks, one per line."""
    if not content:
        return []
    blocks: List[Block] = []
    for line in content.replace("\r\n", "\n").split("\n"):
        if line.startswith("## "):
            blocks.append(Block("h2", line[3:]))
        elif line.startswith("# "):
            blocks.append(Block("h1", line[2:]))
        elif line.startswith("- "):
            blocks.append(Block("li", line[2:], parse_segments(line[2:])))
        elif not line.strip():
            blocks.append(Block("br"))
        else:
            blocks.append(Block("p", line, parse_segments(line)))
    return blocks


def export_filename(title: str, fmt: ExportFormat) -> str:
    stem = _UNSAFE_FILENAME_RE.sub("_", title).strip(" .") or "note"
    return f"{stem}.{fmt}"


def export_txt(note: Note) -> bytes:
    return f"Title: {note.title}\n\n{note.content}".encode("utf-8")


def _xml_escape(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _pdf_markup(segments: List[Segment]) -> str:
    parts = []
    for segment in segments:
        text = _xml_escape(segment.text)
        if segment.code:
            text = f'<font face="Courier">{text}</font>'
        if segment.italic:
            text = f"<i>{text}</i>"
        if segment.bold:
            text = f"<b>{text}</b>"
        parts.append(text)
    return "".join(parts)


def export_pdf(note: Note) -> bytes:
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle("NoteTitle", parent=styles["Heading1"], fontSize=22, spaceAfter=12)
    h1 = ParagraphStyle("H1", parent=styles["Heading1"], fontSize=18, spaceAfter=8)
    h2 = ParagraphStyle("H2", parent=styles["Heading2"], fontSize=14, spaceAfter=6)
    body = ParagraphStyle(
        "Body",
        parent=styles["BodyText"],
        fontSize=11,
        leading=14,
        splitLongWords=True,
    )

    flow: List[Any] = [Paragraph(_xml_escape(note.title), title_style)]
    for block in parse_for_export(note.content):
        if block.kind == "h1":
            flow.append(Paragraph(_xml_escape(block.text), h1))
        elif block.kind == "h2":
            flow.append(Paragraph(_xml_escape(block.text), h2))
        elif block.kind == "li":
            flow.append(Paragraph(_pdf_markup(block.segments), body, bulletText="•"))
        elif block.kind == "p":
            flow.append(Paragraph(_pdf_markup(block.segments), body))
        else:
            flow.append(Spacer(1, 5))

    buf = io.BytesIO()
    try:
        doc = SimpleDocTemplate(
            buf,
            pagesize=A4,
            leftMargin=15 * mm,
            rightMargin=15 * mm,
            topMargin=20 * mm,
            bottomMargin=15 * mm,
            title=note.title,
        )
        doc.build(flow)
    except Exception as e:
        logger.warning("PDF generation failed", extra={"note_id": note.id, "error": str(e)})
        raise ExportError(f"PDF generation failed: {e}") from e
    return buf.getvalue()


def _docx_text(text: str) -> str:
    return _XML_INVALID_RE.sub("", text)


def _build_docx(note: Note):
    doc = Document()
    style = doc.styles["Normal"]
    style.font.size = Pt(11)

    title = doc.add_heading(_docx_text(note.title), level=0)
    title.alignment = WD_ALIGN_PARAGRAPH.CENTER

    for block in parse_for_export(note.content):
        if block.kind == "h1":
            doc.add_heading(_docx_text(block.text), level=1)
        elif block.kind == "h2":
            doc.add_heading(_docx_text(block.text), level=2)
        elif block.kind == "br":
            doc.add_paragraph("")
        else:
            p = doc.add_paragraph(style="List Bullet" if block.kind == "li" else None)
            for segment in block.segments:
                run = p.add_run(_docx_text(segment.text))
                run.bold = segment.bold or None
                run.italic = segment.italic or None
                if segment.code:
                    run.font.name = "Courier New"
    return doc


def export_docx(note: Note) -> bytes:
    buf = io.BytesIO()
    try:
        _build_docx(note).save(buf)
    except Exception as e:
        logger.warning("DOCX generation failed", extra={"note_id": note.id, "error": str(e)})
        raise ExportError(f"DOCX generation failed: {e}") from e
    return buf.getvalue()


EXPORTERS: Dict[str, tuple[Callable[[Note], bytes], str]] = {
    "txt": (export_txt, "text/plain; charset=utf-8"),
    "pdf": (export_pdf, "application/pdf"),
    "docx": (
        export_docx,
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    ),
}


def export_note(note: Note, fmt: ExportFormat) -> tuple[bytes, str, str]:
    """Return ``(payload, media_type, filename)`` for ``note`` in ``fmt``."""
    try:
        exporter, media_type = EXPORTERS[fmt]
    except KeyError as e:
        raise ExportError(f"Unsupported export format: {fmt}") from e
    return exporter(note), media_type, export_filename(note.title, fmt)


__all__ = [
    "Block",
    "Segment",
    "ExportError",
    "ExportFormat",
    "parse_for_export",
    "parse_segments",
    "export_txt",
    "export_pdf",
    "export_docx",
    "export_note",
    "export_filename",
]
