"""Exports of a finished script: teleprompter Markdown, JSON, and DOCX."""

from __future__ import annotations

import base64
import binascii
import io
import json
import logging
import re
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml.ns import qn
from docx.shared import Inches, Pt

from .models import ScriptOutput

logger = logging.getLogger(__name__)

DATA_URL_PATTERN = re.compile(r"^data:(?P<mime>image/[\w.+-]+);base64,(?P<data>.+)$", re.S)


def format_markdown(script: ScriptOutput, topic: str = "") -> str:
    """Render the script as readable Markdown, in teleprompter order."""
    lines: List[str] = []
    if topic:
        lines.extend([f"# {topic}", ""])
    lines.extend(["## PROLOGUE", "", script.intro])
    for idx, segment in enumerate(script.news_segments, start=1):
        lines.extend(
            [
                "",
                f"## VECTOR_{idx}: {segment.title}",
                "",
                segment.script,
                "",
                f"_Transition: \"{segment.transition}\"_",
            ]
        )
    lines.extend(["", "## EPILOGUE", "", script.outro])
    return "\n".join(lines)


def script_to_json(script: ScriptOutput) -> str:
    """Serialize the script with its wire (camelCase) field names."""
    return json.dumps(script.model_dump(by_alias=True, mode="json"), ensure_ascii=False, indent=2)


def decode_data_url(url: Optional[str]) -> Optional[bytes]:
    """Return the image bytes of a base64 ``data:`` URL, or None for anything else."""
    if not url:
        return None
    match = DATA_URL_PATTERN.match(url)
    if not match:
        return None
    try:
        return base64.b64decode(match.group("data"), validate=True)
    except (binascii.Error, ValueError):
        logger.warning("Skipping image with malformed base64 payload.")
        return None


def _set_title_styles(doc: Document) -> None:
    """Apply minimal styling; Calibri for headings keeps the document theme-free."""
    title_style = doc.styles["Title"]
    title_font = title_style.font
    title_font.name = "Calibri"
    title_font.size = Pt(28)

    try:
        title_style._element.rPr.rFonts.set(qn("w:eastAsia"), "Calibri")
    except AttributeError:
        pass


def _add_image(doc: Document, url: Optional[str], width: Inches) -> bool:
    payload = decode_data_url(url)
    if payload is None:
        return False
    doc.add_picture(io.BytesIO(payload), width=width)
    return True


def _render_document(
    script: ScriptOutput, topic: str, generated_at: Optional[datetime]
) -> Document:
    doc = Document()
    _set_title_styles(doc)
    generated_at = generated_at or datetime.now()

    title = doc.add_heading("NOVASCRIPT", 0)
    title.alignment = WD_ALIGN_PARAGRAPH.CENTER
    header = doc.add_paragraph(f"Neural Synthesis Report // Sector Vector: {topic}")
    header.alignment = WD_ALIGN_PARAGRAPH.CENTER
    stamp = doc.add_paragraph(f"Timestamp: {generated_at.strftime('%Y-%m-%d %H:%M')}")
    stamp.alignment = WD_ALIGN_PARAGRAPH.CENTER

    _add_image(doc, script.thumbnail_url, Inches(6))

    doc.add_paragraph(script.intro)

    for idx, segment in enumerate(script.news_segments, start=1):
        doc.add_heading(f"Segment_{idx}: {segment.title}", level=1)
        _add_image(doc, segment.image_url, Inches(6))
        doc.add_paragraph(segment.script)
        marker = doc.add_paragraph()
        marker.add_run(f"Transition Marker: {segment.transition}").italic = True

    doc.add_paragraph(script.outro)

    footer = doc.add_paragraph("Validated Synthesis Core // AI Generated Content")
    footer.alignment = WD_ALIGN_PARAGRAPH.CENTER
    return doc


def build_docx(
    script: ScriptOutput,
    output_path: Path,
    topic: str = "",
    *,
    generated_at: Optional[datetime] = None,
) -> Path:
    """Render the script into a DOCX report and return its path."""
    doc = _render_document(script, topic, generated_at)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    doc.save(output_path)
    return output_path


def docx_bytes(script: ScriptOutput, topic: str = "") -> bytes:
    """Render the DOCX report in memory (for HTTP responses)."""
    buffer = io.BytesIO()
    _render_document(script, topic, None).save(buffer)
    return buffer.getvalue()
