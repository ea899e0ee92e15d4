import base64
import json
from datetime import datetime

from docx import Document

from novascript.export import build_docx, decode_data_url, docx_bytes, format_markdown, script_to_json
from novascript.models import ScriptOutput, ScriptSegment

# 1x1 PNG.
PNG_B64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="
)


def _script(image_url=None, thumbnail_url=None):
    return ScriptOutput(
        intro="Tonight in chips.",
        outro="See you tomorrow.",
        news_segments=[
            ScriptSegment(
                title="Fab expansion",
                script="A new fab breaks ground.",
                transition="Meanwhile",
                image_url=image_url,
            ),
            ScriptSegment(title="Export rules", script="Rules tighten.", transition="Finally"),
        ],
        thumbnail_url=thumbnail_url,
    )


def test_format_markdown_orders_sections():
    text = format_markdown(_script(), "AI chips")
    assert text.startswith("# AI chips")
    assert text.index("## PROLOGUE") < text.index("## VECTOR_1: Fab expansion")
    assert text.index("## VECTOR_2: Export rules") < text.index("## EPILOGUE")
    assert '_Transition: "Meanwhile"_' in text


def test_script_to_json_uses_camel_case():
    data = json.loads(script_to_json(_script(thumbnail_url="thumb")))
    assert data["thumbnailUrl"] == "thumb"
    assert data["newsSegments"][0]["imageUrl"] is None
    assert "news_segments" not in data


def test_decode_data_url():
    assert decode_data_url(f"data:image/png;base64,{PNG_B64}") == base64.b64decode(PNG_B64)
    assert decode_data_url("https://example.com/image.png") is None
    assert decode_data_url("data:image/png;base64,***") is None
    assert decode_data_url(None) is None


def test_build_docx_renders_segments(tmp_path):
    output_path = tmp_path / "out" / "script.docx"
    build_docx(_script(), output_path, "AI chips", generated_at=datetime(2025, 1, 15, 9, 30))

    doc = Document(output_path)
    texts = [p.text.strip() for p in doc.paragraphs if (p.text or "").strip()]

    assert "NOVASCRIPT" in texts
    assert "Neural Synthesis Report // Sector Vector: AI chips" in texts
    assert "Timestamp: 2025-01-15 09:30" in texts
    assert "Segment_1: Fab expansion" in texts
    assert "Segment_2: Export rules" in texts
    assert "Transition Marker: Meanwhile" in texts
    assert texts.index("Tonight in chips.") < texts.index("Segment_1: Fab expansion")
    assert texts.index("See you tomorrow.") > texts.index("Segment_2: Export rules")
    assert len(doc.inline_shapes) == 0


def test_build_docx_embeds_data_url_images(tmp_path):
    url = f"data:image/png;base64,{PNG_B64}"
    output_path = build_docx(_script(image_url=url, thumbnail_url=url), tmp_path / "s.docx")

    doc = Document(output_path)
    assert len(doc.inline_shapes) == 2


def test_docx_bytes_is_a_zip_document():
    content = docx_bytes(_script(), "AI chips")
    assert content[:2] == b"PK"
