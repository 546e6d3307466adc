import pytest

from builders import W_NS, build_docx
from docbridge.extractor import ExtractionMethod, ExtractionPipeline, ExtractionRequest
from docbridge.config.settings import ExtractionSettings
from docbridge.extractor.docx_extractor import DocxExtractor, strip_tags, structured_paragraphs
from docbridge.extractor.pipeline import LOW_CONFIDENCE_PREFIX
from docbridge.extractor.types import ExtractionError


def _document(body: str) -> str:
    return f'<w:document xmlns:w="{W_NS}"><w:body>{body}</w:body></w:document>'


def test_paragraphs_are_separated_by_blank_lines():
    data = build_docx(["First paragraph.", "Second paragraph."])
    assert DocxExtractor().extract(data) == "First paragraph.\n\nSecond paragraph."


def test_hello_world_docx_through_pipeline():
    pipeline = ExtractionPipeline.from_settings(ExtractionSettings.model_construct())
    result = pipeline.extract(
        ExtractionRequest(data=build_docx(["Hello world"]), declared_name="greeting.docx")
    )

    assert result.method is ExtractionMethod.DOCX
    assert "Hello world" in result.text
    # Two words are below the minimum readable length
    assert not result.is_readable
    assert result.text == LOW_CONFIDENCE_PREFIX + "Hello world"


def test_split_runs_are_joined_within_a_paragraph():
    xml = _document(
        "<w:p><w:r><w:t>Hel</w:t></w:r><w:r><w:t>lo</w:t></w:r>"
        "<w:r><w:tab/><w:t>there</w:t></w:r></w:p>"
    )
    assert DocxExtractor().extract(build_docx(document_xml=xml)) == "Hello\tthere"


def test_table_rows_become_tab_separated_lines():
    data = build_docx(table=[["Name", "Role"], ["Ada", "Engineer"]])
    assert DocxExtractor().extract(data) == "Name\tRole\n\nAda\tEngineer"


def test_body_paragraphs_and_tables_keep_document_order():
    paragraphs = structured_paragraphs(
        _document(
            "<w:p><w:r><w:t>Intro</w:t></w:r></w:p>"
            "<w:tbl><w:tr><w:tc><w:p><w:r><w:t>a</w:t></w:r></w:p></w:tc>"
            "<w:tc><w:p><w:r><w:t>b</w:t></w:r></w:p></w:tc></w:tr></w:tbl>"
            "<w:p><w:r><w:t>Outro</w:t></w:r></w:p>"
        )
    )
    assert paragraphs == ["Intro", "a\tb", "Outro"]


def test_malformed_xml_falls_back_to_tag_stripping():
    # Unbound prefix and no closing tags: not well-formed
    xml = "<w:document><w:body><w:p><w:r><w:t>Tom &amp; Jerry</w:t></w:r></w:p>"
    assert DocxExtractor().extract(build_docx(document_xml=xml)) == "Tom & Jerry"


def test_strip_tags_separates_paragraphs_and_collapses_whitespace():
    xml = "<w:p><w:t>one</w:t></w:p><w:p><w:t>  two  </w:t></w:p>"
    assert strip_tags(xml) == "one two"


def test_missing_document_part_raises():
    with pytest.raises(ExtractionError, match="word/document.xml"):
        DocxExtractor().extract(build_docx(include_document=False))


def test_non_zip_input_raises():
    with pytest.raises(ExtractionError, match="not a DOCX"):
        DocxExtractor().extract(b"plain bytes, not a zip archive")


def test_document_without_text_raises():
    with pytest.raises(ExtractionError, match="no text"):
        DocxExtractor().extract(build_docx([]))
