import re
from unittest.mock import MagicMock, patch

import pytest
from docx import Document

from onenote_rag.core.exceptions import ExtractionError
from onenote_rag.services.document_source import LocalDocumentSource, document_id
from onenote_rag.utils.hashing import rolling_hash, to_base36, to_int32


def test_lists_supported_files_recursively(document_source, notes_dir):
    (notes_dir / "work").mkdir()
    (notes_dir / "groceries.txt").write_text("Milk, eggs and bread.", encoding="utf-8")
    (notes_dir / "work" / "standup.md").write_text("# Standup\n\nShip the release.", encoding="utf-8")
    (notes_dir / "SHOUTING.TXT").write_text("Upper case extension.", encoding="utf-8")
    (notes_dir / "diagram.png").write_bytes(b"\x89PNG")

    documents = document_source.list_all()

    titles = sorted(doc.title for doc in documents)
    assert titles == ["SHOUTING", "groceries", "standup"]
    standup = next(doc for doc in documents if doc.title == "standup")
    assert standup.content == "# Standup\n\nShip the release."
    assert standup.file_type == ".md"
    assert standup.source_path == str(notes_dir / "work" / "standup.md")
    assert standup.id == document_id(notes_dir / "work" / "standup.md")


def test_empty_and_unreadable_files_are_skipped(document_source, notes_dir):
    (notes_dir / "empty.txt").write_text("   \n\n", encoding="utf-8")
    (notes_dir / "broken.txt").write_bytes(b"\xff\xfe\xfa not utf-8")
    (notes_dir / "good.txt").write_text("Still indexed.", encoding="utf-8")

    documents = document_source.list_all()

    assert [doc.title for doc in documents] == ["good"]


def test_unreadable_file_raises_extraction_error(document_source, notes_dir):
    path = notes_dir / "broken.txt"
    path.write_bytes(b"\xff\xfe\xfa not utf-8")

    with pytest.raises(ExtractionError):
        document_source.extract_text(path)


def test_html_drops_markup_and_scripts(document_source, notes_dir):
    path = notes_dir / "trip.html"
    path.write_text(
        "<html><head><title>Ignored</title><style>p { color: red; }</style></head>"
        "<body><h1>Trip</h1><script>var x = 1;</script><p>Pack boots.</p></body></html>",
        encoding="utf-8",
    )

    assert document_source.extract_text(path) == "Trip\nPack boots."


def test_docx_paragraphs_and_tables(document_source, notes_dir):
    path = notes_dir / "meeting.docx"
    doc = Document()
    doc.add_paragraph("Meeting notes")
    doc.add_paragraph("")
    table = doc.add_table(rows=1, cols=2)
    table.cell(0, 0).text = "Owner"
    table.cell(0, 1).text = "Sam"
    doc.save(str(path))

    assert document_source.extract_text(path) == "Meeting notes\n\nOwner | Sam"


def test_pdf_is_indexed_as_placeholder_by_default(document_source, notes_dir):
    path = notes_dir / "scan.pdf"
    path.write_bytes(b"%PDF-1.4 not really a pdf")

    text = document_source.extract_text(path)

    assert "scan.pdf" in text
    assert "not supported" in text


def test_pdf_text_extraction_when_enabled(notes_dir):
    path = notes_dir / "report.pdf"
    path.write_bytes(b"%PDF-1.4")
    source = LocalDocumentSource(notes_dir, [".pdf"], pdf_text_extraction=True)
    first_page, scanned_page, last_page = MagicMock(), MagicMock(), MagicMock()
    first_page.extract_text.return_value = "Quarterly numbers"
    scanned_page.extract_text.return_value = None
    last_page.extract_text.return_value = "Next steps"

    with patch("onenote_rag.services.document_source.pdfplumber.open") as pdf_open:
        pdf_open.return_value.__enter__.return_value.pages = [first_page, scanned_page, last_page]
        documents = source.list_all()

    pdf_open.assert_called_once_with(str(path))
    assert [doc.content for doc in documents] == ["Quarterly numbers\n\nNext steps"]


def test_unparseable_pdf_is_skipped_when_extraction_enabled(notes_dir):
    (notes_dir / "broken.pdf").write_bytes(b"not a pdf")
    source = LocalDocumentSource(notes_dir, [".pdf"], pdf_text_extraction=True)

    with patch("onenote_rag.services.document_source.pdfplumber.open", side_effect=ValueError("no xref")):
        assert source.list_all() == []


def test_stats_counts_supported_files(document_source, notes_dir):
    (notes_dir / "a.txt").write_text("12345", encoding="utf-8")
    (notes_dir / "b.md").write_text("1234567890", encoding="utf-8")
    (notes_dir / "c.png").write_bytes(b"ignored")

    stats = document_source.stats()

    assert stats.file_count == 2
    assert stats.total_bytes == 15
    assert stats.type_counts == {".txt": 1, ".md": 1}
    assert stats.most_recent_modification is not None


def test_initialize_creates_missing_folder(tmp_path):
    root = tmp_path / "missing" / "notes"
    source = LocalDocumentSource(root, [".txt"])

    assert source.list_all() == []
    source.initialize()

    assert root.is_dir()


def test_document_id_is_stable_and_path_based(tmp_path):
    first = document_id(tmp_path / "note.txt")

    assert first == document_id(str(tmp_path / "note.txt"))
    assert first != document_id(tmp_path / "other.txt")
    assert re.fullmatch(r"file_[0-9a-z]+", first)
    assert document_id("a") == "file_2p"


def test_hash_helpers():
    assert to_int32(2 ** 31) == -(2 ** 31)
    assert to_int32(-1) == -1
    assert rolling_hash("ab") == 97 * 31 + 98
    assert rolling_hash("") == 0
    assert to_base36(0) == "0"
    assert to_base36(35) == "z"
    assert to_base36(36) == "10"
    with pytest.raises(ValueError):
        to_base36(-1)
