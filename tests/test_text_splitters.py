import pytest

from onenote_rag.utils.text_splitters import split_into_chunks
from conftest import make_long_note


def test_short_text_is_single_chunk():
    assert split_into_chunks("  Buy milk and eggs.  ", 1000) == ["Buy milk and eggs."]


def test_paragraphs_are_split_on_blank_lines():
    text = "First paragraph.\n\nSecond paragraph.\n   \nThird paragraph."
    assert split_into_chunks(text, 1000) == ["First paragraph.", "Second paragraph.", "Third paragraph."]


def test_empty_text_produces_no_chunks():
    assert split_into_chunks("", 100) == []
    assert split_into_chunks("\n\n  \n\n", 100) == []


def test_long_paragraph_is_packed_by_sentence():
    text = "Alpha beta gamma. Delta epsilon zeta! Eta theta iota? Kappa lambda mu."
    chunks = split_into_chunks(text, 40)

    assert chunks == ["Alpha beta gamma. Delta epsilon zeta.", "Eta theta iota. Kappa lambda mu."]
    assert all(len(chunk) <= 40 for chunk in chunks)
    assert all(chunk.endswith(".") for chunk in chunks)


def test_chunking_is_deterministic():
    text = make_long_note(80) + "\n\n" + "Short tail paragraph."
    assert split_into_chunks(text, 300) == split_into_chunks(text, 300)


def test_long_note_without_blank_lines_respects_bound():
    text = make_long_note(60)
    assert len(text) > 2400

    chunks = split_into_chunks(text, 1000)

    assert len(chunks) >= 3
    assert all(len(chunk) <= 1000 for chunk in chunks)
    # Nothing but terminators is lost
    assert "Sentence number 059 is part of this note" in chunks[-1]


def test_run_on_sentence_is_kept_oversized():
    text = "word " * 100
    chunks = split_into_chunks(text, 50)

    assert len(chunks) == 1
    assert len(chunks[0]) > 50


def test_sentence_of_exactly_max_size_overshoots_by_the_period():
    sentence = "a" * 50
    text = f"{sentence}. {sentence}. {sentence}."

    chunks = split_into_chunks(text, 50)

    assert chunks == [sentence + "."] * 3
    assert [len(chunk) for chunk in chunks] == [51, 51, 51]


def test_non_positive_size_is_rejected():
    with pytest.raises(ValueError):
        split_into_chunks("text", 0)
