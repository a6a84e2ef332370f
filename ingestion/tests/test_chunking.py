"""
Unit tests for the recursive character chunking module.
"""

import pytest

from kb_loader.chunking import chunk_document, split_text


class TestSplitText:
    def test_short_text_is_one_chunk(self):
        text = "ZeroDB is a managed vector database."
        assert split_text(text, chunk_size=1000, overlap=200) == [text]

    def test_chunks_respect_size(self):
        text = "\n\n".join(f"Paragraph {i}. " + "word " * 40 for i in range(20))
        chunks = split_text(text, chunk_size=300, overlap=50)
        assert len(chunks) > 1
        assert all(len(c) <= 300 for c in chunks)

    def test_consecutive_chunks_overlap(self):
        text = " ".join(f"w{i}" for i in range(200))
        chunks = split_text(text, chunk_size=100, overlap=30)
        for previous, current in zip(chunks, chunks[1:]):
            assert previous.split()[-1] in current.split()

    def test_long_word_falls_back_to_characters(self):
        text = "x" * 250
        chunks = split_text(text, chunk_size=100, overlap=0)
        assert "".join(chunks) == text
        assert all(len(c) <= 100 for c in chunks)

    def test_prefers_paragraph_boundaries(self):
        text = "Paragraph one.\n\nParagraph two.\n\nParagraph three."
        chunks = split_text(text, chunk_size=20, overlap=0)
        assert chunks == ["Paragraph one.", "Paragraph two.", "Paragraph three."]

    def test_overlap_must_be_smaller_than_chunk_size(self):
        with pytest.raises(ValueError):
            split_text("text", chunk_size=100, overlap=100)


class TestChunkDocument:
    def test_metadata(self):
        chunks = chunk_document(
            "Some ZeroDB documentation.",
            url="https://docs.ainative.studio/zerodb",
            title="ZeroDB",
            similarity_metric="cosine",
        )
        assert len(chunks) == 1
        assert chunks[0].metadata == {
            "document_id": "https://docs.ainative.studio/zerodb-0",
            "url": "https://docs.ainative.studio/zerodb",
            "title": "ZeroDB",
            "similarity_metric": "cosine",
        }

    def test_chunk_index_increments(self):
        text = "\n\n".join("para " * 30 for _ in range(6))
        chunks = chunk_document(text, "u", "t", "dot_product", chunk_size=200, overlap=20)
        assert [c.chunk_index for c in chunks] == list(range(len(chunks)))
        assert chunks[-1].metadata["document_id"] == f"u-{len(chunks) - 1}"

