"""
Recursive character chunking for knowledge-base documents.

Wraps langchain's ``RecursiveCharacterTextSplitter``: text is split on the
coarsest separator that keeps pieces under the chunk size (paragraphs, then
lines, then words, then characters) and merged back into overlapping chunks.
"""

from dataclasses import dataclass, field

from langchain_text_splitters import RecursiveCharacterTextSplitter

DEFAULT_SEPARATORS = ["\n\n", "\n", " ", ""]


@dataclass
class Chunk:
    """A single text chunk with its metadata."""

    text: str
    metadata: dict = field(default_factory=dict)
    chunk_index: int = 0


def split_text(
    text: str,
    chunk_size: int = 1000,
    overlap: int = 200,
    separators: list[str] | None = None,
) -> list[str]:
    """
    Split text into chunks of at most ``chunk_size`` characters.

    Args:
        text: The full document text.
        chunk_size: Maximum characters per chunk.
        overlap: Characters carried over between consecutive chunks.
        separators: Separators tried in order, coarsest first.

    Returns:
        List of chunk strings in document order.
    """
    if overlap >= chunk_size:
        raise ValueError(
            f"overlap ({overlap}) must be smaller than chunk_size ({chunk_size})"
        )
    splitter = RecursiveCharacterTextSplitter(
        chunk_size=chunk_size,
        chunk_overlap=overlap,
        separators=separators or DEFAULT_SEPARATORS,
        keep_separator=False,
    )
    return splitter.split_text(text)


def chunk_document(
    content: str,
    url: str,
    title: str,
    similarity_metric: str,
    chunk_size: int = 1000,
    overlap: int = 200,
) -> list[Chunk]:
    """
    Chunk one document and tag every chunk for metric-filtered search.

    Each chunk's metadata carries ``document_id`` (``{url}-{index}``), the
    source url and title, and the similarity metric it was loaded for.
    """
    chunks = []
    for i, piece in enumerate(split_text(content, chunk_size, overlap)):
        chunks.append(
            Chunk(
                text=piece,
                metadata={
                    "document_id": f"{url}-{i}",
                    "url": url,
                    "title": title,
                    "similarity_metric": similarity_metric,
                },
                chunk_index=i,
            )
        )
    return chunks
