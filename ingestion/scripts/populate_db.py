"""
Knowledge-base population CLI script.

Loads documents from a JSON sample-data file or PDFs, chunks them, and
stores them in ZeroDB once per similarity metric so the chat API can
filter search results by the metric the user selected.

Usage:
    python ingestion/scripts/populate_db.py --file "./scripts/sample_data.json"
    python ingestion/scripts/populate_db.py --file "./docs/guide.pdf" --metrics cosine
"""

import argparse
import json
import logging
import os
import sys

# Add parent directory to path for kb_loader imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from pypdf import PdfReader

from kb_loader.chunking import chunk_document
from kb_loader.indexing import authenticate, embed_and_store, get_zerodb_client

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)

SIMILARITY_METRICS = ["cosine", "euclidean", "dot_product"]


def extract_text_from_pdf(file_path: str) -> str:
    """Extract text from a PDF using pypdf."""
    reader = PdfReader(file_path)
    pages = []
    for page in reader.pages:
        text = page.extract_text()
        if text:
            pages.append(text)
    return "\n\n".join(pages)


def load_documents(file_path: str) -> list[dict]:
    """
    Load ``{url, title, content}`` documents from a JSON list or a PDF.

    A PDF becomes a single document whose url is its file path.
    """
    if file_path.lower().endswith(".pdf"):
        filename = os.path.basename(file_path)
        return [
            {
                "url": file_path,
                "title": os.path.splitext(filename)[0],
                "content": extract_text_from_pdf(file_path),
            }
        ]

    with open(file_path, encoding="utf-8") as f:
        documents = json.load(f)
    if not isinstance(documents, list):
        raise ValueError(f"{file_path} must contain a JSON list of documents")
    return documents


def populate(
    file_paths: list[str],
    metrics: list[str],
    chunk_size: int = 1000,
    overlap: int = 200,
    batch_size: int = 20,
) -> int:
    """
    Full population pipeline.

    Steps:
    1. Load documents.
    2. Authenticate with ZeroDB.
    3. For every similarity metric, chunk and embed-and-store all documents.
    """
    documents = []
    for path in file_paths:
        if not os.path.exists(path):
            logger.error("File not found: %s", path)
            continue
        documents.extend(load_documents(path))

    if not documents:
        logger.warning("No documents to load.")
        return 0

    logger.info("Loaded %d documents", len(documents))

    stored = 0
    with get_zerodb_client() as client:
        logger.info("Authenticating with ZeroDB...")
        token = authenticate(client)

        for metric in metrics:
            logger.info("Loading data for similarity metric: %s", metric)
            chunks = []
            for doc in documents:
                content = doc.get("content", "")
                if not content.strip():
                    logger.warning("Skipping empty document '%s'", doc.get("title"))
                    continue
                chunks.extend(
                    chunk_document(
                        content,
                        url=doc.get("url", ""),
                        title=doc.get("title", ""),
                        similarity_metric=metric,
                        chunk_size=chunk_size,
                        overlap=overlap,
                    )
                )
            logger.info("Created %d chunks", len(chunks))
            stored += embed_and_store(client, token, chunks, batch_size=batch_size)

    logger.info("Population complete: %d vectors stored.", stored)
    return stored


def main():
    parser = argparse.ArgumentParser(
        description="Populate the ZeroDB knowledge base"
    )
    parser.add_argument(
        "--file",
        required=True,
        nargs="+",
        help="JSON sample-data file(s) or PDF(s) to load",
    )
    parser.add_argument(
        "--metrics",
        nargs="*",
        default=SIMILARITY_METRICS,
        choices=SIMILARITY_METRICS,
        help="Similarity metrics to load data for (default: all)",
    )
    parser.add_argument("--chunk-size", type=int, default=1000)
    parser.add_argument("--overlap", type=int, default=200)
    parser.add_argument("--batch-size", type=int, default=20)

    args = parser.parse_args()
    populate(
        file_paths=args.file,
        metrics=args.metrics,
        chunk_size=args.chunk_size,
        overlap=args.overlap,
        batch_size=args.batch_size,
    )


if __name__ == "__main__":
    main()
