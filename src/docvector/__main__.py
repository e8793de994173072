"""Command-line entry point — run the pipeline on a local PDF.

    HUGGINGFACE_API_KEY=hf_... python -m docvector samples/test.pdf
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import shutil
import sys
import tempfile
from pathlib import Path

from docvector.config import settings
from docvector.debug_log import configure_logging
from docvector.exceptions import PipelineError
from docvector.ingestion.models import ProcessOptions
from docvector.ingestion.pipeline import DocumentPipeline

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="docvector", description="Chunk and embed a PDF.")
    parser.add_argument("pdf", help="Path to the PDF file")
    parser.add_argument("--chunk-size", type=int, default=settings.chunk_size)
    parser.add_argument("--chunk-overlap", type=int, default=settings.chunk_overlap)
    parser.add_argument("--preview", type=int, default=2, help="Number of chunks to print")
    args = parser.parse_args(argv)

    configure_logging()

    api_key = os.environ.get("HUGGINGFACE_API_KEY", "")
    if not api_key:
        logger.error("Please set HUGGINGFACE_API_KEY in the environment or .env file")
        return 1

    source = Path(args.pdf)
    if not source.is_file():
        logger.error("File not found: %s", source)
        return 1

    # The pipeline deletes its input, so hand it a copy.
    fd, tmp_name = tempfile.mkstemp(prefix="docvector-", suffix=".pdf")
    os.close(fd)
    shutil.copyfile(source, tmp_name)

    options = ProcessOptions(chunk_size=args.chunk_size, chunk_overlap=args.chunk_overlap)
    try:
        results = asyncio.run(DocumentPipeline().process(tmp_name, api_key, options))
    except PipelineError as exc:
        logger.error("Error processing PDF: %s", exc.message)
        return 1

    pages = {r.metadata.get("page") for r in results}
    print(f"Generated vectors for {len(results)} chunks from {len(pages)} pages")
    for i, result in enumerate(results[: args.preview], 1):
        print(f"\nChunk {i}:")
        print("Content:", result.content[:150] + "...")
        print("Vector dimension:", result.dimension)
        print("Metadata:", result.metadata)
    return 0


if __name__ == "__main__":
    sys.exit(main())
