"""Document ingestion pipeline for the DEC Learning knowledge base.

Pipeline stages overview:

1. **Extract** (pdf_processor.py / PDFProcessor) -- PyMuPDF reads the
   uploaded PDF and returns its page text and page count.

2. **Clean** (src/utils/text_normalizer.py) -- Line endings, blank-line
   runs and per-line padding are normalized.

3. **Chunk** (chunker.py / TextChunker) -- Sentence-aligned chunks of at
   most 1000 characters with ~200 characters of word overlap.

4. **Embed** (via IEmbeddingProvider) -- One vector per chunk, in ordinal
   order.

5. **Store** (via IDocumentStore) -- Chunks and their vectors replace the
   previous set in one transaction, then the document is marked processed.

IngestionService orchestrates all five stages.
"""

from src.services.ingestion.chunker import TextChunker
from src.services.ingestion.ingestion_service import IngestionService
from src.services.ingestion.pdf_processor import ExtractedPDF, PDFProcessor

__all__ = [
    "ExtractedPDF",
    "IngestionService",
    "PDFProcessor",
    "TextChunker",
]
