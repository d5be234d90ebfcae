"""
Product Chunking Service

This module splits a catalog product into bounded, coherent text chunks
ready for embedding and vector retrieval.

Chunking Strategy:
------------------
1. Identification chunk: "name - category - subcategory" (source=name)
2. Short products: one combined "name. description" chunk (source=combined)
3. Long descriptions: paragraph-first greedy packing, falling back to
   sentence boundaries for oversized paragraphs (source=description)

Sizes are measured in characters:
- CHUNK_MAX_CHARS: 1200 (default)
- CHUNK_MIN_CHARS: 200 (default)

Chunks are contiguous slices of the description, so no description text is
ever lost or rewritten; only the whitespace between chunks is dropped.
"""

import re
from collections import deque
from typing import Iterable, List, Optional, Tuple

from chefcopilot.core.config import settings
from chefcopilot.schemas.catalog import Chunk, ChunkMetadata, ChunkSource, ProductRecord

Span = Tuple[int, int]

# Blank line, or a period directly followed by a capital letter
PARAGRAPH_BOUNDARY = re.compile(r"\n\s*\n|(?<=\.)\s*(?=[A-ZÁÉÍÓÚÜÑ])")

# Group 1 ends the sentence, group 2 is the gap before the next one
SENTENCE_BOUNDARY = re.compile(r"([.!?]+)(\s+)")


class ProductChunker:
    """
    Deterministic product chunker.

    No network access, no randomness: the same product always yields the
    same chunks. Absent text fields are treated as empty strings.

    Usage:
    ------
    chunker = ProductChunker()
    chunks = chunker.chunk(ProductRecord(id=1, name="Chef Knife", description="..."))

    for chunk in chunks:
        row = ProductEmbedding(
            product_id=chunk.metadata.product_id,
            chunk_index=chunk.metadata.chunk_index,
            content=chunk.content,
            chunk_metadata=chunk.metadata.model_dump(),
        )
    """

    def __init__(
        self,
        max_chunk_size: Optional[int] = None,
        min_chunk_size: Optional[int] = None
    ):
        """
        Initialize the chunker with size limits.

        Args:
            max_chunk_size: Max characters per chunk (default from settings)
            min_chunk_size: Min characters for a standalone chunk (default from settings)
        """
        self.max_chunk_size = max_chunk_size if max_chunk_size is not None else settings.CHUNK_MAX_CHARS
        self.min_chunk_size = min_chunk_size if min_chunk_size is not None else settings.CHUNK_MIN_CHARS

        if self.min_chunk_size >= self.max_chunk_size:
            raise ValueError(
                f"min_chunk_size ({self.min_chunk_size}) must be smaller than "
                f"max_chunk_size ({self.max_chunk_size})"
            )

    def chunk(self, product: ProductRecord) -> List[Chunk]:
        """
        Chunk one product.

        Args:
            product: Product to chunk

        Returns:
            Ordered chunks; chunk_index runs 0..N-1 across the whole list
        """
        pieces: List[Tuple[str, ChunkSource]] = []

        name = product.name.strip()

        identification = self._identification_text(product)
        if identification:
            pieces.append((identification, "name"))

        description = product.description.strip()
        if description:
            pieces.extend(self._description_pieces(name, description))

        return [
            Chunk(
                content=content,
                metadata=ChunkMetadata(
                    product_id=product.id,
                    product_name=product.name,
                    chunk_index=index,
                    source=source,
                ),
            )
            for index, (content, source) in enumerate(pieces)
        ]

    def chunk_products(self, products: Iterable[ProductRecord]) -> List[Chunk]:
        """Chunk several products, preserving input order."""
        chunks: List[Chunk] = []
        for product in products:
            chunks.extend(self.chunk(product))
        return chunks

    # ========================================
    # Identification & Combined Chunks
    # ========================================

    def _identification_text(self, product: ProductRecord) -> str:
        text = product.name
        if product.category:
            text += f" - {product.category}"
        if product.subcategory:
            text += f" - {product.subcategory}"
        return text.strip()

    def _description_pieces(self, name: str, description: str) -> List[Tuple[str, ChunkSource]]:
        combined = f"{name}. {description}" if name else description
        if len(combined) <= self.max_chunk_size:
            return [(combined, "combined")]

        spans = self._split_description(description)

        pieces: List[Tuple[str, ChunkSource]] = []
        for i, (start, end) in enumerate(spans):
            text = description[start:end]
            if i == 0 and name and len(name) + 2 + len(text) <= self.max_chunk_size:
                pieces.append((f"{name}. {text}", "combined"))
            else:
                pieces.append((text, "description"))
        return pieces

    # ========================================
    # Description Splitting
    # ========================================

    def _split_description(self, text: str) -> List[Span]:
        """
        Split a long description into chunk spans.

        Strategy:
        ---------
        1. Paragraph boundaries (blank line, or ". " before a capital)
        2. Paragraphs over the limit are pre-split by sentences
        3. Greedy packing of the resulting stream
        4. No paragraph boundaries at all: greedy packing of sentences
        """
        paragraphs = self._paragraph_spans(text)

        if len(paragraphs) <= 1:
            return self._pack(text, self._sentence_spans(text, 0, len(text)))

        stream: List[Span] = []
        for start, end in paragraphs:
            if end - start > self.max_chunk_size:
                stream.extend(self._pack(text, self._sentence_spans(text, start, end)))
            else:
                stream.append((start, end))

        return self._pack(text, stream)

    def _pack(self, text: str, units: List[Span]) -> List[Span]:
        """
        Greedily pack consecutive spans into chunks.

        A chunk is flushed when the next unit would push it past the max size
        and it already meets the min size. Below the min size it is topped up
        with whole sentences of the next unit instead, so the max size still
        holds. A short final accumulation is absorbed into the previous chunk.
        """
        chunks: List[Span] = []
        current: Optional[Span] = None
        pending = deque(units)

        while pending:
            unit = pending.popleft()

            if current is None:
                current = unit
                continue

            if unit[1] - current[0] <= self.max_chunk_size:
                current = (current[0], unit[1])
                continue

            if current[1] - current[0] >= self.min_chunk_size:
                chunks.append(current)
                current = unit
                continue

            # Below the floor: borrow leading sentences from the next unit
            sentences = self._sentence_spans(text, unit[0], unit[1])
            taken = 0
            for sentence in sentences:
                if sentence[1] - current[0] > self.max_chunk_size:
                    break
                taken += 1

            if taken == 0:
                chunks.append(current)
                current = unit
                continue

            chunks.append((current[0], sentences[taken - 1][1]))
            current = None
            pending.appendleft((sentences[taken][0], unit[1]))

        if current is not None:
            self._flush_tail(text, chunks, current)

        return chunks

    def _flush_tail(self, text: str, chunks: List[Span], tail: Span) -> None:
        """Append the last accumulation, merging it back if it is too short."""
        if tail[1] - tail[0] >= self.min_chunk_size or not chunks:
            chunks.append(tail)
            return

        previous = chunks[-1]
        if tail[1] - previous[0] <= self.max_chunk_size:
            chunks[-1] = (previous[0], tail[1])
            return

        # Merging would overflow: move trailing sentences of the previous
        # chunk onto the tail until the tail is big enough.
        sentences = self._sentence_spans(text, previous[0], previous[1])
        for k in range(len(sentences) - 1, 0, -1):
            new_tail = (sentences[k][0], tail[1])
            if new_tail[1] - new_tail[0] >= self.min_chunk_size:
                if new_tail[1] - new_tail[0] <= self.max_chunk_size:
                    chunks[-1] = (previous[0], sentences[k - 1][1])
                    chunks.append(new_tail)
                    return
                break

        chunks.append(tail)

    # ========================================
    # Boundary Detection
    # ========================================

    def _paragraph_spans(self, text: str) -> List[Span]:
        spans: List[Span] = []
        cursor = 0
        for match in PARAGRAPH_BOUNDARY.finditer(text):
            spans.append((cursor, match.start()))
            cursor = match.end()
        spans.append((cursor, len(text)))
        return self._trimmed(text, spans)

    def _sentence_spans(self, text: str, start: int, end: int) -> List[Span]:
        spans: List[Span] = []
        cursor = start
        for match in SENTENCE_BOUNDARY.finditer(text, start, end):
            spans.append((cursor, match.end(1)))
            cursor = match.end(2)
        spans.append((cursor, end))
        return self._trimmed(text, spans)

    @staticmethod
    def _trimmed(text: str, spans: List[Span]) -> List[Span]:
        result: List[Span] = []
        for start, end in spans:
            while start < end and text[start].isspace():
                start += 1
            while end > start and text[end - 1].isspace():
                end -= 1
            if end > start:
                result.append((start, end))
        return result


# ========================================
# Utility Functions
# ========================================

def chunk_product(product: ProductRecord) -> List[Chunk]:
    """Chunk a product with the default size limits."""
    return ProductChunker().chunk(product)
