"""
Embedding Service

This module provides embedding generation using sentence-transformers.
Optimized for local inference with batch processing support.

Model: sentence-transformers/paraphrase-multilingual-MiniLM-L12-v2
- 384 dimensions
- Multilingual (the catalog is in Spanish)
- Free (no API costs)

Features:
---------
- Batch processing for bulk indexing
- CPU/CUDA/MPS device support
- Async processing (model calls run in a worker thread)
- Embedding normalization for cosine similarity
"""

import asyncio
import logging
from typing import Optional

import numpy as np
import torch
from sentence_transformers import SentenceTransformer

from chefcopilot.core.config import settings


logger = logging.getLogger(__name__)


class EmbeddingService:
    """
    Service for generating embeddings using sentence-transformers.

    Contract:
    ---------
    - embed_text() rejects empty/whitespace input with ValueError
    - embed_texts_batch() silently skips blank entries, so the output may be
      shorter than the input; callers must not assume positional alignment
      when blanks are present

    Usage:
    ------
    embedder = EmbeddingService()
    await embedder.initialize()

    # Single text (query time)
    embedding = await embedder.embed_text("placas de inducción")

    # Batch processing (indexing)
    embeddings = await embedder.embed_texts_batch([chunk.content for chunk in chunks])
    """

    def __init__(
        self,
        model_name: Optional[str] = None,
        batch_size: Optional[int] = None,
        device: Optional[str] = None,
        normalize: bool = True
    ):
        """
        Initialize the embedding service.

        Args:
            model_name: Model name/path (default from settings)
            batch_size: Batch size for processing (default from settings)
            device: Device to use: cpu, cuda, mps (default from settings)
            normalize: Whether to normalize embeddings (default True)
        """
        self.model_name = model_name or settings.EMBEDDING_MODEL
        self.batch_size = batch_size or settings.EMBEDDING_BATCH_SIZE
        self.device = device or settings.EMBEDDING_DEVICE
        self.normalize = normalize

        self.model: Optional[SentenceTransformer] = None
        self._initialized = False

        self._validate_device()

    def _validate_device(self) -> None:
        """Validate and adjust device setting based on availability."""
        if self.device == "cuda" and not torch.cuda.is_available():
            logger.warning("CUDA not available, falling back to CPU")
            self.device = "cpu"
        elif self.device == "mps" and not torch.backends.mps.is_available():
            logger.warning("MPS not available, falling back to CPU")
            self.device = "cpu"

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """
        Load the embedding model.

        Downloads the model if not cached. Should be called once at
        application or worker startup.

        Raises:
            Exception: If model loading fails
        """
        if self._initialized:
            logger.info("Embedding service already initialized")
            return

        try:
            logger.info(f"Loading embedding model: {self.model_name} on {self.device}")

            # Model loading is CPU-intensive
            self.model = await asyncio.to_thread(
                SentenceTransformer,
                self.model_name,
                device=self.device
            )

            self._initialized = True

            logger.info(
                f"Embedding model loaded successfully. "
                f"Dimension: {self.get_embedding_dimension()}, "
                f"Device: {self.device}"
            )
        except Exception as e:
            logger.error(f"Failed to load embedding model: {e}")
            raise

    def get_embedding_dimension(self) -> int:
        """
        Get the embedding dimension of the model.

        Returns:
            Embedding dimension (configured value until the model is loaded)
        """
        if not self._initialized or self.model is None:
            return settings.EMBEDDING_DIMENSION

        return self.model.get_sentence_embedding_dimension()

    async def embed_text(self, text: str, normalize: Optional[bool] = None) -> list[float]:
        """
        Generate embedding for a single text.

        Args:
            text: Text to embed
            normalize: Override default normalization setting

        Returns:
            Embedding vector as list of floats

        Raises:
            ValueError: If text is empty or whitespace-only
            RuntimeError: If service not initialized
        """
        if not text or not text.strip():
            raise ValueError("Cannot embed empty text")

        if not self._initialized:
            raise RuntimeError("Embedding service not initialized. Call initialize() first.")

        use_normalize = normalize if normalize is not None else self.normalize

        embedding = await asyncio.to_thread(
            self._generate_single_embedding,
            text,
            use_normalize
        )
        return embedding.tolist()

    def _generate_single_embedding(self, text: str, normalize: bool) -> np.ndarray:
        """Generate embedding (sync, runs in thread pool)."""
        return self.model.encode(
            text,
            normalize_embeddings=normalize,
            show_progress_bar=False
        )

    async def embed_texts_batch(
        self,
        texts: list[str],
        normalize: Optional[bool] = None,
        show_progress: bool = False
    ) -> list[list[float]]:
        """
        Generate embeddings for multiple texts in batches.

        Blank entries are dropped before the model is called.

        Args:
            texts: List of texts to embed
            normalize: Override default normalization setting
            show_progress: Show progress bar (default False)

        Returns:
            One vector per non-blank input, in input order

        Raises:
            RuntimeError: If service not initialized
        """
        if not self._initialized:
            raise RuntimeError("Embedding service not initialized. Call initialize() first.")

        valid_texts = [text for text in texts if text and text.strip()]

        skipped = len(texts) - len(valid_texts)
        if skipped:
            logger.warning(f"Skipping {skipped} blank text(s) in embedding batch")

        if not valid_texts:
            return []

        use_normalize = normalize if normalize is not None else self.normalize

        try:
            embeddings = await asyncio.to_thread(
                self._generate_batch_embeddings,
                valid_texts,
                use_normalize,
                show_progress
            )
        except Exception as e:
            logger.error(f"Error in batch embedding generation: {e}")
            raise

        return [embedding.tolist() for embedding in embeddings]

    def _generate_batch_embeddings(
        self,
        texts: list[str],
        normalize: bool,
        show_progress: bool
    ) -> np.ndarray:
        """
        Generate batch embeddings (sync, runs in thread pool).

        Returns:
            Embeddings as numpy array (shape: [len(texts), embedding_dim])
        """
        return self.model.encode(
            texts,
            batch_size=self.batch_size,
            normalize_embeddings=normalize,
            show_progress_bar=show_progress,
            convert_to_numpy=True
        )

    async def shutdown(self) -> None:
        """
        Shutdown the embedding service and free resources.

        Should be called at application shutdown.
        """
        if self.model is not None:
            if self.device == "cuda":
                torch.cuda.empty_cache()

            del self.model
            self.model = None

        self._initialized = False
        logger.info("Embedding service shut down")


# ========================================
# Global Instance Management
# ========================================

_embedding_service: Optional[EmbeddingService] = None


async def get_embedding_service() -> EmbeddingService:
    """
    Get or create the global embedding service instance.

    This ensures we only load the model once per process.

    Returns:
        Initialized EmbeddingService instance
    """
    global _embedding_service

    if _embedding_service is None:
        service = EmbeddingService()
        await service.initialize()
        _embedding_service = service

    return _embedding_service


async def shutdown_embedding_service() -> None:
    """Shutdown the global embedding service, if it was ever loaded."""
    global _embedding_service

    if _embedding_service is not None:
        await _embedding_service.shutdown()
        _embedding_service = None
