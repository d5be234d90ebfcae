"""
Indexing API endpoints.

- GET  /indexing/status: how much of the catalog has chunks in the store
- POST /indexing/run: index the next slice of unindexed products now

Scheduled runs go through the Celery beat task; the manual run executes
inline and is meant for operators and first-time setup.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends

from chefcopilot.api.deps import (
    get_indexed_id_source,
    get_product_indexer,
    get_product_repository,
    get_progress_tracker,
)
from chefcopilot.schemas.common import parse_request
from chefcopilot.schemas.indexing import (
    IndexingRunRequest,
    IndexingRunResult,
    IndexingStatusResponse,
)
from chefcopilot.services.catalog import ProductRepository
from chefcopilot.services.indexing.product_indexer import ProductIndexer
from chefcopilot.services.indexing.progress import IndexingProgressTracker, SqlIndexedIdSource

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/indexing", tags=["Indexing"])


@router.get(
    "/status",
    response_model=IndexingStatusResponse,
    response_model_by_alias=True,
)
async def get_indexing_status(
    repository: ProductRepository = Depends(get_product_repository),
    source: SqlIndexedIdSource = Depends(get_indexed_id_source),
    tracker: IndexingProgressTracker = Depends(get_progress_tracker),
):
    """
    Report distinct-product coverage of the chunk store.

    Returns:
        Progress snapshot plus the raw chunk row count
    """
    total_products = await repository.count_indexable()
    progress = await tracker.status(total_products, source)
    total_chunks = await source.count_chunks()

    return IndexingStatusResponse(
        **progress.model_dump(),
        total_chunks=total_chunks,
    )


@router.post(
    "/run",
    response_model=IndexingRunResult,
    response_model_by_alias=True,
)
async def run_indexing(
    payload: Optional[Dict[str, Any]] = Body(default=None),
    indexer: ProductIndexer = Depends(get_product_indexer),
):
    """
    Run one incremental indexing pass inline.

    Args:
        payload: Optional ``{"limit": int}``

    Returns:
        Products indexed, chunks created, batch errors and the new progress

    Raises:
        InvalidInputError: If ``limit`` is out of range (400)
        DependencyUnavailableError: If the embedding model cannot load (503)
    """
    request = parse_request(IndexingRunRequest, payload)

    logger.info(f"Manual indexing run requested (limit={request.limit})")

    return await indexer.run(limit=request.limit)
