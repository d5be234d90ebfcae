"""
Celery tasks for incremental product indexing.

Beat triggers ``indexing.index_pending_products`` every
INDEXING_INTERVAL_MINUTES; each run indexes the next slice of unindexed
products until the catalog is fully covered.
"""

import asyncio
import concurrent.futures
import logging
from typing import Optional

from celery import Task

from chefcopilot.db.session import AsyncSessionLocal
from chefcopilot.services.indexing.product_indexer import ProductIndexer
from chefcopilot.services.processors.embedder import get_embedding_service
from chefcopilot.workers.celery_app import celery_app

logger = logging.getLogger(__name__)


# ========================================
# Async Helper
# ========================================

def run_async(coro):
    """
    Run async coroutine, handling both event loop and no event loop scenarios.

    - Celery worker (no running loop): asyncio.run()
    - Tests (pytest with a running loop): asyncio.run() in a worker thread
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)

    with concurrent.futures.ThreadPoolExecutor() as executor:
        future = executor.submit(asyncio.run, coro)
        return future.result()


# ========================================
# Base Task Class
# ========================================

class IndexingTask(Task):
    """Base task class with retry logic and error handling."""

    autoretry_for = (Exception,)
    retry_kwargs = {'max_retries': 3}
    retry_backoff = True
    retry_backoff_max = 600  # 10 minutes
    retry_jitter = True


# ========================================
# Tasks
# ========================================

async def _index_pending_products(limit: Optional[int] = None) -> dict:
    embedder = await get_embedding_service()

    async with AsyncSessionLocal() as db:
        indexer = ProductIndexer(db, embedder)
        result = await indexer.run(limit=limit)

    return result.model_dump(by_alias=True)


@celery_app.task(
    base=IndexingTask,
    name='indexing.index_pending_products',
    bind=True,
    max_retries=3
)
def index_pending_products(self, limit: Optional[int] = None) -> dict:
    """
    Index the next slice of unindexed products.

    Per-batch failures are reported in ``errors`` and do not fail the task;
    only run-level failures (database or model unavailable) trigger a retry.

    Args:
        limit: Max products this run (default INDEXING_PRODUCTS_PER_RUN)

    Returns:
        IndexingRunResult as a camelCase dict
    """
    logger.info(f"Starting indexing run (task_id={self.request.id}, limit={limit})")

    summary = run_async(_index_pending_products(limit))

    logger.info(
        f"Indexing run complete: indexed={summary['indexed']}, "
        f"chunksCreated={summary['chunksCreated']}, errors={len(summary['errors'])}"
    )
    return summary
