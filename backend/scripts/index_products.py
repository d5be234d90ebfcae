#!/usr/bin/env python3
"""
Manual indexing script.

Runs incremental indexing passes against the configured database until the
catalog is fully covered (or --once is given), then prints the progress.

Usage:
    python scripts/index_products.py            # index until completed
    python scripts/index_products.py --once     # one run only
    python scripts/index_products.py --status   # print progress, index nothing
    python scripts/index_products.py --limit 50
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from chefcopilot.core.logging import setup_logging
from chefcopilot.db.session import AsyncSessionLocal, close_db
from chefcopilot.services.catalog import ProductRepository
from chefcopilot.services.indexing.product_indexer import ProductIndexer
from chefcopilot.services.indexing.progress import IndexingProgressTracker, SqlIndexedIdSource
from chefcopilot.services.processors.embedder import get_embedding_service, shutdown_embedding_service


def print_progress(progress):
    print(
        f"📊 {progress.total_indexed}/{progress.total_products} products indexed "
        f"({progress.percentage}%), {progress.remaining} remaining"
    )


async def show_status():
    async with AsyncSessionLocal() as db:
        total = await ProductRepository(db).count_indexable()
        progress = await IndexingProgressTracker().status(total, SqlIndexedIdSource(db))
    print_progress(progress)


async def index(limit, once):
    print("\n🔧 Loading embedding model...")
    embedder = await get_embedding_service()

    run_number = 0
    while True:
        run_number += 1
        async with AsyncSessionLocal() as db:
            result = await ProductIndexer(db, embedder).run(limit=limit)

        print(f"\n✅ Run {run_number}: {result.indexed} products, {result.chunks_created} chunks")
        for error in result.errors:
            print(f"   ⚠️  {error}")
        if result.progress:
            print_progress(result.progress)

        if once or result.attempted == 0:
            break
        if result.progress and result.progress.status == "completed":
            break
        # Every selected product failed; looping again would retry the same ones
        if result.indexed == 0:
            print("\n❌ No product could be indexed in this run, stopping")
            break


async def main():
    parser = argparse.ArgumentParser(description="Index catalog products for retrieval")
    parser.add_argument("--limit", type=int, default=None, help="Max products per run")
    parser.add_argument("--once", action="store_true", help="Run a single indexing pass")
    parser.add_argument("--status", action="store_true", help="Only print indexing progress")
    args = parser.parse_args()

    setup_logging()
    try:
        if args.status:
            await show_status()
        else:
            await index(args.limit, args.once)
    finally:
        await shutdown_embedding_service()
        await close_db()


if __name__ == "__main__":
    asyncio.run(main())
