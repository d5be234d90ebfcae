"""
Indexing Services

- progress: distinct-product coverage of the chunk store
- product_indexer: incremental chunk + embed + store runs
"""

from chefcopilot.services.indexing.product_indexer import ProductIndexer
from chefcopilot.services.indexing.progress import (
    IndexingProgressTracker,
    SqlIndexedIdSource,
    compute_progress,
)

__all__ = [
    "ProductIndexer",
    "IndexingProgressTracker",
    "SqlIndexedIdSource",
    "compute_progress",
]
