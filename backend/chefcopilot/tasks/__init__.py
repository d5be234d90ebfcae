"""
Celery tasks for background processing.
"""

from chefcopilot.tasks.indexing_tasks import index_pending_products

__all__ = [
    "index_pending_products",
]
