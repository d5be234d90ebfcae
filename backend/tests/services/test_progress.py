"""
Tests for the indexing progress tracker.

This module tests:
- Distinct counting across paginated reads
- Termination (short page, empty page, failed read, safety ceiling)
- Percentage rounding and status
- Read-only idempotence
"""

import pytest

from chefcopilot.services.indexing.progress import (
    COMPLETED_MESSAGE,
    IndexingProgressTracker,
    compute_progress,
)
from tests.fakes import FakeIndexedIdSource


# ========================================
# Pagination
# ========================================

@pytest.mark.asyncio
async def test_distinct_ids_across_pages():
    # 900 chunk rows covering 400 distinct products
    source = FakeIndexedIdSource([i % 400 + 1 for i in range(900)])
    tracker = IndexingProgressTracker(page_size=300)

    progress = await tracker.status(1000, source)

    assert progress.total_products == 1000
    assert progress.total_indexed == 400
    assert progress.remaining == 600
    assert progress.percentage == 40
    assert progress.status == "in_progress"
    assert source.offsets == [0, 300, 600, 900]


@pytest.mark.asyncio
async def test_short_page_ends_scan():
    source = FakeIndexedIdSource(list(range(1, 351)))

    ids = await IndexingProgressTracker(page_size=300).collect_indexed_ids(source)

    assert len(ids) == 350
    assert source.offsets == [0, 300]


@pytest.mark.asyncio
async def test_safety_ceiling_stops_scan():
    source = FakeIndexedIdSource(list(range(1, 2001)))
    tracker = IndexingProgressTracker(page_size=300, max_rows_scanned=600)

    ids = await tracker.collect_indexed_ids(source)

    assert len(ids) == 600
    assert source.offsets == [0, 300]


@pytest.mark.asyncio
async def test_failed_read_keeps_collected_ids():
    source = FakeIndexedIdSource(list(range(1, 1001)), fail_at_offset=300)

    ids = await IndexingProgressTracker(page_size=300).collect_indexed_ids(source)

    assert ids == set(range(1, 301))


@pytest.mark.asyncio
async def test_null_product_ids_are_ignored():
    source = FakeIndexedIdSource([1, None, 2, None, 2])

    ids = await IndexingProgressTracker(page_size=10).collect_indexed_ids(source)

    assert ids == {1, 2}


@pytest.mark.asyncio
async def test_status_is_idempotent():
    source = FakeIndexedIdSource([3, 1, 2, 3, 1])
    tracker = IndexingProgressTracker(page_size=2)

    first = await tracker.status(10, source)
    second = await tracker.status(10, source)

    assert first == second
    assert first.total_indexed == 3


# ========================================
# compute_progress
# ========================================

class TestComputeProgress:

    @pytest.mark.parametrize("total,indexed,expected", [
        (3, 1, 33),
        (3, 2, 67),
        (8, 1, 13),
        (1000, 995, 100),
        (1000, 4, 0),
    ])
    def test_percentage_rounds_half_up(self, total, indexed, expected):
        assert compute_progress(total, range(1, indexed + 1)).percentage == expected

    def test_completed(self):
        progress = compute_progress(2, [1, 2])

        assert progress.status == "completed"
        assert progress.remaining == 0
        assert progress.percentage == 100
        assert progress.message == COMPLETED_MESSAGE

    def test_in_progress_message(self):
        progress = compute_progress(10, [1, 2, 3])

        assert progress.status == "in_progress"
        assert "3/10" in progress.message
        assert "30%" in progress.message

    def test_more_indexed_than_catalog_is_clamped(self):
        progress = compute_progress(2, [1, 2, 3])

        assert progress.total_indexed == 2
        assert progress.remaining == 0

    def test_empty_catalog(self):
        progress = compute_progress(0, [])

        assert progress.percentage == 0
        assert progress.remaining == 0

    def test_camel_case_serialization(self):
        data = compute_progress(4, [1]).model_dump(by_alias=True)

        assert data["totalProducts"] == 4
        assert data["totalIndexed"] == 1


@pytest.mark.parametrize("kwargs", [{"page_size": 0}, {"max_rows_scanned": 0}])
def test_zero_sizes_are_rejected(kwargs):
    with pytest.raises(ValueError):
        IndexingProgressTracker(**kwargs)
