"""Reuse pool for scratch byte buffers.

Buckets are powers of two starting at 16 bytes. A rented array may be larger than
requested; callers must slice by the requested size (``borrow()`` does this for
them). Arrays above ``max_pooled_size`` are allocated exactly and never retained.

Pooling is only an optimization: ``NullPool`` allocates every time and is
interchangeable with ``BufferPool``.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from gzcodec.errors import InvalidArgument

logger = logging.getLogger(__name__)

MIN_BUCKET_SIZE = 16


def _bucket_size(n: int) -> int:
    if n <= MIN_BUCKET_SIZE:
        return MIN_BUCKET_SIZE
    return 1 << (n - 1).bit_length()


def _check_size(size: int) -> int:
    if isinstance(size, bool) or not isinstance(size, int):
        raise InvalidArgument("size", "size: int required")
    if size < 0:
        raise InvalidArgument("size", f"size: must be >= 0, got {size}")
    return size


class BufferPool:
    def __init__(self, max_arrays_per_bucket: int = 50, max_pooled_size: int = 1 << 20):
        if max_arrays_per_bucket < 0:
            raise ValueError("max_arrays_per_bucket must be >= 0")
        self.max_arrays_per_bucket = int(max_arrays_per_bucket)
        self.max_pooled_size = _bucket_size(int(max_pooled_size))
        self._buckets: dict[int, list[bytearray]] = {}
        self._lock = threading.Lock()

    def rent(self, min_size: int) -> bytearray:
        n = _check_size(min_size)
        size = _bucket_size(n)
        if size > self.max_pooled_size:
            logger.debug("pool miss: %d bytes above pooled limit %d", n, self.max_pooled_size)
            return bytearray(n)
        with self._lock:
            free = self._buckets.get(size)
            if free:
                return free.pop()
        return bytearray(size)

    def give_back(self, buf: bytearray, *, clear: bool = False) -> None:
        size = len(buf)
        if size > self.max_pooled_size or size != _bucket_size(size):
            # Exact-size allocation or foreign array: let it go.
            return
        if clear:
            buf[:] = bytes(size)
        with self._lock:
            free = self._buckets.setdefault(size, [])
            if len(free) < self.max_arrays_per_bucket:
                free.append(buf)

    @contextmanager
    def borrow(self, size: int, *, clear: bool = False) -> Iterator[memoryview]:
        """Rent an array and yield a view of exactly ``size`` bytes.

        The array goes back to the pool on every exit path. The view is released
        first, so it must not escape the ``with`` block.
        """
        n = _check_size(size)
        buf = self.rent(n)
        view = memoryview(buf)[:n]
        try:
            yield view
        finally:
            view.release()
            self.give_back(buf, clear=clear)

    def pooled_count(self, size: int) -> int:
        """Number of idle arrays in the bucket serving ``size``."""
        with self._lock:
            return len(self._buckets.get(_bucket_size(size), ()))


class NullPool(BufferPool):
    """Pure-allocation pool: every rent allocates, nothing is retained."""

    def __init__(self) -> None:
        super().__init__(max_arrays_per_bucket=0)

    def rent(self, min_size: int) -> bytearray:
        return bytearray(_check_size(min_size))

    def give_back(self, buf: bytearray, *, clear: bool = False) -> None:
        if clear:
            buf[:] = bytes(len(buf))


SHARED_POOL = BufferPool()
NULL_POOL = NullPool()


def pool_for(size: int, pool: BufferPool | None, threshold: int) -> BufferPool:
    """Pick the pool for a request: small requests skip pooling entirely."""
    if pool is None:
        pool = SHARED_POOL
    if size <= threshold:
        return NULL_POOL
    return pool
