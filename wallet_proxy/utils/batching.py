"""Batching utilities for the wallet proxy."""

from typing import Iterable, List, TypeVar

T = TypeVar('T')


def unique(items: Iterable[T]) -> List[T]:
    """Deduplicate items, keeping first-seen order and dropping falsy entries."""
    seen = set()
    result: List[T] = []
    for item in items:
        if not item or item in seen:
            continue
        seen.add(item)
        result.append(item)
    return result


def chunked(items: List[T], batch_size: int) -> List[List[T]]:
    """
    Split a list into consecutive batches.

    Args:
        items: Items to split
        batch_size: Maximum number of items per batch (values below 1 mean 1)

    Returns:
        List of batches in input order
    """
    size = max(1, batch_size)
    return [items[i:i + size] for i in range(0, len(items), size)]
