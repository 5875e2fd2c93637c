"""Order-preserving partitioning of the row stream into batches."""

from itertools import islice
from typing import Iterable, Iterator, List

from costpool.models import SourceRow


def iter_batches(rows: Iterable[SourceRow], batch_size: int) -> Iterator[List[SourceRow]]:
    """
    Group rows into lists of ``batch_size``; the last batch holds the remainder.

    Rows are pulled from the source lazily, one batch at a time.

    Raises:
        ValueError: If batch_size is smaller than 1
    """
    if batch_size < 1:
        raise ValueError(f"batch_size must be at least 1, got {batch_size}")

    iterator = iter(rows)
    while True:
        batch = list(islice(iterator, batch_size))
        if not batch:
            return
        yield batch
