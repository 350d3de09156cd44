"""Batch partitioning and sequential dispatch to the scoring oracle."""

import logging
import threading
from typing import Callable, Iterator, List, Optional, Sequence, TypeVar

from ..exceptions import PipelineCancelled

logger = logging.getLogger(__name__)

T = TypeVar('T')
R = TypeVar('R')


def chunk(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yield contiguous slices of at most ``size`` items."""
    if size < 1:
        raise ValueError(f"Batch size must be positive, got {size}")
    for start in range(0, len(items), size):
        yield items[start:start + size]


def batch_size_for(preset_count: int, single_size: int = 80, multi_size: int = 60) -> int:
    """Multi-persona responses are larger per domain, so batches shrink."""
    if preset_count > 0:
        return min(multi_size, single_size)
    return single_size


class SequentialDispatcher:
    """Runs one batch at a time and folds the results into a single list.

    ``score_batch`` must return exactly one result per submitted item.
    A concurrent dispatcher only needs the same ``run`` signature.
    """

    def __init__(self, cancel_event: Optional[threading.Event] = None, progress_callback=None):
        self.cancel_event = cancel_event
        self.progress_callback = progress_callback

    def run(self, batches: Sequence[Sequence[T]], score_batch: Callable[[Sequence[T]], List[R]]) -> List[R]:
        results: List[R] = []
        total = len(batches)

        for index, batch in enumerate(batches):
            if self.cancel_event is not None and self.cancel_event.is_set():
                raise PipelineCancelled(f"Run cancelled after {index} of {total} batches")

            logger.debug("Scoring batch %d/%d (%d domains)", index + 1, total, len(batch))
            results.extend(score_batch(batch))

            if self.progress_callback:
                self.progress_callback(index + 1, total)

        return results
