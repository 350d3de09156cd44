import threading

import pytest

from flipforge.exceptions import PipelineCancelled
from flipforge.scoring.batching import SequentialDispatcher, batch_size_for, chunk


def test_chunk_preserves_order_and_covers_everything():
    items = list(range(170))

    batches = list(chunk(items, 80))

    assert [len(b) for b in batches] == [80, 80, 10]
    assert [x for b in batches for x in b] == items


def test_chunk_rejects_non_positive_size():
    with pytest.raises(ValueError):
        list(chunk([1, 2], 0))


def test_batch_size_shrinks_for_multiple_personas():
    assert batch_size_for(0) == 80
    assert batch_size_for(3) == 60
    assert batch_size_for(2, single_size=40, multi_size=60) == 40


def test_dispatcher_folds_results_and_reports_progress():
    progress = []
    dispatcher = SequentialDispatcher(progress_callback=lambda done, total: progress.append((done, total)))

    results = dispatcher.run([[1, 2], [3]], lambda batch: [x * 10 for x in batch])

    assert results == [10, 20, 30]
    assert progress == [(1, 2), (2, 2)]


def test_dispatcher_stops_between_batches_when_cancelled():
    cancel = threading.Event()
    seen = []

    def score_batch(batch):
        seen.append(batch)
        cancel.set()
        return list(batch)

    dispatcher = SequentialDispatcher(cancel_event=cancel)

    with pytest.raises(PipelineCancelled, match="after 1 of 3"):
        dispatcher.run([[1], [2], [3]], score_batch)

    assert seen == [[1]]
