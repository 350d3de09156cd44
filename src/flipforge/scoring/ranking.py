"""Ordering and top-K truncation of scored results."""

from typing import List, Optional, Sequence, TypeVar

from ..models import MultiScoreResult, ScoreResult

T = TypeVar('T', ScoreResult, MultiScoreResult)


def effective_top_k(top_k: Optional[int], default: int = 100, cap: int = 300) -> int:
    """Requested top-K bounded by the hard cap; missing or non-positive means the default."""
    if not top_k or top_k < 0:
        top_k = default
    return min(top_k, cap)


def sort_key(result) -> tuple:
    if isinstance(result, MultiScoreResult):
        return (result.best_score, result.avg_score)
    return (result.score,)


def rank(results: Sequence[T]) -> List[T]:
    """Stable sort, best first. Equal keys keep their input order."""
    return sorted(results, key=sort_key, reverse=True)


def rank_and_truncate(results: Sequence[T], top_k: Optional[int], default: int = 100, cap: int = 300) -> List[T]:
    return rank(results)[:effective_top_k(top_k, default, cap)]
