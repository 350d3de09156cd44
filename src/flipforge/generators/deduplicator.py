"""Collapse candidates that normalize to the same domain."""

from typing import Dict, Iterable, List

from ..exceptions import CandidateLimitError
from ..models import Candidate


class CandidateDeduplicator:
    """Keeps the first-seen candidate for every domain string."""

    def __init__(self, max_candidates: int = 10000):
        self.max_candidates = max_candidates

    def dedupe(self, candidates: Iterable[Candidate]) -> List[Candidate]:
        """Return unique candidates in first-seen order.

        Raises:
            CandidateLimitError: If more than ``max_candidates`` unique
                domains are seen. The input is consumed lazily, so this
                fires as soon as the cap is crossed.
        """
        seen: Dict[str, Candidate] = {}
        for candidate in candidates:
            if candidate.domain in seen:
                continue
            if len(seen) >= self.max_candidates:
                raise CandidateLimitError(self.max_candidates)
            seen[candidate.domain] = candidate
        return list(seen.values())
