"""Normalization and lexical filtering of generated candidates."""

import re
from typing import Iterable, Iterator, Optional

from ..models import Candidate, Constraints

# Characters that survive normalization
_DISALLOWED_CHARS = re.compile(r'[^a-z0-9-]')
_DIGIT = re.compile(r'\d')

# Four consonants or four vowels in a row, or a doubled rare letter
UGLY_CLUSTERS = re.compile(r'([bcdfghjklmnpqrstvwxz]{4,})|([aeiou]{4,})|(xx|zz|qq|ww|vv)')


def normalize_domain(domain: str) -> str:
    """Lower-case and strip every character outside ``[a-z0-9-]``."""
    return _DISALLOWED_CHARS.sub('', domain.lower())


def has_ugly_cluster(word: str) -> bool:
    return UGLY_CLUSTERS.search(word) is not None


class ConstraintFilter:
    """Rejects candidates that violate a run's constraints."""

    def __init__(self, constraints: Optional[Constraints] = None):
        self.constraints = constraints or Constraints()
        self._banned = tuple(b.lower() for b in self.constraints.banned if b)

    def is_valid(self, domain: str) -> bool:
        """Check an already normalized domain against every rule."""
        c = self.constraints

        if not domain:
            return False
        if len(domain) > c.max_len:
            return False
        if c.no_hyphens and '-' in domain:
            return False
        if c.no_numbers and _DIGIT.search(domain):
            return False
        if c.avoid_ugly_clusters and has_ugly_cluster(domain):
            return False
        if self._contains_banned(domain):
            return False

        return True

    def _contains_banned(self, domain: str) -> bool:
        for banned in self._banned:
            if banned in domain:
                return True
        return False

    def apply(self, candidate: Candidate) -> Optional[Candidate]:
        """Return the normalized candidate, or None if it is rejected."""
        normalized = normalize_domain(candidate.domain)
        if not self.is_valid(normalized):
            return None
        if normalized == candidate.domain:
            return candidate
        return candidate.with_domain(normalized)

    def filter(self, candidates: Iterable[Candidate]) -> Iterator[Candidate]:
        for candidate in candidates:
            kept = self.apply(candidate)
            if kept is not None:
                yield kept
