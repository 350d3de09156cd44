import pytest

from flipforge.exceptions import CandidateLimitError
from flipforge.generators import CandidateDeduplicator
from flipforge.models import Candidate


def test_first_seen_candidate_wins():
    first = Candidate(domain="payflow", template="A+B", sources=(("A", "pay"), ("B", "flow")))
    second = Candidate(domain="payflow", template="prefix+A+B", sources=(("pre", "pay"), ("A", "flow")))
    other = Candidate(domain="paylend", template="A+B")

    result = CandidateDeduplicator().dedupe([first, other, second])

    assert result == [first, other]
    assert result[0].template == "A+B"


def test_cap_is_inclusive():
    candidates = [Candidate(domain=f"name{i}", template="A+B") for i in range(3)]

    assert len(CandidateDeduplicator(max_candidates=3).dedupe(candidates)) == 3


def test_exceeding_cap_raises():
    candidates = [Candidate(domain=f"name{i}", template="A+B") for i in range(4)]

    with pytest.raises(CandidateLimitError) as excinfo:
        CandidateDeduplicator(max_candidates=3).dedupe(candidates)

    assert "Maximum 3" in str(excinfo.value)
    assert excinfo.value.limit == 3


def test_duplicates_do_not_count_towards_cap():
    candidates = [Candidate(domain="same", template="A+B") for _ in range(10)]

    assert len(CandidateDeduplicator(max_candidates=1).dedupe(candidates)) == 1
