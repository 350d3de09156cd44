import pytest

from flipforge.models import Candidate, Constraints
from flipforge.utils import ConstraintFilter, normalize_domain
from flipforge.utils.constraint_filter import has_ugly_cluster


def test_normalize_domain_lowercases_and_strips_symbols():
    assert normalize_domain("Trust_Flow!") == "trustflow"
    assert normalize_domain("pay-2go") == "pay-2go"


@pytest.mark.parametrize("word", ["strngth", "queueing", "buzzy", "taxxer", "aaaah"])
def test_ugly_clusters_detected(word):
    assert has_ugly_cluster(word)


@pytest.mark.parametrize("word", ["trustlend", "securelend", "payflow"])
def test_clean_words_pass_cluster_check(word):
    assert not has_ugly_cluster(word)


def test_default_constraints_accept_compact_names():
    f = ConstraintFilter()

    assert f.is_valid("payflow")
    assert not f.is_valid("")
    assert not f.is_valid("pay-flow")
    assert not f.is_valid("pay2flow")


def test_max_len_rejects_longer_domains():
    f = ConstraintFilter(Constraints(max_len=8))

    assert f.is_valid("payflow")
    assert not f.is_valid("securelend")


def test_banned_substrings_are_case_insensitive():
    f = ConstraintFilter(Constraints(banned=("LOAN", "")))

    assert not f.is_valid("quickloan")
    assert f.is_valid("quicklend")


def test_flags_can_be_relaxed():
    f = ConstraintFilter(Constraints(no_hyphens=False, no_numbers=False, avoid_ugly_clusters=False))

    assert f.is_valid("pay-2")
    assert f.is_valid("buzzy")


def test_apply_returns_normalized_candidate():
    f = ConstraintFilter()
    candidate = Candidate(domain="Pay.Lend", template="A+B", sources=(("A", "Pay."), ("B", "Lend")))

    kept = f.apply(candidate)

    assert kept.domain == "paylend"
    assert kept.sources == candidate.sources


def test_filter_output_satisfies_every_constraint():
    constraints = Constraints(max_len=8, banned=("cash",))
    f = ConstraintFilter(constraints)
    raw = [Candidate(domain=d, template="A+B") for d in
           ["trustflow", "payflow", "cashflow", "go-pay", "pay4u", "strngth", "Paylend"]]

    kept = [c.domain for c in f.filter(raw)]

    assert kept == ["payflow", "paylend"]
    for domain in kept:
        assert len(domain) <= 8
        assert "-" not in domain
        assert not any(ch.isdigit() for ch in domain)
        assert "cash" not in domain


def test_constraints_from_dict_defaults():
    c = Constraints.from_dict({"maxLen": 0, "noHyphens": False})

    assert c.max_len == 12
    assert c.no_hyphens is False
    assert c.no_numbers is True
    assert c.avoid_ugly_clusters is True


def test_consonant_run_across_fragment_boundary_is_ugly():
    # "trust" + "flow" joins into the four-consonant run "stfl"
    assert has_ugly_cluster("trustflow")
    assert not ConstraintFilter().is_valid("trustflow")
    assert ConstraintFilter(Constraints(avoid_ugly_clusters=False)).is_valid("trustflow")
