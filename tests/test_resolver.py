"""Tests for compliance status aggregation."""

from compliance.models import ComplianceStatus, NameCheckResult, ThresholdsConfig
from compliance.screening.blacklist import match_blacklist
from compliance.screening.resolver import resolve_status
from tests.conftest import make_blacklist_record


def result(score: float, name: str = "someone") -> NameCheckResult:
    return NameCheckResult(queried_name=name, is_match=score >= 0.9, match_score=score)


def blacklist_hit():
    record = make_blacklist_record()
    return match_blacklist("Northwind Shell", [record])


class TestResolveStatus:
    def test_no_results_is_clean(self):
        assert resolve_status({}, []) == ComplianceStatus.CLEAN

    def test_low_scores_clean(self):
        results = {"a": result(0.0), "b": result(0.5), "c": result(0.84)}
        assert resolve_status(results, []) == ComplianceStatus.CLEAN

    def test_exactly_085_needs_review(self):
        assert resolve_status({"a": result(0.85)}, []) == ComplianceStatus.NEEDS_REVIEW

    def test_087_needs_review(self):
        results = {"a": result(0.2), "b": result(0.87)}
        assert resolve_status(results, []) == ComplianceStatus.NEEDS_REVIEW

    def test_090_match_still_only_review(self):
        """The matcher's is_match cutoff does not flag on its own."""
        assert resolve_status({"a": result(0.95)}, []) == ComplianceStatus.NEEDS_REVIEW

    def test_exact_score_flagged(self):
        assert resolve_status({"a": result(1.0)}, []) == ComplianceStatus.FLAGGED

    def test_blacklist_match_flagged_regardless_of_scores(self):
        results = {"a": result(0.0)}
        assert resolve_status(results, [blacklist_hit()]) == ComplianceStatus.FLAGGED

    def test_blacklist_match_with_no_results(self):
        assert resolve_status({}, [blacklist_hit()]) == ComplianceStatus.FLAGGED

    def test_adding_exact_hit_always_flags(self):
        """Monotonic: an exact hit flags whatever else is in the set."""
        for prior in [{}, {"a": result(0.1)}, {"a": result(0.86)}, {"a": result(1.0)}]:
            results = dict(prior)
            results["new"] = result(1.0)
            assert resolve_status(results, []) == ComplianceStatus.FLAGGED

    def test_custom_thresholds(self):
        config = ThresholdsConfig(flag_score=0.95, review_score=0.5)
        assert resolve_status({"a": result(0.96)}, [], config) == ComplianceStatus.FLAGGED
        assert resolve_status({"a": result(0.6)}, [], config) == ComplianceStatus.NEEDS_REVIEW
