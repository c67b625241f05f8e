import logging

import pytest

from partner_charts.core.version_filter import eligible_versions, filter_versions, newer_untracked
from partner_charts.errors import NoEligibleVersionsError
from partner_charts.models import FetchPolicy
from partner_charts.models.repo import StoredVersion
from partner_charts.models.upstream import UpstreamVersion


def upstream(*versions):
    return [UpstreamVersion(chart_name="demo", version=v, urls=(f"https://x/demo-{v}.tgz",)) for v in versions]


def stored(*versions):
    return [StoredVersion(chart_name="demo", version=v) for v in versions]


def names(selected):
    return [u.version for u in selected]


class TestEligibleVersions:
    def test_sorts_and_strips_prereleases(self):
        result = eligible_versions(upstream("1.0.0", "1.2.0-beta.1", "1.1.0", "nightly"))
        assert names(result) == ["1.1.0", "1.0.0"]

    def test_only_prereleases_raises(self):
        with pytest.raises(NoEligibleVersionsError):
            filter_versions(upstream("1.0.0-rc.1", "1.0.0-rc.2"), [], FetchPolicy.DEFAULT)


class TestDefaultPolicy:
    def test_fetches_newest_when_nothing_stored(self):
        assert names(filter_versions(upstream("1.0.0", "1.1.0", "0.9.0"), [], FetchPolicy.DEFAULT)) == ["1.1.0"]

    def test_up_to_date_when_newest_is_stored(self):
        assert filter_versions(upstream("1.1.0", "1.0.0"), stored("1.1.0"), FetchPolicy.DEFAULT) == []

    def test_encoded_stored_version_counts_as_stored(self):
        assert filter_versions(upstream("4.0.4", "4.0.3"), stored("4.0.407"), FetchPolicy.DEFAULT) == []

    def test_newest_missing_is_fetched(self):
        result = filter_versions(upstream("1.2.0", "1.1.0"), stored("1.1.0"), FetchPolicy.DEFAULT)
        assert names(result) == ["1.2.0"]

    def test_zero_patch_with_package_version(self):
        # 1.2.0 published with package version 7 is stored as 1.2.7
        assert filter_versions(upstream("1.2.0"), stored("1.2.7"), FetchPolicy.DEFAULT, package_version=7) == []
        assert names(filter_versions(upstream("1.2.0"), stored("1.2.7"), FetchPolicy.DEFAULT)) == ["1.2.0"]


class TestNewerPolicy:
    def test_only_versions_above_newest_stored(self):
        result = filter_versions(upstream("1.3.0", "1.2.0", "1.1.0", "1.0.0"), stored("1.1.0"), FetchPolicy.NEWER)
        assert names(result) == ["1.3.0", "1.2.0"]

    def test_compares_against_decoded_stored_version(self):
        result = filter_versions(upstream("1.1.5", "1.1.4", "1.1.3"), stored("1.1.407"), FetchPolicy.NEWER)
        assert names(result) == ["1.1.5"]

    def test_everything_when_nothing_stored(self):
        assert names(filter_versions(upstream("1.1.0", "1.0.0"), [], FetchPolicy.NEWER)) == ["1.1.0", "1.0.0"]


class TestAllPolicy:
    def test_backfills_gaps(self):
        result = filter_versions(upstream("1.3.0", "1.2.0", "1.1.0", "1.0.0"), stored("1.3.0", "1.1.0"), FetchPolicy.ALL)
        assert names(result) == ["1.2.0", "1.0.0"]


class TestPolicyLaws:
    UPSTREAM = ("2.0.0", "1.3.0", "1.2.0", "1.1.0", "1.0.0")

    @pytest.mark.parametrize("stored_versions", [(), ("1.1.0",), ("1.0.0", "1.2.0"), ("2.0.0",)])
    def test_selection_grows_with_policy(self, stored_versions):
        up, st = upstream(*self.UPSTREAM), stored(*stored_versions)
        default = set(names(filter_versions(up, st, FetchPolicy.DEFAULT)))
        newer = set(names(filter_versions(up, st, FetchPolicy.NEWER)))
        every = set(names(filter_versions(up, st, FetchPolicy.ALL)))
        assert default <= newer <= every

    @pytest.mark.parametrize("policy", list(FetchPolicy))
    def test_idempotent_once_everything_is_stored(self, policy):
        assert filter_versions(upstream(*self.UPSTREAM), stored(*self.UPSTREAM), policy) == []

    def test_result_never_contains_stored_or_prerelease_versions(self):
        up = upstream("1.2.0", "1.2.0-rc.1", "1.1.0", "1.0.0")
        result = names(filter_versions(up, stored("1.1.0"), FetchPolicy.ALL))
        assert "1.1.0" not in result
        assert "1.2.0-rc.1" not in result


class TestTrackedLines:
    def test_each_line_is_filtered_separately(self):
        up = upstream("1.3.0", "1.2.3", "1.2.1", "1.1.5", "1.1.4")
        result = filter_versions(up, [], FetchPolicy.DEFAULT, tracked=["1.1", "1.2"])
        assert names(result) == ["1.1.5", "1.2.3"]

    def test_stored_versions_on_other_lines_do_not_interfere(self):
        up = upstream("1.2.3", "1.1.5")
        result = filter_versions(up, stored("1.2.3"), FetchPolicy.DEFAULT, tracked=["1.1", "1.2"])
        assert names(result) == ["1.1.5"]

    def test_line_without_upstream_versions_is_ignored(self):
        result = filter_versions(upstream("1.2.3"), [], FetchPolicy.ALL, tracked=["0.9", "1.2"])
        assert names(result) == ["1.2.3"]

    def test_newer_untracked_lines_are_logged_not_fetched(self, caplog):
        up = upstream("1.4.0", "1.3.1", "1.3.0", "1.2.3")
        with caplog.at_level(logging.WARNING):
            result = filter_versions(up, [], FetchPolicy.DEFAULT, tracked=["1.2"])
        assert names(result) == ["1.2.3"]
        assert "1.4.0" in caplog.text


class TestTrackedLineScenarios:
    UPSTREAM = ("2.1.0", "2.0.5", "2.0.4", "1.9.9")

    @pytest.mark.parametrize("policy", [FetchPolicy.DEFAULT, FetchPolicy.ALL])
    def test_next_patch_on_tracked_line(self, policy):
        result = filter_versions(upstream(*self.UPSTREAM), stored("2.0.4"), policy, tracked=["2.0"])
        assert names(result) == ["2.0.5"]

    def test_newer_line_is_advisory_only(self):
        up = eligible_versions(upstream(*self.UPSTREAM))
        assert newer_untracked(["2.0"], up) == ["2.1.0"]

    @pytest.mark.parametrize("policy", list(FetchPolicy))
    def test_lines_stay_isolated(self, policy):
        up = upstream("2.0.3", "2.0.2", "1.2.9", "1.2.8")
        only_12 = names(filter_versions(up, stored("2.0.2"), policy, tracked=["1.2"]))
        only_20 = names(filter_versions(up, stored("1.2.8"), policy, tracked=["2.0"]))
        assert only_12 and all(v.startswith("1.2.") for v in only_12)
        assert only_20 and all(v.startswith("2.0.") for v in only_20)

    def test_both_lines_in_configured_order(self):
        up = upstream("2.0.3", "2.0.2", "1.2.9", "1.2.8")
        result = filter_versions(up, stored("2.0.2", "1.2.8"), FetchPolicy.NEWER, tracked=["2.0", "1.2"])
        assert names(result) == ["2.0.3", "1.2.9"]


class TestNewerUntracked:
    def test_collects_until_greatest_tracked_line(self):
        up = eligible_versions(upstream("2.0.0", "1.3.0", "1.2.5", "1.2.4", "1.1.0"))
        assert newer_untracked(["1.1", "1.2"], up) == ["2.0.0", "1.3.0"]

    def test_uses_numeric_line_order(self):
        up = eligible_versions(upstream("1.10.0", "1.9.0"))
        assert newer_untracked(["1.9"], up) == ["1.10.0"]

    def test_no_tracked_lines(self):
        assert newer_untracked([], upstream("1.0.0")) == []
