import pytest

from partner_charts.core.annotations import CERTIFIED
from partner_charts.core.chart_loader import save_chart_archive
from partner_charts.core.validator import (
    DirectoryComparison,
    charts_match,
    compare_repositories,
    load_validate_targets,
)
from partner_charts.errors import ConfigurationError
from partner_charts.models.repo import RepoLayout

from conftest import make_chart


def put(root, chart, vendor="acme"):
    layout = RepoLayout(root)
    save_chart_archive(chart, layout.asset_path(vendor, chart.name, chart.version))
    return layout.asset_path(vendor, chart.name, chart.version)


@pytest.fixture
def roots(tmp_path):
    left, right = tmp_path / "left", tmp_path / "right"
    left.mkdir()
    right.mkdir()
    return left, right


class TestCompareRepositories:
    def test_identical(self, roots):
        left, right = roots
        put(left, make_chart("demo", "1.0.0"))
        put(right, make_chart("demo", "1.0.0"))
        result = compare_repositories(left, right)
        assert result.match
        assert result.unchanged == ["acme/demo-1.0.0.tgz"]

    def test_catalog_annotations_are_ignored(self, roots):
        left, right = roots
        put(left, make_chart("demo", "1.0.0", annotations={CERTIFIED: "partner"}))
        put(right, make_chart("demo", "1.0.0", annotations={CERTIFIED: "rancher"}))
        assert compare_repositories(left, right).match

    def test_modified_added_removed(self, roots):
        left, right = roots
        put(left, make_chart("demo", "1.0.0"))
        put(right, make_chart("demo", "1.0.0", files={"values.yaml": b"changed: true\n"}))
        put(left, make_chart("gone", "1.0.0"))
        put(right, make_chart("new", "1.0.0"))

        result = compare_repositories(left, right)
        assert not result.match
        assert result.modified == ["acme/demo-1.0.0.tgz"]
        assert result.removed == ["acme/gone-1.0.0.tgz"]
        assert result.added == ["acme/new-1.0.0.tgz"]

    def test_missing_assets_directory(self, roots):
        left, right = roots
        with pytest.raises(ConfigurationError):
            compare_repositories(left, right)


def test_charts_match_rejects_garbage(tmp_path):
    good = put(tmp_path, make_chart("demo", "1.0.0"))
    bad = tmp_path / "bad.tgz"
    bad.write_bytes(b"not a chart")
    assert not charts_match(good, bad)


def test_merge():
    a = DirectoryComparison(unchanged=["x"])
    b = DirectoryComparison(modified=["y"])
    a.merge(b)
    assert a.unchanged == ["x"]
    assert a.modified == ["y"]
    assert not a.match


class TestTargets:
    def test_no_configuration(self, tmp_path):
        assert load_validate_targets(tmp_path) == []

    def test_targets(self, tmp_path):
        (tmp_path / "configuration.yaml").write_text(
            "validate:\n- url: https://github.com/acme/charts\n  branch: main\n- url: https://example.com/other\n"
        )
        targets = load_validate_targets(tmp_path)
        assert [(t.url, t.branch) for t in targets] == [
            ("https://github.com/acme/charts", "main"),
            ("https://example.com/other", ""),
        ]

    def test_target_without_url(self, tmp_path):
        (tmp_path / "configuration.yaml").write_text("validate:\n- branch: main\n")
        with pytest.raises(ConfigurationError):
            load_validate_targets(tmp_path)
