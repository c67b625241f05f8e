import json

import pytest
from typer.testing import CliRunner

from partner_charts.cli.app import app
from partner_charts.core.index_store import update_index
from partner_charts.errors import SourceError

from conftest import make_chart, source_for

HELM = {"HelmRepo": "https://charts.example.com", "HelmChart": "demo"}

runner = CliRunner()


@pytest.fixture
def fake_upstream(monkeypatch):
    """Replace the network-backed fetcher used by the CLI."""
    sources = {}

    def fetch(upstream):
        result = sources[upstream.helm_chart]
        if isinstance(result, Exception):
            raise result
        return result

    monkeypatch.setattr("partner_charts.core.reconciler.fetch_upstream", fetch)
    return sources


class TestList:
    def test_json(self, layout, add_package):
        add_package("acme", "demo", {**HELM, "Fetch": "newer", "TrackVersions": ["1.2"], "PackageVersion": 1})
        add_package("acme", "broken", {"HelmChart": "demo"})
        result = runner.invoke(app, ["list", "--repo-root", str(layout.root), "-o", "json"])
        assert result.exit_code == 0
        data = {p["name"]: p for p in json.loads(result.stdout)}
        assert data["acme/demo"]["source"] == "HelmRepo"
        assert data["acme/demo"]["fetch"] == "newer"
        assert data["acme/demo"]["tracked"] == ["1.2"]
        assert data["acme/demo"]["package_version"] == 1
        assert "no valid repo options" in data["acme/broken"]["error"]

    def test_table(self, layout, add_package):
        add_package("acme", "demo", HELM)
        result = runner.invoke(app, ["--debug", "list", "--repo-root", str(layout.root)])
        assert result.exit_code == 0
        assert "acme" in result.stdout

    def test_missing_root(self, tmp_path):
        result = runner.invoke(app, ["list", "--repo-root", str(tmp_path / "nope")])
        assert result.exit_code == 1


class TestAutoAndCheck:
    def test_check_reports_pending(self, layout, add_package, fake_upstream):
        add_package("acme", "demo", HELM)
        fake_upstream["demo"] = source_for("demo", "1.2.3")
        result = runner.invoke(app, ["check", "--repo-root", str(layout.root), "-o", "json"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["charts"][0]["status"] == "pending"
        assert data["charts"][0]["versions"] == ["1.2.3"]
        assert not layout.index_file.exists()

    def test_auto_publishes(self, layout, add_package, fake_upstream, serve):
        add_package("acme", "demo", {**HELM, "PackageVersion": 7})
        fake_upstream["demo"] = source_for("demo", "1.2.3")
        serve("demo", "1.2.3")
        result = runner.invoke(app, ["auto", "--repo-root", str(layout.root), "-o", "json", "acme/demo"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["charts"][0]["versions"] == ["1.2.307"]
        assert data["index_updated"] is True
        assert layout.asset_path("acme", "demo", "1.2.307").is_file()

    def test_auto_fails_when_everything_is_skipped(self, layout, add_package, fake_upstream):
        add_package("acme", "demo", HELM)
        fake_upstream["demo"] = SourceError("unreachable")
        result = runner.invoke(app, ["auto", "--repo-root", str(layout.root)])
        assert result.exit_code == 1

    def test_auto_unknown_chart(self, layout, add_package, fake_upstream):
        add_package("acme", "demo", HELM)
        result = runner.invoke(app, ["auto", "--repo-root", str(layout.root), "missing"])
        assert result.exit_code == 1


class TestCatalogCommands:
    @pytest.fixture
    def repo(self, layout, publish):
        publish("acme", make_chart("demo", "1.0.0"))
        update_index(layout)
        return layout

    def test_hide(self, repo):
        result = runner.invoke(app, ["hide", "--repo-root", str(repo.root), "demo"])
        assert result.exit_code == 0
        assert "catalog.cattle.io/hidden" in repo.index_file.read_text()

    def test_feature_and_unfeature(self, repo):
        result = runner.invoke(app, ["feature", "--repo-root", str(repo.root), "demo", "2"])
        assert result.exit_code == 0
        assert "catalog.cattle.io/featured" in repo.index_file.read_text()
        result = runner.invoke(app, ["unfeature", "--repo-root", str(repo.root), "demo"])
        assert result.exit_code == 0
        assert "catalog.cattle.io/featured" not in repo.index_file.read_text()

    def test_feature_rank_out_of_range(self, repo):
        result = runner.invoke(app, ["feature", "--repo-root", str(repo.root), "demo", "9"])
        assert result.exit_code == 1

    def test_remove(self, repo):
        result = runner.invoke(app, ["remove", "--repo-root", str(repo.root), "--yes", "demo"])
        assert result.exit_code == 0
        assert not repo.asset_path("acme", "demo", "1.0.0").exists()

    def test_remove_aborts_without_confirmation(self, repo):
        result = runner.invoke(app, ["remove", "--repo-root", str(repo.root), "demo"], input="n\n")
        assert result.exit_code != 0
        assert repo.asset_path("acme", "demo", "1.0.0").exists()


class TestValidate:
    def test_match_and_mismatch(self, tmp_path, publish, layout):
        publish("acme", make_chart("demo", "1.0.0"))
        other = tmp_path / "other"
        (other / "assets" / "acme").mkdir(parents=True)
        (other / "assets" / "acme" / "demo-1.0.0.tgz").write_bytes(
            layout.asset_path("acme", "demo", "1.0.0").read_bytes()
        )

        result = runner.invoke(app, ["validate", "--repo-root", str(layout.root), str(other)])
        assert result.exit_code == 0

        (other / "assets" / "acme" / "gone-1.0.0.tgz").write_bytes(b"x")
        result = runner.invoke(app, ["validate", "--repo-root", str(layout.root), "-o", "json", str(other)])
        assert result.exit_code == 1
        assert json.loads(result.stdout)["removed"] == ["acme/gone-1.0.0.tgz"]

    def test_nothing_to_validate(self, layout):
        result = runner.invoke(app, ["validate", "--repo-root", str(layout.root)])
        assert result.exit_code == 1
