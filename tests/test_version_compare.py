import pytest
from semver import Version

from partner_charts.utils.version_compare import (
    classify_update,
    is_prerelease,
    parse_line,
    parse_version,
    release_line,
    sort_descending,
)


class TestParseVersion:
    def test_plain(self):
        assert parse_version("1.2.3") == Version(1, 2, 3)

    def test_leading_v_and_short_forms(self):
        assert parse_version("v1.2.3") == Version(1, 2, 3)
        assert parse_version("1.2") == Version(1, 2, 0)

    @pytest.mark.parametrize("raw", ["", None, "latest", "1.x"])
    def test_invalid(self, raw):
        assert parse_version(raw) is None

    def test_prerelease(self):
        assert is_prerelease(parse_version("1.0.0-rc.1"))
        assert not is_prerelease(parse_version("1.0.0"))


class TestLines:
    def test_release_line(self):
        assert release_line(Version(1, 10, 4)) == (1, 10)

    def test_parse_line(self):
        assert parse_line("1.10") == (1, 10)
        assert parse_line("v2.0") == (2, 0)

    @pytest.mark.parametrize("raw", ["1", "1.2.3", "a.b", ""])
    def test_parse_line_rejects(self, raw):
        with pytest.raises(ValueError):
            parse_line(raw)


class TestSortAndClassify:
    def test_sort_descending_numeric(self):
        assert sort_descending(["1.2.0", "1.10.0", "1.9.1", "bogus"]) == ["1.10.0", "1.9.1", "1.2.0", "bogus"]

    def test_classify(self):
        assert classify_update("", "1.0.0") == "new"
        assert classify_update("1.0.0", "2.0.0") == "major"
        assert classify_update("1.0.0", "1.1.0") == "minor"
        assert classify_update("1.0.0", "1.0.1") == "patch"
        assert classify_update("1.0.1", "1.0.1") == "up-to-date"
        assert classify_update("x", "1.0.0") == "unknown"
