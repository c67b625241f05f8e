import pytest
from semver import Version

from partner_charts.core.package_version import (
    MAX_PACKAGE_VERSION,
    PATCH_MULTIPLIER,
    decode_package_version,
    encode_package_version,
)
from partner_charts.errors import ConfigurationError, PackageVersionRangeError


class TestEncode:
    def test_package_version_is_appended_to_patch(self):
        assert encode_package_version("4.0.4", 7) == "4.0.407"
        assert encode_package_version("1.4.2", 7) == "1.4.207"

    def test_without_package_version_upstream_is_unchanged(self):
        assert encode_package_version("1.4.2", None) == "1.4.2"

    def test_pinned_version_wins(self):
        assert encode_package_version("1.4.2", 7, pinned_version="9.9.9") == "9.9.9"

    def test_bounds(self):
        assert encode_package_version("1.0.3", 0) == "1.0.300"
        assert encode_package_version("1.0.3", MAX_PACKAGE_VERSION) == "1.0.399"

    @pytest.mark.parametrize("package_version", [-1, 100, 250])
    def test_out_of_range_is_rejected(self, package_version):
        with pytest.raises(PackageVersionRangeError):
            encode_package_version("1.0.0", package_version)

    def test_range_error_is_a_configuration_error(self):
        assert issubclass(PackageVersionRangeError, ConfigurationError)

    def test_invalid_upstream_version(self):
        with pytest.raises(ValueError):
            encode_package_version("not-a-version", 1)


class TestDecode:
    def test_strips_package_version(self):
        assert decode_package_version("4.0.407") == Version(4, 0, 4)

    def test_small_patch_is_unchanged(self):
        assert decode_package_version("1.4.2") == Version(1, 4, 2)
        assert decode_package_version("1.4.99") == Version(1, 4, 99)

    def test_round_trip(self):
        for patch in (1, 4, 37, 99, 100, 1234, 9999):
            for pv in (0, 1, 50, 99):
                encoded = encode_package_version(Version(2, 1, patch), pv)
                assert decode_package_version(encoded) == Version(2, 1, patch)

    def test_zero_patch_with_zero_package_version_round_trips(self):
        assert decode_package_version(encode_package_version("3.2.0", 0)) == Version(3, 2, 0)


class TestOrdering:
    def test_package_version_orders_within_upstream_patch(self):
        a = Version.parse(encode_package_version("1.4.2", 3))
        b = Version.parse(encode_package_version("1.4.2", 4))
        assert a < b

    def test_upstream_patch_dominates_package_version(self):
        top_of_patch = Version.parse(encode_package_version("1.4.2", MAX_PACKAGE_VERSION))
        next_patch = Version.parse(encode_package_version("1.4.3", 0))
        assert top_of_patch < next_patch

    def test_multiplier(self):
        assert PATCH_MULTIPLIER == MAX_PACKAGE_VERSION + 1
