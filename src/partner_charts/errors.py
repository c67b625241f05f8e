"""Exception hierarchy for chart synchronization.

Chart-scoped errors are caught by the reconciler and turned into skip entries
in the run report. Run-scoped errors (index I/O, every chart skipped) reach
the CLI and end the process with a non-zero status.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from partner_charts.models.report import RunReport


class PartnerChartsError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(PartnerChartsError):
    """An upstream.yaml is missing a required locator or holds an invalid value."""


class PackageVersionRangeError(ConfigurationError):
    """A package version falls outside the encodable 0-99 range."""


class SourceError(PartnerChartsError):
    """An upstream source could not be reached or did not contain the chart."""


class NoEligibleVersionsError(PartnerChartsError):
    """Nothing is left to consider once pre-release versions are stripped."""


class PackagingError(PartnerChartsError):
    """Preparing, patching or saving a chart failed."""


class RepositoryIndexError(PartnerChartsError):
    """The repository index could not be read or written."""


class AllChartsSkippedError(PartnerChartsError):
    """Every chart in the run was skipped, which points at a systemic failure."""

    def __init__(self, report: RunReport):
        self.report = report
        names = ", ".join(r.name for r in report.skipped)
        super().__init__(f"All {len(report.skipped)} chart(s) were skipped: {names}")


class RepositoryCommitError(PartnerChartsError):
    """Committing the generated files to git failed."""
