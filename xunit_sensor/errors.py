"""
Error taxonomy for xunit report analysis.

Only EmptyReportError is recovered from (the report is skipped); every other
error aborts the run and is wrapped into an AnalysisError by the sensor.
"""

from pathlib import Path
from typing import Optional, Union


class XunitError(Exception):
    """Base class for all analysis errors."""


class EmptyReportError(XunitError):
    """The report is empty or carries no test cases."""

    def __init__(self, report: Union[str, Path]):
        self.report = Path(report)
        super().__init__(f"The report '{self.report}' seems to be empty")


class MalformedReportError(XunitError):
    """The report is not well-formed XML or has unparsable values."""

    def __init__(self, report: Union[str, Path], reason: str):
        self.report = Path(report)
        self.reason = reason
        super().__init__(f"Cannot parse report '{self.report}': {reason}")


class TransformError(XunitError):
    """The XSLT could not be loaded or applied."""

    def __init__(self, message: str, report: Optional[Union[str, Path]] = None):
        self.report = Path(report) if report is not None else None
        super().__init__(message)


class AnalysisError(XunitError):
    """Run-level failure; the original error is chained as __cause__."""
