"""JUnit/xUnit XML report parser.

Reports are streamed with lxml's iterparse so large files are never held in
memory as a whole; each finished <testcase> element is converted to a
TestCase and dropped from the tree.
"""

import logging
import math
from pathlib import Path
from typing import Iterable, Iterator, Optional, Union

from lxml import etree

from .errors import EmptyReportError, MalformedReportError
from .models import TestCase, TestStatus

logger = logging.getLogger(__name__)

OUTCOME_TAGS = {
    "skipped": TestStatus.SKIPPED,
    "failure": TestStatus.FAILURE,
    "error": TestStatus.ERROR,
}

# googletest marks disabled tests this way
NOT_RUN_STATUS = "notrun"


class JUnitParser:
    """Parses xUnit-style XML reports into TestCase records."""

    def parse_files(self, paths: Iterable[Union[str, Path]]) -> list[TestCase]:
        """Parse several reports, keeping file order then document order.

        Empty reports are logged and skipped; any other error propagates.
        """
        test_cases: list[TestCase] = []
        for path in paths:
            logger.info(f"Parsing report '{path}'")
            try:
                test_cases.extend(self.parse_file(path))
            except EmptyReportError:
                logger.warning(f"The report '{path}' seems to be empty, ignoring.")
        return test_cases

    def parse_file(self, path: Union[str, Path]) -> list[TestCase]:
        """Parse a single report.

        Raises:
            EmptyReportError: the file is blank or contains no test cases
            MalformedReportError: the file is not well-formed XML
        """
        path = Path(path)
        if _is_blank(path):
            raise EmptyReportError(path)

        test_cases = list(self.iter_test_cases(path))
        if not test_cases:
            raise EmptyReportError(path)

        logger.debug(f"Found {len(test_cases)} test cases in '{path}'")
        return test_cases

    def iter_test_cases(self, path: Union[str, Path]) -> Iterator[TestCase]:
        path = Path(path)
        started = False
        try:
            for event, elem in etree.iterparse(str(path), events=("start", "end"), huge_tree=True):
                started = True
                if event != "end" or etree.QName(elem).localname != "testcase":
                    continue
                yield self._parse_test_case(path, elem)
                elem.clear()
                while elem.getprevious() is not None:
                    del elem.getparent()[0]
        except etree.XMLSyntaxError as e:
            # only a prolog or comments, no root element
            if not started:
                raise EmptyReportError(path) from e
            raise MalformedReportError(path, str(e)) from e

    def _parse_test_case(self, path: Path, elem) -> TestCase:
        status = TestStatus.PASSED
        message = None
        stack_trace = None

        if elem.get("status") == NOT_RUN_STATUS:
            status = TestStatus.SKIPPED
        else:
            for child in elem:
                if not isinstance(child.tag, str):
                    continue
                outcome = OUTCOME_TAGS.get(etree.QName(child).localname)
                if outcome is None:
                    continue
                status = outcome
                if outcome != TestStatus.SKIPPED:
                    message = child.get("message")
                    stack_trace = "".join(child.itertext())
                break

        return TestCase(
            name=elem.get("name", ""),
            status=status,
            classname=elem.get("classname") or None,
            filename=elem.get("file") or elem.get("filename") or None,
            time=_parse_time(path, elem.get("time")),
            message=message,
            stack_trace=stack_trace,
        )


def _parse_time(path: Path, value: Optional[str]) -> float:
    if value is None or not value.strip():
        return 0.0
    try:
        seconds = float(value.strip().replace(",", ""))
    except ValueError:
        raise MalformedReportError(path, f"invalid time value '{value}'")
    if not math.isfinite(seconds):
        logger.debug(f"Non-finite time '{value}' in '{path}', using 0")
        return 0.0
    if seconds < 0:
        logger.debug(f"Negative time '{value}' in '{path}', using 0")
        return 0.0
    return seconds


def _is_blank(path: Path, chunk_size: int = 8192) -> bool:
    with open(path, "rb") as f:
        while True:
            chunk = f.read(chunk_size)
            if not chunk:
                return True
            if chunk.strip():
                return False
