"""
Data models for xunit report analysis.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union
from xml.sax.saxutils import quoteattr


class TestStatus(Enum):
    """Outcome of a single test case."""
    __test__ = False
    PASSED = "ok"
    SKIPPED = "skipped"
    FAILURE = "failure"
    ERROR = "error"


class Metric(Enum):
    """Metric keys emitted by the aggregators."""
    TESTS = "tests"
    SKIPPED_TESTS = "skipped_tests"
    TEST_ERRORS = "test_errors"
    TEST_FAILURES = "test_failures"
    TEST_EXECUTION_TIME = "test_execution_time"
    TEST_SUCCESS_DENSITY = "test_success_density"
    TEST_DATA = "test_data"


class EntityKind(Enum):
    """Kind of a top-level entity reported by a source scanner."""
    CLASS = "class"
    FUNCTION = "function"


@dataclass(frozen=True)
class TestCase:
    """Represents a single test case result."""
    __test__ = False

    name: str
    status: TestStatus = TestStatus.PASSED
    classname: Optional[str] = None
    filename: Optional[str] = None
    time: float = 0.0
    message: Optional[str] = None
    stack_trace: Optional[str] = None

    @property
    def fullname(self) -> str:
        return f"{self.classname}:{self.name}" if self.classname else self.name

    @property
    def is_skipped(self) -> bool:
        return self.status == TestStatus.SKIPPED

    @property
    def is_failure(self) -> bool:
        return self.status == TestStatus.FAILURE

    @property
    def is_error(self) -> bool:
        return self.status == TestStatus.ERROR

    @property
    def details(self) -> str:
        """XML fragment describing this test case for drill-down views."""
        head = (f"<testcase status={quoteattr(self.status.value)} "
                f"time={quoteattr(_format_time(self.time))} name={quoteattr(self.name)}")
        if not (self.is_error or self.is_failure):
            return head + "/>"
        tag = self.status.value
        # ']]>' cannot appear inside a CDATA section
        trace = (self.stack_trace or "").replace("]]>", "]]]]><![CDATA[>")
        return (f"{head}><{tag} message={quoteattr(self.message or '')}>"
                f"<![CDATA[{trace}]]></{tag}></testcase>")


@dataclass
class TestResource:
    """Aggregation bucket for the test cases attributed to one source file."""
    __test__ = False

    key: str
    test_cases: list[TestCase] = field(default_factory=list)
    tests: int = 0
    skipped: int = 0
    errors: int = 0
    failures: int = 0
    time: float = 0.0

    def add_test_case(self, test_case: TestCase):
        if test_case.is_skipped:
            self.skipped += 1
        elif test_case.is_failure:
            self.failures += 1
        elif test_case.is_error:
            self.errors += 1
        self.tests += 1
        self.time += test_case.time
        self.test_cases.append(test_case)

    @property
    def tests_run(self) -> int:
        return self.tests - self.skipped

    @property
    def passed(self) -> int:
        return self.tests_run - self.errors - self.failures

    @property
    def details(self) -> str:
        body = "".join(tc.details for tc in self.test_cases)
        return f"<tests-details>{body}</tests-details>"


@dataclass(frozen=True)
class ScannedEntity:
    """A top-level declaration found by a source scanner.

    For classes ``name`` is the simple class name; for functions it is the
    qualified declarator name and ``key`` is ``<name>:<line>``.
    """
    kind: EntityKind
    name: str
    key: str = ""
    line: int = 0


@dataclass(frozen=True)
class Measure:
    """A single computed metric value."""
    metric: Metric
    value: Union[float, str]

    def to_dict(self) -> dict:
        return {"metric": self.metric.value, "value": self.value}


def _format_time(value: float) -> str:
    return repr(float(value))
