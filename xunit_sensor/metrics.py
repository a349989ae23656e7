"""
Test metrics computed from parsed test cases.

simple_mode() rolls everything up into one project-level set of measures,
detailed_mode() emits one set per resolved resource plus its detail blob.
"""

import logging
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Mapping

from .models import Measure, Metric, TestCase, TestResource, TestStatus

logger = logging.getLogger(__name__)

PERCENT_BASE = 100.0
DENSITY_SCALE = 1


def scale_value(value: float, scale: int = DENSITY_SCALE) -> float:
    """Round half-up to ``scale`` decimals."""
    quantum = Decimal(1).scaleb(-scale)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def success_density(tests: int, errors: int, failures: int) -> float:
    passed = tests - errors - failures
    return scale_value(passed * PERCENT_BASE / tests)


def simple_mode(test_cases: Iterable[TestCase]) -> list[Measure]:
    """Project-wide measures; empty when no test was actually run."""
    logger.info("Processing in 'simple mode' i.e. with provideDetails=false.")

    total = skipped = errors = failures = 0
    time = 0.0
    for tc in test_cases:
        if tc.status == TestStatus.SKIPPED:
            skipped += 1
        elif tc.status == TestStatus.FAILURE:
            failures += 1
        elif tc.status == TestStatus.ERROR:
            errors += 1
        total += 1
        time += tc.time
    tests = total - skipped

    if tests <= 0:
        logger.debug("The reports contain no testcases")
        return []

    return [
        Measure(Metric.TEST_SUCCESS_DENSITY, success_density(tests, errors, failures)),
        Measure(Metric.TESTS, float(tests)),
        Measure(Metric.SKIPPED_TESTS, float(skipped)),
        Measure(Metric.TEST_ERRORS, float(errors)),
        Measure(Metric.TEST_FAILURES, float(failures)),
        Measure(Metric.TEST_EXECUTION_TIME, time),
    ]


def resource_measures(resource: TestResource) -> list[Measure]:
    tests_run = resource.tests_run
    measures = [
        Measure(Metric.SKIPPED_TESTS, float(resource.skipped)),
        Measure(Metric.TESTS, float(tests_run)),
        Measure(Metric.TEST_ERRORS, float(resource.errors)),
        Measure(Metric.TEST_FAILURES, float(resource.failures)),
        Measure(Metric.TEST_EXECUTION_TIME, resource.time),
    ]
    if tests_run > 0:
        measures.append(Measure(Metric.TEST_SUCCESS_DENSITY,
                                success_density(tests_run, resource.errors, resource.failures)))
    measures.append(Measure(Metric.TEST_DATA, resource.details))
    return measures


def detailed_mode(resources: Mapping[str, TestResource]) -> dict[str, list[Measure]]:
    """Per-resource measures, keyed like the input."""
    logger.info("Processing in 'detailed mode' i.e. with provideDetails=true")
    return {key: resource_measures(resource) for key, resource in resources.items()}


def measures_to_dict(measures: Iterable[Measure]) -> dict:
    return {m.metric.value: m.value for m in measures}
