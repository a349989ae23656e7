"""Tests for the XSLT report transformation."""

import os
from unittest.mock import Mock, patch

import pytest
import requests

from xunit_sensor.errors import TransformError
from xunit_sensor.junit_parser import JUnitParser
from xunit_sensor.models import TestStatus
from xunit_sensor.report_transformer import (
    BUILTIN_XSL_DIR,
    ReportTransformer,
    list_builtin_stylesheets,
)

CPPUNIT = "cppunit-1.x-to-junit-1.0.xsl"
BOOSTTEST = "boosttest-1.x-to-junit-1.0.xsl"

CPPUNIT_REPORT = """<?xml version="1.0" encoding="ISO-8859-1" standalone="yes"?>
<TestRun>
  <FailedTests>
    <FailedTest id="2">
      <Name>ui::WidgetTest::testSize</Name>
      <FailureType>Assertion</FailureType>
      <Location><File>widget_test.cpp</File><Line>42</Line></Location>
      <Message>equality assertion failed</Message>
    </FailedTest>
    <FailedTest id="3">
      <Name>WidgetTest::testCrash</Name>
      <FailureType>Error</FailureType>
      <Message>uncaught exception</Message>
    </FailedTest>
  </FailedTests>
  <SuccessfulTests>
    <Test id="1"><Name>WidgetTest::testDraw</Name></Test>
    <Test id="4"><Name>standalone</Name></Test>
  </SuccessfulTests>
</TestRun>
"""

BOOSTTEST_REPORT = """<?xml version="1.0" encoding="UTF-8"?>
<TestLog>
  <TestSuite name="Master">
    <TestSuite name="WidgetSuite">
      <TestCase name="draws">
        <TestingTime>1500</TestingTime>
      </TestCase>
      <TestCase name="fails">
        <Error file="widget_test.cpp" line="12">check x == 2 failed</Error>
        <TestingTime>20</TestingTime>
      </TestCase>
      <TestCase name="crashes">
        <Exception file="widget_test.cpp" line="20">memory access violation</Exception>
      </TestCase>
      <TestCase name="disabled" skipped="yes" reason="disabled"/>
    </TestSuite>
  </TestSuite>
</TestLog>
"""


@pytest.fixture
def cppunit_report(tmp_path):
    path = tmp_path / "cppunit-result.xml"
    path.write_text(CPPUNIT_REPORT, encoding="ISO-8859-1")
    return path


def test_no_xslt_is_identity(tmp_path):
    report = tmp_path / "report.xml"
    report.write_text("<testsuites/>")

    assert ReportTransformer().transform(report) == report
    assert ReportTransformer("").transform(report) == report
    assert not (tmp_path / "report.xml.after_xslt").exists()


def test_builtin_stylesheets_are_listed():
    assert CPPUNIT in list_builtin_stylesheets()
    assert BOOSTTEST in list_builtin_stylesheets()


def test_builtin_cppunit(cppunit_report):
    transformed = ReportTransformer(CPPUNIT).transform(cppunit_report)

    assert transformed == cppunit_report.parent / "cppunit-result.xml.after_xslt"
    cases = JUnitParser().parse_file(transformed)
    by_name = {tc.name: tc for tc in cases}
    assert set(by_name) == {"testSize", "testCrash", "testDraw", "standalone"}
    assert by_name["testSize"].classname == "ui::WidgetTest"
    assert by_name["testSize"].status == TestStatus.FAILURE
    assert by_name["testSize"].message == "equality assertion failed"
    assert by_name["testCrash"].status == TestStatus.ERROR
    assert by_name["testDraw"].classname == "WidgetTest"
    assert by_name["testDraw"].status == TestStatus.PASSED
    assert by_name["standalone"].classname is None


def test_builtin_boosttest(tmp_path):
    report = tmp_path / "boost.xml"
    report.write_text(BOOSTTEST_REPORT)

    cases = JUnitParser().parse_file(ReportTransformer(BOOSTTEST).transform(report))

    assert [tc.name for tc in cases] == ["draws", "fails", "crashes", "disabled"]
    assert {tc.classname for tc in cases} == {"WidgetSuite"}
    assert [tc.status for tc in cases] == [
        TestStatus.PASSED, TestStatus.FAILURE, TestStatus.ERROR, TestStatus.SKIPPED
    ]
    assert cases[0].time == pytest.approx(0.0015)
    assert cases[1].message == "check x == 2 failed"


def test_output_is_indented(cppunit_report):
    transformed = ReportTransformer(CPPUNIT).transform(cppunit_report)

    assert "\n  <testsuite" in transformed.read_text()


def test_remote_stylesheet(cppunit_report):
    with open(os.path.join(BUILTIN_XSL_DIR, CPPUNIT), "rb") as f:
        content = f.read()
    transformer = ReportTransformer("https://example.com/xsl/cppunit.xsl")
    response = Mock(content=content)
    response.raise_for_status = Mock()

    with patch.object(transformer.session, "get", return_value=response) as get:
        transformed = transformer.transform(cppunit_report)
        transformer.transform(cppunit_report)

    get.assert_called_once_with("https://example.com/xsl/cppunit.xsl", timeout=30)
    assert len(JUnitParser().parse_file(transformed)) == 4


def test_no_session_without_remote_stylesheet(cppunit_report):
    transformer = ReportTransformer(CPPUNIT)

    transformer.transform(cppunit_report)
    transformer.close()

    assert transformer._session is None


def test_close_releases_session():
    transformer = ReportTransformer("https://example.com/xsl/cppunit.xsl")
    session = transformer.session

    with patch.object(session, "close") as close:
        transformer.close()

    close.assert_called_once_with()
    assert transformer._session is None


def test_remote_stylesheet_failure(cppunit_report):
    transformer = ReportTransformer("https://example.com/xsl/missing.xsl")

    with patch.object(transformer.session, "get", side_effect=requests.ConnectionError("down")):
        with pytest.raises(TransformError):
            transformer.transform(cppunit_report)


def test_file_url_stylesheet(tmp_path, cppunit_report):
    xsl = tmp_path / "custom.xsl"
    with open(os.path.join(BUILTIN_XSL_DIR, CPPUNIT), "rb") as f:
        xsl.write_bytes(f.read())

    transformed = ReportTransformer(xsl.as_uri()).transform(cppunit_report)

    assert len(JUnitParser().parse_file(transformed)) == 4


def test_invalid_stylesheet(tmp_path, cppunit_report):
    xsl = tmp_path / "broken.xsl"
    xsl.write_text("<not-a-stylesheet/>")

    with pytest.raises(TransformError):
        ReportTransformer(xsl.as_uri()).transform(cppunit_report)


def test_unknown_stylesheet_name(cppunit_report):
    with pytest.raises(TransformError):
        ReportTransformer("no-such-stylesheet.xsl").transform(cppunit_report)


def test_malformed_report(tmp_path):
    report = tmp_path / "broken.xml"
    report.write_text("<TestRun><FailedTests>")

    with pytest.raises(TransformError) as exc:
        ReportTransformer(CPPUNIT).transform(report)
    assert exc.value.report == report
