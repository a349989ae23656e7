"""Tests for the command line interface."""

import json

import pytest

from cli import main
from conftest import case_xml, report_xml

pytestmark = pytest.mark.usefixtures("clean_env")


def test_no_command_prints_help(capsys):
    assert main([]) == 1
    assert "analyze" in capsys.readouterr().out


def test_analyze_json(tmp_path, write_report, capsys):
    write_report(report_xml(case_xml("a"), case_xml("b", outcome="<skipped/>")))

    assert main(["analyze", "-d", str(tmp_path), "--format", "json"]) == 0

    result = json.loads(capsys.readouterr().out)
    assert result["measures"]["tests"] == 1.0
    assert result["measures"]["skipped_tests"] == 1.0


def test_analyze_text_detailed(project, write_report, capsys):
    write_report(report_xml(case_xml("draws", "Widget"), case_xml("lost", "Nowhere")))

    assert main(["analyze", "-d", str(project), "--details"]) == 0

    out = capsys.readouterr().out
    assert "Mode: detailed" in out
    assert "src/widget.cpp" in out
    assert "Nowhere:lost" in out


def test_simple_flag_overrides_settings(project, write_report, capsys):
    write_report(report_xml(case_xml("draws", "Widget")))
    (project / ".env").write_text("XUNIT_PROVIDE_DETAILS=true\n")

    assert main(["analyze", "-d", str(project), "-f", "json"]) == 0
    assert json.loads(capsys.readouterr().out)["mode"] == "detailed"

    assert main(["analyze", "-d", str(project), "--simple", "-f", "json"]) == 0
    assert json.loads(capsys.readouterr().out)["mode"] == "simple"


def test_details_and_simple_are_exclusive(tmp_path, capsys):
    with pytest.raises(SystemExit):
        main(["analyze", "-d", str(tmp_path), "--details", "--simple"])


def test_analyze_failure(tmp_path, write_report, capsys):
    write_report("<testsuite>")

    assert main(["analyze", "-d", str(tmp_path)]) == 1
    assert "Cannot feed the data" in capsys.readouterr().err


def test_list_reports(tmp_path, write_report, capsys):
    write_report(report_xml(case_xml("a")))

    assert main(["list-reports", "-d", str(tmp_path), "-f", "json"]) == 0

    assert len(json.loads(capsys.readouterr().out)["reports"]) == 1


def test_index(project, capsys):
    assert main(["index", "-d", str(project)]) == 0

    out = capsys.readouterr().out
    assert "Scanned 3 source files" in out
    assert "WidgetTest" in out


def test_resolve(project, capsys):
    assert main(["resolve", "Widget", "-d", str(project)]) == 0
    assert capsys.readouterr().out.strip() == "src/widget.cpp"

    assert main(["resolve", "--file", "nope.cpp", "-d", str(project)]) == 1
    assert "No resource found for 'nope.cpp'" in capsys.readouterr().err
