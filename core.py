#!/usr/bin/env python3
"""
Core operations shared between MCP server and CLI.
Contains the business logic for analyzing reports, listing them, building
the source lookup tables and resolving single test identities.
"""

import logging
from typing import Optional

from xunit_sensor.config import SensorConfig, get_sensor_config
from xunit_sensor.errors import AnalysisError
from xunit_sensor.file_locator import find_reports
from xunit_sensor.models import TestCase
from xunit_sensor.report_transformer import list_builtin_stylesheets
from xunit_sensor.resolver import ResourceResolver
from xunit_sensor.sensor import XunitSensor

logger = logging.getLogger(__name__)


def get_config(
    base_dir: str = None,
    report_path: str = None,
    xslt_url: str = None,
    provide_details: bool = None,
    config_file: str = None
) -> SensorConfig:
    """Settings file / environment config with explicit arguments applied on top."""
    return get_sensor_config(
        config_file,
        base_dir=base_dir,
        report_path=report_path,
        xslt_url=xslt_url,
        provide_details=provide_details,
    )


def analyze_reports(
    base_dir: str = None,
    report_path: str = None,
    xslt_url: str = None,
    provide_details: bool = None,
    include_details: bool = True,
    config_file: str = None
) -> dict:
    """
    Run the full analysis: locate, transform and parse reports, then compute
    project measures (simple mode) or per-file measures (detailed mode).

    Args:
        base_dir: Project base directory (default from config)
        report_path: Report glob relative to base_dir (default from config)
        xslt_url: Built-in stylesheet name or URL to transform reports with
        provide_details: True for per-file measures, False for project totals
        include_details: Include the per-file test_data blob in the output
        config_file: Settings file to load instead of the default one

    Returns:
        dict with the computed measures, or {"error": ...} when the run failed
    """
    config = get_config(base_dir, report_path, xslt_url, provide_details, config_file)
    sensor = XunitSensor(config)
    try:
        result = sensor.analyse()
    except AnalysisError as e:
        logger.error(f"Analysis failed: {e}")
        return {"error": str(e), "cause": repr(e.__cause__) if e.__cause__ else None}

    output = result.to_dict(include_details=include_details)
    output["base_dir"] = str(sensor.base_dir)
    if not result.reports:
        output["message"] = "No reports found, nothing to process"
    return output


def list_reports(base_dir: str = None, report_path: str = None, config_file: str = None) -> dict:
    """List the report files the analysis would pick up."""
    config = get_config(base_dir, report_path, config_file=config_file)
    reports = find_reports(config.base_dir, config.report_path)
    return {
        "base_dir": config.base_dir,
        "report_path": config.report_path,
        "reports": [str(r) for r in reports],
        "builtin_stylesheets": list_builtin_stylesheets(),
    }


def build_index(base_dir: str = None, config_file: str = None) -> dict:
    """Scan the test sources and return the class lookup tables."""
    config = get_config(base_dir, config_file=config_file)
    sensor = XunitSensor(config)
    files = sensor.source_files()
    index = sensor.build_lookup_tables(files)
    result = index.to_dict()
    result["source_files"] = len(files)
    return result


def resolve_test_resource(
    classname: Optional[str] = None,
    filename: Optional[str] = None,
    base_dir: str = None,
    config_file: str = None
) -> dict:
    """
    Resolve one test identity the same way detailed mode does.

    Args:
        classname: Reported test classname (e.g. "NS::Widget")
        filename: Reported test file path; when given, classname is not consulted
        base_dir: Project base directory (default from config)
        config_file: Settings file to load instead of the default one
    """
    if not classname and not filename:
        return {"error": "Provide a classname or a filename"}

    config = get_config(base_dir, config_file=config_file)
    sensor = XunitSensor(config)
    resolver = sensor.build_resolver() if not filename else _path_only_resolver(sensor)
    test_case = TestCase(name="", classname=classname or None, filename=filename or None)
    resource = resolver.resolve(test_case)
    return {
        "classname": classname,
        "filename": filename,
        "resource": resource,
        "resolved": resource is not None,
    }


def _path_only_resolver(sensor: XunitSensor) -> ResourceResolver:
    # a filename never reaches the index, so skip scanning the sources
    return ResourceResolver(sensor.finder)
