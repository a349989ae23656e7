#!/usr/bin/env python3
"""
MCP Server for the xunit test report analyzer.
Provides tools for analyzing xunit reports and attributing test cases to
C++ source files.
"""

import os
import logging
import json
import asyncio
from fastmcp import FastMCP

import core

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# FastMCP server
mcp = FastMCP("xunit-analyzer")


@mcp.tool(
    name="analyze_reports",
    description="""Analyze xunit test reports of a project.

    In simple mode returns project-wide measures (tests, skipped_tests, test_errors,
    test_failures, test_execution_time, test_success_density). In detailed mode
    returns the same measures per resolved source file plus the test cases that
    could not be attributed to any file.

    Args:
        base_dir: Project base directory (uses configured default if not specified)
        report_path: Report glob relative to base_dir (default: xunit-reports/xunit-result-*.xml)
        xslt_url: Built-in stylesheet name or URL to convert non-JUnit reports
        provide_details: Per-file measures instead of project totals (default: false)
        include_details: Include the per-file test_data XML blob (default: false)
    """
)
async def analyze_reports(
    base_dir: str = None,
    report_path: str = None,
    xslt_url: str = None,
    provide_details: bool = None,
    include_details: bool = False
) -> str:
    try:
        result = await asyncio.to_thread(
            core.analyze_reports,
            base_dir=base_dir,
            report_path=report_path,
            xslt_url=xslt_url,
            provide_details=provide_details,
            include_details=include_details
        )
        return json.dumps(result, indent=2, default=str)
    except Exception as e:
        logger.error(f"Error in analyze_reports: {str(e)}")
        return json.dumps({"error": str(e)})


@mcp.tool(
    name="list_reports",
    description="""List the report files matched by the report glob, and the built-in stylesheets.
    Args:
        base_dir: Project base directory (optional)
        report_path: Report glob relative to base_dir (optional)
    """
)
async def list_reports(base_dir: str = None, report_path: str = None) -> str:
    result = core.list_reports(base_dir, report_path)
    return json.dumps(result, indent=2)


@mcp.tool(
    name="build_source_index",
    description="""Scan the C++ test sources and return the class lookup tables.

    decl_table maps class names to the file declaring them, impl_table maps class
    names to the file defining their member functions.

    Args:
        base_dir: Project base directory (optional)
    """
)
async def build_source_index(base_dir: str = None) -> str:
    try:
        result = await asyncio.to_thread(core.build_index, base_dir)
        return json.dumps(result, indent=2)
    except Exception as e:
        logger.error(f"Error in build_source_index: {str(e)}")
        return json.dumps({"error": str(e)})


@mcp.tool(
    name="resolve_test_resource",
    description="""Resolve a reported test identity to a source file.

    A filename is authoritative: when given, the classname is not consulted even if the
    filename does not resolve. Otherwise the classname is tried as a path, then looked
    up in the class lookup tables.

    Args:
        classname: Reported classname (e.g. "NS::Widget")
        filename: Reported file path
        base_dir: Project base directory (optional)
    """
)
async def resolve_test_resource(
    classname: str = None,
    filename: str = None,
    base_dir: str = None
) -> str:
    try:
        result = await asyncio.to_thread(
            core.resolve_test_resource,
            classname=classname,
            filename=filename,
            base_dir=base_dir
        )
        return json.dumps(result, indent=2)
    except Exception as e:
        logger.error(f"Error in resolve_test_resource: {str(e)}")
        return json.dumps({"error": str(e)})


async def main():
    port = int(os.getenv("FASTMCP_PORT", "8978"))
    await mcp.run_async(transport="sse", host="0.0.0.0", port=port)


if __name__ == "__main__":
    asyncio.run(main())
