#!/usr/bin/env python3
"""CLI for the xunit test report analyzer."""

import argparse
import json
import logging
import sys

import core


def setup_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(levelname)s: %(message)s'
    )


def cmd_analyze(args):
    """Analyze reports and print the measures."""
    result = core.analyze_reports(
        base_dir=args.base_dir,
        report_path=args.report_path,
        xslt_url=args.xslt,
        provide_details=args.details,
        include_details=args.include_data,
        config_file=args.config
    )

    if "error" in result:
        print(f"Error: {result['error']}", file=sys.stderr)
        return 1

    if args.format == 'json':
        print(json.dumps(result, indent=2, default=str))
    else:
        _print_analysis(result)
    return 0


def _print_analysis(result: dict):
    """Print human-readable measures."""
    print(f"\n{'='*60}")
    print(f"Base dir: {result.get('base_dir', 'N/A')}")
    print(f"Mode: {result.get('mode')}")
    print(f"Reports: {len(result.get('reports', []))}")
    print(f"Test cases: {result.get('test_cases', 0)}")

    if result.get("message"):
        print(f"\n{result['message']}")
    elif result.get("mode") == "simple":
        measures = result.get("measures", {})
        if measures:
            print(f"\nProject measures:")
            _print_measures(measures)
        else:
            print("\nNo test was run, no measures computed")
    else:
        resources = result.get("resources", {})
        print(f"\nResources ({len(resources)}):")
        for key, measures in resources.items():
            print(f"  {key}")
            _print_measures(measures, indent="    ")

        unresolved = result.get("unresolved", [])
        if unresolved:
            print(f"\nUnresolved test cases ({len(unresolved)}):")
            for name in unresolved[:10]:
                print(f"  - {name[:70]}")
            if len(unresolved) > 10:
                print(f"  ... and {len(unresolved) - 10} more")

    print(f"{'='*60}\n")


def _print_measures(measures: dict, indent: str = "  "):
    tests = measures.get('tests', 0)
    print(f"{indent}Tests:    {tests:.0f}")
    print(f"{indent}Skipped:  {measures.get('skipped_tests', 0):.0f}")
    print(f"{indent}Errors:   {measures.get('test_errors', 0):.0f}")
    print(f"{indent}Failures: {measures.get('test_failures', 0):.0f}")
    print(f"{indent}Time:     {measures.get('test_execution_time', 0):.3f}s")
    if 'test_success_density' in measures:
        print(f"{indent}Success:  {measures['test_success_density']:.1f}%")


def cmd_list_reports(args):
    """List the reports matched by the report path."""
    result = core.list_reports(args.base_dir, args.report_path, config_file=args.config)

    if args.format == 'json':
        print(json.dumps(result, indent=2))
        return 0

    reports = result["reports"]
    print(f"Reports for '{result['report_path']}' in {result['base_dir']} ({len(reports)}):")
    for report in reports:
        print(f"  - {report}")
    print(f"\nBuilt-in stylesheets:")
    for name in result["builtin_stylesheets"]:
        print(f"  - {name}")
    return 0


def cmd_index(args):
    """Build and print the class lookup tables."""
    result = core.build_index(args.base_dir, config_file=args.config)

    if args.format == 'json':
        print(json.dumps(result, indent=2))
        return 0

    print(f"Scanned {result['source_files']} source files")
    for title, table in (("Declared classes", result["decl_table"]),
                         ("Implemented classes", result["impl_table"])):
        print(f"\n{title} ({len(table)}):")
        if table:
            width = max(len(name) for name in table)
            for name, path in table.items():
                print(f"  {name:<{width}}  {path}")
    return 0


def cmd_resolve(args):
    """Resolve a classname or file path to a resource."""
    if not args.classname and not args.file:
        print("Error: provide a classname or --file", file=sys.stderr)
        return 1

    result = core.resolve_test_resource(
        classname=args.classname,
        filename=args.file,
        base_dir=args.base_dir,
        config_file=args.config
    )

    if args.format == 'json':
        print(json.dumps(result, indent=2))
    elif result["resolved"]:
        print(result["resource"])
    else:
        print(f"No resource found for '{args.file or args.classname}'", file=sys.stderr)
    return 0 if result["resolved"] else 1


def main(argv=None):
    parser = argparse.ArgumentParser(description='xunit test report analyzer')
    parser.add_argument('-v', '--verbose', action='store_true')
    parser.add_argument('--config', help='Settings file (.env style or YAML)')

    sub = parser.add_subparsers(dest='command')

    # analyze
    p = sub.add_parser('analyze', help='Analyze xunit reports')
    p.add_argument('--base-dir', '-d', help='Project base directory')
    p.add_argument('--report-path', '-r', help='Report glob relative to the base directory')
    p.add_argument('--xslt', help='Built-in stylesheet name or URL used to transform the reports')
    mode = p.add_mutually_exclusive_group()
    mode.add_argument('--details', dest='details', action='store_const', const=True,
                      help='Compute per-file measures')
    mode.add_argument('--simple', dest='details', action='store_const', const=False,
                      help='Compute project totals, even if the settings enable details')
    p.add_argument('--no-data', dest='include_data', action='store_false',
                   help='Leave out the per-file test_data blobs')
    p.add_argument('--format', '-f', choices=['text', 'json'], default='text')

    # list-reports
    p = sub.add_parser('list-reports', help='List located reports')
    p.add_argument('--base-dir', '-d', help='Project base directory')
    p.add_argument('--report-path', '-r', help='Report glob relative to the base directory')
    p.add_argument('--format', '-f', choices=['text', 'json'], default='text')

    # index
    p = sub.add_parser('index', help='Build the class lookup tables from the test sources')
    p.add_argument('--base-dir', '-d', help='Project base directory')
    p.add_argument('--format', '-f', choices=['text', 'json'], default='text')

    # resolve
    p = sub.add_parser('resolve', help='Resolve a test classname or file to a resource')
    p.add_argument('classname', nargs='?', help='Reported classname, e.g. NS::Widget')
    p.add_argument('--file', help='Reported file path (classname is then ignored)')
    p.add_argument('--base-dir', '-d', help='Project base directory')
    p.add_argument('--format', '-f', choices=['text', 'json'], default='text')

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.verbose)

    cmds = {
        'analyze': cmd_analyze,
        'list-reports': cmd_list_reports,
        'index': cmd_index,
        'resolve': cmd_resolve,
    }
    return cmds[args.command](args)


if __name__ == '__main__':
    sys.exit(main())
