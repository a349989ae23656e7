"""xunit sensor - runs report location, transformation, parsing and aggregation."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .config import SensorConfig
from .cxx_scanner import CxxScanner, ScannerConfig
from .errors import AnalysisError
from .file_locator import find_reports, find_source_files
from .junit_parser import JUnitParser
from .metrics import detailed_mode, measures_to_dict, simple_mode
from .models import Measure, TestCase
from .report_transformer import ReportTransformer
from .resolver import ResourceResolver
from .resource_finder import FileSystemResourceFinder, ResourceFinder
from .source_index import SourceIndex, SourceScanner, build_source_index

logger = logging.getLogger(__name__)


@dataclass
class AnalysisResult:
    """Outcome of one run. Nothing here is persisted by the sensor."""
    mode: str
    reports: list[Path] = field(default_factory=list)
    test_cases: list[TestCase] = field(default_factory=list)
    project_measures: list[Measure] = field(default_factory=list)
    resource_measures: dict[str, list[Measure]] = field(default_factory=dict)
    unresolved: list[TestCase] = field(default_factory=list)

    def to_dict(self, include_details: bool = True) -> dict:
        result = {
            "mode": self.mode,
            "reports": [str(r) for r in self.reports],
            "test_cases": len(self.test_cases),
        }
        if self.mode == "simple":
            result["measures"] = measures_to_dict(self.project_measures)
        else:
            resources = {}
            for key, measures in self.resource_measures.items():
                values = measures_to_dict(measures)
                if not include_details:
                    values.pop("test_data", None)
                resources[key] = values
            result["resources"] = resources
            result["unresolved"] = [tc.fullname for tc in self.unresolved]
        return result


class XunitSensor:
    """Feeds xunit test results into per-project or per-file measures."""

    def __init__(self, config: SensorConfig, finder: Optional[ResourceFinder] = None,
                 scanner: Optional[SourceScanner] = None):
        self.config = config
        self.base_dir = Path(config.base_dir).resolve()
        self.transformer = ReportTransformer(config.xslt_url)
        self.parser = JUnitParser()
        self._finder = finder
        self._scanner = scanner

    def analyse(self) -> AnalysisResult:
        """Run the whole pipeline.

        Returns the measures of a complete run; any fatal problem (malformed
        report, failed transformation, I/O error) raises AnalysisError and no
        measure of the run is returned.
        """
        try:
            return self._analyse()
        except Exception as e:
            raise AnalysisError(f"Cannot feed the data, details: '{e}'") from e
        finally:
            self.transformer.close()

    def _analyse(self) -> AnalysisResult:
        mode = "detailed" if self.config.provide_details else "simple"
        reports = find_reports(self.base_dir, self.config.report_path)
        if not reports:
            logger.debug("No reports found, nothing to process")
            return AnalysisResult(mode=mode)

        test_cases = self.parse_reports(reports)
        result = AnalysisResult(mode=mode, reports=reports, test_cases=test_cases)
        if self.config.provide_details:
            self._detailed_mode(result)
        else:
            result.project_measures = simple_mode(test_cases)
        return result

    def parse_reports(self, reports: list[Path]) -> list[TestCase]:
        return self.parser.parse_files(self.transformer.transform(report) for report in reports)

    def _detailed_mode(self, result: AnalysisResult):
        resolver = self.build_resolver()
        resources = resolver.group_by_resource(result.test_cases, result.unresolved)
        result.resource_measures = detailed_mode(resources)
        logger.info(f"{len(result.test_cases)} testcases processed, {len(result.unresolved)} skipped, "
                    f"{len(resources)} resources found")

    def build_resolver(self) -> ResourceResolver:
        return ResourceResolver(self.finder, self.build_lookup_tables())

    def build_lookup_tables(self, files: Optional[list[Path]] = None) -> SourceIndex:
        if files is None:
            files = self.source_files()
        logger.info(f"Building lookup tables from {len(files)} source files")
        return build_source_index(files, self.scanner)

    def source_files(self) -> list[Path]:
        return find_source_files(self.base_dir, self.config.test_sources)

    @property
    def finder(self) -> ResourceFinder:
        if self._finder is None:
            self._finder = FileSystemResourceFinder(self.base_dir)
        return self._finder

    @property
    def scanner(self) -> SourceScanner:
        if self._scanner is None:
            self._scanner = CxxScanner(ScannerConfig(
                base_dir=str(self.base_dir),
                defines=list(self.config.defines),
                include_directories=list(self.config.include_directories),
            ))
        return self._scanner
