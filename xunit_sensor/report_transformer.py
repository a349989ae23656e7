"""
XSLT-based report transformation.

Converts reports written by runners that do not speak JUnit (Boost.Test,
CppUnit, ...) into JUnit-style XML before they are parsed.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union
from urllib.parse import urlparse
from urllib.request import url2pathname

import requests
from lxml import etree

from .errors import TransformError

logger = logging.getLogger(__name__)

BUILTIN_XSL_DIR = os.path.join(os.path.dirname(__file__), "xsl")
TRANSFORMED_SUFFIX = ".after_xslt"


def list_builtin_stylesheets() -> list[str]:
    """Names of the stylesheets shipped with the package."""
    if not os.path.isdir(BUILTIN_XSL_DIR):
        return []
    return sorted(f for f in os.listdir(BUILTIN_XSL_DIR) if f.endswith(".xsl"))


class ReportTransformer:
    """Applies an optional XSLT to report files."""

    def __init__(self, xslt_url: Optional[str] = None, timeout: int = 30):
        """
        Initialize the transformer.

        Args:
            xslt_url: Name of a built-in stylesheet, an http(s)/file URL, or None
                      to pass reports through unchanged
            timeout: Timeout in seconds for fetching remote stylesheets
        """
        self.xslt_url = xslt_url or None
        self.timeout = timeout
        self._session = None
        self._xslt = None

    @property
    def session(self) -> requests.Session:
        """HTTP session for remote stylesheets, created on first use."""
        if self._session is None:
            self._session = requests.Session()
            self._session.headers.update({
                "User-Agent": "xunit-analyzer/0.1.0"
            })
        return self._session

    def close(self):
        if self._session is not None:
            self._session.close()
            self._session = None

    def transform(self, report: Union[str, Path]) -> Path:
        """Transform a report, returning the path of the file to parse.

        Without a configured stylesheet the report path is returned unchanged.
        Otherwise the result is written next to the report as
        ``<report>.after_xslt``.
        """
        report = Path(report)
        if self.xslt_url is None:
            logger.debug("Transformation skipped: no xslt given")
            return report

        logger.debug(f"Transforming the report '{report}' using xslt '{self.xslt_url}'")
        xslt = self._get_xslt()
        transformed = Path(str(report.absolute()) + TRANSFORMED_SUFFIX)
        try:
            result = xslt(etree.parse(str(report)))
        except (etree.XMLSyntaxError, etree.XSLTApplyError) as e:
            raise TransformError(f"Cannot transform report '{report}': {e}", report) from e

        root = result.getroot()
        if root is None:
            raise TransformError(f"Transforming report '{report}' produced no document", report)
        etree.indent(root)
        result.write(str(transformed), pretty_print=True, xml_declaration=True, encoding="UTF-8")
        return transformed

    def _get_xslt(self) -> etree.XSLT:
        if self._xslt is None:
            content = self._load_stylesheet()
            try:
                self._xslt = etree.XSLT(etree.fromstring(content))
            except (etree.XMLSyntaxError, etree.XSLTParseError) as e:
                raise TransformError(f"Invalid xslt '{self.xslt_url}': {e}") from e
        return self._xslt

    def _load_stylesheet(self) -> bytes:
        """Load the stylesheet from the built-in set, else from its URL."""
        builtin = os.path.join(BUILTIN_XSL_DIR, os.path.basename(self.xslt_url))
        if os.path.basename(self.xslt_url) == self.xslt_url and os.path.isfile(builtin):
            logger.debug(f"Using built-in xslt '{builtin}'")
            return Path(builtin).read_bytes()

        parsed = urlparse(self.xslt_url)
        if parsed.scheme in ("http", "https"):
            try:
                response = self.session.get(self.xslt_url, timeout=self.timeout)
                response.raise_for_status()
                return response.content
            except requests.RequestException as e:
                raise TransformError(f"Cannot fetch xslt '{self.xslt_url}': {e}") from e

        if parsed.scheme == "file":
            try:
                return Path(url2pathname(parsed.path)).read_bytes()
            except OSError as e:
                raise TransformError(f"Cannot read xslt '{self.xslt_url}': {e}") from e

        raise TransformError(f"Cannot load xslt '{self.xslt_url}': "
                             f"neither a built-in stylesheet nor a supported URL")
