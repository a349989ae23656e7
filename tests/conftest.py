"""Shared fixtures for the xunit analyzer tests."""

from pathlib import Path

import pytest

from xunit_sensor.config import CONFIG_ENV_VAR, CONFIG_KEYS
from xunit_sensor.models import EntityKind, ScannedEntity


class FakeFinder:
    """Resource finder that knows a fixed set of paths and records lookups."""

    def __init__(self, known=()):
        self.known = set(known)
        self.lookups = []

    def find(self, path):
        self.lookups.append(path)
        return path if path in self.known else None


class FakeScanner:
    """Scanner returning canned entities per file path."""

    def __init__(self, entities_by_file=None):
        self.entities_by_file = entities_by_file or {}
        self.scanned = []

    def scan(self, path):
        self.scanned.append(str(path))
        return self.entities_by_file.get(str(path), [])


def cls(name):
    return ScannedEntity(kind=EntityKind.CLASS, name=name)


def func(key):
    return ScannedEntity(kind=EntityKind.FUNCTION, name=key.rsplit(":", 1)[0], key=key)


def case_xml(name, classname=None, file=None, time="0.1", outcome=None):
    attrs = [f'name="{name}"']
    if classname is not None:
        attrs.append(f'classname="{classname}"')
    if file is not None:
        attrs.append(f'file="{file}"')
    if time is not None:
        attrs.append(f'time="{time}"')
    head = f"<testcase {' '.join(attrs)}"
    if outcome is None:
        return head + "/>"
    return f"{head}>{outcome}</testcase>"


def report_xml(*testcases, suite="suite"):
    body = "\n    ".join(testcases)
    return (f'<?xml version="1.0" encoding="UTF-8"?>\n'
            f'<testsuites>\n  <testsuite name="{suite}">\n    {body}\n  </testsuite>\n</testsuites>\n')


@pytest.fixture
def write_report(tmp_path):
    """Write a report below tmp_path/xunit-reports and return its path."""
    def _write(content, name="xunit-result-1.xml"):
        path = tmp_path / "xunit-reports" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path
    return _write


@pytest.fixture
def project(tmp_path):
    """A small C++ project with sources below tmp_path."""
    files = {
        "src/widget.h": "class Widget {\npublic:\n  void draw();\n};\n",
        "src/widget.cpp": '#include "widget.h"\n\nvoid Widget::draw() {\n}\n',
        "test/widget_test.cpp": (
            "namespace ui {\n"
            "class WidgetTest {\n"
            "public:\n"
            "  void testDraw();\n"
            "};\n"
            "void WidgetTest::testDraw() {\n"
            "}\n"
            "}\n"
        ),
    }
    for relative, content in files.items():
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return tmp_path


@pytest.fixture
def fake_finder():
    return FakeFinder()


@pytest.fixture
def fake_scanner():
    return FakeScanner()


def relative(paths, base: Path) -> list[str]:
    return [p.relative_to(base).as_posix() for p in paths]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """No settings file or XUNIT_*/CXX_* variable leaks in from the host."""
    for key in CONFIG_KEYS + [CONFIG_ENV_VAR]:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
