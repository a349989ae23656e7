"""Configuration loading for the xunit analyzer."""

import logging
import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Optional

import yaml

from .file_locator import DEFAULT_REPORT_PATH, DEFAULT_SOURCE_PATTERNS

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = 'XUNIT_ANALYZER_CONFIG'

CONFIG_KEYS = [
    'XUNIT_BASE_DIR',
    'XUNIT_REPORT_PATH',
    'XUNIT_XSLT_URL',
    'XUNIT_PROVIDE_DETAILS',
    'CXX_TEST_SOURCES',
    'CXX_DEFINES',
    'CXX_INCLUDE_DIRECTORIES',
]

TRUE_VALUES = {'1', 'true', 'yes', 'on'}


def load_config(path: Optional[str] = None) -> dict:
    """Load config from a settings file and environment variables.

    The settings file is ``path``, else $XUNIT_ANALYZER_CONFIG, else ./.env.
    ``.yml``/``.yaml`` files are read as a YAML mapping, anything else as
    KEY=VALUE lines. Environment variables take precedence over file values.
    """
    paths = [
        path,
        os.environ.get(CONFIG_ENV_VAR),
        Path.cwd() / '.env',
    ]
    config = {}
    for p in paths:
        if p and Path(p).exists():
            config.update(_read_settings_file(Path(p)))
            break

    for key in CONFIG_KEYS:
        env_value = os.environ.get(key)
        if env_value is not None:
            config[key] = env_value

    return config


def _read_settings_file(path: Path) -> dict:
    text = path.read_text()
    if path.suffix.lower() in ('.yml', '.yaml'):
        data = yaml.safe_load(text) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Settings file {path} must contain a mapping")
        return {str(k).upper(): v for k, v in data.items()}

    config = {}
    for line in text.splitlines():
        line = line.strip()
        if line and not line.startswith('#') and '=' in line:
            key, value = line.split('=', 1)
            config[key.strip()] = value.strip()
    return config


@dataclass(frozen=True)
class SensorConfig:
    """Settings for one analysis run."""
    base_dir: str = '.'
    report_path: str = DEFAULT_REPORT_PATH
    xslt_url: Optional[str] = None
    provide_details: bool = False
    test_sources: list[str] = field(default_factory=lambda: list(DEFAULT_SOURCE_PATTERNS))
    defines: list[str] = field(default_factory=list)
    include_directories: list[str] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, config: dict) -> "SensorConfig":
        defaults = cls()
        return cls(
            base_dir=str(config.get('XUNIT_BASE_DIR') or defaults.base_dir),
            report_path=str(config.get('XUNIT_REPORT_PATH') or defaults.report_path),
            xslt_url=config.get('XUNIT_XSLT_URL') or None,
            provide_details=parse_bool(config.get('XUNIT_PROVIDE_DETAILS')),
            test_sources=_split(config.get('CXX_TEST_SOURCES'), ',') or defaults.test_sources,
            defines=_split(config.get('CXX_DEFINES'), ';'),
            include_directories=_split(config.get('CXX_INCLUDE_DIRECTORIES'), ','),
        )

    def with_overrides(self, **overrides) -> "SensorConfig":
        """Copy with every override that is not None applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def get_sensor_config(path: Optional[str] = None, **overrides) -> SensorConfig:
    return SensorConfig.from_mapping(load_config(path)).with_overrides(**overrides)


def parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in TRUE_VALUES


def _split(value, separator: str) -> list[str]:
    """Split a separated string; YAML lists are taken as they are."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = str(value).replace('\n', separator).split(separator)
    return [str(item).strip() for item in items if str(item).strip()]
