"""Shared test fixtures for semdiff tests."""

import pytest

from semdiff.config import DEFAULT_CONFIG
from semdiff.models import DiffParams, FileDiffInput
from semdiff.scanning import StructuralExtractor, dialect_for_path


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


_EXTRACTOR = StructuralExtractor()


def extract(text, path="src/sample.ts"):
    """Structural model of ``text`` parsed with the dialect of ``path``."""
    return _EXTRACTOR.extract(text, dialect_for_path(path))


def run_analyzer(analyzer, base_text, head_text, path="src/sample.ts", config=DEFAULT_CONFIG):
    """Run a single analyzer over two versions of a file."""
    params = DiffParams(file_path=path, config=config)
    return analyzer.diff(extract(base_text, path), extract(head_text, path), params)


def make_input(base_text, head_text, path="src/sample.ts", config=DEFAULT_CONFIG, hunks=()):
    return FileDiffInput(
        file_path=path, base_text=base_text, head_text=head_text, config=config, hunks=tuple(hunks)
    )


@pytest.fixture
def params():
    """DiffParams for a TypeScript file with the default config."""
    return DiffParams(file_path="src/sample.ts", config=DEFAULT_CONFIG)
