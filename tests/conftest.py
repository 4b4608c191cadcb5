"""
Pytest configuration and shared fixtures for all irdump tests.
"""

import sys
import pytest
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
from irdump.ir.function import Module
from irdump.ir.loader import load_module
from irdump.utils.io_utils import read_source_file


EXAMPLES_DIR = Path(__file__).parent.parent / "examples"


# =============================================================================
# Shared fixtures
# =============================================================================

@pytest.fixture
def module():
    """Fresh empty module per test."""
    return Module()


@pytest.fixture
def func_type(module):
    """Type id for a () -> () function."""
    return module.add_type()


@pytest.fixture(scope="session")
def examples_dir():
    return EXAMPLES_DIR


@pytest.fixture
def load_example(examples_dir):
    """Load examples/<name> into a Module."""
    def _load(name: str) -> Module:
        path = examples_dir / name
        return load_module(read_source_file(path), str(path))
    return _load


def pytest_configure(config):
    """Register custom markers for test organization."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
