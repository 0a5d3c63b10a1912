"""
Shared pytest configuration.

Puts ``src`` and this directory on the import path so tests run from a
checkout without installing the package.
"""

import sys
from pathlib import Path

import pytest

TESTS_DIR = Path(__file__).parent
PROJECT_ROOT = TESTS_DIR.parent

sys.path.insert(0, str(PROJECT_ROOT / "src"))
sys.path.insert(0, str(TESTS_DIR))

from shared.fakes import (  # noqa: E402
    FakeDirectory,
    InMemoryPolicyStore,
    RecordingReporter,
    make_domain,
)


@pytest.fixture
def domain():
    return make_domain()


@pytest.fixture
def store():
    return InMemoryPolicyStore()


@pytest.fixture
def directory():
    return FakeDirectory()


@pytest.fixture
def reporter():
    return RecordingReporter()
