"""
Root pytest configuration and fixtures for turnstream.

Provides the signal sink and base URL fixtures shared by unit and integration tests.
"""

from pathlib import Path
import sys

import pytest

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tests.utils.streams import RecordingSink  # noqa: E402


@pytest.fixture
def sink():
    """Signal sink that records every notification."""
    return RecordingSink()


@pytest.fixture
def base_url():
    """Test base URL."""
    return "https://assistant.test"
