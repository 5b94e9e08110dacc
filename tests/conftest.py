import sys
from pathlib import Path

import pytest

# Add parent src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from factories import make_publisher, make_validator_manifests  # noqa: E402


@pytest.fixture
def publisher():
    return make_publisher()


@pytest.fixture
def validator_manifests():
    return make_validator_manifests(3)
