"""
Shared fixtures for Mensa service tests.
"""

import pytest

from service_mensa.app.persistence.memory import load_seed_data

from .seed_ids import SEED_FILE


@pytest.fixture
def store():
    """Data store loaded from the bundled seed file."""
    return load_seed_data(SEED_FILE)
