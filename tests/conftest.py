"""
Pytest configuration and fixtures

Everything here is pure data: the engine needs no database, network or clock.
"""
import pytest
import sys
import os

# Add the parent directory to the path so we can import from services
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from services.race_prediction.models import UserPhysiology  # noqa: E402
from tests.prediction_helpers import AS_OF, make_input, make_race  # noqa: E402


@pytest.fixture
def as_of():
    return AS_OF


@pytest.fixture
def physiology():
    """Resting 50, max 190: a 140 bpm reserve."""
    return UserPhysiology(resting_hr=50, max_hr=190)


@pytest.fixture
def end_to_end_input():
    """Single all-out 10K in 40:00 today with a solid training base."""
    return make_input(races=[make_race(10000, 2400, ago=0, effort_level="all_out")])
