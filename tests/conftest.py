import pytest

from tests.factories import at, build_fleet


@pytest.fixture
def fleet():
    return build_fleet()


@pytest.fixture
def now():
    return at(200)
