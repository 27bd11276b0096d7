import pytest

from hcdating.presets import get_table


@pytest.fixture
def table():
    return get_table()
