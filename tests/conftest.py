import pytest

from tests.world import build_world


@pytest.fixture
def world():
    """Asset is token0, both 18 decimals, price 1."""
    return build_world()


@pytest.fixture
def empty_lp_world():
    """Liquidity manager has no depositors yet."""
    return build_world(lp_seed=(0, 0))
