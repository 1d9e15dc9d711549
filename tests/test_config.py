"""
Tests for the configuration store.
"""
import pytest

from vault.config import MAX_BPS, ConfigurationStore, VaultConfig
from vault.errors import InvalidConfiguration, Unauthorized
from vault.utils.env import DEFAULT_TARGET_IDLE_BPS
from vault.utils.math import MAX_UINT256

MANAGEMENT = "0x6000000000000000000000000000000000000006"
STRANGER = "0x9000000000000000000000000000000000000009"


@pytest.fixture
def store():
    return ConfigurationStore(MANAGEMENT)


def test_defaults(store):
    assert store.config.target_idle_bps == DEFAULT_TARGET_IDLE_BPS
    assert store.config.max_swap_value == MAX_UINT256
    assert store.config.deposit_limit == MAX_UINT256
    assert store.config.swap_tick_tolerance >= 1


def test_management_sets_value(store):
    store.set_target_idle_bps(MANAGEMENT, 2500)
    store.set_min_tend_wait(MANAGEMENT.lower(), 600)

    assert store.config.target_idle_bps == 2500
    assert store.config.min_tend_wait == 600


@pytest.mark.parametrize(
    "setter",
    [
        "set_target_idle_bps",
        "set_target_idle_buffer_bps",
        "set_min_asset",
        "set_max_swap_value",
        "set_min_tend_wait",
        "set_paired_token_discount_bps",
        "set_deposit_limit",
        "set_swap_tick_tolerance",
    ],
)
def test_non_management_rejected(store, setter):
    before = store.config.model_copy()
    with pytest.raises(Unauthorized):
        getattr(store, setter)(STRANGER, 1)
    assert store.config == before


@pytest.mark.parametrize(
    "setter",
    ["set_target_idle_bps", "set_target_idle_buffer_bps", "set_paired_token_discount_bps"],
)
def test_bps_above_max_rejected(store, setter):
    with pytest.raises(InvalidConfiguration):
        getattr(store, setter)(MANAGEMENT, MAX_BPS + 1)


def test_bps_bounds_inclusive(store):
    store.set_target_idle_bps(MANAGEMENT, MAX_BPS)
    store.set_target_idle_bps(MANAGEMENT, 0)
    assert store.config.target_idle_bps == 0


def test_failed_set_keeps_previous_value(store):
    store.set_target_idle_buffer_bps(MANAGEMENT, 300)
    with pytest.raises(InvalidConfiguration):
        store.set_target_idle_buffer_bps(MANAGEMENT, -1)
    assert store.config.target_idle_buffer_bps == 300


def test_uint256_fields(store):
    store.set_max_swap_value(MANAGEMENT, MAX_UINT256)
    store.set_max_swap_value(MANAGEMENT, 0)
    assert store.config.max_swap_value == 0

    with pytest.raises(InvalidConfiguration):
        store.set_deposit_limit(MANAGEMENT, MAX_UINT256 + 1)
    with pytest.raises(InvalidConfiguration):
        store.set_min_asset(MANAGEMENT, -1)


def test_swap_tick_tolerance_at_least_one(store):
    with pytest.raises(InvalidConfiguration):
        store.set_swap_tick_tolerance(MANAGEMENT, 0)


def test_invalid_configuration_is_value_error(store):
    with pytest.raises(ValueError):
        store.set_target_idle_bps(MANAGEMENT, 20_000)


def test_config_model_validation():
    config = VaultConfig(target_idle_bps=0, min_tend_wait=0)
    assert config.target_idle_bps == 0
