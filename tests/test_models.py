"""
Tests for data models and validation.
"""
import pytest
from pydantic import ValidationError

from protocol.models import (
    LpRange,
    PositionSnapshot,
    Slot0,
    SwapIntent,
    TendAction,
    TendResult,
    TokenRole,
)

TOKEN0 = "0x3234567890123456789012345678901234567890"
TOKEN1 = "0x4234567890123456789012345678901234567890"
OTHER = "0x5234567890123456789012345678901234567890"


def test_token_role_asset_is_token0():
    """Asset matching token0 pairs with token1."""
    role = TokenRole.from_pool(TOKEN0.lower(), TOKEN0, TOKEN1)

    assert role.asset_is_token0 is True
    assert role.asset == TOKEN0
    assert role.paired == TOKEN1


def test_token_role_asset_is_token1():
    role = TokenRole.from_pool(TOKEN1, TOKEN0, TOKEN1)

    assert role.asset_is_token0 is False
    assert role.paired == TOKEN0


def test_token_role_foreign_asset():
    """An asset outside the pool cannot be resolved."""
    with pytest.raises(ValueError, match="not one of the pool tokens"):
        TokenRole.from_pool(OTHER, TOKEN0, TOKEN1)


def test_token_role_ordering():
    role = TokenRole.from_pool(TOKEN1, TOKEN0, TOKEN1)

    assert role.to_token0_token1(10, 20) == (20, 10)
    assert role.to_asset_paired(20, 10) == (10, 20)


def test_swap_intent_round_trip():
    """Payload decodes back to the same intent."""
    intent = SwapIntent(token_to_pay=TOKEN0, amount_to_pay=123456789)
    data = intent.encode()

    assert len(data) == 64
    assert SwapIntent.decode(data) == intent


def test_swap_intent_decodes_checksummed():
    intent = SwapIntent(token_to_pay=TOKEN0, amount_to_pay=1)
    assert SwapIntent.decode(intent.encode()).token_to_pay == TOKEN0


def test_swap_intent_negative_amount():
    with pytest.raises(ValidationError):
        SwapIntent(token_to_pay=TOKEN0, amount_to_pay=-1)


def test_slot0_requires_positive_price():
    with pytest.raises(ValidationError):
        Slot0(sqrt_price_x96=0, tick=0)


def test_position_snapshot_defaults():
    snapshot = PositionSnapshot(sqrt_price_x96=1 << 96, asset_is_token0=True)

    assert snapshot.idle_asset == 0
    assert snapshot.lp_shares == 0
    assert snapshot.pool_fee == 0


def test_position_snapshot_shares_above_supply():
    """Held shares above total supply means the reads are inconsistent."""
    with pytest.raises(ValidationError):
        PositionSnapshot(
            sqrt_price_x96=1 << 96,
            lp_shares=11,
            lp_total_supply=10,
            asset_is_token0=True,
        )


def test_position_snapshot_fee_bounds():
    with pytest.raises(ValidationError):
        PositionSnapshot(sqrt_price_x96=1 << 96, pool_fee=1_000_001, asset_is_token0=True)


def test_lp_range_invalid_tick_range():
    """tick_upper must be greater than tick_lower."""
    with pytest.raises(ValidationError):
        LpRange(tick_lower=-9900, tick_upper=-10000, weight=1)


def test_tend_result_defaults():
    result = TendResult(action=TendAction.IDLE)

    assert result.swapped_in == 0
    assert result.shares_minted == 0
    assert result.timestamp is None
    assert result.action == "idle"
