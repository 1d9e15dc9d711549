"""
Asset-denominated valuation of the vault's position.

The pure functions work on a PositionSnapshot so live chain reads and the
in-process engine value positions identically. Nothing here raises for
extreme prices; zero inputs value to zero.
"""
import logging
from typing import Tuple

from protocol import ERC20, LiquidityManager, Pool, PositionSnapshot, TokenRole
from vault.config import MAX_BPS, ConfigurationStore
from vault.utils.math import MAX_UINT256, FixedPointPriceMath

logger = logging.getLogger(__name__)


def lp_underlying(snapshot: PositionSnapshot) -> Tuple[int, int]:
    """
    The vault's pro-rata claim on the liquidity manager.

    Returns:
        Tuple of (asset_amount, paired_amount)
    """
    if snapshot.lp_shares == 0 or snapshot.lp_total_supply == 0:
        return 0, 0

    amount0 = FixedPointPriceMath.mul_div(snapshot.lp_shares, snapshot.lp_total0, snapshot.lp_total_supply)
    amount1 = FixedPointPriceMath.mul_div(snapshot.lp_shares, snapshot.lp_total1, snapshot.lp_total_supply)
    if snapshot.asset_is_token0:
        return amount0, amount1
    return amount1, amount0


def lp_value_in_asset(snapshot: PositionSnapshot) -> int:
    """Value of the vault's LP shares in asset units."""
    asset_amount, paired_amount = lp_underlying(snapshot)
    paired_value = FixedPointPriceMath.value_as_asset(
        paired_amount, snapshot.sqrt_price_x96, snapshot.asset_is_token0
    )
    return min(asset_amount + paired_value, MAX_UINT256)


def discounted_paired_value(
    amount: int,
    sqrt_price_x96: int,
    asset_is_token0: bool,
    discount_bps: int,
    pool_fee: int,
) -> int:
    """
    Realizable asset value of idle paired tokens.

    Haircut = configured discount + the pool's fee tier, both in bps.
    """
    if amount == 0:
        return 0
    value = FixedPointPriceMath.value_as_asset(amount, sqrt_price_x96, asset_is_token0)
    haircut_bps = discount_bps + pool_fee // 100
    if haircut_bps >= MAX_BPS:
        return 0
    return FixedPointPriceMath.mul_div(value, MAX_BPS - haircut_bps, MAX_BPS)


def estimate_total_asset(snapshot: PositionSnapshot, discount_bps: int) -> int:
    """Idle asset + LP value + discounted idle paired token value."""
    paired_value = discounted_paired_value(
        snapshot.idle_paired,
        snapshot.sqrt_price_x96,
        snapshot.asset_is_token0,
        discount_bps,
        snapshot.pool_fee,
    )
    total = snapshot.idle_asset + lp_value_in_asset(snapshot) + paired_value
    return min(total, MAX_UINT256)


class ValuationEngine:
    """Reads the vault's live position and values it in asset terms."""

    def __init__(
        self,
        owner: str,
        role: TokenRole,
        asset: ERC20,
        paired: ERC20,
        pool: Pool,
        liquidity_manager: LiquidityManager,
        config_store: ConfigurationStore,
    ):
        self.owner = owner
        self.role = role
        self.asset = asset
        self.paired = paired
        self.pool = pool
        self.liquidity_manager = liquidity_manager
        self.config_store = config_store

    def sqrt_price_x96(self) -> int:
        return self.pool.slot0().sqrt_price_x96

    def snapshot(self) -> PositionSnapshot:
        """Fresh read of balances, LP state and price. Never cached."""
        lp_shares = self.liquidity_manager.balance_of(self.owner)
        lp_total_supply, lp_total0, lp_total1 = 0, 0, 0
        if lp_shares > 0:
            lp_total_supply = self.liquidity_manager.total_supply()
            lp_total0, lp_total1 = self.liquidity_manager.get_total_amounts()

        snapshot = PositionSnapshot(
            sqrt_price_x96=self.sqrt_price_x96(),
            idle_asset=self.asset.balance_of(self.owner),
            idle_paired=self.paired.balance_of(self.owner),
            lp_shares=lp_shares,
            lp_total_supply=lp_total_supply,
            lp_total0=lp_total0,
            lp_total1=lp_total1,
            pool_fee=self.pool.fee,
            asset_is_token0=self.role.asset_is_token0,
        )
        logger.debug(f"Position snapshot: {snapshot}")
        return snapshot

    def lp_vault_in_asset(self) -> int:
        return lp_value_in_asset(self.snapshot())

    def estimated_total_asset(self) -> int:
        return estimate_total_asset(
            self.snapshot(),
            self.config_store.config.paired_token_discount_bps,
        )

    def value_as_asset(self, paired_amount: int, sqrt_price_x96: int) -> int:
        return FixedPointPriceMath.value_as_asset(
            paired_amount, sqrt_price_x96, self.role.asset_is_token0
        )

    def asset_to_paired(self, asset_amount: int, sqrt_price_x96: int) -> int:
        return FixedPointPriceMath.asset_to_paired(
            asset_amount, sqrt_price_x96, self.role.asset_is_token0
        )
