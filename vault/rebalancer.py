"""
The tend control loop.

Each pass measures the position, compares idle asset against the configured
target and then either frees asset from the LP (deficit), deploys asset into
the LP (excess) or fixes a mixed idle balance (composition). Degenerate
states are no-ops. A pass that fails after its first step undoes that step
(re-depositing withdrawn tokens or selling a swap back) before raising, so
the position is left as it was and the pass can simply be retried.
"""
import logging
import time
from typing import Callable, Optional, Tuple

from protocol import (
    ERC20,
    LiquidityManager,
    PositionSnapshot,
    TendAction,
    TendResult,
    TokenRole,
)
from vault.config import MAX_BPS, ConfigurationStore, VaultConfig
from vault.settlement import SwapSettlement
from vault.utils.math import MAX_UINT256, FixedPointPriceMath
from vault.valuation import ValuationEngine, estimate_total_asset, lp_value_in_asset

logger = logging.getLogger(__name__)


class RebalancingEngine:
    """Keeps idle asset near target_idle_bps of total assets."""

    def __init__(
        self,
        address: str,
        role: TokenRole,
        asset: ERC20,
        paired: ERC20,
        liquidity_manager: LiquidityManager,
        valuation: ValuationEngine,
        settlement: SwapSettlement,
        config_store: ConfigurationStore,
        clock: Callable[[], float] = time.time,
    ):
        self.address = address
        self.role = role
        self.asset = asset
        self.paired = paired
        self.liquidity_manager = liquidity_manager
        self.valuation = valuation
        self.settlement = settlement
        self.config_store = config_store
        self.clock = clock
        self.last_tend: Optional[int] = None

    @property
    def config(self) -> VaultConfig:
        return self.config_store.config

    def _now(self) -> int:
        return int(self.clock())

    def is_throttled(self, now: int) -> bool:
        return self.last_tend is not None and now - self.last_tend < self.config.min_tend_wait

    def idle_target(self, snapshot: PositionSnapshot) -> Tuple[int, int]:
        """(target idle asset, dead-band half-width), both in asset units."""
        config = self.config
        total = estimate_total_asset(snapshot, config.paired_token_discount_bps)
        target = FixedPointPriceMath.mul_div(total, config.target_idle_bps, MAX_BPS)
        buffer = FixedPointPriceMath.mul_div(total, config.target_idle_buffer_bps, MAX_BPS)
        logger.debug(f"Total {total}, idle {snapshot.idle_asset}, target {target}, buffer {buffer}")
        return target, buffer

    def idle_deviation(self, snapshot: PositionSnapshot) -> int:
        """
        Signed distance of idle asset from its target.

        Positive = excess to deploy, negative = deficit to free, 0 = inside
        the dead-band or below min_asset.
        """
        target, buffer = self.idle_target(snapshot)
        deviation = snapshot.idle_asset - target
        if abs(deviation) <= buffer or abs(deviation) < self.config.min_asset:
            return 0
        return deviation

    def _composition_swap_value(self, snapshot: PositionSnapshot) -> Tuple[int, int, int]:
        """
        Sizing for a composition swap.

        Only idle asset above the target counts as the asset side, so the
        swap never pushes idle asset below target.

        Returns:
            Tuple of (paired_value, free_asset, smaller_side_value)
        """
        if snapshot.idle_asset == 0 or snapshot.idle_paired == 0:
            return 0, 0, 0
        target, _ = self.idle_target(snapshot)
        free_asset = max(snapshot.idle_asset - target, 0)
        paired_value = self.valuation.value_as_asset(snapshot.idle_paired, snapshot.sqrt_price_x96)
        smaller = min(paired_value, free_asset)
        if smaller < self.config.min_asset:
            smaller = 0
        return paired_value, free_asset, smaller

    def tend_trigger(self) -> bool:
        """Whether tend() would act now. Reads only."""
        if self.is_throttled(self._now()):
            return False
        snapshot = self.valuation.snapshot()
        deviation = self.idle_deviation(snapshot)
        if deviation < 0:
            return True
        if deviation > 0:
            # an empty manager has no ratio to deposit at
            return any(self.liquidity_manager.get_total_amounts())
        _, _, smaller = self._composition_swap_value(snapshot)
        return smaller > 0 and self.config.max_swap_value > 0

    def tend(self) -> TendResult:
        now = self._now()
        if self.is_throttled(now):
            logger.debug(f"Tend throttled: last tend at {self.last_tend}, now {now}")
            return TendResult(action=TendAction.THROTTLED, timestamp=now)

        snapshot = self.valuation.snapshot()
        deviation = self.idle_deviation(snapshot)
        if deviation < 0:
            result = self._free(-deviation, snapshot)
        elif deviation > 0:
            result = self._deploy(deviation, snapshot)
        else:
            result = self._rebalance_composition(snapshot)

        self.last_tend = now
        result.timestamp = now
        logger.info(f"Tend finished: {result}")
        return result

    def free_funds(self, amount: int, liquidation: bool = False) -> TendResult:
        """Deficit branch for `amount`, regardless of configured targets or throttle."""
        if amount == 0:
            return TendResult(action=TendAction.IDLE, timestamp=self._now())
        result = self._free(amount, self.valuation.snapshot(), liquidation)
        result.timestamp = self._now()
        return result

    # -----------------------------
    # Deficit
    # -----------------------------

    def _free(self, amount: int, snapshot: PositionSnapshot, liquidation: bool = False) -> TendResult:
        burned = self._shares_worth(amount, snapshot)
        amount0, amount1 = self._withdraw(burned)
        try:
            paid, received = self.swap_paired_to_asset(liquidation=liquidation)
        except Exception:
            if burned:
                logger.warning(f"Swap failed, returning amount0={amount0}, amount1={amount1} to the LP")
                self.deposit_lp(*self.role.to_asset_paired(amount0, amount1))
            raise
        return TendResult(
            action=TendAction.FREED,
            swapped_in=paid,
            swapped_out=received,
            shares_burned=burned,
        )

    def _shares_worth(self, amount: int, snapshot: PositionSnapshot) -> int:
        """Share fraction worth `amount` asset, all shares if it is not enough."""
        shares = snapshot.lp_shares
        if shares == 0 or amount == 0:
            return 0

        lp_value = lp_value_in_asset(snapshot)
        if amount >= lp_value:
            return shares
        return min(shares, FixedPointPriceMath.mul_div(shares, amount, lp_value))

    def _withdraw(self, shares: int) -> Tuple[int, int]:
        if shares == 0:
            return 0, 0
        amount0, amount1 = self.liquidity_manager.withdraw(self.address, shares, 0, 0, self.address)
        logger.info(f"Withdrew {shares} LP shares for amount0={amount0}, amount1={amount1}")
        return amount0, amount1

    def withdraw_lp(self, shares: int) -> int:
        self._withdraw(shares)
        return shares

    def _paired_swap_cap(self, sqrt_price_x96: int) -> int:
        """max_swap_value expressed in paired token units."""
        cap = self.config.max_swap_value
        if cap == MAX_UINT256:
            return MAX_UINT256
        if cap == 0:
            return 0
        return self.valuation.asset_to_paired(cap, sqrt_price_x96)

    def swap_paired_to_asset(self, amount: Optional[int] = None, liquidation: bool = False) -> Tuple[int, int]:
        """Sell idle paired token (all of it by default), capped by max_swap_value."""
        balance = self.paired.balance_of(self.address)
        amount = balance if amount is None else min(amount, balance)
        if amount == 0:
            return 0, 0

        amount = min(amount, self._paired_swap_cap(self.valuation.sqrt_price_x96()))
        if amount == 0:
            logger.warning("Swap cap is zero, keeping idle paired token")
            return 0, 0
        return self.settlement.perform_swap(self.role.paired, amount, liquidation)

    # -----------------------------
    # Excess
    # -----------------------------

    def _deploy(self, excess: int, snapshot: PositionSnapshot) -> TendResult:
        total0, total1 = self.liquidity_manager.get_total_amounts()
        if total0 == 0 and total1 == 0:
            logger.warning(f"Liquidity manager {self.liquidity_manager.address} is empty, not depositing")
            return TendResult(action=TendAction.SKIPPED_EMPTY_LP)

        sqrt_price_x96 = snapshot.sqrt_price_x96
        lp_asset, lp_paired = self.role.to_asset_paired(total0, total1)
        lp_paired_value = self.valuation.value_as_asset(lp_paired, sqrt_price_x96)
        lp_total_value = lp_asset + lp_paired_value

        if lp_total_value == 0:
            swap_amount = excess // 2
        else:
            swap_amount = FixedPointPriceMath.mul_div(excess, lp_paired_value, lp_total_value)

        held_paired_value = self.valuation.value_as_asset(snapshot.idle_paired, sqrt_price_x96)
        swap_amount = max(swap_amount - held_paired_value, 0)

        capped = min(swap_amount, self.config.max_swap_value)
        if swap_amount > 0 and capped == 0:
            logger.warning(f"Swap of {swap_amount} asset capped to zero, not depositing")
            return TendResult(action=TendAction.SKIPPED_ZERO_SWAP)

        paid, received = self.settlement.perform_swap(self.role.asset, capped)
        try:
            minted = self.deposit_lp(excess - paid, self.paired.balance_of(self.address))
        except Exception:
            if received:
                # the unwind lands back near the pre-swap price
                logger.warning(f"Deposit failed, selling {received} paired token back")
                self.settlement.perform_swap(self.role.paired, received, liquidation=True)
            raise
        return TendResult(
            action=TendAction.DEPLOYED,
            swapped_in=paid,
            swapped_out=received,
            shares_minted=minted,
        )

    def deposit_lp(self, asset_amount: int, paired_amount: int) -> int:
        """Deposit in the manager's token order; approvals are exact and reset after."""
        if asset_amount == 0 and paired_amount == 0:
            return 0

        amount0, amount1 = self.role.to_token0_token1(asset_amount, paired_amount)
        token0, token1 = self.role.to_token0_token1(self.asset, self.paired)
        spender = self.liquidity_manager.address
        token0.approve(self.address, spender, amount0)
        token1.approve(self.address, spender, amount1)
        try:
            shares, used0, used1 = self.liquidity_manager.deposit(
                self.address, amount0, amount1, 0, 0, self.address
            )
        finally:
            token0.approve(self.address, spender, 0)
            token1.approve(self.address, spender, 0)

        logger.info(f"Deposited amount0={used0}, amount1={used1} for {shares} LP shares")
        return shares

    # -----------------------------
    # Composition
    # -----------------------------

    def _rebalance_composition(self, snapshot: PositionSnapshot) -> TendResult:
        """Swap the smaller idle side into the larger side's token."""
        paired_value, free_asset, smaller = self._composition_swap_value(snapshot)
        if smaller == 0:
            return TendResult(action=TendAction.IDLE)

        swap_value = min(smaller, self.config.max_swap_value)
        if swap_value == 0:
            logger.warning("Swap cap is zero, leaving idle balances mixed")
            return TendResult(action=TendAction.SKIPPED_ZERO_SWAP)

        if paired_value <= free_asset:
            if swap_value == paired_value:
                amount = snapshot.idle_paired
            else:
                amount = self.valuation.asset_to_paired(swap_value, snapshot.sqrt_price_x96)
            # value round trips can overshoot the balance by a few units
            amount = min(amount, self.paired.balance_of(self.address))
            paid, received = self.settlement.perform_swap(self.role.paired, amount)
        else:
            amount = min(swap_value, self.asset.balance_of(self.address))
            paid, received = self.settlement.perform_swap(self.role.asset, amount)

        return TendResult(action=TendAction.REBALANCED, swapped_in=paid, swapped_out=received)
