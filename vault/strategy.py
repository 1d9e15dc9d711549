"""
Host-facing LP vault strategy.

Wires the valuation, settlement and rebalancing components around one vault
address and exposes the hooks a tokenized-vault framework calls: deploy and
free funds, report, tend, emergency withdraw and management overrides.
"""
import logging
import time
from typing import Callable, Optional, Tuple

from web3 import Web3

from protocol import ERC20, LiquidityManager, Pool, TendResult, TokenRole
from vault.config import ConfigurationStore, VaultConfig
from vault.rebalancer import RebalancingEngine
from vault.settlement import SwapSettlement
from vault.utils.web3 import same_address
from vault.valuation import ValuationEngine

logger = logging.getLogger(__name__)


class LpVaultStrategy:
    """
    Keeps a single asset productively deployed in a liquidity manager.

    Deposits stay idle until the next tend; withdrawals that exceed idle
    asset free the shortfall from the LP.
    """

    def __init__(
        self,
        address: str,
        management: str,
        asset: ERC20,
        paired: ERC20,
        pool: Pool,
        liquidity_manager: LiquidityManager,
        config: Optional[VaultConfig] = None,
        clock: Callable[[], float] = time.time,
    ):
        """
        Args:
            address: Account holding the vault's tokens and LP shares
            management: Account allowed to change configuration
            asset: The vault's deposit token
            paired: The pool's other token
            pool: Pool the liquidity manager provides liquidity to
            liquidity_manager: Share-issuing LP manager
            config: Initial configuration (env defaults otherwise)
            clock: Seconds since epoch, used for the tend throttle

        Raises:
            ValueError: If the tokens, pool and liquidity manager don't line up
        """
        self.address = Web3.to_checksum_address(address)
        if not same_address(liquidity_manager.pool, pool.address):
            raise ValueError(
                f"Liquidity manager {liquidity_manager.address} manages {liquidity_manager.pool}, not {pool.address}"
            )
        if not (
            same_address(liquidity_manager.token0, pool.token0)
            and same_address(liquidity_manager.token1, pool.token1)
        ):
            raise ValueError("Liquidity manager token order differs from the pool's")

        self.role = TokenRole.from_pool(asset.address, pool.token0, pool.token1)
        if not same_address(paired.address, self.role.paired):
            raise ValueError(f"Paired token {paired.address} is not {self.role.paired}")

        self.asset = asset
        self.paired = paired
        self.pool = pool
        self.liquidity_manager = liquidity_manager
        self.config_store = ConfigurationStore(management, config)

        self.valuation = ValuationEngine(
            self.address, self.role, asset, paired, pool, liquidity_manager, self.config_store
        )
        self.settlement = SwapSettlement(
            self.address, self.role, asset, paired, pool, self.config_store
        )
        self.rebalancer = RebalancingEngine(
            self.address,
            self.role,
            asset,
            paired,
            liquidity_manager,
            self.valuation,
            self.settlement,
            self.config_store,
            clock,
        )
        logger.info(
            f"LP vault {self.address}: asset {self.role.asset} "
            f"({'token0' if self.role.asset_is_token0 else 'token1'}), paired {self.role.paired}"
        )

    @property
    def config(self) -> VaultConfig:
        return self.config_store.config

    # -----------------------------
    # Views
    # -----------------------------

    def estimated_total_asset(self) -> int:
        return self.valuation.estimated_total_asset()

    def lp_vault_in_asset(self) -> int:
        return self.valuation.lp_vault_in_asset()

    def lp_shares(self) -> int:
        return self.liquidity_manager.balance_of(self.address)

    def tend_trigger(self) -> bool:
        return self.rebalancer.tend_trigger()

    def available_deposit_limit(self, total_assets: int) -> int:
        return max(self.config.deposit_limit - total_assets, 0)

    # -----------------------------
    # Host framework hooks
    # -----------------------------

    def deploy_funds(self, amount: int) -> None:
        logger.debug(f"Received {amount} asset, deploying on next tend")

    def free_funds(self, amount: int) -> TendResult:
        return self.rebalancer.free_funds(amount)

    def harvest_and_report(self) -> int:
        total = self.estimated_total_asset()
        logger.info(f"Reported total assets {total}")
        return total

    def tend(self) -> TendResult:
        return self.rebalancer.tend()

    def swap_callback(self, caller: str, amount0_delta: int, amount1_delta: int, data: bytes) -> None:
        self.settlement.swap_callback(caller, amount0_delta, amount1_delta, data)

    # -----------------------------
    # Management
    # -----------------------------

    def emergency_withdraw(self, caller: str, amount: int) -> TendResult:
        """Free `amount` from the LP accepting any price impact."""
        self.config_store.require_management(caller)
        logger.warning(f"Emergency withdraw of {amount} requested by {caller}")
        return self.rebalancer.free_funds(amount, liquidation=True)

    def manual_withdraw_from_lp(self, caller: str, shares: int) -> int:
        """Redeem up to `shares` LP shares; MAX_UINT256 redeems all of them."""
        self.config_store.require_management(caller)
        return self.rebalancer.withdraw_lp(min(shares, self.lp_shares()))

    def manual_swap_paired_to_asset(self, caller: str, amount: int) -> Tuple[int, int]:
        self.config_store.require_management(caller)
        return self.rebalancer.swap_paired_to_asset(amount)
