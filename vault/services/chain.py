"""
Live on-chain reads for an LP vault.

Values a deployed vault from the chain with the same pure valuation
functions the in-process engine uses.
"""
import asyncio
import logging
from typing import List, Optional, Tuple

from web3 import Web3
from web3.contract import AsyncContract

from protocol import LpRange, PositionSnapshot, TokenRole
from vault.utils.web3 import AsyncWeb3Helper
from vault.valuation import estimate_total_asset, lp_value_in_asset

logger = logging.getLogger(__name__)


class ChainVaultReader:
    """Reads a vault's balances, LP state and pool price over RPC."""

    def __init__(
        self,
        chain_id: int,
        vault_address: str,
        asset_address: str,
        liquidity_manager_address: str,
        pool_address: str,
    ):
        """Initialize contracts for the vault's asset, liquidity manager and pool."""
        self.chain_id = chain_id
        self.vault_address = Web3.to_checksum_address(vault_address)
        self.asset_address = Web3.to_checksum_address(asset_address)
        helper = AsyncWeb3Helper.make_web3(chain_id)
        self.liq_manager: AsyncContract = helper.make_contract_by_name(
            name="LiquidityManager",
            addr=liquidity_manager_address,
        )
        self.pool: AsyncContract = helper.make_contract_by_name(
            name="UniswapV3Pool",
            addr=pool_address,
        )
        self._role: Optional[TokenRole] = None

    def _make_erc20(self, address: str) -> AsyncContract:
        return AsyncWeb3Helper.make_web3(self.chain_id).make_contract_by_name(
            name="ERC20",
            addr=address,
        )

    async def get_pool_tokens(self) -> Tuple[str, str]:
        """
        Extract token0 and token1 addresses from the pool.

        Returns:
            Tuple of (token0_address, token1_address)

        Raises:
            ValueError: If tokens cannot be extracted
        """
        try:
            token0, token1 = await asyncio.gather(
                self.pool.functions.token0().call(),
                self.pool.functions.token1().call(),
            )
        except Exception as e:
            raise ValueError(
                f"Failed to extract tokens from pool {self.pool.address}: {e}"
            ) from e

        logger.info(
            f"Extracted tokens from pool {self.pool.address}: token0={token0}, token1={token1}"
        )
        return token0, token1

    async def get_token_role(self) -> TokenRole:
        """Resolve (once) which pool token is the vault asset."""
        if self._role is None:
            token0, token1 = await self.get_pool_tokens()
            self._role = TokenRole.from_pool(self.asset_address, token0, token1)
        return self._role

    async def get_current_price(self) -> int:
        """Get the current sqrtPriceX96 of the pool."""
        slot0 = await self.pool.functions.slot0().call()
        return slot0[0]

    async def snapshot(self) -> PositionSnapshot:
        """Read everything valuation needs in one round of concurrent calls."""
        role = await self.get_token_role()
        asset = self._make_erc20(role.asset)
        paired = self._make_erc20(role.paired)

        (
            sqrt_price_x96,
            fee,
            idle_asset,
            idle_paired,
            lp_shares,
            lp_total_supply,
            lp_totals,
        ) = await asyncio.gather(
            self.get_current_price(),
            self.pool.functions.fee().call(),
            asset.functions.balanceOf(self.vault_address).call(),
            paired.functions.balanceOf(self.vault_address).call(),
            self.liq_manager.functions.balanceOf(self.vault_address).call(),
            self.liq_manager.functions.totalSupply().call(),
            self.liq_manager.functions.getTotalAmounts().call(),
        )

        snapshot = PositionSnapshot(
            sqrt_price_x96=sqrt_price_x96,
            idle_asset=idle_asset,
            idle_paired=idle_paired,
            lp_shares=lp_shares,
            lp_total_supply=lp_total_supply,
            lp_total0=lp_totals[0],
            lp_total1=lp_totals[1],
            pool_fee=fee,
            asset_is_token0=role.asset_is_token0,
        )
        logger.debug(f"Vault {self.vault_address} snapshot: {snapshot}")
        return snapshot

    async def lp_vault_in_asset(self) -> int:
        return lp_value_in_asset(await self.snapshot())

    async def estimated_total_asset(self, paired_token_discount_bps: int) -> int:
        return estimate_total_asset(await self.snapshot(), paired_token_discount_bps)

    async def get_positions(self) -> List[LpRange]:
        """Ranges the liquidity manager currently provides liquidity in."""
        lower_ticks, upper_ticks, weights = await self.liq_manager.functions.getPositions().call()
        if not (len(lower_ticks) == len(upper_ticks) == len(weights)):
            raise ValueError(
                f"Liquidity manager {self.liq_manager.address} returned mismatched position arrays"
            )

        positions = []
        for tick_lower, tick_upper, weight in zip(lower_ticks, upper_ticks, weights):
            logger.debug(f"Range [{tick_lower}, {tick_upper}] weight {weight}")
            positions.append(LpRange(tick_lower=tick_lower, tick_upper=tick_upper, weight=weight))
        return positions
