"""
One-shot swaps against the external pool and their payment callback.

A swap is a two-phase protocol: `perform_swap` records a single pending
SwapIntent and calls the pool; the pool calls `swap_callback` synchronously,
which verifies the request against that intent and pays exactly the amount
owed. Any mismatch raises, which aborts the swap with nothing transferred.
"""
import logging
from typing import Optional, Tuple

from eth_abi.exceptions import DecodingError
from web3 import Web3

from protocol import ERC20, Pool, SwapCallbackReceiver, SwapIntent, TokenRole
from vault.config import ConfigurationStore
from vault.errors import InvalidSwapCallback, SettlementError, Unauthorized
from vault.utils.math import UniswapV3Math
from vault.utils.web3 import same_address

logger = logging.getLogger(__name__)


class SwapSettlement(SwapCallbackReceiver):
    """Swaps the vault's asset and paired token through the bound pool."""

    def __init__(
        self,
        address: str,
        role: TokenRole,
        asset: ERC20,
        paired: ERC20,
        pool: Pool,
        config_store: ConfigurationStore,
    ):
        self.address = Web3.to_checksum_address(address)
        self.role = role
        self.asset = asset
        self.paired = paired
        self.pool = pool
        self.config_store = config_store
        self._pending: Optional[SwapIntent] = None

    def price_limit(self, zero_for_one: bool, liquidation: bool = False) -> int:
        """
        sqrtPriceX96 the swap may not cross.

        Rebalancing swaps may move price `swap_tick_tolerance` ticks past the
        current tick; liquidation swaps accept any price the pool allows.
        """
        if liquidation:
            if zero_for_one:
                return UniswapV3Math.MIN_SQRT_RATIO + 1
            return UniswapV3Math.MAX_SQRT_RATIO - 1

        tick = self.pool.slot0().tick
        tolerance = self.config_store.config.swap_tick_tolerance
        if zero_for_one:
            limit_tick = max(tick - tolerance, UniswapV3Math.MIN_TICK)
            return max(UniswapV3Math.get_sqrt_ratio_at_tick(limit_tick), UniswapV3Math.MIN_SQRT_RATIO + 1)
        limit_tick = min(tick + 1 + tolerance, UniswapV3Math.MAX_TICK)
        return min(UniswapV3Math.get_sqrt_ratio_at_tick(limit_tick), UniswapV3Math.MAX_SQRT_RATIO - 1)

    def _pays_token0(self, token: str) -> bool:
        if token == self.role.asset:
            return self.role.asset_is_token0
        if token == self.role.paired:
            return not self.role.asset_is_token0
        raise InvalidSwapCallback(f"Token {token} is neither asset nor paired token")

    def perform_swap(self, sell_token: str, sell_amount: int, liquidation: bool = False) -> Tuple[int, int]:
        """
        Sell exactly `sell_amount` of `sell_token` to the pool.

        Returns:
            Tuple of (amount_paid, amount_received)
        """
        if sell_amount == 0:
            return 0, 0

        sell_token = Web3.to_checksum_address(sell_token)
        if sell_token not in (self.role.asset, self.role.paired):
            raise ValueError(f"Cannot sell {sell_token}")

        zero_for_one = self._pays_token0(sell_token)
        limit = self.price_limit(zero_for_one, liquidation)
        intent = SwapIntent(token_to_pay=sell_token, amount_to_pay=sell_amount)

        self._pending = intent
        try:
            amount0, amount1 = self.pool.swap(
                self, self.address, zero_for_one, sell_amount, limit, intent.encode()
            )
        finally:
            pending, self._pending = self._pending, None
        if pending is not None:
            raise SettlementError(f"Pool {self.pool.address} returned without requesting payment")

        received = amount1 if zero_for_one else amount0
        logger.info(
            f"Swapped {sell_amount} of {sell_token} for {received} "
            f"({'token0->token1' if zero_for_one else 'token1->token0'})"
        )
        return sell_amount, max(received, 0)

    def swap_callback(self, caller: str, amount0_delta: int, amount1_delta: int, data: bytes) -> None:
        if not same_address(caller, self.pool.address):
            raise Unauthorized(f"Swap callback from {caller}, expected pool {self.pool.address}")

        try:
            intent = SwapIntent.decode(data)
        except DecodingError as e:
            raise InvalidSwapCallback(f"Malformed swap payload: {e}") from e

        pays_token0 = self._pays_token0(intent.token_to_pay)
        delta = amount0_delta if pays_token0 else amount1_delta
        if delta >= 0:
            raise InvalidSwapCallback(f"Pool is not requesting payment (delta {delta})")
        if -delta != intent.amount_to_pay:
            raise InvalidSwapCallback(
                f"Pool requests {-delta}, payload says {intent.amount_to_pay}"
            )
        if self._pending is None or intent != self._pending:
            raise InvalidSwapCallback("Payload does not match the swap in progress")

        self._pending = None
        token = self.asset if intent.token_to_pay == self.role.asset else self.paired
        token.transfer(self.address, self.pool.address, intent.amount_to_pay)
        logger.debug(f"Paid {intent.amount_to_pay} of {intent.token_to_pay} to {self.pool.address}")
