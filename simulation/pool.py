"""
Single-range concentrated-liquidity pool.

Liquidity is constant across the whole tick range, which is enough to move
price realistically under swaps while keeping the swap a single step. The
payment callback runs before anything is committed, so a callback that
raises leaves the pool untouched.
"""
import logging
from typing import Tuple

from web3 import Web3

from protocol import Pool, Slot0, SwapCallbackReceiver
from simulation.token import SimulatedToken
from vault.utils.math import FixedPointPriceMath, UniswapV3Math

logger = logging.getLogger(__name__)

FEE_DENOMINATOR = 1_000_000


class SimulatedPool(Pool):
    """Uniswap-V3-style pool with one liquidity range."""

    def __init__(
        self,
        address: str,
        token0: SimulatedToken,
        token1: SimulatedToken,
        fee: int,
        sqrt_price_x96: int,
        liquidity: int,
    ):
        if int(token0.address, 16) >= int(token1.address, 16):
            raise ValueError("token0 must sort before token1")
        if not UniswapV3Math.MIN_SQRT_RATIO <= sqrt_price_x96 < UniswapV3Math.MAX_SQRT_RATIO:
            raise ValueError(f"sqrt price {sqrt_price_x96} out of range")
        self.address = Web3.to_checksum_address(address)
        self._token0 = token0
        self._token1 = token1
        self._fee = fee
        self.sqrt_price_x96 = sqrt_price_x96
        self.liquidity = liquidity

    @property
    def token0(self) -> str:
        return self._token0.address

    @property
    def token1(self) -> str:
        return self._token1.address

    @property
    def fee(self) -> int:
        return self._fee

    def slot0(self) -> Slot0:
        return Slot0(
            sqrt_price_x96=self.sqrt_price_x96,
            tick=UniswapV3Math.get_tick_at_sqrt_ratio(self.sqrt_price_x96),
        )

    def set_sqrt_price_x96(self, sqrt_price_x96: int) -> None:
        """Move the price as an outside trader would."""
        if not UniswapV3Math.MIN_SQRT_RATIO <= sqrt_price_x96 < UniswapV3Math.MAX_SQRT_RATIO:
            raise ValueError(f"sqrt price {sqrt_price_x96} out of range")
        self.sqrt_price_x96 = sqrt_price_x96

    def quote(self, zero_for_one: bool, amount_in: int, sqrt_price_limit_x96: int) -> Tuple[int, int, int]:
        """
        Exact-input swap step.

        Returns:
            Tuple of (amount_in_consumed, amount_out, next_sqrt_price_x96)
        """
        sqrtP = self.sqrt_price_x96
        L = self.liquidity
        amount_in_less_fee = FixedPointPriceMath.mul_div(
            amount_in, FEE_DENOMINATOR - self._fee, FEE_DENOMINATOR
        )
        next_price = UniswapV3Math.get_next_sqrt_price_from_input(sqrtP, L, amount_in_less_fee, zero_for_one)

        crossed = next_price < sqrt_price_limit_x96 if zero_for_one else next_price > sqrt_price_limit_x96
        if crossed:
            next_price = sqrt_price_limit_x96
            if zero_for_one:
                net_in = UniswapV3Math.get_amount0_delta(next_price, sqrtP, L, True)
            else:
                net_in = UniswapV3Math.get_amount1_delta(sqrtP, next_price, L, True)
            amount_in = min(
                amount_in,
                FixedPointPriceMath.mul_div_rounding_up(net_in, FEE_DENOMINATOR, FEE_DENOMINATOR - self._fee),
            )

        if zero_for_one:
            amount_out = UniswapV3Math.get_amount1_delta(next_price, sqrtP, L, False)
        else:
            amount_out = UniswapV3Math.get_amount0_delta(sqrtP, next_price, L, False)
        return amount_in, amount_out, next_price

    def swap(
        self,
        sender: SwapCallbackReceiver,
        recipient: str,
        zero_for_one: bool,
        amount_specified: int,
        sqrt_price_limit_x96: int,
        data: bytes,
    ) -> Tuple[int, int]:
        if amount_specified <= 0:
            raise ValueError("AS")
        if zero_for_one:
            if not UniswapV3Math.MIN_SQRT_RATIO < sqrt_price_limit_x96 < self.sqrt_price_x96:
                raise ValueError("SPL")
        elif not self.sqrt_price_x96 < sqrt_price_limit_x96 < UniswapV3Math.MAX_SQRT_RATIO:
            raise ValueError("SPL")

        amount_in, amount_out, next_price = self.quote(zero_for_one, amount_specified, sqrt_price_limit_x96)
        token_in, token_out = (self._token0, self._token1) if zero_for_one else (self._token1, self._token0)
        if amount_out > token_out.balance_of(self.address):
            raise ValueError(f"Pool {self.address} cannot pay out {amount_out}")

        amount0, amount1 = (-amount_in, amount_out) if zero_for_one else (amount_out, -amount_in)

        balance_before = token_in.balance_of(self.address)
        sender.swap_callback(self.address, amount0, amount1, data)
        if token_in.balance_of(self.address) < balance_before + amount_in:
            raise ValueError("IIA")

        self.sqrt_price_x96 = next_price
        token_out.transfer(self.address, recipient, amount_out)
        logger.debug(
            f"Pool swap zero_for_one={zero_for_one}: in {amount_in}, out {amount_out}, price {next_price}"
        )
        return amount0, amount1
