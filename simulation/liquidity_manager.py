"""
Proportional-share liquidity manager.

Holds both pool tokens and issues shares pro rata to its holdings, the way
vault-style managers (Gamma, Ichi, Arrakis) account for deposits. Range
selection is out of scope: getPositions reports a static set of ranges.
"""
import logging
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

from web3 import Web3

from protocol import LiquidityManager, LpRange
from simulation.pool import SimulatedPool
from simulation.token import InsufficientAllowance, InsufficientBalance, SimulatedToken
from vault.utils.math import FixedPointPriceMath

logger = logging.getLogger(__name__)

FULL_RANGE = LpRange(tick_lower=-887220, tick_upper=887220, weight=100)


class SimulatedLiquidityManager(LiquidityManager):
    """Share accounting over the manager's token0/token1 balances."""

    def __init__(
        self,
        address: str,
        pool: SimulatedPool,
        token0: SimulatedToken,
        token1: SimulatedToken,
        ranges: Optional[List[LpRange]] = None,
    ):
        self.address = Web3.to_checksum_address(address)
        self._pool = pool
        self._token0 = token0
        self._token1 = token1
        self._ranges = ranges if ranges is not None else [FULL_RANGE]
        self._balances: Dict[str, int] = defaultdict(int)
        self._total_supply = 0

    @property
    def token0(self) -> str:
        return self._token0.address

    @property
    def token1(self) -> str:
        return self._token1.address

    @property
    def pool(self) -> str:
        return self._pool.address

    def balance_of(self, account: str) -> int:
        return self._balances[Web3.to_checksum_address(account)]

    def total_supply(self) -> int:
        return self._total_supply

    def get_total_amounts(self) -> Tuple[int, int]:
        return self._token0.balance_of(self.address), self._token1.balance_of(self.address)

    def get_positions(self) -> List[LpRange]:
        return list(self._ranges)

    def accrue_fees(self, amount0: int, amount1: int) -> None:
        """Credit trading fees to the position (raises every share's value)."""
        self._token0.mint(self.address, amount0)
        self._token1.mint(self.address, amount1)

    def _check_pull(self, token: SimulatedToken, owner: str, amount: int) -> None:
        if token.allowance(owner, self.address) < amount:
            raise InsufficientAllowance(f"{token.symbol}: {owner} approved less than {amount}")
        if token.balance_of(owner) < amount:
            raise InsufficientBalance(f"{token.symbol}: {owner} holds less than {amount}")

    def deposit(
        self,
        sender: str,
        amount0_desired: int,
        amount1_desired: int,
        amount0_min: int,
        amount1_min: int,
        to: str,
    ) -> Tuple[int, int, int]:
        if amount0_desired == 0 and amount1_desired == 0:
            raise ValueError("Deposit amounts are zero")

        total0, total1 = self.get_total_amounts()
        supply = self._total_supply

        if supply == 0:
            # first depositor: shares = deposit value in token1
            sqrt_price_x96 = self._pool.slot0().sqrt_price_x96
            shares = FixedPointPriceMath.token0_to_token1(amount0_desired, sqrt_price_x96) + amount1_desired
            used0, used1 = amount0_desired, amount1_desired
        else:
            if total0 == 0 and total1 == 0:
                raise ValueError("Manager has shares outstanding but no holdings")
            candidates = []
            if total0 > 0:
                candidates.append(FixedPointPriceMath.mul_div(amount0_desired, supply, total0))
            if total1 > 0:
                candidates.append(FixedPointPriceMath.mul_div(amount1_desired, supply, total1))
            shares = min(candidates)
            used0 = FixedPointPriceMath.mul_div_rounding_up(shares, total0, supply)
            used1 = FixedPointPriceMath.mul_div_rounding_up(shares, total1, supply)

        if shares == 0:
            raise ValueError("Deposit too small for a share")
        if used0 < amount0_min or used1 < amount1_min:
            raise ValueError(f"Slippage: used ({used0}, {used1}) below minimum ({amount0_min}, {amount1_min})")

        self._check_pull(self._token0, sender, used0)
        self._check_pull(self._token1, sender, used1)
        self._token0.transfer_from(self.address, sender, self.address, used0)
        self._token1.transfer_from(self.address, sender, self.address, used1)

        self._balances[Web3.to_checksum_address(to)] += shares
        self._total_supply += shares
        logger.debug(f"Minted {shares} shares to {to} for ({used0}, {used1})")
        return shares, used0, used1

    def withdraw(
        self,
        sender: str,
        shares: int,
        amount0_min: int,
        amount1_min: int,
        to: str,
    ) -> Tuple[int, int]:
        sender = Web3.to_checksum_address(sender)
        if shares == 0:
            raise ValueError("Withdraw of zero shares")
        if self._balances[sender] < shares:
            raise InsufficientBalance(f"{sender} holds {self._balances[sender]} shares, not {shares}")

        total0, total1 = self.get_total_amounts()
        amount0 = FixedPointPriceMath.mul_div(shares, total0, self._total_supply)
        amount1 = FixedPointPriceMath.mul_div(shares, total1, self._total_supply)
        if amount0 < amount0_min or amount1 < amount1_min:
            raise ValueError(f"Slippage: ({amount0}, {amount1}) below minimum ({amount0_min}, {amount1_min})")

        self._balances[sender] -= shares
        self._total_supply -= shares
        self._token0.transfer(self.address, to, amount0)
        self._token1.transfer(self.address, to, amount1)
        logger.debug(f"Burned {shares} shares of {sender} for ({amount0}, {amount1})")
        return amount0, amount1
