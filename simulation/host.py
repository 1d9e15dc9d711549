"""
Minimal tokenized host vault around an LpVaultStrategy.

Issues shares for deposits, serves withdrawals from idle asset (freeing the
shortfall from the strategy) and books profit or loss on report. Reported
profit unlocks linearly over `profit_max_unlock_time`.
"""
import logging
from collections import defaultdict
from typing import Callable, Dict, Tuple

from web3 import Web3

from simulation.token import InsufficientBalance, SimulatedToken
from vault.strategy import LpVaultStrategy
from vault.utils.math import FixedPointPriceMath

logger = logging.getLogger(__name__)


class HostVault:
    """Share accounting for depositors of one strategy."""

    def __init__(
        self,
        strategy: LpVaultStrategy,
        asset: SimulatedToken,
        clock: Callable[[], float],
        profit_max_unlock_time: int = 10 * 24 * 3600,
    ):
        self.strategy = strategy
        self.asset = asset
        self.clock = clock
        self.profit_max_unlock_time = profit_max_unlock_time
        self.total_assets = 0
        self.total_shares = 0
        self._shares: Dict[str, int] = defaultdict(int)
        self._locked_profit = 0
        self._unlock_start = 0

    def shares_of(self, account: str) -> int:
        return self._shares[Web3.to_checksum_address(account)]

    def locked_profit(self) -> int:
        if self._locked_profit == 0 or self.profit_max_unlock_time == 0:
            return 0
        elapsed = int(self.clock()) - self._unlock_start
        if elapsed >= self.profit_max_unlock_time:
            return 0
        return FixedPointPriceMath.mul_div(
            self._locked_profit, self.profit_max_unlock_time - elapsed, self.profit_max_unlock_time
        )

    def unlocked_assets(self) -> int:
        return self.total_assets - self.locked_profit()

    def convert_to_assets(self, shares: int) -> int:
        if self.total_shares == 0:
            return shares
        return FixedPointPriceMath.mul_div(shares, self.unlocked_assets(), self.total_shares)

    def deposit(self, depositor: str, amount: int) -> int:
        limit = self.strategy.available_deposit_limit(self.total_assets)
        if amount > limit:
            raise ValueError(f"Deposit of {amount} exceeds limit {limit}")
        if amount == 0:
            raise ValueError("Deposit of zero")

        unlocked = self.unlocked_assets()
        if self.total_shares == 0 or unlocked == 0:
            shares = amount
        else:
            shares = FixedPointPriceMath.mul_div(amount, self.total_shares, unlocked)

        self.asset.transfer(depositor, self.strategy.address, amount)
        self.strategy.deploy_funds(amount)
        self._shares[Web3.to_checksum_address(depositor)] += shares
        self.total_shares += shares
        self.total_assets += amount
        logger.info(f"{depositor} deposited {amount} for {shares} shares")
        return shares

    def redeem(self, owner: str, shares: int) -> int:
        """Burn `shares` and pay out their asset value, freeing funds as needed."""
        owner = Web3.to_checksum_address(owner)
        if self._shares[owner] < shares:
            raise InsufficientBalance(f"{owner} holds {self._shares[owner]} shares, not {shares}")

        assets = self.convert_to_assets(shares)
        idle = self.asset.balance_of(self.strategy.address)
        if idle < assets:
            self.strategy.free_funds(assets - idle)
            idle = self.asset.balance_of(self.strategy.address)
        paid = min(assets, idle)

        self.asset.transfer(self.strategy.address, owner, paid)
        self._shares[owner] -= shares
        self.total_shares -= shares
        self.total_assets -= min(assets, self.total_assets)
        if paid < assets:
            logger.warning(f"Redeem of {shares} shares realized {paid} of {assets}")
        return paid

    def report(self) -> Tuple[int, int]:
        """Returns (profit, loss) since the previous report."""
        new_total = self.strategy.harvest_and_report()
        profit, loss = 0, 0
        if new_total > self.total_assets:
            profit = new_total - self.total_assets
            self._locked_profit = self.locked_profit() + profit
            self._unlock_start = int(self.clock())
        else:
            loss = self.total_assets - new_total
            self._locked_profit = max(self.locked_profit() - loss, 0)
            self._unlock_start = int(self.clock())

        self.total_assets = new_total
        logger.info(f"Report: profit {profit}, loss {loss}, total assets {new_total}")
        return profit, loss
