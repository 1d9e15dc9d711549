"""
Interfaces of the external collaborators the vault core consumes.

Accounts are checksummed addresses. State-changing calls take the calling
account explicitly (it plays the role of msg.sender). Implementations raise
on failure and must leave their state untouched when they do.
"""
from abc import ABC, abstractmethod
from typing import List, Tuple

from protocol.models import LpRange, Slot0


class ERC20(ABC):
    """Fungible token ledger."""

    address: str

    @property
    @abstractmethod
    def decimals(self) -> int:
        pass

    @abstractmethod
    def balance_of(self, account: str) -> int:
        pass

    @abstractmethod
    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        pass

    @abstractmethod
    def approve(self, owner: str, spender: str, amount: int) -> None:
        pass

    @abstractmethod
    def allowance(self, owner: str, spender: str) -> int:
        pass

    @abstractmethod
    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> None:
        pass


class SwapCallbackReceiver(ABC):
    """Anything that can initiate a pool swap and pay for it."""

    address: str

    @abstractmethod
    def swap_callback(self, caller: str, amount0_delta: int, amount1_delta: int, data: bytes) -> None:
        """
        Called by the pool exactly once during `Pool.swap`, before the swap commits.

        Deltas are signed from the initiator's side: negative means the
        initiator owes the pool that amount, positive means the pool delivers.
        """
        pass


class Pool(ABC):
    """Concentrated-liquidity AMM pool."""

    address: str

    @property
    @abstractmethod
    def token0(self) -> str:
        pass

    @property
    @abstractmethod
    def token1(self) -> str:
        pass

    @property
    @abstractmethod
    def fee(self) -> int:
        """Swap fee in hundredths of a bip (3000 = 0.30%)."""
        pass

    @abstractmethod
    def slot0(self) -> Slot0:
        pass

    @abstractmethod
    def swap(
        self,
        sender: SwapCallbackReceiver,
        recipient: str,
        zero_for_one: bool,
        amount_specified: int,
        sqrt_price_limit_x96: int,
        data: bytes,
    ) -> Tuple[int, int]:
        """
        Swap against the pool. Positive `amount_specified` is exact input.

        Returns the (amount0, amount1) deltas with the same sign convention
        as the callback.
        """
        pass


class LiquidityManager(ABC):
    """Share-issuing manager of a concentrated-liquidity position."""

    address: str

    @property
    @abstractmethod
    def token0(self) -> str:
        pass

    @property
    @abstractmethod
    def token1(self) -> str:
        pass

    @property
    @abstractmethod
    def pool(self) -> str:
        pass

    @abstractmethod
    def balance_of(self, account: str) -> int:
        pass

    @abstractmethod
    def total_supply(self) -> int:
        pass

    @abstractmethod
    def get_total_amounts(self) -> Tuple[int, int]:
        pass

    @abstractmethod
    def get_positions(self) -> List[LpRange]:
        pass

    @abstractmethod
    def deposit(
        self,
        sender: str,
        amount0_desired: int,
        amount1_desired: int,
        amount0_min: int,
        amount1_min: int,
        to: str,
    ) -> Tuple[int, int, int]:
        """Returns (shares, used0, used1)."""
        pass

    @abstractmethod
    def withdraw(
        self,
        sender: str,
        shares: int,
        amount0_min: int,
        amount1_min: int,
        to: str,
    ) -> Tuple[int, int]:
        """Returns (amount0, amount1)."""
        pass
