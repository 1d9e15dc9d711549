"""
In-memory ERC-20 ledger.
"""
import logging
from collections import defaultdict
from typing import Dict, Tuple

from web3 import Web3

from protocol import ERC20

logger = logging.getLogger(__name__)


class InsufficientBalance(ValueError):
    """Transfer or burn exceeds the account balance."""


class InsufficientAllowance(ValueError):
    """transfer_from exceeds the spender's allowance."""


class SimulatedToken(ERC20):
    """ERC-20 semantics over dicts. Failed calls change nothing."""

    def __init__(self, address: str, symbol: str, decimals: int = 18):
        self.address = Web3.to_checksum_address(address)
        self.symbol = symbol
        self._decimals = decimals
        self._balances: Dict[str, int] = defaultdict(int)
        self._allowances: Dict[Tuple[str, str], int] = defaultdict(int)
        self.total_supply = 0

    def __repr__(self) -> str:
        return f"SimulatedToken({self.symbol}, {self.address})"

    @property
    def decimals(self) -> int:
        return self._decimals

    def balance_of(self, account: str) -> int:
        return self._balances[Web3.to_checksum_address(account)]

    def mint(self, account: str, amount: int) -> None:
        self._balances[Web3.to_checksum_address(account)] += amount
        self.total_supply += amount

    def burn(self, account: str, amount: int) -> None:
        account = Web3.to_checksum_address(account)
        if self._balances[account] < amount:
            raise InsufficientBalance(f"{self.symbol}: burn {amount} exceeds balance of {account}")
        self._balances[account] -= amount
        self.total_supply -= amount

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        sender = Web3.to_checksum_address(sender)
        recipient = Web3.to_checksum_address(recipient)
        if amount < 0:
            raise ValueError(f"{self.symbol}: negative transfer")
        if self._balances[sender] < amount:
            raise InsufficientBalance(
                f"{self.symbol}: transfer {amount} exceeds balance {self._balances[sender]} of {sender}"
            )
        self._balances[sender] -= amount
        self._balances[recipient] += amount

    def approve(self, owner: str, spender: str, amount: int) -> None:
        key = (Web3.to_checksum_address(owner), Web3.to_checksum_address(spender))
        self._allowances[key] = amount

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances[(Web3.to_checksum_address(owner), Web3.to_checksum_address(spender))]

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: int) -> None:
        key = (Web3.to_checksum_address(owner), Web3.to_checksum_address(spender))
        if self._allowances[key] < amount:
            raise InsufficientAllowance(
                f"{self.symbol}: {spender} may move {self._allowances[key]} from {owner}, not {amount}"
            )
        self.transfer(owner, recipient, amount)
        self._allowances[key] -= amount
