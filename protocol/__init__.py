"""
Package containing the shared models and external interfaces of the LP vault.

NOTE: Vault-specific logic is in vault
      In-memory implementations of the interfaces are in simulation
"""

from protocol.models import (
    Slot0,
    TokenRole,
    SwapIntent,
    PositionSnapshot,
    LpRange,
    TendAction,
    TendResult,
)
from protocol.interfaces import (
    ERC20,
    Pool,
    LiquidityManager,
    SwapCallbackReceiver,
)

__all__ = [
    # Models
    "Slot0",
    "TokenRole",
    "SwapIntent",
    "PositionSnapshot",
    "LpRange",
    "TendAction",
    "TendResult",
    # Interfaces
    "ERC20",
    "Pool",
    "LiquidityManager",
    "SwapCallbackReceiver",
]
