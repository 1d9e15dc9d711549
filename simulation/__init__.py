"""
In-memory stand-ins for the vault's external collaborators.

Used to exercise the whole tend loop deterministically: tokens, a pool with
the synchronous payment callback, a share-issuing liquidity manager and a
minimal host vault.
"""
from simulation.clock import ManualClock
from simulation.host import HostVault
from simulation.liquidity_manager import SimulatedLiquidityManager
from simulation.pool import SimulatedPool
from simulation.token import InsufficientAllowance, InsufficientBalance, SimulatedToken

__all__ = [
    "ManualClock",
    "HostVault",
    "SimulatedLiquidityManager",
    "SimulatedPool",
    "SimulatedToken",
    "InsufficientAllowance",
    "InsufficientBalance",
]
