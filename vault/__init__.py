"""
LP Vault Package

Values and rebalances a single-asset vault deployed into a
concentrated-liquidity manager.
"""
from vault.config import ConfigurationStore, VaultConfig
from vault.strategy import LpVaultStrategy
from vault.utils.math import FixedPointPriceMath, UniswapV3Math

__all__ = [
    "ConfigurationStore",
    "VaultConfig",
    "LpVaultStrategy",
    "FixedPointPriceMath",
    "UniswapV3Math",
]
