"""
Mutable policy knobs of the vault and their management-only setters.
"""
import logging
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from web3 import Web3

from vault.errors import InvalidConfiguration, Unauthorized
from vault.utils.env import (
    DEFAULT_MIN_ASSET,
    DEFAULT_MIN_TEND_WAIT,
    DEFAULT_PAIRED_TOKEN_DISCOUNT_BPS,
    DEFAULT_SWAP_TICK_TOLERANCE,
    DEFAULT_TARGET_IDLE_BPS,
    DEFAULT_TARGET_IDLE_BUFFER_BPS,
)
from vault.utils.math import MAX_UINT256

logger = logging.getLogger(__name__)

MAX_BPS = 10_000


class VaultConfig(BaseModel):
    """Rebalancing policy. Validated on construction and on every assignment."""

    model_config = ConfigDict(validate_assignment=True)

    target_idle_bps: int = Field(
        DEFAULT_TARGET_IDLE_BPS, ge=0, le=MAX_BPS,
        description="Share of total assets kept idle",
    )
    target_idle_buffer_bps: int = Field(
        DEFAULT_TARGET_IDLE_BUFFER_BPS, ge=0, le=MAX_BPS,
        description="Dead-band around the idle target",
    )
    min_asset: int = Field(
        DEFAULT_MIN_ASSET, ge=0, le=MAX_UINT256,
        description="Smallest imbalance worth acting on",
    )
    max_swap_value: int = Field(
        MAX_UINT256, ge=0, le=MAX_UINT256,
        description="Largest single swap, in asset terms (max = uncapped)",
    )
    min_tend_wait: int = Field(
        DEFAULT_MIN_TEND_WAIT, ge=0, le=MAX_UINT256,
        description="Seconds between tends",
    )
    paired_token_discount_bps: int = Field(
        DEFAULT_PAIRED_TOKEN_DISCOUNT_BPS, ge=0, le=MAX_BPS,
        description="Haircut on idle paired token value",
    )
    deposit_limit: int = Field(
        MAX_UINT256, ge=0, le=MAX_UINT256,
        description="Cap on total assets accepted",
    )
    swap_tick_tolerance: int = Field(
        DEFAULT_SWAP_TICK_TOLERANCE, ge=1, le=887272,
        description="Ticks past the current tick a rebalancing swap may move price",
    )


class ConfigurationStore:
    """Holds the VaultConfig and lets only the management account change it."""

    def __init__(self, management: str, config: Optional[VaultConfig] = None):
        self.management = Web3.to_checksum_address(management)
        self.config = config if config is not None else VaultConfig()

    def require_management(self, caller: str) -> None:
        if Web3.to_checksum_address(caller) != self.management:
            raise Unauthorized(f"{caller} is not management")

    def _set(self, caller: str, field: str, value: Any) -> None:
        self.require_management(caller)
        try:
            setattr(self.config, field, value)
        except ValidationError as e:
            raise InvalidConfiguration(f"Invalid {field}={value}: {e.errors()[0]['msg']}") from e
        logger.info(f"Set {field} to {value}")

    def set_target_idle_bps(self, caller: str, value: int) -> None:
        self._set(caller, "target_idle_bps", value)

    def set_target_idle_buffer_bps(self, caller: str, value: int) -> None:
        self._set(caller, "target_idle_buffer_bps", value)

    def set_min_asset(self, caller: str, value: int) -> None:
        self._set(caller, "min_asset", value)

    def set_max_swap_value(self, caller: str, value: int) -> None:
        self._set(caller, "max_swap_value", value)

    def set_min_tend_wait(self, caller: str, value: int) -> None:
        self._set(caller, "min_tend_wait", value)

    def set_paired_token_discount_bps(self, caller: str, value: int) -> None:
        self._set(caller, "paired_token_discount_bps", value)

    def set_deposit_limit(self, caller: str, value: int) -> None:
        self._set(caller, "deposit_limit", value)

    def set_swap_tick_tolerance(self, caller: str, value: int) -> None:
        self._set(caller, "swap_tick_tolerance", value)
