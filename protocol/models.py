"""
Shared data models for the LP vault.

These models describe values that cross the boundary between the vault core,
the external pool / liquidity manager and the host vault framework.
"""
from enum import Enum
from typing import Optional

from eth_abi import decode, encode
from pydantic import BaseModel, Field, model_validator
from web3 import Web3


class Slot0(BaseModel):
    """Instantaneous pool price."""
    sqrt_price_x96: int = Field(..., gt=0, description="sqrt(token1/token0) in Q64.96")
    tick: int = Field(..., description="Current tick")


class TokenRole(BaseModel):
    """Which of the pool's ordered tokens is the vault asset."""
    asset: str = Field(..., description="Checksummed asset token address")
    paired: str = Field(..., description="Checksummed paired token address")
    asset_is_token0: bool = Field(..., description="True when the asset is the pool's token0")

    @classmethod
    def from_pool(cls, asset: str, token0: str, token1: str) -> "TokenRole":
        asset = Web3.to_checksum_address(asset)
        token0 = Web3.to_checksum_address(token0)
        token1 = Web3.to_checksum_address(token1)
        if asset == token0:
            return cls(asset=asset, paired=token1, asset_is_token0=True)
        if asset == token1:
            return cls(asset=asset, paired=token0, asset_is_token0=False)
        raise ValueError(f"Asset {asset} is not one of the pool tokens ({token0}, {token1})")

    def to_token0_token1(self, asset_amount: int, paired_amount: int):
        """Order an (asset, paired) pair as (token0, token1)."""
        if self.asset_is_token0:
            return asset_amount, paired_amount
        return paired_amount, asset_amount

    def to_asset_paired(self, amount0: int, amount1: int):
        """Order a (token0, token1) pair as (asset, paired)."""
        if self.asset_is_token0:
            return amount0, amount1
        return amount1, amount0


class SwapIntent(BaseModel):
    """
    What the vault owes the pool mid-swap.

    Created right before a swap and consumed once by the payment callback.
    Travels through the pool as ABI-encoded (address, uint256).
    """
    token_to_pay: str = Field(..., description="Token the vault pays with")
    amount_to_pay: int = Field(..., ge=0, description="Exact amount owed")

    def encode(self) -> bytes:
        return encode(["address", "uint256"], [Web3.to_checksum_address(self.token_to_pay), self.amount_to_pay])

    @classmethod
    def decode(cls, data: bytes) -> "SwapIntent":
        token, amount = decode(["address", "uint256"], data)
        return cls(token_to_pay=Web3.to_checksum_address(token), amount_to_pay=amount)


class PositionSnapshot(BaseModel):
    """One fresh read of everything needed to value the vault."""
    sqrt_price_x96: int = Field(..., gt=0, description="Pool sqrtPriceX96")
    idle_asset: int = Field(0, ge=0, description="Asset held by the vault")
    idle_paired: int = Field(0, ge=0, description="Paired token held by the vault")
    lp_shares: int = Field(0, ge=0, description="Liquidity manager shares held by the vault")
    lp_total_supply: int = Field(0, ge=0, description="Outstanding liquidity manager shares")
    lp_total0: int = Field(0, ge=0, description="Liquidity manager token0 holdings")
    lp_total1: int = Field(0, ge=0, description="Liquidity manager token1 holdings")
    pool_fee: int = Field(0, ge=0, le=1_000_000, description="Pool fee in hundredths of a bip")
    asset_is_token0: bool = Field(..., description="Token role")

    @model_validator(mode='after')
    def validate_shares(self) -> 'PositionSnapshot':
        """Held shares can only exceed supply on inconsistent reads."""
        if self.lp_total_supply and self.lp_shares > self.lp_total_supply:
            raise ValueError("lp_shares exceeds lp_total_supply")
        return self


class LpRange(BaseModel):
    """One range of the liquidity manager's position."""
    tick_lower: int = Field(..., description="Lower tick bound")
    tick_upper: int = Field(..., description="Upper tick bound")
    weight: int = Field(..., ge=0, description="Relative weight of this range")

    @model_validator(mode='after')
    def validate_tick_range(self) -> 'LpRange':
        """Ensure tick_upper > tick_lower."""
        if self.tick_upper <= self.tick_lower:
            raise ValueError("tick_upper must be greater than tick_lower")
        return self


class TendAction(str, Enum):
    """Outcome of one rebalancing pass."""
    THROTTLED = "throttled"
    IDLE = "idle"
    DEPLOYED = "deployed"
    FREED = "freed"
    REBALANCED = "rebalanced"
    SKIPPED_EMPTY_LP = "skipped_empty_lp"
    SKIPPED_ZERO_SWAP = "skipped_zero_swap"


class TendResult(BaseModel):
    """What a tend (or forced free) did."""
    action: TendAction = Field(..., description="Branch taken")
    swapped_in: int = Field(0, ge=0, description="Amount sold to the pool")
    swapped_out: int = Field(0, ge=0, description="Amount received from the pool")
    shares_minted: int = Field(0, ge=0, description="LP shares received")
    shares_burned: int = Field(0, ge=0, description="LP shares redeemed")
    timestamp: Optional[int] = Field(None, description="Clock time of the pass")
