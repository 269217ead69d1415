#!/usr/bin/env python3
"""
Configuration schemas for a Behodler deployment.

Pydantic models validate every economic parameter before it reaches the
ledger components, so a bad configuration fails before any state changes.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from ..core.primitives import MILLI


class ArbiterType(str, Enum):
    """Available flash loan arbiter policies"""
    OPEN = "open"
    REJECTION = "rejection"
    CAPPED = "capped"


class ScarcityFeeConfig(BaseModel):
    """Transfer economics of the Scarcity index token"""
    transfer_fee_milli: int = Field(default=0, ge=0, le=MILLI, description="Fee routed to fee_destination, per mille")
    burn_fee_milli: int = Field(default=0, ge=0, le=MILLI, description="Amount burned on transfer, per mille")
    fee_destination: Optional[str] = Field(None, description="Account credited with transfer fees")

    @model_validator(mode="after")
    def validate_rates(self):
        """Fees must leave something for the recipient"""
        if self.transfer_fee_milli + self.burn_fee_milli >= MILLI:
            raise ValueError("transfer_fee_milli + burn_fee_milli must be below 1000")
        if self.transfer_fee_milli and not self.fee_destination:
            raise ValueError("fee_destination is required when transfer_fee_milli is non-zero")
        return self


class BehodlerConfig(BaseModel):
    """Bonding curve and swap parameters of the liquidity engine"""
    precision_bits: int = Field(default=64, ge=1, le=128, description="Index token scale is 2**precision_bits")
    swap_fee_milli: int = Field(default=25, ge=0, lt=MILLI, description="Swap input fee, per mille")

    @property
    def scale(self) -> int:
        return 1 << self.precision_bits


class DeploymentConfig(BaseModel):
    """Complete configuration for DeploymentFactory"""
    owner: str = Field(default="owner", description="Administrative authority for every component")
    behodler: BehodlerConfig = Field(default_factory=BehodlerConfig)
    scarcity: ScarcityFeeConfig = Field(default_factory=ScarcityFeeConfig)
    registry_count: int = Field(default=2, ge=1, description="Number of pair registries consulted in order")
    arbiter: ArbiterType = Field(default=ArbiterType.OPEN, description="Flash loan policy")
    arbiter_cap: Optional[int] = Field(None, ge=0, description="Maximum loan for the capped arbiter")

    @field_validator("owner")
    @classmethod
    def validate_owner(cls, v):
        if not v:
            raise ValueError("owner cannot be empty")
        return v

    @model_validator(mode="after")
    def validate_arbiter(self):
        if self.arbiter == ArbiterType.CAPPED and self.arbiter_cap is None:
            raise ValueError("arbiter_cap is required for the capped arbiter")
        return self
