#!/usr/bin/env python3
"""
Configuration for the Reserve Treasury engine

Module-level constants shared across the engine, plus the validated
TreasuryConfig schema used to construct a Treasury instance.
"""

from pydantic import BaseModel, Field, field_validator


# =============================================================================
# FIXED-POINT CONFIGURATION
# =============================================================================

# Unit scale of the managed token; all fixed-point values use this scale
SCALE = 10 ** 18

# Reserve units required per managed unit, at SCALE (1e-6 reserve per managed)
DEFAULT_BACKING_RATIO = 10 ** 12

# Payout percentages are whole percents; valid values are [0, PERCENT_DENOMINATOR)
PERCENT_DENOMINATOR = 100

# =============================================================================
# IDENTITIES
# =============================================================================

# Holder identity of the treasury inside every asset ledger
DEFAULT_TREASURY_ADDRESS = "treasury"


class TreasuryConfig(BaseModel):
    """Construction-time parameters of a Treasury instance"""
    scale: int = Field(default=SCALE, gt=0, description="Fixed-point unit scale")
    backing_ratio: int = Field(
        default=DEFAULT_BACKING_RATIO, gt=0,
        description="Reserve units backing one managed unit, at scale"
    )
    treasury_address: str = Field(
        default=DEFAULT_TREASURY_ADDRESS, min_length=1,
        description="Holder identity of the treasury in asset ledgers"
    )

    model_config = {"frozen": True}

    @field_validator('scale')
    @classmethod
    def validate_scale(cls, v):
        """Scale must be a power of ten so decimals stay meaningful"""
        probe = v
        while probe % 10 == 0:
            probe //= 10
        if probe != 1:
            raise ValueError("scale must be a power of ten")
        return v
