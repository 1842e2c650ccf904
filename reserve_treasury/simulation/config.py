#!/usr/bin/env python3
"""
Configuration schemas for treasury simulations.

Pydantic schemas describing a simulated world: the reserve asset, the
redeemable basket, the managed token, token holders and redemption behaviour.
Amounts are raw integer base units of the asset they belong to.
"""

from pathlib import Path
from typing import List, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator

from ..config import DEFAULT_BACKING_RATIO, DEFAULT_TREASURY_ADDRESS


class AssetSpec(BaseModel):
    """A reserve or basket asset and the treasury's opening balance of it"""
    symbol: str = Field(min_length=1, description="Ticker, also used as ledger address")
    decimals: int = Field(ge=0, le=36, default=18, description="Native decimal precision")
    treasury_balance: int = Field(ge=0, default=0, description="Opening treasury balance (base units)")


class HolderSpec(BaseModel):
    """A managed-token holder minted into existence during setup"""
    name: str = Field(min_length=1, description="Holder address")
    mint_amount: int = Field(ge=0, description="Managed tokens minted at setup (base units)")
    approve_treasury: bool = Field(default=True, description="Grant the treasury burn allowance")


def _default_reserve() -> AssetSpec:
    return AssetSpec(symbol="RSV", decimals=18, treasury_balance=2 * 10 ** 18)


def _default_basket() -> List[AssetSpec]:
    return [
        AssetSpec(symbol="USDC", decimals=6, treasury_balance=1_500_000 * 10 ** 6),
        AssetSpec(symbol="WETH", decimals=18, treasury_balance=400 * 10 ** 18),
    ]


def _default_holders() -> List[HolderSpec]:
    return [
        HolderSpec(name="alice", mint_amount=250_000 * 10 ** 18),
        HolderSpec(name="bob", mint_amount=100_000 * 10 ** 18),
        HolderSpec(name="carol", mint_amount=40_000 * 10 ** 18),
    ]


class SimulationConfig(BaseModel):
    """Main simulation configuration"""
    # Basic parameters
    name: str = Field(default="baseline", description="Simulation name")
    description: Optional[str] = Field(None, description="Simulation description")
    random_seed: Optional[int] = Field(None, description="Random seed for Monte Carlo runs")

    # Treasury parameters
    backing_ratio: int = Field(gt=0, default=DEFAULT_BACKING_RATIO,
                               description="Reserve units per managed unit at 1e18 scale")
    treasury_address: str = Field(default=DEFAULT_TREASURY_ADDRESS, min_length=1)
    payout_percent: int = Field(ge=0, lt=100, default=50,
                                description="Payout percent applied when redemption is activated")

    # Managed token
    managed_symbol: str = Field(default="RUSD", min_length=1)
    managed_decimals: int = Field(ge=0, le=36, default=18)

    # Assets
    reserve: AssetSpec = Field(default_factory=_default_reserve)
    basket: List[AssetSpec] = Field(default_factory=_default_basket)

    # Participants
    owner: str = Field(default="owner", min_length=1)
    minter: str = Field(default="minter", min_length=1)
    sender: str = Field(default="sender", min_length=1)
    holders: List[HolderSpec] = Field(default_factory=_default_holders)

    # Redemption behaviour: share of each holder's opening balance redeemed per round
    redemption_fractions: List[float] = Field(default_factory=lambda: [0.25, 0.25, 0.5])

    @field_validator('redemption_fractions')
    @classmethod
    def validate_fractions(cls, v):
        """Each round redeems a positive share of at most the whole balance"""
        for fraction in v:
            if not 0 < fraction <= 1:
                raise ValueError("redemption fractions must be in (0, 1]")
        return v

    @model_validator(mode='after')
    def validate_unique_symbols(self):
        """Every ledger needs its own symbol"""
        symbols = [self.managed_symbol, self.reserve.symbol] + [a.symbol for a in self.basket]
        duplicates = sorted({s for s in symbols if symbols.count(s) > 1})
        if duplicates:
            raise ValueError(f"asset symbols must be unique, duplicated: {duplicates}")

        names = [h.name for h in self.holders]
        if len(set(names)) != len(names):
            raise ValueError("holder names must be unique")
        return self

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "SimulationConfig":
        """Load and validate a configuration file"""
        return cls.model_validate_json(Path(path).read_text())
