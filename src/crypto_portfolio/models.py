from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _WireModel(BaseModel):
    """Accepts both the snake_case attribute names and the camelCase wire names."""

    model_config = ConfigDict(populate_by_name=True)


class Token(_WireModel):
    """A member of a grouped holding. Priced by the group's rules."""

    symbol: Optional[str] = None
    contract: Optional[str] = None
    chain: Optional[str] = None
    amount: float = Field(default=0.0)

    @property
    def has_contract(self) -> bool:
        return bool(self.contract and self.chain)


class SingleHolding(_WireModel):
    kind: Literal["single"] = "single"

    symbol: Optional[str] = None
    id: Optional[str] = None
    contract: Optional[str] = None
    chain: Optional[str] = None
    amount: float = Field(default=0.0)
    stablecoin: bool = Field(default=False)
    color: Optional[str] = None

    @property
    def has_contract(self) -> bool:
        return bool(self.contract and self.chain)


class GroupedHolding(_WireModel):
    """A named collection of tokens reported as one aggregate asset."""

    kind: Literal["group"] = "group"

    group: str
    tokens: list[Token] = Field(default_factory=list)
    stablecoin: bool = Field(default=False)
    color: Optional[str] = None


Holding = Annotated[Union[SingleHolding, GroupedHolding], Field(discriminator="kind")]


class HistoryEntry(_WireModel):
    month: str
    amount: float


class Finances(_WireModel):
    """The finances.yaml document."""

    currency: str = Field(default="USD")
    goal: Optional[float] = None
    current_invested_money: Optional[float] = Field(default=None, alias="currentInvestedMoney")
    holdings: list[Holding] = Field(default_factory=list)
    history: list[HistoryEntry] = Field(default_factory=list)


class Asset(_WireModel):
    symbol: str
    amount: float
    price: float
    value: float
    percentage: float = Field(default=0.0)
    is_group: bool = Field(default=False, alias="isGroup")
    color: Optional[str] = None


class PortfolioReport(_WireModel):
    total_value: float = Field(alias="totalValue")
    assets: list[Asset] = Field(default_factory=list)
    last_updated: datetime = Field(alias="lastUpdated")
    cached: bool = Field(default=False)


class SnapshotAsset(_WireModel):
    symbol: str
    amount: float
    price: float
    value: float
    percentage: float
    # Only written when true.
    is_group: Optional[bool] = Field(default=None, alias="isGroup")


class Snapshot(_WireModel):
    captured_at: str = Field(alias="capturedAt")
    is_first: Optional[bool] = Field(default=None, alias="isFirst")
    total_value: float = Field(alias="totalValue")
    assets: list[SnapshotAsset] = Field(default_factory=list)

    @field_validator("captured_at", mode="before")
    @classmethod
    def _timestamp_to_str(cls, value):
        # YAML loaders turn unquoted ISO timestamps into datetimes.
        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")
        return value


class ErrorResponse(BaseModel):
    error: str
