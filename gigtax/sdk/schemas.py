"""Pydantic schemas for the tax engine's inputs and outputs.

All schemas use extra='forbid' so typos in profile files cause clear errors
rather than silent ignoring, and frozen=True because the engine never
mutates a value it was handed; deriving a new YTD total returns a new model.
"""

from typing import FrozenSet, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

FilingStatus = Literal["single", "married_joint", "married_separate", "head"]

FILING_STATUSES: tuple = ("single", "married_joint", "married_separate", "head")

DeductionMethod = Literal["standard", "itemized"]


class TaxProfile(BaseModel):
    """Taxpayer settings the engine reads (never writes)."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    filing_status: FilingStatus = Field(..., description="Federal/state filing status")
    state: str = Field(..., description="Two-letter state of residence")
    county: Optional[str] = Field(default=None, description="County, for states with county tax")
    local_residencies: FrozenSet[str] = Field(
        default_factory=frozenset,
        description="Localities the taxpayer resides in (e.g. 'nyc', 'yonkers')",
    )
    deduction_method: DeductionMethod = Field(default="standard")
    itemized_amount: Optional[float] = Field(default=None, ge=0, description="Total itemized deductions")
    se_income: bool = Field(default=True, description="Has self-employment income")

    @field_validator("state")
    @classmethod
    def normalize_state(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("local_residencies")
    @classmethod
    def normalize_localities(cls, value):
        return frozenset(v.strip().lower() for v in value)


class YTDData(BaseModel):
    """Year-to-date totals that a new transaction is layered onto."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    gross_income: float = Field(default=0, ge=0, description="Total gross income")
    adjustments: float = Field(default=0, ge=0, description="Above-the-line deductions")
    net_se: float = Field(default=0, description="Net self-employment income (Schedule C); may be a loss")


class TransactionData(BaseModel):
    """One income event: gross received and the expenses tied to it."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    gross: float = Field(..., ge=0)
    expenses: float = Field(default=0, ge=0)

    @property
    def net(self) -> float:
        return self.gross - self.expenses


class TaxBreakdown(BaseModel):
    """Tax split by component."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    federal: float = 0
    state: float = 0
    local: float = 0
    se_tax: float = 0

    @property
    def total(self) -> float:
        return self.federal + self.state + self.local + self.se_tax


class StateLocalTax(BaseModel):
    """State tax plus any local overlay tax for one jurisdiction."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    state: float = 0
    local: float = 0


class TaxResult(BaseModel):
    """Total liability for a set of YTD figures."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    federal: float
    state: float
    local: float
    se_tax: float
    total: float
    effective_rate: float = Field(..., description="total / gross income (0 when no income)")

    @property
    def breakdown(self) -> TaxBreakdown:
        return TaxBreakdown(federal=self.federal, state=self.state, local=self.local, se_tax=self.se_tax)


class MarginalResult(BaseModel):
    """Set-aside for one transaction. The breakdown holds deltas, not totals."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    amount: float = Field(..., description="Dollar amount to set aside")
    rate: float = Field(..., description="amount / transaction net")
    breakdown: TaxBreakdown

    @classmethod
    def zero(cls) -> "MarginalResult":
        return cls(amount=0, rate=0, breakdown=TaxBreakdown())


class TransactionSummary(BaseModel):
    """What a payment leaves after expenses and the tax set-aside."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    gross: float
    expenses: float
    net: float = Field(..., description="gross - expenses, before tax")
    set_aside: float
    take_home: float = Field(..., description="net - set_aside")
