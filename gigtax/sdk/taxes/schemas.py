"""Pydantic schemas for tax rules validation.

These schemas validate the tax-rules/*.yaml files and provide typed access
to brackets, standard deductions, jurisdiction overlays, and self-employment
tax parameters. Bracket invariants are checked here so a malformed table
fails when it is loaded, not when a number is computed from it.
"""

from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..schemas import FILING_STATUSES, FilingStatus


class InvalidBracketTableError(ValueError):
    """Raised when a bracket list violates the sorted/terminated invariant."""
    pass


class TaxBracket(BaseModel):
    """Single tax bracket entry."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    up_to: Optional[float] = Field(default=None, ge=0, description="Inclusive upper bound (None for top bracket)")
    rate: float = Field(..., ge=0, le=1, description="Marginal rate as decimal")


def check_bracket_table(brackets: List[TaxBracket]) -> None:
    """Verify a bracket list is sorted, terminated, and has non-decreasing rates.

    Raises:
        InvalidBracketTableError: describing the first violation found
    """
    if not brackets:
        raise InvalidBracketTableError("Bracket table is empty")

    if brackets[-1].up_to is not None:
        raise InvalidBracketTableError(
            f"Last bracket must be unbounded (up_to: null), got up_to={brackets[-1].up_to}"
        )

    previous_limit = 0.0
    previous_rate = 0.0
    for index, bracket in enumerate(brackets):
        if bracket.up_to is None and index != len(brackets) - 1:
            raise InvalidBracketTableError(f"Bracket {index} is unbounded but is not the last bracket")
        if bracket.up_to is not None:
            if bracket.up_to <= previous_limit and index > 0:
                raise InvalidBracketTableError(
                    f"Bracket {index} up_to={bracket.up_to} is not above previous bound {previous_limit}"
                )
            previous_limit = bracket.up_to
        if bracket.rate < previous_rate:
            raise InvalidBracketTableError(
                f"Bracket {index} rate {bracket.rate} is lower than previous rate {previous_rate}"
            )
        previous_rate = bracket.rate


def _check_status_table(table: Dict[str, List[TaxBracket]]) -> Dict[str, List[TaxBracket]]:
    missing = [status for status in FILING_STATUSES if status not in table]
    if missing:
        raise ValueError(f"Missing bracket tables for filing status: {', '.join(missing)}")
    for status, brackets in table.items():
        try:
            check_bracket_table(brackets)
        except InvalidBracketTableError as e:
            raise ValueError(f"{status}: {e}") from e
    return table


# =============================================================================
# Jurisdiction overlays
# =============================================================================


class SurtaxAboveThreshold(BaseModel):
    """Extra state-level rate on taxable income above a fixed threshold."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["surtax_above_threshold"]
    threshold: float = Field(..., ge=0)
    extra_rate: float = Field(..., ge=0, le=1)


class ResidentSubBrackets(BaseModel):
    """Local bracket tax for residents of a locality (e.g. a city)."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["resident_sub_brackets"]
    locality: str
    brackets: Dict[FilingStatus, List[TaxBracket]]

    @field_validator("brackets")
    @classmethod
    def check_brackets(cls, value):
        return _check_status_table(value)


class PercentageSurcharge(BaseModel):
    """Local surcharge computed as a percentage of the state tax."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["percentage_surcharge"]
    locality: str
    rate: float = Field(..., ge=0, le=1)


class FlatRegionalRate(BaseModel):
    """Flat local rate on state taxable income, keyed by county."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    kind: Literal["flat_regional_rate"]
    rates: Dict[str, float]

    @field_validator("rates")
    @classmethod
    def check_rates(cls, value):
        bad = [county for county, rate in value.items() if not 0 <= rate <= 1]
        if bad:
            raise ValueError(f"County rates must be between 0 and 1: {', '.join(bad)}")
        return value


Overlay = Annotated[
    Union[SurtaxAboveThreshold, ResidentSubBrackets, PercentageSurcharge, FlatRegionalRate],
    Field(discriminator="kind"),
]


# =============================================================================
# Jurisdictions and complete rules
# =============================================================================


class JurisdictionConfig(BaseModel):
    """Standard deductions, brackets, and overlays for one taxing jurisdiction."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str
    standard_deduction: Dict[FilingStatus, float]
    brackets: Dict[FilingStatus, List[TaxBracket]]
    overlays: List[Overlay] = Field(default_factory=list)

    @field_validator("standard_deduction")
    @classmethod
    def check_deductions(cls, value):
        missing = [status for status in FILING_STATUSES if status not in value]
        if missing:
            raise ValueError(f"Missing standard deduction for filing status: {', '.join(missing)}")
        if any(amount < 0 for amount in value.values()):
            raise ValueError("Standard deductions must be non-negative")
        return value

    @field_validator("brackets")
    @classmethod
    def check_brackets(cls, value):
        return _check_status_table(value)

    @property
    def has_income_tax(self) -> bool:
        """False when every bracket rate is zero and there are no overlays."""
        if self.overlays:
            return True
        return any(b.rate > 0 for table in self.brackets.values() for b in table)

    @property
    def requires_county(self) -> bool:
        return any(isinstance(o, FlatRegionalRate) for o in self.overlays)

    @property
    def counties(self) -> List[str]:
        for overlay in self.overlays:
            if isinstance(overlay, FlatRegionalRate):
                return sorted(overlay.rates)
        return []

    @property
    def localities(self) -> List[str]:
        """Localities that resident overlays apply to, in table order."""
        names = []
        for overlay in self.overlays:
            if isinstance(overlay, (ResidentSubBrackets, PercentageSurcharge)) and overlay.locality not in names:
                names.append(overlay.locality)
        return names


class SelfEmploymentRules(BaseModel):
    """Self-employment (Social Security + Medicare) tax rules."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    social_security_rate: float = Field(..., ge=0, le=1, description="Combined SS rate (12.4%)")
    social_security_wage_base: float = Field(..., gt=0, description="SS wage base (max taxable)")
    medicare_rate: float = Field(..., ge=0, le=1, description="Combined Medicare rate (2.9%)")
    additional_medicare_rate: float = Field(default=0.009, ge=0, le=1)
    additional_medicare_threshold: Dict[FilingStatus, float]
    earnings_multiplier: float = Field(default=0.9235, gt=0, le=1, description="Net earnings haircut")

    @field_validator("additional_medicare_threshold")
    @classmethod
    def check_thresholds(cls, value):
        missing = [status for status in FILING_STATUSES if status not in value]
        if missing:
            raise ValueError(f"Missing Additional Medicare threshold for: {', '.join(missing)}")
        return value


class TaxRules(BaseModel):
    """Complete tax rules for a year."""
    model_config = ConfigDict(extra="ignore", frozen=True)  # Allow YAML anchor holders and future keys

    year: int
    federal: JurisdictionConfig
    states: Dict[str, JurisdictionConfig]
    self_employment: SelfEmploymentRules
    mileage_rate: Optional[float] = Field(default=None, ge=0, description="IRS standard mileage rate per mile")

    @model_validator(mode="after")
    def check_state_codes(self) -> "TaxRules":
        bad = [code for code in self.states if len(code) != 2 or not code.isupper()]
        if bad:
            raise ValueError(f"State codes must be two uppercase letters: {', '.join(bad)}")
        return self
