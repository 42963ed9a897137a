"""State and local tax resolution.

Each state's quirks are carried as typed overlay descriptors in the tax
rules (see taxes/schemas.py). The resolver dispatches on the overlay's kind,
never on a state code, so supporting another state's local tax is a rules
file change.

Overlays run in two phases: state-level overlays (surtaxes) first, then
local overlays, so a surcharge computed from state tax sees the final state
figure.
"""

import logging
from typing import Callable, Dict, List, Tuple

from ..schemas import StateLocalTax, TaxProfile, YTDData
from .brackets import compute_bracket_tax, compute_taxable_income, get_deduction
from .schemas import (
    FlatRegionalRate,
    JurisdictionConfig,
    PercentageSurcharge,
    ResidentSubBrackets,
    SurtaxAboveThreshold,
    TaxRules,
)

logger = logging.getLogger(__name__)


class UnknownJurisdictionError(ValueError):
    """Raised when a state code has no table in the loaded tax rules."""

    def __init__(self, state: str, available: List[str]):
        self.state = state
        self.available = available
        super().__init__(f"No tax table for state '{state}' (available: {', '.join(available)})")


def get_jurisdiction(rules: TaxRules, state: str) -> JurisdictionConfig:
    """Look up a state's table, raising UnknownJurisdictionError if absent."""
    code = state.strip().upper()
    if code not in rules.states:
        raise UnknownJurisdictionError(code, sorted(rules.states))
    return rules.states[code]


# =============================================================================
# Overlay handlers
# =============================================================================
# Each handler returns (state_addition, local_addition).

OverlayHandler = Callable[..., Tuple[float, float]]


def _surtax_above_threshold(
    overlay: SurtaxAboveThreshold, profile: TaxProfile, taxable_income: float, state_tax: float
) -> Tuple[float, float]:
    if taxable_income <= overlay.threshold:
        return 0.0, 0.0
    return (taxable_income - overlay.threshold) * overlay.extra_rate, 0.0


def _resident_sub_brackets(
    overlay: ResidentSubBrackets, profile: TaxProfile, taxable_income: float, state_tax: float
) -> Tuple[float, float]:
    if overlay.locality not in profile.local_residencies:
        return 0.0, 0.0
    # Sub-jurisdiction uses the same taxable income as the state
    return 0.0, compute_bracket_tax(taxable_income, overlay.brackets[profile.filing_status])


def _percentage_surcharge(
    overlay: PercentageSurcharge, profile: TaxProfile, taxable_income: float, state_tax: float
) -> Tuple[float, float]:
    if overlay.locality not in profile.local_residencies:
        return 0.0, 0.0
    return 0.0, state_tax * overlay.rate


def _flat_regional_rate(
    overlay: FlatRegionalRate, profile: TaxProfile, taxable_income: float, state_tax: float
) -> Tuple[float, float]:
    if not profile.county:
        logger.warning(f"{profile.state}: no county on profile; county tax not included")
        return 0.0, 0.0
    rate = overlay.rates.get(profile.county)
    if rate is None:
        logger.warning(f"{profile.state}: unrecognized county '{profile.county}'; county tax not included")
        return 0.0, 0.0
    return 0.0, taxable_income * rate


OVERLAY_HANDLERS: Dict[str, OverlayHandler] = {
    "surtax_above_threshold": _surtax_above_threshold,
    "resident_sub_brackets": _resident_sub_brackets,
    "percentage_surcharge": _percentage_surcharge,
    "flat_regional_rate": _flat_regional_rate,
}

# Overlays that change the state figure; all others add to local tax
STATE_LEVEL_OVERLAYS = frozenset({"surtax_above_threshold"})


def compute_state_and_local_tax(ytd: YTDData, profile: TaxProfile, rules: TaxRules) -> StateLocalTax:
    """Calculate state income tax and local overlay tax for a profile.

    Missing or unrecognized local inputs (county, residency) contribute zero
    rather than raising; detecting them is the job of profile validation.

    Raises:
        UnknownJurisdictionError: If the profile's state has no table
    """
    jurisdiction = get_jurisdiction(rules, profile.state)

    if not jurisdiction.has_income_tax:
        return StateLocalTax(state=0.0, local=0.0)

    deduction = get_deduction(profile, jurisdiction)
    taxable_income = compute_taxable_income(ytd.gross_income, ytd.adjustments, deduction)

    state_tax = compute_bracket_tax(taxable_income, jurisdiction.brackets[profile.filing_status])
    local_tax = 0.0

    ordered = sorted(jurisdiction.overlays, key=lambda o: o.kind not in STATE_LEVEL_OVERLAYS)
    for overlay in ordered:
        handler = OVERLAY_HANDLERS[overlay.kind]
        state_add, local_add = handler(overlay, profile, taxable_income, state_tax)
        state_tax += state_add
        local_tax += local_add

    return StateLocalTax(state=state_tax, local=local_tax)


# =============================================================================
# Jurisdiction lookups for callers building profiles
# =============================================================================


def state_name(state: str, rules: TaxRules) -> str:
    return get_jurisdiction(rules, state).name


def state_has_income_tax(state: str, rules: TaxRules) -> bool:
    return get_jurisdiction(rules, state).has_income_tax


def state_needs_county(state: str, rules: TaxRules) -> bool:
    return get_jurisdiction(rules, state).requires_county


def state_has_local_tax(state: str, rules: TaxRules) -> bool:
    """True if the state carries any county or resident locality tax."""
    jurisdiction = get_jurisdiction(rules, state)
    return jurisdiction.requires_county or bool(jurisdiction.localities)


def list_counties(state: str, rules: TaxRules) -> List[str]:
    """Sorted county names for a state with county tax (empty otherwise)."""
    return get_jurisdiction(rules, state).counties


def list_localities(state: str, rules: TaxRules) -> List[str]:
    return get_jurisdiction(rules, state).localities
