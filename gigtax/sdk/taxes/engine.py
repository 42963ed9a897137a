"""Total and marginal tax calculation.

compute_total_tax answers "what do I owe on everything so far";
compute_marginal_tax answers "how much of this transaction should I set
aside". The second is computed as the difference of two totals rather than
as net x effective rate, because brackets are progressive and the Social
Security wage base caps part of SE tax: the true cost of the next dollar
climbs through brackets and drops once the wage base is used up.
"""

import logging
from typing import Any, Dict, List, Optional

from ..eligibility import BusinessStructureEligibility
from ..schemas import (
    MarginalResult,
    TaxBreakdown,
    TaxProfile,
    TaxResult,
    TransactionData,
    TransactionSummary,
    YTDData,
)
from .brackets import compute_bracket_tax, compute_taxable_income, get_deduction
from .jurisdictions import compute_state_and_local_tax
from .rules import TaxRulesError, get_default_rules
from .schemas import TaxRules
from .self_employment import compute_se_tax

logger = logging.getLogger(__name__)


class ProfileIncompleteError(ValueError):
    """Raised when a profile lacks a field the calculation needs."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


# =============================================================================
# Profile validation
# =============================================================================


def validate_tax_profile(profile: TaxProfile, rules: TaxRules) -> List[ProfileIncompleteError]:
    """Check a profile against the rules it will be computed with.

    Returns:
        List of problems (empty if the profile is complete)
    """
    problems = []

    if profile.deduction_method == "itemized" and not (profile.itemized_amount and profile.itemized_amount > 0):
        problems.append(ProfileIncompleteError(
            "itemized_amount",
            "Itemized deduction method requires a positive itemized_amount",
        ))

    jurisdiction = rules.states.get(profile.state)
    if jurisdiction is None:
        problems.append(ProfileIncompleteError(
            "state",
            f"No tax table for state '{profile.state}' in {rules.year} rules",
        ))
        return problems

    if jurisdiction.requires_county:
        if not profile.county:
            problems.append(ProfileIncompleteError(
                "county",
                f"{jurisdiction.name} requires a county (one of: {', '.join(jurisdiction.counties)})",
            ))
        elif profile.county not in jurisdiction.counties:
            problems.append(ProfileIncompleteError(
                "county",
                f"Unrecognized {jurisdiction.name} county '{profile.county}'",
            ))

    unknown = sorted(profile.local_residencies - set(jurisdiction.localities))
    if unknown:
        problems.append(ProfileIncompleteError(
            "local_residencies",
            f"{jurisdiction.name} has no local tax for: {', '.join(unknown)}",
        ))

    return problems


def require_complete_profile(profile: TaxProfile, rules: TaxRules) -> None:
    """Raise the first profile problem, if any.

    Raises:
        ProfileIncompleteError: naming the missing or inconsistent field
    """
    problems = validate_tax_profile(profile, rules)
    if problems:
        raise problems[0]


# =============================================================================
# Totals
# =============================================================================


def compute_federal_tax(ytd: YTDData, profile: TaxProfile, rules: TaxRules) -> float:
    """Calculate federal income tax on YTD income."""
    deduction = get_deduction(profile, rules.federal)
    taxable_income = compute_taxable_income(ytd.gross_income, ytd.adjustments, deduction)
    return compute_bracket_tax(taxable_income, rules.federal.brackets[profile.filing_status])


def compute_total_tax(ytd: YTDData, profile: TaxProfile, rules: Optional[TaxRules] = None) -> TaxResult:
    """Calculate federal, state, local, and SE tax on YTD figures.

    Args:
        ytd: Year-to-date totals
        profile: Taxpayer profile
        rules: Tax rules (defaults to the latest available year)

    Returns:
        TaxResult with each component, the total, and effective rate

    Raises:
        ProfileIncompleteError: If the profile is missing required input
    """
    if rules is None:
        rules = get_default_rules()
    require_complete_profile(profile, rules)

    federal = compute_federal_tax(ytd, profile, rules)
    state_local = compute_state_and_local_tax(ytd, profile, rules)

    se_tax = 0.0
    if profile.se_income:
        se_tax = compute_se_tax(0.0, ytd.net_se, profile.filing_status, rules.self_employment)

    total = federal + state_local.state + state_local.local + se_tax
    effective_rate = total / ytd.gross_income if ytd.gross_income > 0 else 0.0

    return TaxResult(
        federal=federal,
        state=state_local.state,
        local=state_local.local,
        se_tax=se_tax,
        total=total,
        effective_rate=effective_rate,
    )


def compute_ytd_effective_rate(ytd: YTDData, profile: TaxProfile, rules: Optional[TaxRules] = None) -> Dict[str, Any]:
    """Summarize YTD liability for a dashboard card.

    Returns:
        Dict with effective_rate, total_tax, and breakdown (TaxBreakdown)
    """
    result = compute_total_tax(ytd, profile, rules)
    return {
        "effective_rate": result.effective_rate,
        "total_tax": result.total,
        "breakdown": result.breakdown,
    }


# =============================================================================
# Marginal set-aside
# =============================================================================


def add_transaction(ytd: YTDData, transaction: TransactionData) -> YTDData:
    """New YTD totals with a transaction's gross and net folded in."""
    return ytd.model_copy(update={
        "gross_income": ytd.gross_income + transaction.gross,
        "net_se": ytd.net_se + transaction.net,
    })


def compute_marginal_tax(
    ytd: YTDData,
    transaction: TransactionData,
    profile: TaxProfile,
    rules: Optional[TaxRules] = None,
    eligibility: Optional[BusinessStructureEligibility] = None,
) -> MarginalResult:
    """Calculate how much tax a single transaction adds on top of YTD income.

    Args:
        ytd: Year-to-date totals before this transaction
        transaction: The new income event
        profile: Taxpayer profile
        rules: Tax rules (defaults to the latest available year)
        eligibility: Resolved business-structure eligibility; when it says
            SE tax does not apply, SE tax is left out of both totals

    Returns:
        MarginalResult with the set-aside amount, rate on transaction net,
        and per-component deltas
    """
    net = transaction.net
    if net <= 0:
        return MarginalResult.zero()

    if rules is None:
        rules = get_default_rules()
    if eligibility is not None and not eligibility.uses_self_employment_tax:
        profile = profile.model_copy(update={"se_income": False})

    before = compute_total_tax(ytd, profile, rules)
    after = compute_total_tax(add_transaction(ytd, transaction), profile, rules)

    delta = TaxBreakdown(
        federal=after.federal - before.federal,
        state=after.state - before.state,
        local=after.local - before.local,
        se_tax=after.se_tax - before.se_tax,
    )
    amount = delta.total

    logger.debug(
        f"Marginal tax on {net:.2f} net over {ytd.gross_income:.2f} YTD: "
        f"{amount:.2f} (federal {delta.federal:.2f}, state {delta.state:.2f}, "
        f"local {delta.local:.2f}, se {delta.se_tax:.2f})"
    )

    return MarginalResult(amount=amount, rate=amount / net, breakdown=delta)



def summarize_transaction(transaction: TransactionData, result: MarginalResult) -> TransactionSummary:
    """Net, set-aside and take-home for a transaction and its marginal result."""
    return TransactionSummary(
        gross=transaction.gross,
        expenses=transaction.expenses,
        net=transaction.net,
        set_aside=result.amount,
        take_home=transaction.net - result.amount,
    )


def compute_mileage_deduction(miles: float, rules: Optional[TaxRules] = None) -> float:
    """Business miles times the year's standard mileage rate.

    Raises:
        TaxRulesError: If the year's rules carry no mileage_rate
    """
    if rules is None:
        rules = get_default_rules()
    if rules.mileage_rate is None:
        raise TaxRulesError(f"No mileage_rate in {rules.year} tax rules")
    return max(0.0, miles) * rules.mileage_rate
